"""QuoteFeature model - features selected on a quote."""
from sqlalchemy import Column, BigInteger, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from quotegen.database import Base, BigIntPK


class QuoteFeature(Base):
    """
    Feature line of a quote.
    
    Stores a snapshot of the feature's name and prices at the time of quote
    creation so documents stay consistent with the stored totals even if the
    catalog changes later.
    """
    
    __tablename__ = 'quote_feature'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    quote_id = Column(BigInteger, ForeignKey('quote.id'), nullable=False)
    feature_id = Column(BigInteger, ForeignKey('feature.id', ondelete='SET NULL'), nullable=True)
    name_snapshot = Column(String(200), nullable=False)
    monthly_price = Column(Numeric(14, 2), nullable=False, default=0)
    one_time_fee = Column(Numeric(14, 2), nullable=False, default=0)
    
    # Relationships
    quote = relationship('Quote', back_populates='features')
    feature = relationship('Feature', foreign_keys=[feature_id])
    
    @property
    def name(self):
        return self.name_snapshot
    
    def to_dict(self):
        return {
            'feature_id': self.feature_id,
            'name': self.name_snapshot,
            'monthly_price': str(self.monthly_price),
            'one_time_fee': str(self.one_time_fee),
        }
    
    def __repr__(self):
        return f"<QuoteFeature(id={self.id}, quote_id={self.quote_id}, name='{self.name_snapshot}')>"
