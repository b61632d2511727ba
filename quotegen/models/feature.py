"""Feature model - optional add-ons (static IP, managed router, ...)."""
from sqlalchemy import Column, String, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK


class Feature(Base):
    """Add-on feature with its own recurring and one-time price."""
    
    __tablename__ = 'feature'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    monthly_price = Column(Numeric(14, 2), nullable=False, default=0)
    one_time_fee = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    services = relationship('Service', secondary='service_feature', back_populates='features')
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'monthly_price': str(self.monthly_price),
            'one_time_fee': str(self.one_time_fee),
        }
    
    def __repr__(self):
        return f"<Feature(id={self.id}, name='{self.name}')>"
