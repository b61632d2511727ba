"""Quote model for customer connectivity offers."""
import enum
from datetime import date
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK


class QuoteStatus(enum.Enum):
    """Quote status enum."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


# Schema versions of the service/feature linkage
LEGACY_SCHEMA_VERSION = 1  # linkage embedded in notes
CURRENT_SCHEMA_VERSION = 2  # linkage columns + quote_feature rows


class Quote(Base):
    """
    Quote tying one customer to a service, bandwidth tier and add-ons.
    
    Monetary totals are fixed at creation and never recomputed from the
    catalog; status is the only field changed afterwards.
    """
    
    __tablename__ = 'quote'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    quote_number = Column(String(32), nullable=False, unique=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id'), nullable=False)
    sales_rep_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    status = Column(String(20), nullable=False, default=QuoteStatus.DRAFT.value)
    total_monthly_cost = Column(Numeric(14, 2), nullable=False, default=0)
    total_one_time_cost = Column(Numeric(14, 2), nullable=False, default=0)
    contract_term_months = Column(Integer, nullable=False, default=12)
    notes = Column(Text, nullable=True)
    quote_date = Column(Date, nullable=False, default=date.today)
    expiration_date = Column(Date, nullable=True)
    
    # Explicit linkage (schema_version 2)
    schema_version = Column(Integer, nullable=False, default=CURRENT_SCHEMA_VERSION)
    service_id = Column(BigInteger, ForeignKey('service.id', ondelete='SET NULL'), nullable=True)
    bandwidth_option_id = Column(BigInteger, ForeignKey('bandwidth_option.id', ondelete='SET NULL'), nullable=True)
    service_name_snapshot = Column(String(200), nullable=True)
    service_setup_fee_snapshot = Column(Numeric(14, 2), nullable=True)
    bandwidth_label_snapshot = Column(String(40), nullable=True)
    bandwidth_price_snapshot = Column(Numeric(14, 2), nullable=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    customer = relationship('Customer', back_populates='quotes')
    sales_rep = relationship('AppUser')
    service = relationship('Service', foreign_keys=[service_id])
    bandwidth_option = relationship('BandwidthOption', foreign_keys=[bandwidth_option_id])
    features = relationship('QuoteFeature', back_populates='quote', cascade='all, delete-orphan')
    
    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}', monthly={self.total_monthly_cost})>"
    
    @property
    def is_expired(self):
        """Check if quote is past its expiration date (calculated, not stored)."""
        if self.status in [QuoteStatus.DRAFT.value, QuoteStatus.SENT.value] and self.expiration_date:
            return date.today() > self.expiration_date
        return False
    
    @property
    def document_name(self):
        """Download name of the exported document (without extension)."""
        return f"Quote-{self.quote_number or self.id}"
    
    def to_dict(self):
        return {
            'id': self.id,
            'quote_number': self.quote_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer.company_name if self.customer else None,
            'sales_rep_id': self.sales_rep_id,
            'status': self.status,
            'is_expired': self.is_expired,
            'total_monthly_cost': str(self.total_monthly_cost),
            'total_one_time_cost': str(self.total_one_time_cost),
            'contract_term_months': self.contract_term_months,
            'quote_date': self.quote_date.isoformat() if self.quote_date else None,
            'expiration_date': self.expiration_date.isoformat() if self.expiration_date else None,
            'service_id': self.service_id,
            'bandwidth_option_id': self.bandwidth_option_id,
            'schema_version': self.schema_version,
            'features': [f.to_dict() for f in self.features],
        }
