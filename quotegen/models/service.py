"""Service model (catalog of connectivity products)."""
import enum
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK


class ServiceCategory(enum.Enum):
    """Service category enum."""
    DIA = "DIA"
    EBI = "EBI"
    PRIVATE_WAN = "Private WAN"


class Service(Base):
    """
    Service offered to customers (e.g. Dedicated Internet Access).
    
    Owns its bandwidth tiers. Editing a service never recomputes
    the totals of quotes that already reference it.
    """
    
    __tablename__ = 'service'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    category = Column(String(40), nullable=False, default=ServiceCategory.DIA.value)
    description = Column(Text, nullable=True)
    setup_fee = Column(Numeric(14, 2), nullable=False, default=0)
    min_contract_months = Column(Integer, nullable=False, default=12)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    bandwidth_options = relationship(
        'BandwidthOption',
        back_populates='service',
        cascade='all, delete-orphan',
        order_by='BandwidthOption.monthly_price'
    )
    features = relationship('Feature', secondary='service_feature', back_populates='services')
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'description': self.description,
            'setup_fee': str(self.setup_fee),
            'min_contract_months': self.min_contract_months,
        }
    
    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}', category='{self.category}')>"
