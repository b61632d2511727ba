"""BandwidthOption model - priced capacity tier of a service."""
import enum
from sqlalchemy import Column, BigInteger, String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK
from quotegen.utils.formatters import format_bandwidth


class BandwidthUnit(enum.Enum):
    """Bandwidth unit enum."""
    MBPS = "Mbps"
    GBPS = "Gbps"
    TBPS = "Tbps"


class BandwidthOption(Base):
    """
    Bandwidth tier (e.g. 100 Mbps at MUR 20,000 / month).
    
    Unavailable options stay visible to administrators but are never
    offered to sales users.
    """
    
    __tablename__ = 'bandwidth_option'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    service_id = Column(BigInteger, ForeignKey('service.id'), nullable=False)
    bandwidth = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(8), nullable=False, default=BandwidthUnit.MBPS.value)
    monthly_price = Column(Numeric(14, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    service = relationship('Service', back_populates='bandwidth_options')
    
    @property
    def label(self):
        """Human readable capacity, e.g. '100 Mbps'."""
        return format_bandwidth(self.bandwidth, self.unit)
    
    def to_dict(self):
        return {
            'id': self.id,
            'service_id': self.service_id,
            'bandwidth': str(self.bandwidth),
            'unit': self.unit,
            'label': self.label,
            'monthly_price': str(self.monthly_price),
            'is_available': self.is_available,
        }
    
    def __repr__(self):
        return f"<BandwidthOption(id={self.id}, service_id={self.service_id}, bandwidth='{self.label}')>"
