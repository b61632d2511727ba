"""Customer model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK


class Customer(Base):
    """Customer company. Created once per quote flow, not deduplicated."""
    
    __tablename__ = 'customer'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    company_name = Column(String(200), nullable=False)
    contact_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    country = Column(String(120), nullable=False, default='Mauritius')
    industry = Column(String(120), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    quotes = relationship('Quote', back_populates='customer')
    
    def to_dict(self):
        return {
            'id': self.id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'country': self.country,
            'industry': self.industry,
        }
    
    def __repr__(self):
        return f"<Customer(id={self.id}, company_name='{self.company_name}')>"
