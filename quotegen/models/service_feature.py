"""Association between services and the features offered with them."""
from sqlalchemy import Column, BigInteger, ForeignKey, Table
from quotegen.database import Base


service_feature = Table(
    'service_feature',
    Base.metadata,
    Column('service_id', BigInteger, ForeignKey('service.id', ondelete='CASCADE'), primary_key=True),
    Column('feature_id', BigInteger, ForeignKey('feature.id', ondelete='CASCADE'), primary_key=True),
)
