"""Models package - exports all SQLAlchemy models."""
# Users
from quotegen.models.app_user import AppUser, UserRole

# Catalog
from quotegen.models.service import Service, ServiceCategory
from quotegen.models.bandwidth_option import BandwidthOption, BandwidthUnit
from quotegen.models.feature import Feature
from quotegen.models.service_feature import service_feature

# Quotes
from quotegen.models.customer import Customer
from quotegen.models.quote import Quote, QuoteStatus, LEGACY_SCHEMA_VERSION, CURRENT_SCHEMA_VERSION
from quotegen.models.quote_feature import QuoteFeature

# Settings store
from quotegen.models.setting_entry import SettingEntry

__all__ = [
    'AppUser', 'UserRole',
    'Service', 'ServiceCategory', 'BandwidthOption', 'BandwidthUnit', 'Feature', 'service_feature',
    'Customer', 'Quote', 'QuoteStatus', 'LEGACY_SCHEMA_VERSION', 'CURRENT_SCHEMA_VERSION', 'QuoteFeature',
    'SettingEntry',
]
