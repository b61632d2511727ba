"""SettingEntry model - key/value rows behind the settings store."""
from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func
from quotegen.database import Base, BigIntPK


class SettingEntry(Base):
    """Named JSON document (branding, branding presets, saved templates)."""
    
    __tablename__ = 'setting_entry'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    def __repr__(self):
        return f"<SettingEntry(key='{self.key}')>"
