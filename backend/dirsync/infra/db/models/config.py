"""
Namespaced application config table.

Holds every key the background sync reads or writes: profile settings
(``<prefix>ldap_*``), cycle progress and the self-tuned interval.

Tables:
    app_config — one row per (namespace, key)
"""
from sqlalchemy import Column, DateTime, Text
from sqlalchemy.sql import func

from dirsync.database import Base


class AppConfigValue(Base):
    """A single namespaced config value, stored as text."""

    __tablename__ = "app_config"

    namespace = Column(Text, primary_key=True)
    config_key = Column(Text, primary_key=True)
    config_value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
