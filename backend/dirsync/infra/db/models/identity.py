"""
Identity store: local users mapped from directory entries.

Tables:
    directory_users — one row per mapped directory entry (unique DN and
                      unique canonical name)
"""
from sqlalchemy import Column, DateTime, Index, Integer, Text
from sqlalchemy.sql import func

from dirsync.database import Base


class DirectoryUser(Base):
    """A directory entry mapped to a local canonical user name."""

    __tablename__ = "directory_users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    profile_prefix = Column(Text, nullable=False, index=True)
    dn = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False, unique=True)  # canonical local name
    directory_uuid = Column(Text, nullable=True)
    display_name = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_directory_users_profile_dn", "profile_prefix", "dn"),
    )
