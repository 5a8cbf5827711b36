"""
Shared SQLAlchemy DeclarativeBase for all models.

All models must inherit from this Base so their tables are registered on the
shared metadata that DatabaseManager.create_tables() builds.
"""

from sqlalchemy.orm import DeclarativeBase

from ..metadata import metadata


class Base(DeclarativeBase):
    """Shared declarative base for chatroom models."""

    metadata = metadata
