"""
SQLAlchemy declarative base.

All engine models, including the read-only collaborator tables, inherit
from Base so metadata.create_all can build a complete schema for tests.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass
