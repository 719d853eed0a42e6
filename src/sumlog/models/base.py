"""SQLAlchemy Base model and common mixins.

This module provides:
- Base: Declarative base for all models
- CreatedAtMixin: server-assigned created_at column for append-only tables

Usage:
    from sumlog.models.base import Base, CreatedAtMixin

    class MyModel(CreatedAtMixin, Base):
        __tablename__ = "my_table"
        name: Mapped[str]
"""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    All models should inherit from this class to be included in
    schema creation.
    """

    pass


class CreatedAtMixin:
    """Mixin that adds a created_at column set by the database on insert.

    There is no updated_at: rows using this mixin are never updated.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            nullable=False,
            index=True,
        )
