"""
Base model classes and mixins.
"""

from datetime import datetime
from typing import Any
from uuid import UUID as PyUUID, uuid4
from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    # Common type annotations - all datetimes are timezone-aware
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


class UUIDMixin:
    """
    Mixin for UUID primary key.

    Uses UUID v4 (random) for primary keys. The generic ``Uuid`` type maps
    to a native UUID column on PostgreSQL and CHAR(32) on SQLite.

    Usage:
        class MyModel(Base, UUIDMixin):
            __tablename__ = "my_table"
            # No need to define id column
    """

    id: Mapped[PyUUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
