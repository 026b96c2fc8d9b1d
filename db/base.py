"""
db/base.py

Declarative base and shared mixins for the rate template models.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Project-wide declarative base.

    ``dict`` and ``list`` annotations resolve to a JSON document column so
    template sections and rate batches can be declared without repeating the
    column type.
    """

    type_annotation_map: dict[Any, Any] = {
        dict[str, Any]: JSONDocument,
        list[Any]: JSONDocument,
    }


class TimestampMixin:
    """
    Adds created_at and updated_at columns.
    updated_at is refreshed on every ORM UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
