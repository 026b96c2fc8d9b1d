"""
db/models/rate_card.py

Immutable batch of normalized rate records produced by one template import.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class RateCardType:
    CUSTOM_CSV_IMPORT = "custom_csv_import"


class RateCard(Base):
    __tablename__ = "rate_cards"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    carrier_id: Mapped[str] = mapped_column(String(120), nullable=False)
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("carrier_rate_templates.id", ondelete="RESTRICT"),
        nullable=False,
    )
    template_name: Mapped[str] = mapped_column(String(255), nullable=False)
    template_version: Mapped[int] = mapped_column(Integer, nullable=False)
    rate_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=RateCardType.CUSTOM_CSV_IMPORT,
    )
    rate_structure: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="explicit or per_unit, copied from the template rules",
    )
    rates: Mapped[list[Any]] = mapped_column(
        nullable=False,
        comment="Normalized rate records",
    )
    record_count: Mapped[int] = mapped_column(Integer, nullable=False)
    csv_row_count: Mapped[int] = mapped_column(Integer, nullable=False)
    skipped_row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summary: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    imported_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_rate_cards_carrier_id", "carrier_id"),
        Index("ix_rate_cards_template_id", "template_id"),
        Index("ix_rate_cards_created_at", "created_at"),
    )
