"""
db/models/carrier_rate_template.py

Persisted definition of one carrier's CSV rate sheet layout.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CarrierTemplateType:
    CUSTOM_CARRIER_CSV = "custom_carrier_csv"


class CarrierRateTemplate(Base, TimestampMixin):
    __tablename__ = "carrier_rate_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    carrier_id: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Carrier identifier the template belongs to",
    )
    template_name: Mapped[str] = mapped_column(String(255), nullable=False)
    carrier_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    template_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=CarrierTemplateType.CUSTOM_CARRIER_CSV,
    )
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    csv_structure: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        comment="Header/data row positions, delimiter, encoding, expected columns",
    )
    field_mappings: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        comment="Logical rate field -> CSV column name",
    )
    rate_calculation_rules: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    validation_rules: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    sample_data: Mapped[list[Any]] = mapped_column(nullable=False, default=list)

    imports_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Incremented atomically on every committed import",
    )
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    success_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("ix_carrier_rate_templates_carrier_id", "carrier_id"),
        Index("ix_carrier_rate_templates_enabled", "enabled"),
        Index("ix_carrier_rate_templates_carrier_enabled", "carrier_id", "enabled"),
        Index("ix_carrier_rate_templates_last_used_at", "last_used_at"),
    )
