"""
app/repositories/rate_card_repository.py

Atomic write of an imported rate card together with its template usage bump.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.repositories.template_repository import CarrierTemplateRepository
from db.models.rate_card import RateCard, RateCardType
from db.repositories.errors import RateCardPersistenceError, TemplateNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateCardRecord:
    """
    Everything needed to insert one rate card row.
    """

    carrier_id: str
    template_id: str
    template_name: str
    template_version: int
    rate_structure: str
    rates: list[dict[str, Any]]
    csv_row_count: int
    skipped_row_count: int
    summary: dict[str, Any] | None = None
    imported_by: str | None = None


@dataclass(frozen=True)
class TemplateUsageIncrement:
    template_id: str
    by: int = 1
    used_at: datetime | None = None
    success_rate: float | None = None


class RateCardRepository:
    """
    Repository for immutable rate card batches.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._templates = CarrierTemplateRepository(session)

    def create_atomic(self, record: RateCardRecord, usage: TemplateUsageIncrement) -> str:
        """
        Insert the rate card and increment template usage in one transaction.

        Either both writes commit or the session is rolled back and
        RateCardPersistenceError is raised.
        """

        used_at = usage.used_at or datetime.now(timezone.utc)
        rate_card = RateCard(
            carrier_id=record.carrier_id,
            template_id=self._templates.get(record.template_id).id,
            template_name=record.template_name,
            template_version=record.template_version,
            rate_type=RateCardType.CUSTOM_CSV_IMPORT,
            rate_structure=record.rate_structure,
            rates=record.rates,
            record_count=len(record.rates),
            csv_row_count=record.csv_row_count,
            skipped_row_count=record.skipped_row_count,
            summary=record.summary,
            imported_by=record.imported_by,
            enabled=True,
        )
        try:
            self._session.add(rate_card)
            self._session.flush()
            rate_card_id = rate_card.id
            self._templates.increment_usage(
                usage.template_id,
                by=usage.by,
                used_at=used_at,
                success_rate=usage.success_rate,
            )
            self._session.commit()
        except TemplateNotFoundError:
            self._session.rollback()
            raise
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception(
                "Rate card persistence failed template_id=%s rates=%d",
                record.template_id,
                len(record.rates),
            )
            raise RateCardPersistenceError("Failed to persist rate card and usage update.") from exc

        return str(rate_card_id)
