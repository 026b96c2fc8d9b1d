"""
app/repositories/template_repository.py

Persistence helpers for carrier rate templates.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from db.models.carrier_rate_template import CarrierRateTemplate as CarrierRateTemplateModel
from db.repositories.errors import TemplateNotFoundError


class CarrierTemplateRepository:
    """
    Repository for carrier rate template rows.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        *,
        carrier_id: str,
        template_name: str,
        sections: dict[str, Any],
        carrier_name: str = "",
        created_by: str | None = None,
    ) -> CarrierRateTemplateModel:
        """
        Stage a new template row and flush it so its id is assigned.
        """

        model = CarrierRateTemplateModel(
            carrier_id=carrier_id,
            template_name=template_name,
            carrier_name=carrier_name,
            created_by=created_by,
            csv_structure=sections["csv_structure"],
            field_mappings=sections["field_mappings"],
            rate_calculation_rules=sections["rate_calculation_rules"],
            validation_rules=sections["validation_rules"],
            sample_data=sections["sample_data"],
            enabled=True,
            version=1,
            imports_count=0,
        )
        self._session.add(model)
        self._session.flush()
        return model

    def get(self, template_id: str | uuid.UUID) -> CarrierRateTemplateModel:
        """
        Load one template by id or raise TemplateNotFoundError.
        """

        key = _as_uuid(template_id)
        model = None
        if key is not None:
            model = self._session.get(CarrierRateTemplateModel, key, populate_existing=True)
        if model is None:
            raise TemplateNotFoundError(str(template_id))
        return model

    def list_by_carrier(self, carrier_id: str, *, limit: int) -> list[CarrierRateTemplateModel]:
        """
        Enabled templates for one carrier, most recently used first; never-used last.
        """

        stmt = (
            select(CarrierRateTemplateModel)
            .where(
                CarrierRateTemplateModel.carrier_id == carrier_id,
                CarrierRateTemplateModel.enabled.is_(True),
            )
            .order_by(
                CarrierRateTemplateModel.last_used_at.desc().nulls_last(),
                CarrierRateTemplateModel.created_at.desc(),
            )
            .limit(max(1, limit))
        )
        return list(self._session.execute(stmt).scalars().all())

    def list_enabled(self, *, carrier_id: str | None = None) -> list[CarrierRateTemplateModel]:
        """
        Enabled templates, newest first, optionally scoped to one carrier.
        """

        stmt = select(CarrierRateTemplateModel).where(CarrierRateTemplateModel.enabled.is_(True))
        if carrier_id:
            stmt = stmt.where(CarrierRateTemplateModel.carrier_id == carrier_id)
        stmt = stmt.order_by(CarrierRateTemplateModel.created_at.desc())
        return list(self._session.execute(stmt).scalars().all())

    def increment_usage(
        self,
        template_id: str | uuid.UUID,
        *,
        by: int = 1,
        used_at: datetime | None = None,
        success_rate: float | None = None,
    ) -> None:
        """
        Add ``by`` to imports_count in SQL and stamp last_used_at.

        ``success_rate`` is the share of rows the new imports kept. It is folded
        into the stored value as a running average weighted by imports_count.

        Both updates are expressed against the columns, not values read in
        Python, so concurrent imports never overwrite each other. Does not commit.
        """

        key = _as_uuid(template_id)
        if key is None:
            raise TemplateNotFoundError(str(template_id))
        stamp = used_at or datetime.now(timezone.utc)
        model = CarrierRateTemplateModel
        values: dict[str, Any] = {
            "imports_count": model.imports_count + by,
            "last_used_at": stamp,
            "updated_at": stamp,
        }
        if success_rate is not None and by > 0:
            # SET expressions read the pre-update row on both SQLite and PostgreSQL.
            values["success_rate"] = (model.success_rate * model.imports_count + float(success_rate) * by) / (
                model.imports_count + by
            )
        stmt = (
            update(model)
            .where(model.id == key)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        if result.rowcount == 0:
            raise TemplateNotFoundError(str(template_id))


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
