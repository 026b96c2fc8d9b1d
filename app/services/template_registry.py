"""
app/services/template_registry.py

Create, load and list carrier rate templates.

Templates are normalized against the central defaults on the way in and
again on the way out, so callers always receive a fully populated
``CarrierRateTemplate``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.rate_template import CarrierRateTemplate, apply_template_defaults, template_from_document
from app.repositories.template_repository import CarrierTemplateRepository
from db.models.carrier_rate_template import CarrierRateTemplate as CarrierRateTemplateModel
from db.repositories.errors import TemplatePayloadError, TemplatePersistenceError

logger = logging.getLogger(__name__)

REQUIRED_PAYLOAD_KEYS: tuple[str, ...] = ("carrier_id", "template_name", "csv_structure", "field_mappings")


class TemplateRegistry:
    """
    Template persistence collaborator used by the import flow.
    """

    def __init__(self, session: Session, *, max_sample_rows: int = 10) -> None:
        self._session = session
        self._repository = CarrierTemplateRepository(session)
        self._max_sample_rows = max(1, max_sample_rows)

    def create_template(self, payload: Mapping[str, Any], *, created_by: str | None = None) -> str:
        """
        Validate, normalize and store a new template. Returns its id.

        Mappings are not checked against expected_columns here; that happens
        when a file is validated for import.
        """

        missing = [key for key in REQUIRED_PAYLOAD_KEYS if _is_missing(payload.get(key))]
        if missing:
            raise TemplatePayloadError(
                "Carrier ID, template name, CSV structure, and field mappings are required "
                f"(missing: {', '.join(missing)})."
            )

        sections = apply_template_defaults(payload, max_sample_rows=self._max_sample_rows)
        carrier_id = str(payload["carrier_id"]).strip()
        template_name = str(payload["template_name"]).strip()

        try:
            model = self._repository.create(
                carrier_id=carrier_id,
                template_name=template_name,
                carrier_name=str(payload.get("carrier_name") or "").strip(),
                sections=sections,
                created_by=created_by,
            )
            template_id = str(model.id)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Template creation failed carrier_id=%s name=%r", carrier_id, template_name)
            raise TemplatePersistenceError("Failed to store carrier rate template.") from exc

        logger.info(
            "Created carrier rate template id=%s carrier_id=%s name=%r mapped_fields=%d",
            template_id,
            carrier_id,
            template_name,
            sum(1 for name, column in sections["field_mappings"].items() if column and name != "custom_fields"),
        )
        return template_id

    def get_template(self, template_id: str) -> CarrierRateTemplate:
        """
        Load one template. Raises TemplateNotFoundError.
        """

        return _to_domain(self._repository.get(template_id))

    def list_recent_for_carrier(self, carrier_id: str, *, limit: int = 5) -> list[CarrierRateTemplate]:
        return [_to_domain(model) for model in self._repository.list_by_carrier(carrier_id, limit=limit)]

    def list_templates(self, *, carrier_id: str | None = None) -> list[CarrierRateTemplate]:
        return [_to_domain(model) for model in self._repository.list_enabled(carrier_id=carrier_id)]

    def increment_usage(
        self,
        template_id: str,
        *,
        by: int = 1,
        used_at: datetime | None = None,
    ) -> None:
        """
        Commit a standalone usage increment.

        Imports do not call this; they bump usage inside the rate card
        transaction instead.
        """

        try:
            self._repository.increment_usage(template_id, by=by, used_at=used_at)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Usage increment failed template_id=%s", template_id)
            raise TemplatePersistenceError("Failed to update template usage.") from exc


def _to_domain(model: CarrierRateTemplateModel) -> CarrierRateTemplate:
    return template_from_document(
        {
            "id": model.id,
            "carrier_id": model.carrier_id,
            "template_name": model.template_name,
            "carrier_name": model.carrier_name,
            "template_type": model.template_type,
            "enabled": model.enabled,
            "version": model.version,
            "created_by": model.created_by,
            "created_at": model.created_at,
            "updated_at": model.updated_at,
            "csv_structure": model.csv_structure,
            "field_mappings": model.field_mappings,
            "rate_calculation_rules": model.rate_calculation_rules,
            "validation_rules": model.validation_rules,
            "sample_data": model.sample_data,
            "usage": {
                "imports_count": model.imports_count,
                "last_used_at": model.last_used_at,
                "success_rate": model.success_rate,
            },
        }
    )


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
