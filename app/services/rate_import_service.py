"""
app/services/rate_import_service.py

Service layer for carrier rate sheet detection and template-driven imports.

Import flow, with no implicit retries:

    1. validate  - structural check of the whole file; errors stop the flow.
    2. preview   - process the first few data rows, persist nothing.
    3. commit    - process every data row, then write the rate card and bump
                   template usage in a single transaction.

Row-level failures are skipped and counted, never surfaced one by one.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, BinaryIO, Sequence

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.config import get_rate_import_settings
from app.domain.rate_import import (
    ExistingTemplateRef,
    ImportCommitResult,
    ImportPreview,
    MappingSuggestionResult,
    ValidationResult,
)
from app.domain.rate_template import CarrierRateTemplate
from app.mappers.confidence import score_mapping
from app.mappers.mapping_heuristics import MappingHeuristics
from app.repositories.rate_card_repository import RateCardRecord, RateCardRepository, TemplateUsageIncrement
from app.services.csv_reader import read_csv_rows
from app.services.rate_calculator import process_rows, summarize_rate_records
from app.services.template_registry import TemplateRegistry
from app.validators.template_csv_validator import TemplateCSVValidator, resolve_layout

logger = logging.getLogger(__name__)

Rows = Sequence[Sequence[Any]]


class RateImportService:
    """
    Coordinates mapping suggestions, validation, preview and commit.
    """

    def __init__(
        self,
        *,
        preview_row_count: int,
        validation_sample_size: int,
        existing_template_limit: int,
        max_template_sample_rows: int,
        log_row_errors: bool,
        heuristics: MappingHeuristics | None = None,
    ) -> None:
        self._preview_row_count = max(1, preview_row_count)
        self._existing_template_limit = max(1, existing_template_limit)
        self._max_template_sample_rows = max(1, max_template_sample_rows)
        self._log_row_errors = log_row_errors
        self._heuristics = heuristics or MappingHeuristics()
        self._validator = TemplateCSVValidator(sample_size=validation_sample_size)

    def registry(self, db: Session) -> TemplateRegistry:
        return TemplateRegistry(db, max_sample_rows=self._max_template_sample_rows)

    def suggest_mapping(
        self,
        *,
        db: Session,
        headers: Sequence[str],
        sample_row: Sequence[str] | None = None,
        carrier_id: str | None = None,
    ) -> MappingSuggestionResult:
        """
        Propose mappings for an unfamiliar header row and score them.
        """

        suggestion = self._heuristics.suggest(headers, sample_row)
        existing: list[CarrierRateTemplate] = []
        if carrier_id:
            existing = self.registry(db).list_recent_for_carrier(
                carrier_id,
                limit=self._existing_template_limit,
            )
        confidence = score_mapping(suggestion.field_mappings, len(existing))

        logger.info(
            "Suggested mapping carrier_id=%s headers=%d mapped=%d confidence=%d existing=%d",
            carrier_id,
            len(headers),
            len(suggestion.field_mappings),
            confidence.overall,
            len(existing),
        )
        return MappingSuggestionResult(
            suggestions=suggestion,
            confidence=confidence,
            existing_templates=[
                ExistingTemplateRef(
                    id=template.id or "",
                    template_name=template.template_name,
                    last_used_at=template.usage.last_used_at,
                    success_rate=template.usage.success_rate,
                )
                for template in existing
            ],
        )

    def validate_import(self, *, db: Session, template_id: str, rows: Rows) -> ValidationResult:
        template = self.registry(db).get_template(template_id)
        validation = self._validator.validate(rows, template)
        logger.info(
            "Validated import template_id=%s valid=%s errors=%d warnings=%d",
            template_id,
            validation.valid,
            len(validation.errors),
            len(validation.warnings),
        )
        return validation

    def preview_import(self, *, db: Session, template_id: str, rows: Rows) -> ImportPreview:
        """
        Validate, then process only the first preview rows. Nothing is persisted.
        """

        template = self.registry(db).get_template(template_id)
        validation = self._validator.validate(rows, template)
        if not validation.valid:
            logger.info("Preview rejected template_id=%s errors=%d", template_id, len(validation.errors))
            return ImportPreview(validation=validation)

        layout = resolve_layout(rows, template)
        processed = process_rows(
            layout.data_rows,
            template,
            header=layout.header,
            row_numbers=layout.row_numbers,
            limit=self._preview_row_count,
            log_row_errors=self._log_row_errors,
        )
        logger.info(
            "Previewed import template_id=%s rows=%d skipped=%d",
            template_id,
            len(processed.records),
            processed.skipped_count,
        )
        return ImportPreview(
            validation=validation,
            rows=processed.records,
            skipped_count=processed.skipped_count,
        )

    def commit_import(
        self,
        *,
        db: Session,
        template_id: str,
        rows: Rows,
        imported_by: str | None = None,
    ) -> ImportCommitResult:
        """
        Validate and process every data row, then persist one rate card.

        The rate card insert and the template usage increment share one
        transaction. Returns without writing anything when validation fails.
        """

        template = self.registry(db).get_template(template_id)
        validation = self._validator.validate(rows, template)
        if not validation.valid:
            logger.info("Commit rejected template_id=%s errors=%d", template_id, len(validation.errors))
            return ImportCommitResult(validation=validation)

        layout = resolve_layout(rows, template)
        processed = process_rows(
            layout.data_rows,
            template,
            header=layout.header,
            row_numbers=layout.row_numbers,
            log_row_errors=self._log_row_errors,
        )
        summary = summarize_rate_records(processed.records)
        csv_row_count = len(layout.data_rows)
        success_rate = round(len(processed.records) / csv_row_count * 100, 2) if csv_row_count else 0.0

        rate_card_id = RateCardRepository(db).create_atomic(
            RateCardRecord(
                carrier_id=template.carrier_id,
                template_id=template_id,
                template_name=template.template_name,
                template_version=template.version,
                rate_structure=template.rate_calculation_rules.calculation_type,
                rates=[record.to_dict() for record in processed.records],
                csv_row_count=csv_row_count,
                skipped_row_count=processed.skipped_count,
                summary=summary,
                imported_by=imported_by,
            ),
            TemplateUsageIncrement(template_id=template_id, by=1, success_rate=success_rate),
        )

        logger.info(
            "Committed import template_id=%s rate_card_id=%s processed=%d skipped=%d",
            template_id,
            rate_card_id,
            len(processed.records),
            processed.skipped_count,
        )
        return ImportCommitResult(
            validation=validation,
            rate_card_id=rate_card_id,
            processed_count=len(processed.records),
            skipped_count=processed.skipped_count,
            summary=summary,
        )

    def read_upload(self, *, db: Session, template_id: str, upload: UploadFile | BinaryIO) -> list[list[str]]:
        """
        Decode an uploaded file with the template's delimiter and encoding.
        """

        template = self.registry(db).get_template(template_id)
        return read_csv_rows(
            upload,
            delimiter=template.csv_structure.delimiter,
            encoding=template.csv_structure.encoding,
        )


@lru_cache(maxsize=1)
def get_rate_import_service() -> RateImportService:
    """
    Return cached RateImportService configured from environment.
    """

    settings = get_rate_import_settings()
    return RateImportService(
        preview_row_count=settings.preview_row_count,
        validation_sample_size=settings.validation_sample_size,
        existing_template_limit=settings.existing_template_limit,
        max_template_sample_rows=settings.max_template_sample_rows,
        log_row_errors=settings.log_row_errors,
    )
