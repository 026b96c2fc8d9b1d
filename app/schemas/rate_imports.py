"""
app/schemas/rate_imports.py

Request and response schemas for template-driven rate imports.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from app.domain.rate_import import ImportCommitResult, ImportPreview, RateRecord, ValidationResult

Cell = str | int | float | None


class ImportRowsRequest(BaseModel):
    """
    CSV content as rows of cells, header row included when the template has one.
    """

    rows: list[list[Cell]] = Field(default_factory=list)


class CommitImportRequest(ImportRowsRequest):
    imported_by: str | None = None


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: ValidationResult) -> ValidationResponse:
        return cls(valid=result.valid, errors=list(result.errors), warnings=list(result.warnings))


class RateRecordResponse(BaseModel):
    row_number: int = Field(..., ge=1)
    calculation_type: str
    base_unit: str
    origin: str | None = None
    destination: str | None = None
    origin_city: str | None = None
    origin_province: str | None = None
    origin_postal: str | None = None
    destination_city: str | None = None
    destination_province: str | None = None
    destination_postal: str | None = None
    weight_min: float = 0.0
    weight_max: float | None = None
    weight: float | None = None
    skid_count: int | None = None
    linear_feet: float | None = None
    base_rate: float = 0.0
    fuel_surcharge: float | None = None
    fuel_surcharge_pct: float | None = None
    min_charge: float | None = None
    total_rate: float | None = None
    service_level: str | None = None
    transit_days: int | None = None
    equipment_type: str | None = None
    minimum_applied: bool = False
    custom_fields: dict[str, str | None] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, record: RateRecord) -> RateRecordResponse:
        return cls.model_validate(record.to_dict())


class ImportPreviewResponse(BaseModel):
    validation: ValidationResponse
    rows: list[RateRecordResponse] = Field(default_factory=list)
    skipped_count: int = Field(0, ge=0)

    @classmethod
    def from_domain(cls, preview: ImportPreview) -> ImportPreviewResponse:
        return cls(
            validation=ValidationResponse.from_domain(preview.validation),
            rows=[RateRecordResponse.from_domain(record) for record in preview.rows],
            skipped_count=preview.skipped_count,
        )


class ImportCommitResponse(BaseModel):
    committed: bool
    rate_card_id: str | None = None
    processed_count: int = Field(0, ge=0)
    skipped_count: int = Field(0, ge=0)
    validation: ValidationResponse
    summary: dict[str, Any] | None = None

    @classmethod
    def from_domain(cls, result: ImportCommitResult) -> ImportCommitResponse:
        return cls(
            committed=result.committed,
            rate_card_id=result.rate_card_id,
            processed_count=result.processed_count,
            skipped_count=result.skipped_count,
            validation=ValidationResponse.from_domain(result.validation),
            summary=result.summary,
        )


class ImportUploadResponse(BaseModel):
    """
    Result of an uploaded file; only the parts relevant to ``mode`` are set.
    """

    mode: Literal["validate", "preview", "commit"]
    validation: ValidationResponse
    preview: ImportPreviewResponse | None = None
    commit: ImportCommitResponse | None = None
