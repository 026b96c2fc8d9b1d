"""
app/domain/rate_import.py

Domain models produced by the rate sheet detection and import flow.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RateRecord:
    """
    One normalized, computed rate derived from a carrier CSV row.
    """

    row_number: int
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
    custom_fields: dict[str, str | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of checking an uploaded CSV against a template.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConfidenceScore:
    overall: int
    field_coverage: int
    essential_fields: int
    existing_templates: int


@dataclass(frozen=True)
class MappingSuggestion:
    """
    Heuristic starting point for a new template. Never persisted as-is.
    """

    field_mappings: dict[str, str]
    csv_structure: dict[str, Any]
    rate_calculation_rules: dict[str, Any]
    sample_data: list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class ExistingTemplateRef:
    id: str
    template_name: str
    last_used_at: Any
    success_rate: float


@dataclass(frozen=True)
class MappingSuggestionResult:
    suggestions: MappingSuggestion
    confidence: ConfidenceScore
    existing_templates: list[ExistingTemplateRef] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessedRows:
    records: list[RateRecord]
    skipped_count: int


@dataclass(frozen=True)
class ImportPreview:
    validation: ValidationResult
    rows: list[RateRecord] = field(default_factory=list)
    skipped_count: int = 0


@dataclass(frozen=True)
class ImportCommitResult:
    """
    End-of-run import summary. rate_card_id is None when validation failed.
    """

    validation: ValidationResult
    rate_card_id: str | None = None
    processed_count: int = 0
    skipped_count: int = 0
    summary: dict[str, Any] | None = None

    @property
    def committed(self) -> bool:
        return self.rate_card_id is not None
