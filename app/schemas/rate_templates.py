"""
app/schemas/rate_templates.py

Request and response schemas for carrier rate template endpoints.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.rate_import import MappingSuggestionResult
from app.domain.rate_template import CarrierRateTemplate
from app.services.starter_templates import StarterTemplate


class TemplateCreateRequest(BaseModel):
    """
    Template definition submitted by an operator.

    Sections are validated against the central defaults by the registry so
    unknown fields and enum values surface as one consistent 422 message.
    """

    carrier_id: str = Field(..., min_length=1)
    template_name: str = Field(..., min_length=1)
    carrier_name: str | None = None
    csv_structure: dict[str, Any]
    field_mappings: dict[str, Any]
    rate_calculation_rules: dict[str, Any] | None = None
    validation_rules: dict[str, Any] | None = None
    sample_data: list[list[Any]] | None = None


class TemplateCreatedResponse(BaseModel):
    template_id: str


class TemplateUsageResponse(BaseModel):
    imports_count: int = Field(..., ge=0)
    last_used_at: datetime | None = None
    success_rate: float = 0.0


class TemplateSummaryResponse(BaseModel):
    id: str
    carrier_id: str
    carrier_name: str
    template_name: str
    template_type: str
    version: int
    enabled: bool
    created_at: datetime | None = None
    usage: TemplateUsageResponse

    @classmethod
    def from_domain(cls, template: CarrierRateTemplate) -> TemplateSummaryResponse:
        return cls(
            id=template.id or "",
            carrier_id=template.carrier_id,
            carrier_name=template.carrier_name,
            template_name=template.template_name,
            template_type=template.template_type,
            version=template.version,
            enabled=template.enabled,
            created_at=template.created_at,
            usage=TemplateUsageResponse(
                imports_count=template.usage.imports_count,
                last_used_at=template.usage.last_used_at,
                success_rate=template.usage.success_rate,
            ),
        )


class TemplateListResponse(BaseModel):
    templates: list[TemplateSummaryResponse] = Field(default_factory=list)


class TemplateDetailResponse(TemplateSummaryResponse):
    csv_structure: dict[str, Any]
    field_mappings: dict[str, Any]
    rate_calculation_rules: dict[str, Any]
    validation_rules: dict[str, Any]
    sample_data: list[list[str]] = Field(default_factory=list)
    created_by: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, template: CarrierRateTemplate) -> TemplateDetailResponse:
        summary = TemplateSummaryResponse.from_domain(template)
        structure = template.csv_structure
        rules = template.rate_calculation_rules
        validation = template.validation_rules
        return cls(
            **summary.model_dump(),
            csv_structure={
                "has_headers": structure.has_headers,
                "header_row": structure.header_row,
                "data_start_row": structure.data_start_row,
                "delimiter": structure.delimiter,
                "encoding": structure.encoding,
                "expected_columns": list(structure.expected_columns),
                "required_columns": list(structure.required_columns),
            },
            field_mappings={**template.field_mappings, "custom_fields": dict(template.custom_fields)},
            rate_calculation_rules={
                "calculation_type": rules.calculation_type,
                "base_unit": rules.base_unit,
                "unit_multiplier": rules.unit_multiplier,
                "weight_calculation": asdict(rules.weight_calculation),
                "fuel_surcharge": asdict(rules.fuel_surcharge),
                "minimum_charge": asdict(rules.minimum_charge),
                "custom_formulas": list(rules.custom_formulas),
            },
            validation_rules={
                "required_fields": list(validation.required_fields),
                "numeric_fields": list(validation.numeric_fields),
                "range_validations": dict(validation.range_validations),
                "custom_validations": list(validation.custom_validations),
            },
            sample_data=[list(row) for row in template.sample_data],
            created_by=template.created_by,
            updated_at=template.updated_at,
        )


class MappingSuggestionRequest(BaseModel):
    headers: list[str] = Field(..., min_length=1)
    sample_row: list[str] | None = None
    carrier_id: str | None = None


class ConfidenceBreakdownResponse(BaseModel):
    field_coverage: int
    essential_fields: int
    existing_templates: int


class ConfidenceResponse(BaseModel):
    overall: int = Field(..., ge=0, le=100)
    breakdown: ConfidenceBreakdownResponse


class SuggestedTemplateResponse(BaseModel):
    field_mappings: dict[str, str]
    csv_structure: dict[str, Any]
    rate_calculation_rules: dict[str, Any]
    sample_data: list[list[str]] = Field(default_factory=list)


class ExistingTemplateResponse(BaseModel):
    id: str
    template_name: str
    last_used_at: datetime | None = None
    success_rate: float = 0.0


class MappingSuggestionResponse(BaseModel):
    suggestions: SuggestedTemplateResponse
    confidence: ConfidenceResponse
    existing_templates: list[ExistingTemplateResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: MappingSuggestionResult) -> MappingSuggestionResponse:
        suggestion = result.suggestions
        confidence = result.confidence
        return cls(
            suggestions=SuggestedTemplateResponse(
                field_mappings=suggestion.field_mappings,
                csv_structure=suggestion.csv_structure,
                rate_calculation_rules=suggestion.rate_calculation_rules,
                sample_data=suggestion.sample_data,
            ),
            confidence=ConfidenceResponse(
                overall=confidence.overall,
                breakdown=ConfidenceBreakdownResponse(
                    field_coverage=confidence.field_coverage,
                    essential_fields=confidence.essential_fields,
                    existing_templates=confidence.existing_templates,
                ),
            ),
            existing_templates=[
                ExistingTemplateResponse(
                    id=ref.id,
                    template_name=ref.template_name,
                    last_used_at=ref.last_used_at,
                    success_rate=ref.success_rate,
                )
                for ref in result.existing_templates
            ],
        )


class StarterTemplateResponse(BaseModel):
    starter_type: str
    name: str
    filename: str
    headers: list[str]
    sample_rows: list[list[str]]
    csv_content: str
    instructions: dict[str, str]
    template: dict[str, Any]

    @classmethod
    def from_starter(cls, starter: StarterTemplate) -> StarterTemplateResponse:
        return cls(
            starter_type=starter.starter_type,
            name=starter.name,
            filename=starter.filename,
            headers=list(starter.headers),
            sample_rows=[list(row) for row in starter.sample_rows],
            csv_content=starter.to_csv(),
            instructions=dict(starter.instructions),
            template=starter.template_sections(),
        )
