"""
app/domain package marker.
"""

from app.domain.rate_import import (
    ConfidenceScore,
    ExistingTemplateRef,
    ImportCommitResult,
    ImportPreview,
    MappingSuggestion,
    MappingSuggestionResult,
    ProcessedRows,
    RateRecord,
    ValidationResult,
)
from app.domain.rate_template import (
    FIELD_NAMES,
    TEMPLATE_DEFAULTS,
    CarrierRateTemplate,
    apply_template_defaults,
    template_from_document,
)

__all__ = [
    "CarrierRateTemplate",
    "ConfidenceScore",
    "ExistingTemplateRef",
    "FIELD_NAMES",
    "ImportCommitResult",
    "ImportPreview",
    "MappingSuggestion",
    "MappingSuggestionResult",
    "ProcessedRows",
    "RateRecord",
    "TEMPLATE_DEFAULTS",
    "ValidationResult",
    "apply_template_defaults",
    "template_from_document",
]
