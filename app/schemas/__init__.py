"""
app/schemas package marker.
"""

from app.schemas.rate_imports import (
    CommitImportRequest,
    ImportCommitResponse,
    ImportPreviewResponse,
    ImportRowsRequest,
    ImportUploadResponse,
    RateRecordResponse,
    ValidationResponse,
)
from app.schemas.rate_templates import (
    MappingSuggestionRequest,
    MappingSuggestionResponse,
    StarterTemplateResponse,
    TemplateCreatedResponse,
    TemplateCreateRequest,
    TemplateDetailResponse,
    TemplateListResponse,
    TemplateSummaryResponse,
)

__all__ = [
    "CommitImportRequest",
    "ImportCommitResponse",
    "ImportPreviewResponse",
    "ImportRowsRequest",
    "ImportUploadResponse",
    "MappingSuggestionRequest",
    "MappingSuggestionResponse",
    "RateRecordResponse",
    "StarterTemplateResponse",
    "TemplateCreatedResponse",
    "TemplateCreateRequest",
    "TemplateDetailResponse",
    "TemplateListResponse",
    "TemplateSummaryResponse",
    "ValidationResponse",
]
