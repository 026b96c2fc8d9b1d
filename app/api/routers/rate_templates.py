"""
app/api/routers/rate_templates.py

Carrier rate template HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

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
from app.services.rate_import_service import RateImportService, get_rate_import_service
from app.services.starter_templates import UnknownStarterTemplateError, get_starter_template
from db.repositories.errors import TemplateNotFoundError, TemplatePayloadError, TemplatePersistenceError
from db.session import get_db

router = APIRouter(prefix="/rate-templates", tags=["rate-templates"])


@router.post("", response_model=TemplateCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreateRequest,
    created_by: str | None = Query(default=None, description="Operator creating the template"),
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> TemplateCreatedResponse:
    """
    Store a new carrier rate template.
    """

    try:
        template_id = import_service.registry(db).create_template(
            payload.model_dump(exclude_none=True),
            created_by=created_by,
        )
    except TemplatePayloadError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except TemplatePersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store carrier rate template.",
        ) from exc

    return TemplateCreatedResponse(template_id=template_id)


@router.get("", response_model=TemplateListResponse)
def list_templates(
    carrier_id: str | None = Query(default=None, description="Optional carrier scope"),
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> TemplateListResponse:
    templates = import_service.registry(db).list_templates(carrier_id=carrier_id)
    return TemplateListResponse(templates=[TemplateSummaryResponse.from_domain(t) for t in templates])


@router.post("/suggest-mapping", response_model=MappingSuggestionResponse)
def suggest_mapping(
    payload: MappingSuggestionRequest,
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> MappingSuggestionResponse:
    """
    Suggest field mappings for a new carrier CSV layout.
    """

    result = import_service.suggest_mapping(
        db=db,
        headers=payload.headers,
        sample_row=payload.sample_row,
        carrier_id=payload.carrier_id,
    )
    return MappingSuggestionResponse.from_domain(result)


@router.get("/starters/{starter_type}", response_model=StarterTemplateResponse)
def get_starter(starter_type: str) -> StarterTemplateResponse:
    try:
        starter = get_starter_template(starter_type)
    except UnknownStarterTemplateError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return StarterTemplateResponse.from_starter(starter)


@router.get("/{template_id}", response_model=TemplateDetailResponse)
def get_template(
    template_id: str,
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> TemplateDetailResponse:
    try:
        template = import_service.registry(db).get_template(template_id)
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return TemplateDetailResponse.from_domain(template)
