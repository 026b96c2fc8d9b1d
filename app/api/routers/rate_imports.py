"""
app/api/routers/rate_imports.py

Template-driven rate import HTTP endpoints.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload
from app.schemas.rate_imports import (
    CommitImportRequest,
    ImportCommitResponse,
    ImportPreviewResponse,
    ImportRowsRequest,
    ImportUploadResponse,
    ValidationResponse,
)
from app.services.csv_reader import CSVFormatError
from app.services.rate_import_service import RateImportService, get_rate_import_service
from db.repositories.errors import RateCardPersistenceError, TemplateNotFoundError
from db.session import get_db

router = APIRouter(prefix="/rate-templates/{template_id}/imports", tags=["rate-imports"])


def _not_found(exc: TemplateNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _persistence_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unable to persist rate card.",
    )


@router.post("/validate", response_model=ValidationResponse)
def validate_import(
    template_id: str,
    payload: ImportRowsRequest,
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> ValidationResponse:
    try:
        result = import_service.validate_import(db=db, template_id=template_id, rows=payload.rows)
    except TemplateNotFoundError as exc:
        raise _not_found(exc) from exc
    return ValidationResponse.from_domain(result)


@router.post("/preview", response_model=ImportPreviewResponse)
def preview_import(
    template_id: str,
    payload: ImportRowsRequest,
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> ImportPreviewResponse:
    try:
        preview = import_service.preview_import(db=db, template_id=template_id, rows=payload.rows)
    except TemplateNotFoundError as exc:
        raise _not_found(exc) from exc
    return ImportPreviewResponse.from_domain(preview)


@router.post("", response_model=ImportCommitResponse)
def commit_import(
    template_id: str,
    payload: CommitImportRequest,
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> ImportCommitResponse:
    """
    Import every row and store the resulting rate card.
    """

    try:
        result = import_service.commit_import(
            db=db,
            template_id=template_id,
            rows=payload.rows,
            imported_by=payload.imported_by,
        )
    except TemplateNotFoundError as exc:
        raise _not_found(exc) from exc
    except RateCardPersistenceError as exc:
        raise _persistence_failed() from exc
    return ImportCommitResponse.from_domain(result)


@router.post("/upload", response_model=ImportUploadResponse)
def upload_import(
    template_id: str,
    file: UploadFile = Depends(get_csv_upload),
    mode: Literal["validate", "preview", "commit"] = Query(default="validate"),
    imported_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    import_service: RateImportService = Depends(get_rate_import_service),
) -> ImportUploadResponse:
    """
    Run validate, preview or commit on an uploaded CSV file.
    """

    try:
        rows = import_service.read_upload(db=db, template_id=template_id, upload=file)
        if mode == "preview":
            preview = import_service.preview_import(db=db, template_id=template_id, rows=rows)
            preview_response = ImportPreviewResponse.from_domain(preview)
            return ImportUploadResponse(
                mode=mode,
                validation=preview_response.validation,
                preview=preview_response,
            )
        if mode == "commit":
            result = import_service.commit_import(
                db=db,
                template_id=template_id,
                rows=rows,
                imported_by=imported_by,
            )
            commit_response = ImportCommitResponse.from_domain(result)
            return ImportUploadResponse(
                mode=mode,
                validation=commit_response.validation,
                commit=commit_response,
            )
        validation = import_service.validate_import(db=db, template_id=template_id, rows=rows)
        return ImportUploadResponse(mode=mode, validation=ValidationResponse.from_domain(validation))
    except TemplateNotFoundError as exc:
        raise _not_found(exc) from exc
    except CSVFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RateCardPersistenceError as exc:
        raise _persistence_failed() from exc
    finally:
        file.file.close()
