"""
app/api/dependencies.py

Shared FastAPI dependencies for rate sheet uploads.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
}
CSV_EXTENSIONS = (".csv", ".txt")


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Accept a rate sheet upload when its extension or MIME type looks like delimited text.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()

    if not filename.endswith(CSV_EXTENSIONS) and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rate sheets must be uploaded as CSV files.",
        )

    return file
