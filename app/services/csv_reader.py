"""
app/services/csv_reader.py

Reads an uploaded CSV file into rows of string cells.
"""

from __future__ import annotations

import codecs
import csv
import io
from typing import BinaryIO

from fastapi import UploadFile


class CSVFormatError(ValueError):
    """
    Raised when an uploaded file cannot be decoded or parsed as CSV.
    """


def read_csv_rows(
    upload: UploadFile | BinaryIO,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> list[list[str]]:
    """
    Decode and split an upload using the template's delimiter and encoding.

    A UTF-8 byte order mark is tolerated. Every physical line is kept, blank
    ones as empty lists, so row positions match the file.
    """

    raw_file = getattr(upload, "file", upload)
    raw_file.seek(0)

    try:
        codec = codecs.lookup(encoding).name
    except LookupError as exc:
        raise CSVFormatError(f"Unsupported CSV encoding '{encoding}'.") from exc
    if codec == "utf-8":
        codec = "utf-8-sig"

    text_stream: io.TextIOWrapper | None = None
    try:
        text_stream = io.TextIOWrapper(raw_file, encoding=codec, newline="")
        reader = csv.reader(text_stream, delimiter=delimiter)
        return list(reader)
    except UnicodeDecodeError as exc:
        raise CSVFormatError(f"CSV must be {encoding} encoded.") from exc
    except csv.Error as exc:
        raise CSVFormatError(f"Invalid CSV format: {exc}") from exc
    finally:
        if text_stream is not None:
            try:
                text_stream.detach()
            except ValueError:
                pass
