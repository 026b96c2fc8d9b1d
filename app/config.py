"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class RateImportSettings:
    """
    Runtime settings for template detection and rate imports.
    """

    preview_row_count: int = 5
    validation_sample_size: int = 10
    max_template_sample_rows: int = 10
    existing_template_limit: int = 5
    log_row_errors: bool = True


@lru_cache(maxsize=1)
def get_rate_import_settings() -> RateImportSettings:
    """
    Return cached rate import settings from environment variables.
    """

    return RateImportSettings(
        preview_row_count=max(1, _get_int_env("RATE_IMPORT_PREVIEW_ROWS", 5)),
        validation_sample_size=max(1, _get_int_env("RATE_IMPORT_VALIDATION_SAMPLE_ROWS", 10)),
        max_template_sample_rows=max(1, _get_int_env("RATE_TEMPLATE_MAX_SAMPLE_ROWS", 10)),
        existing_template_limit=max(1, _get_int_env("RATE_TEMPLATE_EXISTING_LIMIT", 5)),
        log_row_errors=_get_bool_env("RATE_IMPORT_LOG_ROW_ERRORS", True),
    )
