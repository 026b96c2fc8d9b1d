"""
app/services package marker.
"""

from app.services.csv_reader import CSVFormatError, read_csv_rows
from app.services.rate_calculator import (
    RowProcessingError,
    process_row,
    process_rows,
    summarize_rate_records,
)
from app.services.rate_import_service import RateImportService, get_rate_import_service
from app.services.starter_templates import (
    STARTER_TEMPLATES,
    StarterTemplate,
    UnknownStarterTemplateError,
    get_starter_template,
)
from app.services.template_registry import TemplateRegistry

__all__ = [
    "CSVFormatError",
    "RateImportService",
    "RowProcessingError",
    "STARTER_TEMPLATES",
    "StarterTemplate",
    "TemplateRegistry",
    "UnknownStarterTemplateError",
    "get_rate_import_service",
    "get_starter_template",
    "process_row",
    "process_rows",
    "read_csv_rows",
    "summarize_rate_records",
]
