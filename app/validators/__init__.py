"""
app/validators package marker.
"""

from app.validators.template_csv_validator import (
    TemplateCSVValidator,
    parse_numeric_cell,
    resolve_layout,
)

__all__ = [
    "TemplateCSVValidator",
    "parse_numeric_cell",
    "resolve_layout",
]
