"""
app/validators/template_csv_validator.py

Structural and sample-level validation of an uploaded CSV against a carrier
rate template.

Structural problems (no data, missing required columns, mappings to absent
columns) are errors and make the import unusable. Soft problems found on a
bounded sample of data rows (non-numeric values, empty required cells,
out-of-range values) are warnings and never block processing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from app.domain.rate_import import ValidationResult
from app.domain.rate_template import CarrierRateTemplate

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 10
NO_DATA_MESSAGE = "CSV must contain at least header row and one data row"


def parse_numeric_cell(value: Any) -> Decimal | None:
    """
    Parse a rate sheet cell into a Decimal.

    Accepts plain numbers with an optional currency sign, thousands separators
    and a trailing percent sign. Returns None for blank or absent cells and
    raises ValueError for anything else that is not a finite number.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    cleaned = text.replace("$", "").replace(",", "").strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1].strip()
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"'{text}' is not numeric") from exc
    if not parsed.is_finite():
        raise ValueError(f"'{text}' is not numeric")
    return parsed


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True)
class CsvLayout:
    """
    Header row and data region of one uploaded file, resolved from csv_structure.

    ``first_line`` is the 1-based file line where the data region starts and
    ``lines`` holds the file line of each kept data row. Blank rows are
    skipped without shifting the numbering of the rows after them.
    """

    header: list[str]
    data_rows: list[list[str]]
    first_line: int
    lines: list[int] = field(default_factory=list)

    def line_number(self, data_index: int) -> int:
        if data_index < len(self.lines):
            return self.lines[data_index]
        return self.first_line + data_index

    @property
    def row_numbers(self) -> list[int]:
        """1-based positions of the kept rows inside the data region."""
        return [self.line_number(index) - self.first_line + 1 for index in range(len(self.data_rows))]


def resolve_layout(rows: Sequence[Sequence[Any]], template: CarrierRateTemplate) -> CsvLayout:
    """
    Split raw rows into the header and the non-blank data rows.
    """

    structure = template.csv_structure
    if structure.has_headers:
        header_index = structure.header_row - 1
        header = _cells(rows[header_index]) if header_index < len(rows) else []
    else:
        header = list(structure.expected_columns)

    start = structure.data_start_row - 1
    data_rows: list[list[str]] = []
    lines: list[int] = []
    for line, row in enumerate(rows[start:], start=structure.data_start_row):
        if all(is_blank(cell) for cell in row):
            continue
        data_rows.append(_cells(row))
        lines.append(line)
    return CsvLayout(header=header, data_rows=data_rows, first_line=structure.data_start_row, lines=lines)


class TemplateCSVValidator:
    """
    Checks uploaded rows against one template.
    """

    def __init__(self, *, sample_size: int = DEFAULT_SAMPLE_SIZE) -> None:
        self._sample_size = max(1, sample_size)

    def validate(
        self,
        rows: Sequence[Sequence[Any]],
        template: CarrierRateTemplate,
    ) -> ValidationResult:
        layout = resolve_layout(rows, template)
        if not layout.data_rows or (template.csv_structure.has_headers and not layout.header):
            return ValidationResult(valid=False, errors=[NO_DATA_MESSAGE])

        errors: list[str] = []
        warnings: list[str] = []
        present = set(layout.header)

        for column in template.csv_structure.required_columns:
            if column not in present:
                errors.append(f"Required column '{column}' not found in CSV")

        for field_name, column in template.iter_mapped_columns():
            if column not in present:
                errors.append(f"Mapped field '{field_name}' points to non-existent column '{column}'")

        positions = {column: index for index, column in enumerate(layout.header)}
        rules = template.validation_rules
        for data_index, row in enumerate(layout.data_rows[: self._sample_size]):
            line = layout.line_number(data_index)

            for field_name in rules.numeric_fields:
                column, value = _cell_for(template, field_name, positions, row)
                if column is None or is_blank(value):
                    continue
                try:
                    parse_numeric_cell(value)
                except ValueError:
                    warnings.append(f"Row {line}: '{column}' should be numeric but got '{value}'")

            for field_name in rules.required_fields:
                column, value = _cell_for(template, field_name, positions, row)
                if column is not None and is_blank(value):
                    warnings.append(f"Row {line}: Required field '{column}' is empty")

            for field_name, bounds in rules.range_validations.items():
                column, value = _cell_for(template, field_name, positions, row)
                if column is None:
                    continue
                try:
                    number = parse_numeric_cell(value)
                except ValueError:
                    continue
                if number is None:
                    continue
                low, high = bounds.get("min"), bounds.get("max")
                if (low is not None and number < Decimal(str(low))) or (
                    high is not None and number > Decimal(str(high))
                ):
                    warnings.append(
                        f"Row {line}: '{column}' value {value} is outside the allowed range "
                        f"[{_bound(low, '-inf')}, {_bound(high, 'inf')}]"
                    )

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        logger.debug(
            "Validated CSV template_id=%s data_rows=%d errors=%d warnings=%d",
            template.id,
            len(layout.data_rows),
            len(errors),
            len(warnings),
        )
        return result


def _cell_for(
    template: CarrierRateTemplate,
    field_name: str,
    positions: dict[str, int],
    row: Sequence[str],
) -> tuple[str | None, str | None]:
    column = template.column_for(field_name)
    if not column or column not in positions:
        return None, None
    index = positions[column]
    return column, (row[index] if index < len(row) else None)


def _cells(row: Sequence[Any]) -> list[str]:
    return ["" if cell is None else str(cell) for cell in row]


def _bound(value: float | None, unbounded: str) -> str:
    return unbounded if value is None else f"{value:g}"
