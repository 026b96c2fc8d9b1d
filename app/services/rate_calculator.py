"""
app/services/rate_calculator.py

Turns one carrier CSV row into a normalized RateRecord.

Values are located positionally through the template's remembered
``expected_columns`` order, coerced per field, then run through the
per-unit formula, fuel surcharge and minimum charge rules. Arithmetic is done
in Decimal and converted to float on the way out so results such as
``3 * 100 * 1.1`` stay exact.
"""

from __future__ import annotations

import logging
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from app.domain.rate_import import ProcessedRows, RateRecord
from app.domain.rate_template import (
    BaseUnit,
    CalculationType,
    CarrierRateTemplate,
    FuelApplyTo,
    FuelSurchargeType,
    RoundingRule,
    WeightMethod,
)
from app.validators.template_csv_validator import is_blank, parse_numeric_cell

logger = logging.getLogger(__name__)

TEXT_FIELDS: tuple[str, ...] = (
    "origin",
    "destination",
    "origin_city",
    "origin_province",
    "origin_postal",
    "destination_city",
    "destination_province",
    "destination_postal",
    "service_level",
    "equipment_type",
)
DECIMAL_FIELDS: tuple[str, ...] = (
    "weight_min",
    "weight_max",
    "weight",
    "linear_feet",
    "base_rate",
    "fuel_surcharge",
    "fuel_surcharge_pct",
    "min_charge",
    "total_rate",
)
ZERO_DEFAULT_FIELDS = frozenset({"weight_min", "base_rate"})
INTEGER_FIELDS: tuple[str, ...] = ("skid_count", "transit_days")

_ROUNDING_MODES = {
    RoundingRule.UP: ROUND_CEILING,
    RoundingRule.DOWN: ROUND_FLOOR,
    RoundingRule.NEAREST: ROUND_HALF_UP,
}
_HUNDRED = Decimal(100)


class RowProcessingError(ValueError):
    """
    Raised when a single data row cannot be turned into a rate record.
    """

    def __init__(self, *, row_number: int, message: str, field_name: str | None = None) -> None:
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number
        self.field_name = field_name


def process_row(
    row: Sequence[Any],
    template: CarrierRateTemplate,
    row_number: int,
    *,
    header: Sequence[str] | None = None,
) -> RateRecord:
    """
    Build one RateRecord from a data row.

    ``header`` is only consulted when the template has no expected_columns.
    Raises RowProcessingError when a mapped numeric cell holds text.
    """

    columns = list(template.csv_structure.expected_columns or header or ())
    positions: dict[str, int] = {}
    for index, column in enumerate(columns):
        positions.setdefault(column, index)

    def cell(field_name: str) -> str | None:
        column = template.column_for(field_name)
        if not column or column not in positions:
            return None
        index = positions[column]
        if index >= len(row) or row[index] is None:
            return None
        return str(row[index])

    values: dict[str, Any] = {}
    for field_name in TEXT_FIELDS:
        values[field_name] = cell(field_name)
    for field_name in DECIMAL_FIELDS:
        values[field_name] = _decimal_value(cell(field_name), field_name=field_name, row_number=row_number)
    for field_name in INTEGER_FIELDS:
        values[field_name] = _integer_value(cell(field_name))

    custom_fields = {name: cell(name) for name in template.custom_fields}

    rules = template.rate_calculation_rules
    try:
        if rules.calculation_type == CalculationType.PER_UNIT and values["total_rate"] is None:
            values["total_rate"] = _per_unit_total(values, template)
        _apply_fuel_surcharge(values, template)
        minimum_applied = _apply_minimum_charge(values, custom_fields, template)
    except ArithmeticError as exc:
        raise RowProcessingError(row_number=row_number, message=f"rate calculation failed: {exc}") from exc

    return RateRecord(
        row_number=row_number,
        calculation_type=rules.calculation_type,
        base_unit=rules.base_unit,
        minimum_applied=minimum_applied,
        custom_fields=custom_fields,
        **{name: values[name] for name in TEXT_FIELDS},
        **{name: _to_float(values[name]) for name in DECIMAL_FIELDS},
        **{name: values[name] for name in INTEGER_FIELDS},
    )


def process_rows(
    data_rows: Iterable[Sequence[Any]],
    template: CarrierRateTemplate,
    *,
    header: Sequence[str] | None = None,
    row_numbers: Sequence[int] | None = None,
    limit: int | None = None,
    log_row_errors: bool = True,
) -> ProcessedRows:
    """
    Process data rows, skipping and counting rows that fail.

    Row numbers are 1-based within the data region. Pass ``row_numbers`` when
    blank rows were filtered out so records keep their original positions.
    ``limit`` stops after that many rows have been attempted.
    """

    records: list[RateRecord] = []
    skipped = 0
    for attempted, row in enumerate(data_rows, start=1):
        if limit is not None and attempted > limit:
            break
        row_number = row_numbers[attempted - 1] if row_numbers is not None else attempted
        try:
            records.append(process_row(row, template, row_number, header=header))
        except RowProcessingError as exc:
            skipped += 1
            if log_row_errors:
                logger.warning("Skipping rate row template_id=%s: %s", template.id, exc)
    return ProcessedRows(records=records, skipped_count=skipped)


def summarize_rate_records(records: Sequence[RateRecord]) -> dict[str, Any]:
    """
    Aggregate counts and value ranges for an import summary.
    """

    lanes = {
        (_lane_end(record, "origin"), _lane_end(record, "destination"))
        for record in records
        if _lane_end(record, "origin") or _lane_end(record, "destination")
    }
    return {
        "rate_count": len(records),
        "lanes": len(lanes),
        "skid_range": _value_range(record.skid_count for record in records),
        "weight_range": _value_range(
            value
            for record in records
            for value in (record.weight_min if record.weight_min else None, record.weight, record.weight_max)
        ),
        "total_rate_range": _value_range(record.total_rate for record in records),
        "minimum_applied_count": sum(1 for record in records if record.minimum_applied),
    }


def round_weight(weight: Decimal, rule: str, increment: Decimal) -> Decimal:
    """
    Round a weight to a multiple of ``increment``. Non-positive increments disable rounding.
    """

    if increment <= 0:
        return weight
    mode = _ROUNDING_MODES.get(rule, ROUND_CEILING)
    steps = (weight / increment).to_integral_value(rounding=mode)
    return steps * increment


def _per_unit_total(values: dict[str, Any], template: CarrierRateTemplate) -> Decimal:
    rules = template.rate_calculation_rules
    base_rate: Decimal = values["base_rate"]

    if rules.base_unit == BaseUnit.WEIGHT:
        method = rules.weight_calculation.method
        quantity = values["weight"] or values["weight_min"] or Decimal(0)
        if method in (WeightMethod.PER_LB, WeightMethod.PER_100LBS):
            quantity = round_weight(
                quantity,
                rules.weight_calculation.rounding_rule,
                Decimal(str(rules.weight_calculation.rounding_increment)),
            )
        if method == WeightMethod.PER_100LBS:
            total = quantity / _HUNDRED * base_rate
        elif method == WeightMethod.PER_LB:
            total = quantity * base_rate
        else:
            total = base_rate
    elif rules.base_unit == BaseUnit.SKID:
        total = Decimal(values["skid_count"] or 1) * base_rate
    elif rules.base_unit == BaseUnit.LINEAR_FEET:
        total = (values["linear_feet"] or Decimal(1)) * base_rate
    else:
        total = base_rate

    multiplier = Decimal(str(rules.unit_multiplier))
    if multiplier and multiplier != 1:
        total *= multiplier
    return total


def _apply_fuel_surcharge(values: dict[str, Any], template: CarrierRateTemplate) -> None:
    policy = template.rate_calculation_rules.fuel_surcharge
    if values["fuel_surcharge"] is not None:
        return

    if values["fuel_surcharge_pct"] is None:
        default = Decimal(str(policy.default_value))
        if default <= 0:
            return
        if policy.type == FuelSurchargeType.FLAT:
            values["fuel_surcharge"] = default
            return
        if policy.type != FuelSurchargeType.PERCENTAGE:
            return
        values["fuel_surcharge_pct"] = default

    if policy.apply_to == FuelApplyTo.TOTAL_RATE:
        base = values["total_rate"] or Decimal(0)
    else:
        base = values["base_rate"]
    values["fuel_surcharge"] = base * values["fuel_surcharge_pct"] / _HUNDRED


def _apply_minimum_charge(
    values: dict[str, Any],
    custom_fields: dict[str, str | None],
    template: CarrierRateTemplate,
) -> bool:
    policy = template.rate_calculation_rules.minimum_charge
    minimum = values.get(policy.field, custom_fields.get(policy.field))
    if minimum is not None and not isinstance(minimum, Decimal):
        minimum = _lenient_decimal(minimum)
    if minimum is None and policy.apply_globally and policy.default_value > 0:
        minimum = Decimal(str(policy.default_value))
    if not minimum:
        return False

    total = values["total_rate"] if values["total_rate"] is not None else Decimal(0)
    if total < minimum:
        values["total_rate"] = minimum
        return True
    return False


def _lenient_decimal(raw: Any) -> Decimal | None:
    try:
        return parse_numeric_cell(raw)
    except ValueError:
        return None


def _decimal_value(raw: str | None, *, field_name: str, row_number: int) -> Decimal | None:
    try:
        parsed = parse_numeric_cell(raw)
    except ValueError as exc:
        raise RowProcessingError(
            row_number=row_number,
            field_name=field_name,
            message=f"'{field_name}' {exc}",
        ) from exc
    if parsed is None and field_name in ZERO_DEFAULT_FIELDS:
        return Decimal(0)
    return parsed


def _integer_value(raw: str | None) -> int | None:
    if is_blank(raw):
        return None
    try:
        parsed = parse_numeric_cell(raw)
    except ValueError:
        return None
    return None if parsed is None else int(parsed)


def _to_float(value: Decimal | None) -> float | None:
    return None if value is None else float(value)


def _lane_end(record: RateRecord, side: str) -> str | None:
    for name in (side, f"{side}_city", f"{side}_postal", f"{side}_province"):
        value = getattr(record, name)
        if value and value.strip():
            return value.strip()
    return None


def _value_range(values: Iterable[float | int | None]) -> dict[str, float] | None:
    present = [value for value in values if value is not None]
    if not present:
        return None
    return {"min": min(present), "max": max(present)}
