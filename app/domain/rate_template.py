"""
app/domain/rate_template.py

Carrier rate template domain model and its central default configuration.

A template is stored as a handful of JSON sections (csv_structure,
field_mappings, rate_calculation_rules, validation_rules). Every default a
section can fall back to is declared once in ``TEMPLATE_DEFAULTS`` and applied
by ``apply_template_defaults`` when a template is created or loaded, so the
rest of the engine reads fully populated, typed objects.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Sequence

from db.repositories.errors import TemplatePayloadError

GEOGRAPHIC_FIELDS: tuple[str, ...] = (
    "origin",
    "destination",
    "origin_city",
    "origin_province",
    "origin_postal",
    "destination_city",
    "destination_province",
    "destination_postal",
)

FIELD_NAMES: tuple[str, ...] = (
    *GEOGRAPHIC_FIELDS,
    "weight_min",
    "weight_max",
    "weight",
    "skid_count",
    "linear_feet",
    "cube",
    "pieces",
    "base_rate",
    "fuel_surcharge",
    "fuel_surcharge_pct",
    "min_charge",
    "accessorials",
    "total_rate",
    "service_level",
    "transit_days",
    "equipment_type",
)

CUSTOM_FIELDS_KEY = "custom_fields"


class CalculationType:
    EXPLICIT = "explicit"
    PER_UNIT = "per_unit"


class BaseUnit:
    WEIGHT = "weight"
    SKID = "skid"
    LINEAR_FEET = "lf"
    CUBE = "cube"


class WeightMethod:
    PER_LB = "per_lb"
    PER_100LBS = "per_100lbs"
    FLAT_RATE = "flat_rate"


class RoundingRule:
    UP = "up"
    DOWN = "down"
    NEAREST = "nearest"


class FuelSurchargeType:
    PERCENTAGE = "percentage"
    FLAT = "flat"
    EMBEDDED = "embedded"


class FuelApplyTo:
    BASE_RATE = "base_rate"
    TOTAL_RATE = "total_rate"


ALLOWED_VALUES: dict[tuple[str, ...], set[str]] = {
    ("rate_calculation_rules", "calculation_type"): {CalculationType.EXPLICIT, CalculationType.PER_UNIT},
    ("rate_calculation_rules", "base_unit"): {
        BaseUnit.WEIGHT,
        BaseUnit.SKID,
        BaseUnit.LINEAR_FEET,
        BaseUnit.CUBE,
    },
    ("rate_calculation_rules", "weight_calculation", "method"): {
        WeightMethod.PER_LB,
        WeightMethod.PER_100LBS,
        WeightMethod.FLAT_RATE,
    },
    ("rate_calculation_rules", "weight_calculation", "rounding_rule"): {
        RoundingRule.UP,
        RoundingRule.DOWN,
        RoundingRule.NEAREST,
    },
    ("rate_calculation_rules", "fuel_surcharge", "type"): {
        FuelSurchargeType.PERCENTAGE,
        FuelSurchargeType.FLAT,
        FuelSurchargeType.EMBEDDED,
    },
    ("rate_calculation_rules", "fuel_surcharge", "apply_to"): {
        FuelApplyTo.BASE_RATE,
        FuelApplyTo.TOTAL_RATE,
    },
}

# Single source of truth for every template fallback value.
# data_start_row is derived from header_row/has_headers when not supplied.
TEMPLATE_DEFAULTS: dict[str, dict[str, Any]] = {
    "csv_structure": {
        "has_headers": True,
        "header_row": 1,
        "data_start_row": None,
        "delimiter": ",",
        "encoding": "utf-8",
        "expected_columns": [],
        "required_columns": [],
    },
    "rate_calculation_rules": {
        "calculation_type": CalculationType.EXPLICIT,
        "base_unit": BaseUnit.WEIGHT,
        "unit_multiplier": 1.0,
        "weight_calculation": {
            "method": WeightMethod.PER_LB,
            "rounding_rule": RoundingRule.UP,
            "rounding_increment": 1.0,
        },
        "fuel_surcharge": {
            "type": FuelSurchargeType.PERCENTAGE,
            "apply_to": FuelApplyTo.BASE_RATE,
            "default_value": 0.0,
        },
        "minimum_charge": {
            "apply_globally": False,
            "field": "min_charge",
            "default_value": 0.0,
        },
        "custom_formulas": [],
    },
    "validation_rules": {
        "required_fields": [],
        "numeric_fields": [],
        "range_validations": {},
        "custom_validations": [],
    },
}


@dataclass(frozen=True)
class CsvStructure:
    has_headers: bool
    header_row: int
    data_start_row: int
    delimiter: str
    encoding: str
    expected_columns: tuple[str, ...]
    required_columns: tuple[str, ...]


@dataclass(frozen=True)
class WeightCalculation:
    method: str
    rounding_rule: str
    rounding_increment: float


@dataclass(frozen=True)
class FuelSurchargePolicy:
    type: str
    apply_to: str
    default_value: float


@dataclass(frozen=True)
class MinimumChargePolicy:
    apply_globally: bool
    field: str
    default_value: float


@dataclass(frozen=True)
class RateCalculationRules:
    calculation_type: str
    base_unit: str
    unit_multiplier: float
    weight_calculation: WeightCalculation
    fuel_surcharge: FuelSurchargePolicy
    minimum_charge: MinimumChargePolicy
    custom_formulas: tuple[Any, ...] = ()


@dataclass(frozen=True)
class ValidationRules:
    required_fields: tuple[str, ...]
    numeric_fields: tuple[str, ...]
    range_validations: dict[str, dict[str, float | None]]
    custom_validations: tuple[Any, ...] = ()


@dataclass(frozen=True)
class TemplateUsage:
    imports_count: int = 0
    last_used_at: datetime | None = None
    success_rate: float = 0.0


@dataclass(frozen=True)
class CarrierRateTemplate:
    """
    Fully normalized carrier rate template.
    """

    id: str | None
    carrier_id: str
    template_name: str
    csv_structure: CsvStructure
    field_mappings: dict[str, str | None]
    custom_fields: dict[str, str]
    rate_calculation_rules: RateCalculationRules
    validation_rules: ValidationRules
    carrier_name: str = ""
    template_type: str = "custom_carrier_csv"
    enabled: bool = True
    version: int = 1
    sample_data: tuple[tuple[str, ...], ...] = ()
    usage: TemplateUsage = field(default_factory=TemplateUsage)
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def column_for(self, field_name: str) -> str | None:
        """
        Return the CSV column mapped to a logical or custom field.
        """

        if field_name in self.field_mappings:
            return self.field_mappings[field_name]
        return self.custom_fields.get(field_name)

    def iter_mapped_columns(self) -> Iterator[tuple[str, str]]:
        for field_name in FIELD_NAMES:
            column = self.field_mappings.get(field_name)
            if column:
                yield field_name, column
        for field_name, column in self.custom_fields.items():
            yield field_name, column


def apply_template_defaults(
    sections: Mapping[str, Any],
    *,
    max_sample_rows: int | None = None,
) -> dict[str, Any]:
    """
    Merge caller-supplied template sections over ``TEMPLATE_DEFAULTS``.

    Returns plain JSON-ready sections: csv_structure, field_mappings,
    rate_calculation_rules, validation_rules and sample_data. Raises
    TemplatePayloadError for unknown logical fields or enum values.
    """

    csv_structure = _merge_section(
        TEMPLATE_DEFAULTS["csv_structure"],
        sections.get("csv_structure"),
        section="csv_structure",
    )
    csv_structure["expected_columns"] = _string_list(csv_structure["expected_columns"])
    csv_structure["required_columns"] = _string_list(csv_structure["required_columns"])
    csv_structure["has_headers"] = bool(csv_structure["has_headers"])
    csv_structure["header_row"] = _positive_int(csv_structure["header_row"], name="header_row")
    if csv_structure["data_start_row"] is None:
        csv_structure["data_start_row"] = (
            csv_structure["header_row"] + 1 if csv_structure["has_headers"] else 1
        )
    csv_structure["data_start_row"] = _positive_int(csv_structure["data_start_row"], name="data_start_row")
    if csv_structure["has_headers"] and csv_structure["data_start_row"] <= csv_structure["header_row"]:
        raise TemplatePayloadError("csv_structure.data_start_row must come after header_row.")
    if not isinstance(csv_structure["delimiter"], str) or len(csv_structure["delimiter"]) != 1:
        raise TemplatePayloadError("csv_structure.delimiter must be a single character.")

    field_mappings = _normalize_field_mappings(sections.get("field_mappings"))
    known_fields = set(FIELD_NAMES) | set(field_mappings[CUSTOM_FIELDS_KEY])

    rules = _merge_section(
        TEMPLATE_DEFAULTS["rate_calculation_rules"],
        sections.get("rate_calculation_rules"),
        section="rate_calculation_rules",
    )
    rules["unit_multiplier"] = _number(rules["unit_multiplier"], name="unit_multiplier")
    weight_calc = rules["weight_calculation"]
    weight_calc["rounding_increment"] = _number(weight_calc["rounding_increment"], name="rounding_increment")
    rules["fuel_surcharge"]["default_value"] = _number(
        rules["fuel_surcharge"]["default_value"], name="fuel_surcharge.default_value"
    )
    minimum = rules["minimum_charge"]
    minimum["apply_globally"] = bool(minimum["apply_globally"])
    minimum["default_value"] = _number(minimum["default_value"], name="minimum_charge.default_value")
    if minimum["field"] not in known_fields:
        raise TemplatePayloadError(f"minimum_charge.field '{minimum['field']}' is not a known rate field.")
    rules["custom_formulas"] = list(rules["custom_formulas"] or [])
    _check_allowed_values({"rate_calculation_rules": rules})

    validation_rules = _merge_section(
        TEMPLATE_DEFAULTS["validation_rules"],
        sections.get("validation_rules"),
        section="validation_rules",
    )
    for key in ("required_fields", "numeric_fields"):
        names = _string_list(validation_rules[key])
        unknown = [name for name in names if name not in known_fields]
        if unknown:
            raise TemplatePayloadError(
                f"validation_rules.{key} references unknown fields: {', '.join(unknown)}."
            )
        validation_rules[key] = names
    validation_rules["range_validations"] = _normalize_ranges(
        validation_rules["range_validations"],
        known_fields=known_fields,
    )
    validation_rules["custom_validations"] = list(validation_rules["custom_validations"] or [])

    sample_data = [
        [("" if cell is None else str(cell)) for cell in row]
        for row in (sections.get("sample_data") or [])
        if isinstance(row, (list, tuple))
    ]
    if max_sample_rows is not None:
        sample_data = sample_data[: max(0, max_sample_rows)]

    return {
        "csv_structure": csv_structure,
        "field_mappings": field_mappings,
        "rate_calculation_rules": rules,
        "validation_rules": validation_rules,
        "sample_data": sample_data,
    }


def template_from_document(document: Mapping[str, Any]) -> CarrierRateTemplate:
    """
    Build a typed template from a stored or submitted document.
    """

    sections = apply_template_defaults(document)
    structure = sections["csv_structure"]
    mappings = sections["field_mappings"]
    rules = sections["rate_calculation_rules"]
    validation = sections["validation_rules"]
    usage = document.get("usage") or {}

    raw_id = document.get("id")
    return CarrierRateTemplate(
        id=str(raw_id) if raw_id is not None else None,
        carrier_id=str(document.get("carrier_id") or ""),
        template_name=str(document.get("template_name") or ""),
        carrier_name=str(document.get("carrier_name") or ""),
        template_type=str(document.get("template_type") or "custom_carrier_csv"),
        enabled=bool(document.get("enabled", True)),
        version=int(document.get("version") or 1),
        created_by=document.get("created_by"),
        created_at=document.get("created_at"),
        updated_at=document.get("updated_at"),
        csv_structure=CsvStructure(
            has_headers=structure["has_headers"],
            header_row=structure["header_row"],
            data_start_row=structure["data_start_row"],
            delimiter=structure["delimiter"],
            encoding=structure["encoding"],
            expected_columns=tuple(structure["expected_columns"]),
            required_columns=tuple(structure["required_columns"]),
        ),
        field_mappings={name: mappings[name] for name in FIELD_NAMES},
        custom_fields=dict(mappings[CUSTOM_FIELDS_KEY]),
        rate_calculation_rules=RateCalculationRules(
            calculation_type=rules["calculation_type"],
            base_unit=rules["base_unit"],
            unit_multiplier=rules["unit_multiplier"],
            weight_calculation=WeightCalculation(**rules["weight_calculation"]),
            fuel_surcharge=FuelSurchargePolicy(**rules["fuel_surcharge"]),
            minimum_charge=MinimumChargePolicy(**rules["minimum_charge"]),
            custom_formulas=tuple(rules["custom_formulas"]),
        ),
        validation_rules=ValidationRules(
            required_fields=tuple(validation["required_fields"]),
            numeric_fields=tuple(validation["numeric_fields"]),
            range_validations=validation["range_validations"],
            custom_validations=tuple(validation["custom_validations"]),
        ),
        sample_data=tuple(tuple(row) for row in sections["sample_data"]),
        usage=TemplateUsage(
            imports_count=int(usage.get("imports_count") or 0),
            last_used_at=usage.get("last_used_at"),
            success_rate=float(usage.get("success_rate") or 0.0),
        ),
    )


def _merge_section(
    defaults: Mapping[str, Any],
    overrides: Any,
    *,
    section: str,
) -> dict[str, Any]:
    merged = copy.deepcopy(dict(defaults))
    if overrides is None:
        return merged
    if not isinstance(overrides, Mapping):
        raise TemplatePayloadError(f"{section} must be an object.")

    for key, value in overrides.items():
        if key not in defaults:
            raise TemplatePayloadError(f"Unknown {section} setting '{key}'.")
        if value is None:
            continue
        if isinstance(defaults[key], dict) and defaults[key]:
            merged[key] = _merge_section(defaults[key], value, section=f"{section}.{key}")
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _normalize_field_mappings(raw: Any) -> dict[str, Any]:
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise TemplatePayloadError("field_mappings must be an object.")

    unknown = [key for key in raw if key not in FIELD_NAMES and key != CUSTOM_FIELDS_KEY]
    if unknown:
        raise TemplatePayloadError(f"field_mappings contains unknown fields: {', '.join(sorted(unknown))}.")

    normalized: dict[str, Any] = {name: _column_name(raw.get(name), name=name) for name in FIELD_NAMES}

    custom_raw = raw.get(CUSTOM_FIELDS_KEY) or {}
    if not isinstance(custom_raw, Mapping):
        raise TemplatePayloadError("field_mappings.custom_fields must be an object.")
    custom: dict[str, str] = {}
    for name, column in custom_raw.items():
        if name in FIELD_NAMES:
            raise TemplatePayloadError(f"Custom field '{name}' shadows a standard rate field.")
        resolved = _column_name(column, name=name)
        if resolved is not None:
            custom[str(name)] = resolved
    normalized[CUSTOM_FIELDS_KEY] = custom
    return normalized


def _column_name(value: Any, *, name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TemplatePayloadError(f"Mapping for '{name}' must be a column name or null.")
    return value if value.strip() else None


def _normalize_ranges(raw: Any, *, known_fields: set[str]) -> dict[str, dict[str, float | None]]:
    if not isinstance(raw, Mapping):
        raise TemplatePayloadError("validation_rules.range_validations must be an object.")

    ranges: dict[str, dict[str, float | None]] = {}
    for field_name, bounds in raw.items():
        if field_name not in known_fields:
            raise TemplatePayloadError(f"Range validation references unknown field '{field_name}'.")
        if not isinstance(bounds, Mapping):
            raise TemplatePayloadError(f"Range for '{field_name}' must be an object with min/max.")
        low = bounds.get("min")
        high = bounds.get("max")
        ranges[field_name] = {
            "min": None if low is None else _number(low, name=f"{field_name}.min"),
            "max": None if high is None else _number(high, name=f"{field_name}.max"),
        }
    return ranges


def _check_allowed_values(sections: Mapping[str, Any]) -> None:
    for path, allowed in ALLOWED_VALUES.items():
        node: Any = sections
        for key in path:
            node = node[key]
        if not isinstance(node, str) or node not in allowed:
            dotted = ".".join(path[1:])
            raise TemplatePayloadError(
                f"Unsupported {dotted} '{node}'. Allowed values: {', '.join(sorted(allowed))}."
            )


def _string_list(values: Sequence[Any] | None) -> list[str]:
    return [str(value) for value in (values or [])]


def _positive_int(value: Any, *, name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise TemplatePayloadError(f"{name} must be an integer.") from exc
    if parsed < 1:
        raise TemplatePayloadError(f"{name} must be 1 or greater.")
    return parsed


def _number(value: Any, *, name: str) -> float:
    if isinstance(value, bool):
        raise TemplatePayloadError(f"{name} must be a number.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TemplatePayloadError(f"{name} must be a number.") from exc
