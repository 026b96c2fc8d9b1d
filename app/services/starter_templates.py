"""
app/services/starter_templates.py

Downloadable example rate sheet layouts an operator can hand to a carrier.

Each starter carries its headers, a few sample rows, per-column instructions
and the template sections that import it, so a carrier who fills in the
starter can be onboarded without a mapping session.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Any

from app.domain.rate_template import (
    BaseUnit,
    CalculationType,
    FuelApplyTo,
    FuelSurchargeType,
    WeightMethod,
    apply_template_defaults,
)


class UnknownStarterTemplateError(LookupError):
    """
    Raised for a starter type that does not exist.
    """


@dataclass(frozen=True)
class StarterTemplate:
    starter_type: str
    name: str
    headers: tuple[str, ...]
    sample_rows: tuple[tuple[str, ...], ...]
    instructions: dict[str, str]
    field_mappings: dict[str, str]
    rate_calculation_rules: dict[str, Any]
    validation_rules: dict[str, Any] = field(default_factory=dict)

    @property
    def filename(self) -> str:
        return f"{self.starter_type}_rate_template.csv"

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.headers)
        writer.writerows(self.sample_rows)
        return buffer.getvalue()

    def template_sections(self) -> dict[str, Any]:
        """
        Template sections ready to post alongside a carrier id and name.
        """

        return apply_template_defaults(
            {
                "csv_structure": {
                    "expected_columns": list(self.headers),
                    "required_columns": list(self.field_mappings.values()),
                },
                "field_mappings": dict(self.field_mappings),
                "rate_calculation_rules": self.rate_calculation_rules,
                "validation_rules": self.validation_rules,
                "sample_data": [list(row) for row in self.sample_rows],
            }
        )


STARTER_TEMPLATES: dict[str, StarterTemplate] = {
    "skid_based": StarterTemplate(
        starter_type="skid_based",
        name="Skid Based Rate Sheet",
        headers=(
            "Origin City",
            "Origin Province",
            "Destination City",
            "Destination Province",
            "Skid Count",
            "Base Rate",
            "Fuel %",
            "Min Charge",
            "Transit Days",
        ),
        sample_rows=(
            ("Toronto", "ON", "Montreal", "QC", "1", "185.00", "18.5%", "150.00", "2"),
            ("Toronto", "ON", "Montreal", "QC", "2", "142.50", "18.5%", "150.00", "2"),
            ("Toronto", "ON", "Ottawa", "ON", "1", "165.00", "18.5%", "150.00", "1"),
        ),
        instructions={
            "Origin City": "Pickup city name",
            "Origin Province": "Two letter province or state code",
            "Destination City": "Delivery city name",
            "Destination Province": "Two letter province or state code",
            "Skid Count": "Number of skids the rate applies to",
            "Base Rate": "Price per skid before fuel",
            "Fuel %": "Fuel surcharge as a percentage of the base rate",
            "Min Charge": "Lowest total billed for this lane",
            "Transit Days": "Business days in transit",
        },
        field_mappings={
            "origin_city": "Origin City",
            "origin_province": "Origin Province",
            "destination_city": "Destination City",
            "destination_province": "Destination Province",
            "skid_count": "Skid Count",
            "base_rate": "Base Rate",
            "fuel_surcharge_pct": "Fuel %",
            "min_charge": "Min Charge",
            "transit_days": "Transit Days",
        },
        rate_calculation_rules={
            "calculation_type": CalculationType.PER_UNIT,
            "base_unit": BaseUnit.SKID,
            "fuel_surcharge": {"type": FuelSurchargeType.PERCENTAGE, "apply_to": FuelApplyTo.BASE_RATE},
        },
        validation_rules={
            "required_fields": ["origin_city", "destination_city", "base_rate"],
            "numeric_fields": ["skid_count", "base_rate", "min_charge"],
            "range_validations": {"skid_count": {"min": 1, "max": 26}},
        },
    ),
    "weight_break": StarterTemplate(
        starter_type="weight_break",
        name="Weight Break Rate Sheet",
        headers=(
            "Origin",
            "Destination",
            "Min Weight (lbs)",
            "Max Weight (lbs)",
            "Rate per 100 lbs",
            "Minimum Charge",
        ),
        sample_rows=(
            ("Toronto", "Montreal", "0", "499", "42.00", "95.00"),
            ("Toronto", "Montreal", "500", "999", "36.50", "95.00"),
            ("Toronto", "Montreal", "1000", "4999", "29.75", "95.00"),
        ),
        instructions={
            "Origin": "Origin terminal or city",
            "Destination": "Destination terminal or city",
            "Min Weight (lbs)": "Lowest weight in the break",
            "Max Weight (lbs)": "Highest weight in the break",
            "Rate per 100 lbs": "Price per hundredweight",
            "Minimum Charge": "Lowest total billed for this lane",
        },
        field_mappings={
            "origin": "Origin",
            "destination": "Destination",
            "weight_min": "Min Weight (lbs)",
            "weight_max": "Max Weight (lbs)",
            "base_rate": "Rate per 100 lbs",
            "min_charge": "Minimum Charge",
        },
        rate_calculation_rules={
            "calculation_type": CalculationType.PER_UNIT,
            "base_unit": BaseUnit.WEIGHT,
            "weight_calculation": {"method": WeightMethod.PER_100LBS},
        },
        validation_rules={
            "required_fields": ["origin", "destination", "base_rate"],
            "numeric_fields": ["weight_min", "weight_max", "base_rate"],
            "range_validations": {"weight_min": {"min": 0}},
        },
    ),
    "zone_matrix": StarterTemplate(
        starter_type="zone_matrix",
        name="Zone Matrix Rate Sheet",
        headers=(
            "Origin Zone",
            "Destination Zone",
            "Service Level",
            "Equipment Type",
            "Total Rate",
            "Fuel Surcharge",
            "Transit Days",
        ),
        sample_rows=(
            ("GTA", "QC-METRO", "Standard", "53' Dry Van", "1450.00", "210.00", "2"),
            ("GTA", "QC-METRO", "Expedited", "53' Dry Van", "1890.00", "275.00", "1"),
            ("GTA", "NCR", "Standard", "Straight Truck", "980.00", "140.00", "1"),
        ),
        instructions={
            "Origin Zone": "Carrier zone code for pickup",
            "Destination Zone": "Carrier zone code for delivery",
            "Service Level": "Service name as quoted",
            "Equipment Type": "Trailer or truck type",
            "Total Rate": "All-in linehaul price for the zone pair",
            "Fuel Surcharge": "Fuel amount in dollars",
            "Transit Days": "Business days in transit",
        },
        field_mappings={
            "origin": "Origin Zone",
            "destination": "Destination Zone",
            "service_level": "Service Level",
            "equipment_type": "Equipment Type",
            "total_rate": "Total Rate",
            "fuel_surcharge": "Fuel Surcharge",
            "transit_days": "Transit Days",
        },
        rate_calculation_rules={
            "calculation_type": CalculationType.EXPLICIT,
            "base_unit": BaseUnit.WEIGHT,
            "fuel_surcharge": {"type": FuelSurchargeType.FLAT},
        },
        validation_rules={
            "required_fields": ["origin", "destination", "total_rate"],
            "numeric_fields": ["total_rate", "fuel_surcharge"],
        },
    ),
}


def get_starter_template(starter_type: str) -> StarterTemplate:
    try:
        return STARTER_TEMPLATES[starter_type]
    except KeyError as exc:
        raise UnknownStarterTemplateError(
            f"Unknown starter template '{starter_type}'. "
            f"Available: {', '.join(sorted(STARTER_TEMPLATES))}."
        ) from exc
