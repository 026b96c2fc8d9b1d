from __future__ import annotations

import unittest

from app.mappers.mapping_heuristics import (
    HeaderRule,
    HeaderRuleGroup,
    MappingHeuristics,
    contains,
    normalize_header,
)


class TestNormalizeHeader(unittest.TestCase):
    def test_lowercases_and_strips_non_alphanumerics(self) -> None:
        self.assertEqual(normalize_header("Origin City"), "origincity")
        self.assertEqual(normalize_header("  Dest._Zip-Code "), "destzipcode")
        self.assertEqual(normalize_header("Fuel %"), "fuel")

    def test_never_fails_on_empty_or_symbol_only_headers(self) -> None:
        self.assertEqual(normalize_header(""), "")
        self.assertEqual(normalize_header("$$$"), "")

    def test_drops_non_ascii_letters(self) -> None:
        self.assertEqual(normalize_header("Montréal Rate"), "montralrate")


class TestMappingHeuristics(unittest.TestCase):
    def setUp(self) -> None:
        self.heuristics = MappingHeuristics()

    def _mappings(self, headers: list[str], sample: list[str] | None = None) -> dict[str, str]:
        return self.heuristics.suggest(headers, sample).field_mappings

    def test_origin_city_header_maps_to_origin_city_not_origin(self) -> None:
        for header in ("Origin City", "ORIGIN_CITY", "origin-city", "City of Origin"):
            with self.subTest(header=header):
                mappings = self._mappings([header])
                self.assertEqual(mappings.get("origin_city"), header)
                self.assertNotIn("origin", mappings)

    def test_geographic_qualifiers(self) -> None:
        mappings = self._mappings(
            ["From Province", "Origin Zip", "Dest State", "Destination Postal", "Destination"]
        )

        self.assertEqual(mappings["origin_province"], "From Province")
        self.assertEqual(mappings["origin_postal"], "Origin Zip")
        self.assertEqual(mappings["destination_province"], "Dest State")
        self.assertEqual(mappings["destination_postal"], "Destination Postal")
        self.assertEqual(mappings["destination"], "Destination")

    def test_leading_to_is_destination_but_total_is_not(self) -> None:
        mappings = self._mappings(["To City", "Total Rate"])

        self.assertEqual(mappings["destination_city"], "To City")
        self.assertEqual(mappings["total_rate"], "Total Rate")
        self.assertNotIn("destination", mappings)

    def test_to_inside_a_header_is_destination(self) -> None:
        mappings = self._mappings(["Ship From City", "Ship To City", "Rate Total"])

        self.assertEqual(mappings["origin_city"], "Ship From City")
        self.assertEqual(mappings["destination_city"], "Ship To City")
        self.assertEqual(mappings["total_rate"], "Rate Total")
        self.assertNotIn("destination", mappings)

    def test_weight_and_rate_qualifiers(self) -> None:
        mappings = self._mappings(["Weight Min", "Max Weight", "Weight", "Linehaul Rate", "Min Rate", "Price"])

        self.assertEqual(mappings["weight_min"], "Weight Min")
        self.assertEqual(mappings["weight_max"], "Max Weight")
        self.assertEqual(mappings["weight"], "Weight")
        self.assertEqual(mappings["min_charge"], "Min Rate")
        # Unqualified rate headers fall back to base_rate; the last match wins.
        self.assertEqual(mappings["base_rate"], "Price")

    def test_fuel_percentage_from_header_or_sample_value(self) -> None:
        self.assertEqual(self._mappings(["Fuel %"]), {"fuel_surcharge_pct": "Fuel %"})
        self.assertEqual(self._mappings(["Fuel Pct"]), {"fuel_surcharge_pct": "Fuel Pct"})
        self.assertEqual(self._mappings(["Fuel Surcharge"], ["18.5%"]), {"fuel_surcharge_pct": "Fuel Surcharge"})
        self.assertEqual(self._mappings(["Fuel Surcharge"], ["42.00"]), {"fuel_surcharge": "Fuel Surcharge"})

    def test_single_keyword_fields(self) -> None:
        mappings = self._mappings(["Service Level", "Transit", "Pallets", "Linear Feet"])

        self.assertEqual(mappings["service_level"], "Service Level")
        self.assertEqual(mappings["transit_days"], "Transit")
        self.assertEqual(mappings["skid_count"], "Pallets")
        self.assertEqual(mappings["linear_feet"], "Linear Feet")

    def test_base_unit_inference(self) -> None:
        cases = (
            (["Skids", "Linear Feet", "Rate"], "skid"),
            (["Linear Feet", "Rate"], "lf"),
            (["Weight", "Rate"], "weight"),
            (["Origin", "Destination"], "weight"),
        )
        for headers, expected in cases:
            with self.subTest(headers=headers):
                suggestion = self.heuristics.suggest(headers)
                self.assertEqual(suggestion.rate_calculation_rules["base_unit"], expected)
                self.assertEqual(suggestion.rate_calculation_rules["calculation_type"], "explicit")

    def test_suggestion_skeleton_keeps_raw_headers_and_sample(self) -> None:
        headers = ["Origin", "Destination", "Base Rate"]
        suggestion = self.heuristics.suggest(headers, ["Toronto", "Montreal", "125.00"])

        self.assertEqual(suggestion.csv_structure["expected_columns"], headers)
        self.assertEqual(suggestion.csv_structure["required_columns"], [])
        self.assertTrue(suggestion.csv_structure["has_headers"])
        self.assertEqual(suggestion.sample_data, [["Toronto", "Montreal", "125.00"]])

    def test_short_or_missing_sample_row_is_tolerated(self) -> None:
        suggestion = self.heuristics.suggest(["Origin", "Fuel Surcharge"], ["Toronto"])

        self.assertEqual(suggestion.field_mappings["fuel_surcharge"], "Fuel Surcharge")
        self.assertEqual(self.heuristics.suggest(["Origin"]).sample_data, [])

    def test_unmatched_headers_are_ignored(self) -> None:
        self.assertEqual(self._mappings(["Notes", "Currency", ""]), {})

    def test_extra_rule_groups_extend_the_table(self) -> None:
        heuristics = MappingHeuristics(
            extra_groups=(
                HeaderRuleGroup(
                    name="equipment",
                    trigger=contains("equipment", "trailer"),
                    rules=(HeaderRule(contains("type"), "equipment_type"),),
                    fallback="equipment_type",
                ),
            )
        )

        mappings = heuristics.suggest(["Trailer", "Origin"]).field_mappings

        self.assertEqual(mappings["equipment_type"], "Trailer")
        self.assertEqual(mappings["origin"], "Origin")


if __name__ == "__main__":
    unittest.main()
