"""
Tests for the template-driven CSV validator and the shared numeric cell parser.
"""

from __future__ import annotations

import unittest
from decimal import Decimal

from app.validators.template_csv_validator import (
    NO_DATA_MESSAGE,
    TemplateCSVValidator,
    parse_numeric_cell,
    resolve_layout,
)
from tests.conftest import make_template

HEADER = ["Origin", "Destination", "Weight", "Rate"]
MAPPINGS = {"origin": "Origin", "destination": "Destination", "weight": "Weight", "base_rate": "Rate"}


class TestParseNumericCell(unittest.TestCase):
    def test_plain_and_decorated_numbers(self) -> None:
        self.assertEqual(parse_numeric_cell("125"), Decimal("125"))
        self.assertEqual(parse_numeric_cell(" $1,250.50 "), Decimal("1250.50"))
        self.assertEqual(parse_numeric_cell("18.5%"), Decimal("18.5"))
        self.assertEqual(parse_numeric_cell("-3"), Decimal("-3"))

    def test_blank_values_are_none(self) -> None:
        self.assertIsNone(parse_numeric_cell(None))
        self.assertIsNone(parse_numeric_cell(""))
        self.assertIsNone(parse_numeric_cell("   "))

    def test_text_and_non_finite_values_raise(self) -> None:
        for value in ("abc", "12kg", "NaN", "inf", "$"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_numeric_cell(value)


class TestTemplateCSVValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = TemplateCSVValidator()

    def test_header_only_file_is_rejected(self) -> None:
        template = make_template(columns=HEADER, mappings=MAPPINGS)

        result = self.validator.validate([HEADER], template)

        self.assertFalse(result.valid)
        self.assertEqual(result.errors, [NO_DATA_MESSAGE])

    def test_empty_file_and_blank_data_rows_are_rejected(self) -> None:
        template = make_template(columns=HEADER, mappings=MAPPINGS)

        self.assertEqual(self.validator.validate([], template).errors, [NO_DATA_MESSAGE])
        self.assertEqual(
            self.validator.validate([HEADER, ["", " ", "", ""]], template).errors,
            [NO_DATA_MESSAGE],
        )

    def test_missing_required_column_and_dangling_mapping_are_errors(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings={**MAPPINGS, "transit_days": "Transit"},
            structure={"required_columns": ["Origin", "Service"]},
        )

        result = self.validator.validate([HEADER, ["Toronto", "Montreal", "500", "42"]], template)

        self.assertFalse(result.valid)
        self.assertEqual(
            result.errors,
            [
                "Required column 'Service' not found in CSV",
                "Mapped field 'transit_days' points to non-existent column 'Transit'",
            ],
        )

    def test_custom_field_columns_are_checked(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings={**MAPPINGS, "custom_fields": {"zone": "Zone"}},
        )

        result = self.validator.validate([HEADER, ["Toronto", "Montreal", "500", "42"]], template)

        self.assertEqual(result.errors, ["Mapped field 'zone' points to non-existent column 'Zone'"])

    def test_sample_warnings_use_file_line_numbers(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings=MAPPINGS,
            validation={
                "numeric_fields": ["weight", "base_rate"],
                "required_fields": ["origin"],
                "range_validations": {"weight": {"min": 0, "max": 20000}},
            },
        )
        rows = [
            HEADER,
            ["Toronto", "Montreal", "heavy", "42"],
            ["", "Ottawa", "25000", "$40.00"],
        ]

        result = self.validator.validate(rows, template)

        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])
        self.assertEqual(
            result.warnings,
            [
                "Row 2: 'Weight' should be numeric but got 'heavy'",
                "Row 3: Required field 'Origin' is empty",
                "Row 3: 'Weight' value 25000 is outside the allowed range [0, 20000]",
            ],
        )

    def test_blank_rows_do_not_shift_later_line_numbers(self) -> None:
        template = make_template(columns=HEADER, mappings=MAPPINGS, validation={"numeric_fields": ["weight"]})
        rows = [
            HEADER,
            ["Toronto", "Montreal", "10", "42"],
            [],
            ["", "", "", ""],
            ["Toronto", "Ottawa", "heavy", "40"],
        ]

        layout = resolve_layout(rows, template)
        result = self.validator.validate(rows, template)

        self.assertEqual(layout.lines, [2, 5])
        self.assertEqual(layout.row_numbers, [1, 4])
        self.assertEqual(result.warnings, ["Row 5: 'Weight' should be numeric but got 'heavy'"])

    def test_open_range_bounds_are_reported(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings=MAPPINGS,
            validation={"range_validations": {"base_rate": {"min": 10}}},
        )

        result = self.validator.validate([HEADER, ["A", "B", "1", "5"]], template)

        self.assertEqual(result.warnings, ["Row 2: 'Rate' value 5 is outside the allowed range [10, inf]"])

    def test_only_the_first_sample_rows_are_inspected(self) -> None:
        template = make_template(columns=HEADER, mappings=MAPPINGS, validation={"numeric_fields": ["weight"]})
        rows = [HEADER] + [["A", "B", "bad", "1"] for _ in range(25)]

        self.assertEqual(len(self.validator.validate(rows, template).warnings), 10)
        self.assertEqual(len(TemplateCSVValidator(sample_size=3).validate(rows, template).warnings), 3)

    def test_headerless_file_uses_expected_columns(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings=MAPPINGS,
            structure={"has_headers": False},
            validation={"numeric_fields": ["base_rate"]},
        )
        rows = [["Toronto", "Montreal", "500", "x"]]

        result = self.validator.validate(rows, template)

        self.assertTrue(result.valid)
        self.assertEqual(result.warnings, ["Row 1: 'Rate' should be numeric but got 'x'"])

    def test_header_on_second_line(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings=MAPPINGS,
            structure={"header_row": 2},
            validation={"required_fields": ["destination"]},
        )
        rows = [
            ["Carrier XYZ rate sheet", "", "", ""],
            HEADER,
            ["Toronto", "", "500", "42"],
        ]

        layout = resolve_layout(rows, template)
        result = self.validator.validate(rows, template)

        self.assertEqual(layout.header, HEADER)
        self.assertEqual(layout.first_line, 3)
        self.assertTrue(result.valid)
        self.assertEqual(result.warnings, ["Row 3: Required field 'Destination' is empty"])

    def test_short_rows_do_not_crash(self) -> None:
        template = make_template(
            columns=HEADER,
            mappings=MAPPINGS,
            validation={"required_fields": ["base_rate"], "numeric_fields": ["base_rate"]},
        )

        result = self.validator.validate([HEADER, ["Toronto", "Montreal"]], template)

        self.assertTrue(result.valid)
        self.assertEqual(result.warnings, ["Row 2: Required field 'Rate' is empty"])


if __name__ == "__main__":
    unittest.main()
