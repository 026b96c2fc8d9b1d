from __future__ import annotations

import csv
import io

import pytest

from app.services.rate_calculator import process_rows
from app.services.starter_templates import (
    STARTER_TEMPLATES,
    UnknownStarterTemplateError,
    get_starter_template,
)
from app.validators.template_csv_validator import TemplateCSVValidator, resolve_layout
from app.domain.rate_template import template_from_document


def _starter_as_template(starter_type: str):
    starter = get_starter_template(starter_type)
    return starter, template_from_document(
        {"carrier_id": "carrier-1", "template_name": starter.name, **starter.template_sections()}
    )


class TestStarterTemplates:
    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownStarterTemplateError, match="skid_based"):
            get_starter_template("teleport")

    @pytest.mark.parametrize("starter_type", sorted(STARTER_TEMPLATES))
    def test_csv_matches_headers_and_samples(self, starter_type: str) -> None:
        starter = get_starter_template(starter_type)

        rows = list(csv.reader(io.StringIO(starter.to_csv())))

        assert rows[0] == list(starter.headers)
        assert rows[1:] == [list(row) for row in starter.sample_rows]
        assert starter.filename == f"{starter_type}_rate_template.csv"
        assert set(starter.instructions) == set(starter.headers)

    @pytest.mark.parametrize("starter_type", sorted(STARTER_TEMPLATES))
    def test_sample_rows_import_cleanly(self, starter_type: str) -> None:
        starter, template = _starter_as_template(starter_type)
        rows = [list(starter.headers), *[list(row) for row in starter.sample_rows]]

        validation = TemplateCSVValidator().validate(rows, template)
        processed = process_rows(resolve_layout(rows, template).data_rows, template)

        assert validation.valid is True
        assert validation.warnings == []
        assert processed.skipped_count == 0
        assert len(processed.records) == len(starter.sample_rows)
        assert all(record.total_rate is not None for record in processed.records)

    def test_skid_based_rates(self) -> None:
        starter, template = _starter_as_template("skid_based")

        record = process_rows([list(starter.sample_rows[1])], template).records[0]

        assert record.skid_count == 2
        assert record.total_rate == 285.0
        assert record.fuel_surcharge_pct == 18.5
        assert record.minimum_applied is False

    def test_weight_break_applies_minimum(self) -> None:
        starter, template = _starter_as_template("weight_break")

        first = process_rows([list(starter.sample_rows[0])], template).records[0]

        assert first.weight_min == 0.0
        assert first.total_rate == 95.0
        assert first.minimum_applied is True
