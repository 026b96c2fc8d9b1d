"""
tests/test_rate_routers.py

HTTP contract tests for the rate template and rate import routers.

The app under test is assembled from the routers directly with the database
and service dependencies overridden, so no environment or PostgreSQL is needed.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.routers import rate_imports_router, rate_templates_router
from app.services.rate_import_service import RateImportService, get_rate_import_service
from db.session import get_db

HEADER = ["Origin", "Destination", "Skids", "Rate"]

TEMPLATE_PAYLOAD = {
    "carrier_id": "carrier-7",
    "template_name": "Skid rates",
    "csv_structure": {"expected_columns": HEADER, "required_columns": ["Origin", "Destination"]},
    "field_mappings": {
        "origin": "Origin",
        "destination": "Destination",
        "skid_count": "Skids",
        "base_rate": "Rate",
    },
    "rate_calculation_rules": {"calculation_type": "per_unit", "base_unit": "skid"},
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    app = FastAPI()
    app.include_router(rate_templates_router)
    app.include_router(rate_imports_router)

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    service = RateImportService(
        preview_row_count=2,
        validation_sample_size=10,
        existing_template_limit=5,
        max_template_sample_rows=10,
        log_row_errors=False,
    )
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_rate_import_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def template_id(client: TestClient) -> str:
    response = client.post("/rate-templates", json=TEMPLATE_PAYLOAD, params={"created_by": "ops"})
    assert response.status_code == 201
    return response.json()["template_id"]


def _csv(*rows: list[str]) -> bytes:
    return ("\n".join(",".join(row) for row in rows) + "\n").encode("utf-8")


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TestTemplateEndpoints:
    def test_create_then_fetch(self, client: TestClient, template_id: str) -> None:
        response = client.get(f"/rate-templates/{template_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == template_id
        assert body["created_by"] == "ops"
        assert body["field_mappings"]["skid_count"] == "Skids"
        assert body["csv_structure"]["data_start_row"] == 2
        assert body["rate_calculation_rules"]["fuel_surcharge"]["type"] == "percentage"
        assert body["usage"]["imports_count"] == 0

    def test_create_missing_mappings_is_rejected(self, client: TestClient) -> None:
        payload = {key: value for key, value in TEMPLATE_PAYLOAD.items() if key != "field_mappings"}

        response = client.post("/rate-templates", json=payload)

        assert response.status_code == 422

    def test_create_with_unknown_field_is_rejected(self, client: TestClient) -> None:
        payload = {**TEMPLATE_PAYLOAD, "field_mappings": {"warp_speed": "Warp"}}

        response = client.post("/rate-templates", json=payload)

        assert response.status_code == 422
        assert "warp_speed" in response.json()["detail"]

    def test_list_by_carrier(self, client: TestClient, template_id: str) -> None:
        client.post("/rate-templates", json={**TEMPLATE_PAYLOAD, "carrier_id": "carrier-8"})

        response = client.get("/rate-templates", params={"carrier_id": "carrier-7"})

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["templates"]] == [template_id]

    def test_unknown_template_is_404(self, client: TestClient) -> None:
        assert client.get(f"/rate-templates/{uuid.uuid4()}").status_code == 404
        assert client.get("/rate-templates/not-a-uuid").status_code == 404

    def test_suggest_mapping(self, client: TestClient, template_id: str) -> None:
        response = client.post(
            "/rate-templates/suggest-mapping",
            json={
                "headers": ["Origin City", "Destination City", "Pallets", "Base Rate", "Fuel"],
                "sample_row": ["Toronto", "Montreal", "2", "120.00", "18%"],
                "carrier_id": "carrier-7",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["suggestions"]["field_mappings"]["origin_city"] == "Origin City"
        assert body["suggestions"]["field_mappings"]["fuel_surcharge_pct"] == "Fuel"
        assert body["suggestions"]["rate_calculation_rules"]["base_unit"] == "skid"
        assert body["confidence"]["breakdown"]["existing_templates"] == -5
        assert [ref["id"] for ref in body["existing_templates"]] == [template_id]

    def test_suggest_mapping_requires_headers(self, client: TestClient) -> None:
        assert client.post("/rate-templates/suggest-mapping", json={"headers": []}).status_code == 422

    def test_starter_download(self, client: TestClient) -> None:
        response = client.get("/rate-templates/starters/skid_based")

        assert response.status_code == 200
        body = response.json()
        assert body["filename"] == "skid_based_rate_template.csv"
        assert body["csv_content"].splitlines()[0].startswith("Origin City,Origin Province")
        assert body["template"]["rate_calculation_rules"]["base_unit"] == "skid"

    def test_unknown_starter(self, client: TestClient) -> None:
        assert client.get("/rate-templates/starters/teleport").status_code == 404


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class TestImportEndpoints:
    def test_validate(self, client: TestClient, template_id: str) -> None:
        response = client.post(
            f"/rate-templates/{template_id}/imports/validate",
            json={"rows": [["Origin", "Skids", "Rate"], ["Toronto", "2", "100"]]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is False
        assert "Required column 'Destination' not found in CSV" in body["errors"]

    def test_preview_returns_limited_rows(self, client: TestClient, template_id: str) -> None:
        rows = [HEADER] + [["Toronto", "Montreal", str(count), "100"] for count in range(1, 6)]

        response = client.post(f"/rate-templates/{template_id}/imports/preview", json={"rows": rows})

        assert response.status_code == 200
        body = response.json()
        assert body["validation"]["valid"] is True
        assert [row["total_rate"] for row in body["rows"]] == [100.0, 200.0]

    def test_commit_and_usage(self, client: TestClient, template_id: str) -> None:
        rows = [HEADER, ["Toronto", "Montreal", "3", "100"], ["Toronto", "Ottawa", "1", "90"]]

        response = client.post(
            f"/rate-templates/{template_id}/imports",
            json={"rows": rows, "imported_by": "ops"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["committed"] is True
        assert body["processed_count"] == 2
        assert body["summary"]["total_rate_range"] == {"min": 90.0, "max": 300.0}
        assert client.get(f"/rate-templates/{template_id}").json()["usage"]["imports_count"] == 1

    def test_commit_invalid_file_is_not_stored(self, client: TestClient, template_id: str) -> None:
        response = client.post(f"/rate-templates/{template_id}/imports", json={"rows": [HEADER]})

        assert response.status_code == 200
        body = response.json()
        assert body["committed"] is False
        assert body["rate_card_id"] is None
        assert body["validation"]["errors"] == ["CSV must contain at least header row and one data row"]

    def test_import_into_unknown_template(self, client: TestClient) -> None:
        response = client.post(f"/rate-templates/{uuid.uuid4()}/imports/validate", json={"rows": []})

        assert response.status_code == 404

    @pytest.mark.parametrize(
        ("mode", "section"),
        [("validate", None), ("preview", "preview"), ("commit", "commit")],
    )
    def test_upload_modes(self, client: TestClient, template_id: str, mode: str, section: str | None) -> None:
        content = _csv(HEADER, ["Toronto", "Montreal", "2", "100"])

        response = client.post(
            f"/rate-templates/{template_id}/imports/upload",
            params={"mode": mode},
            files={"file": ("rates.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == mode
        assert body["validation"]["valid"] is True
        if section == "preview":
            assert body["preview"]["rows"][0]["total_rate"] == 200.0
        if section == "commit":
            assert body["commit"]["committed"] is True

    def test_upload_with_title_line_above_header(self, client: TestClient) -> None:
        payload = {**TEMPLATE_PAYLOAD, "csv_structure": {**TEMPLATE_PAYLOAD["csv_structure"], "header_row": 3}}
        created = client.post("/rate-templates", json=payload).json()["template_id"]
        content = b"Skid rates effective 2026-11-01\n\n" + _csv(HEADER, ["Toronto", "Montreal", "2", "100"])

        response = client.post(
            f"/rate-templates/{created}/imports/upload",
            params={"mode": "preview"},
            files={"file": ("rates.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["validation"]["valid"] is True
        assert body["preview"]["rows"][0]["row_number"] == 1
        assert body["preview"]["rows"][0]["total_rate"] == 200.0

    def test_upload_rejects_non_csv(self, client: TestClient, template_id: str) -> None:
        response = client.post(
            f"/rate-templates/{template_id}/imports/upload",
            files={"file": ("rates.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Rate sheets must be uploaded as CSV files."

    def test_upload_with_bad_encoding(self, client: TestClient, template_id: str) -> None:
        response = client.post(
            f"/rate-templates/{template_id}/imports/upload",
            files={"file": ("rates.csv", b"Origin,Destination\nMontr\xe9al,Ottawa\n", "text/csv")},
        )

        assert response.status_code == 400
