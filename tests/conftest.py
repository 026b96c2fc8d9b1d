"""
tests/conftest.py

Shared fixtures: an in-memory SQLite store with the rate template schema and
a helper for building normalized templates without touching the database.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers ORM models on Base.metadata
from app.domain.rate_template import CarrierRateTemplate, template_from_document
from db.base import Base


def make_template(
    *,
    columns: list[str],
    mappings: dict[str, Any],
    rules: dict[str, Any] | None = None,
    validation: dict[str, Any] | None = None,
    structure: dict[str, Any] | None = None,
) -> CarrierRateTemplate:
    """
    Build a fully defaulted template whose expected_columns are ``columns``.
    """

    return template_from_document(
        {
            "id": "tmpl-test",
            "carrier_id": "carrier-1",
            "template_name": "Test layout",
            "csv_structure": {"expected_columns": columns, **(structure or {})},
            "field_mappings": mappings,
            "rate_calculation_rules": rules,
            "validation_rules": validation,
        }
    )


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
