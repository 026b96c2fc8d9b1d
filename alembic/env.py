"""
Alembic environment for the carrier rate store.

Migrations cover the ``carrier_rate_templates`` and ``rate_cards`` tables
registered on ``db.base.Base``.
"""

from __future__ import annotations

import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from db.base import Base
from db.config import resolve_migration_url
from db.models import CarrierRateTemplate, RateCard  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def rate_store_url() -> str:
    return resolve_migration_url(
        override=context.get_x_argument(as_dictionary=True).get("db_url"),
        ini_url=config.get_main_option("sqlalchemy.url"),
    )


def run_migrations_offline() -> None:
    context.configure(
        url=rate_store_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = rate_store_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **COMPARE_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()
    logger.info("Carrier rate store migrations applied")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
