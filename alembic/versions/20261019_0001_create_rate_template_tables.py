"""create carrier_rate_templates and rate_cards tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "carrier_rate_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("carrier_id", sa.String(length=120), nullable=False, comment="Carrier identifier the template belongs to"),
        sa.Column("template_name", sa.String(length=255), nullable=False),
        sa.Column("carrier_name", sa.String(length=255), nullable=False),
        sa.Column("template_type", sa.String(length=50), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column(
            "csv_structure",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Header/data row positions, delimiter, encoding, expected columns",
        ),
        sa.Column(
            "field_mappings",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Logical rate field -> CSV column name",
        ),
        sa.Column("rate_calculation_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("validation_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("sample_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "imports_count",
            sa.Integer(),
            nullable=False,
            comment="Incremented atomically on every committed import",
        ),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("success_rate", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_carrier_rate_templates_carrier_id", "carrier_rate_templates", ["carrier_id"], unique=False)
    op.create_index("ix_carrier_rate_templates_enabled", "carrier_rate_templates", ["enabled"], unique=False)
    op.create_index(
        "ix_carrier_rate_templates_carrier_enabled",
        "carrier_rate_templates",
        ["carrier_id", "enabled"],
        unique=False,
    )
    op.create_index(
        "ix_carrier_rate_templates_last_used_at",
        "carrier_rate_templates",
        ["last_used_at"],
        unique=False,
    )

    op.create_table(
        "rate_cards",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("carrier_id", sa.String(length=120), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_name", sa.String(length=255), nullable=False),
        sa.Column("template_version", sa.Integer(), nullable=False),
        sa.Column("rate_type", sa.String(length=50), nullable=False),
        sa.Column(
            "rate_structure",
            sa.String(length=32),
            nullable=False,
            comment="explicit or per_unit, copied from the template rules",
        ),
        sa.Column("rates", postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment="Normalized rate records"),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("csv_row_count", sa.Integer(), nullable=False),
        sa.Column("skipped_row_count", sa.Integer(), nullable=False),
        sa.Column("summary", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("imported_by", sa.String(length=255), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["carrier_rate_templates.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rate_cards_carrier_id", "rate_cards", ["carrier_id"], unique=False)
    op.create_index("ix_rate_cards_template_id", "rate_cards", ["template_id"], unique=False)
    op.create_index("ix_rate_cards_created_at", "rate_cards", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_rate_cards_created_at", table_name="rate_cards")
    op.drop_index("ix_rate_cards_template_id", table_name="rate_cards")
    op.drop_index("ix_rate_cards_carrier_id", table_name="rate_cards")
    op.drop_table("rate_cards")
    op.drop_index("ix_carrier_rate_templates_last_used_at", table_name="carrier_rate_templates")
    op.drop_index("ix_carrier_rate_templates_carrier_enabled", table_name="carrier_rate_templates")
    op.drop_index("ix_carrier_rate_templates_enabled", table_name="carrier_rate_templates")
    op.drop_index("ix_carrier_rate_templates_carrier_id", table_name="carrier_rate_templates")
    op.drop_table("carrier_rate_templates")
