# ruff: noqa: I001
"""Export sheet rows and lock reservations.

Revision ID: 0001_si_export_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_si_export_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "si_sheet_rows",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("sheet_id", sa.String(), nullable=False),
        sa.Column("tx_hash", sa.CHAR(64), nullable=False),
        sa.Column("date", sa.String(10), nullable=True),
        sa.Column("posted_date", sa.String(10), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("payee", sa.Text(), nullable=True),
        sa.Column("debit", sa.Numeric(18, 2), nullable=False),
        sa.Column("credit", sa.Numeric(18, 2), nullable=False),
        sa.Column("balance", sa.Numeric(18, 2), nullable=True),
        sa.Column("source_issuer", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("sheet_id", "tx_hash", name="uniq_si_sheet_rows_sheet_hash"),
        sa.CheckConstraint("debit >= 0 AND credit >= 0", name="ck_si_sheet_rows_nonneg"),
        sa.CheckConstraint("NOT (debit > 0 AND credit > 0)", name="ck_si_sheet_rows_one_side"),
    )
    op.create_index("ix_si_sheet_rows_sheet_id", "si_sheet_rows", ["sheet_id"])

    op.create_table(
        "si_lock_reservations",
        sa.Column("name", sa.String(), primary_key=True),
        sa.Column("holder", sa.String(64), nullable=False),
        sa.Column("created_epoch", sa.Float(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )


def downgrade() -> None:
    op.drop_table("si_lock_reservations")
    op.drop_index("ix_si_sheet_rows_sheet_id", table_name="si_sheet_rows")
    op.drop_table("si_sheet_rows")
