from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    CHAR,
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Export target: si_sheet_rows
# ---------------------------


class SiSheetRow(Base):
    """One appended spreadsheet row plus the content hash it was deduped on.

    ``sheet_id`` names the logical sheet (one per account or workbook tab). The
    hash lives beside the row, so the set of known hashes for a sheet is a
    single indexed read.
    """

    __tablename__ = "si_sheet_rows"

    # BIGINT on Postgres; INTEGER on SQLite so the rowid alias autoincrements.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    sheet_id: Mapped[str] = mapped_column(String, nullable=False)
    tx_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    posted_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    payee: Mapped[str | None] = mapped_column(Text, nullable=True)
    debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    source_issuer: Mapped[str | None] = mapped_column(String, nullable=True)
    row_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        UniqueConstraint("sheet_id", "tx_hash", name="uniq_si_sheet_rows_sheet_hash"),
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_si_sheet_rows_nonneg"),
        CheckConstraint("NOT (debit > 0 AND credit > 0)", name="ck_si_sheet_rows_one_side"),
        Index("ix_si_sheet_rows_sheet_id", "sheet_id"),
    )


# ---------------------------
# Coordination: si_lock_reservations
# ---------------------------


class SiLockReservation(Base):
    """Create-if-absent reservation backing the cooperative export lock."""

    __tablename__ = "si_lock_reservations"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    holder: Mapped[str] = mapped_column(String(64), nullable=False)
    # Epoch seconds from the acquiring process's clock; compared against TTL.
    created_epoch: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
