"""SQL implementations of the export store and lock reservation backend.

Both go through :func:`db.client.session_scope` and stay dialect-neutral
(plain INSERT + unique constraint), so the same code runs against Postgres in
production and a SQLite file in tests.
"""

from __future__ import annotations

from collections.abc import Sequence

from db.client import session_scope
from db.models.ingest import SiLockReservation, SiSheetRow
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from .errors import ReservationExistsError
from .locking import Reservation
from .logging_setup import get_logger
from .models import CanonicalTransaction

_logger = get_logger("statement_ingest.persistence")


class SqlReservationBackend:
    """:class:`~statement_ingest.locking.ReservationBackend` over ``si_lock_reservations``.

    The primary key on ``name`` provides the create-if-absent primitive.
    """

    def __init__(self, *, database_url: str | None = None) -> None:
        self.database_url = database_url

    def create(self, name: str, holder: str, created_at: float) -> None:
        try:
            with session_scope(database_url=self.database_url) as session:
                session.add(SiLockReservation(name=name, holder=holder, created_epoch=created_at))
                session.flush()
        except IntegrityError as exc:
            raise ReservationExistsError(name) from exc

    def reservation(self, name: str) -> Reservation | None:
        with session_scope(database_url=self.database_url) as session:
            row = session.get(SiLockReservation, name)
            return None if row is None else Reservation(row.holder, float(row.created_epoch))

    def created_at(self, name: str) -> float | None:
        current = self.reservation(name)
        return None if current is None else current.created_at

    def delete(self, name: str, holder: str | None = None) -> bool:
        """Delete ``name``; with ``holder``, a single conditional DELETE on both columns."""

        stmt = delete(SiLockReservation).where(SiLockReservation.name == name)
        if holder is not None:
            stmt = stmt.where(SiLockReservation.holder == holder)
        with session_scope(database_url=self.database_url) as session:
            removed = session.execute(stmt).rowcount or 0
        return removed > 0


def _row_values(tx: CanonicalTransaction) -> dict[str, object]:
    return {
        "date": tx.date,
        "posted_date": tx.posted_date,
        "description": tx.description,
        "payee": tx.payee,
        "debit": tx.debit,
        "credit": tx.credit,
        "balance": tx.balance,
        "source_issuer": tx.source_issuer,
        "row_metadata": dict(tx.metadata),
    }


class SqlSheetStore:
    """Append-only sheet rows keyed by ``(sheet_id, tx_hash)``."""

    def __init__(self, *, database_url: str | None = None) -> None:
        self.database_url = database_url

    def known_hashes(self, sheet_id: str) -> set[str]:
        with session_scope(database_url=self.database_url) as session:
            rows = session.execute(select(SiSheetRow.tx_hash).where(SiSheetRow.sheet_id == sheet_id))
            return {h for (h,) in rows}

    def append(
        self,
        sheet_id: str,
        transactions: Sequence[CanonicalTransaction],
        hashes: Sequence[str],
    ) -> int:
        """Insert rows and their hashes in one transaction; return rows written."""

        if len(transactions) != len(hashes):
            raise ValueError("transactions and hashes must have the same length")
        if not transactions:
            return 0
        with session_scope(database_url=self.database_url) as session:
            session.add_all(
                SiSheetRow(sheet_id=sheet_id, tx_hash=h, **_row_values(tx))
                for tx, h in zip(transactions, hashes, strict=True)
            )
        _logger.info("store:append sheet=%s rows=%d", sheet_id, len(transactions))
        return len(transactions)

    def rows(self, sheet_id: str) -> list[SiSheetRow]:
        """All rows for ``sheet_id`` in append order."""

        with session_scope(database_url=self.database_url) as session:
            return list(
                session.scalars(
                    select(SiSheetRow).where(SiSheetRow.sheet_id == sheet_id).order_by(SiSheetRow.id)
                )
            )


__all__ = ["SqlReservationBackend", "SqlSheetStore"]
