"""Idempotent, serialized appends of canonical transactions to a sheet.

``DedupExporter.append`` is the only write path. Under the cooperative lock it
reads the hashes already stored for the sheet, drops known and intra-batch
duplicates, and appends the rest together with their hashes. Re-running the
same batch appends nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .dedup import filter_new
from .locking import CooperativeLock, Lock, ReservationBackend
from .logging_setup import get_logger
from .models import CanonicalTransaction

_logger = get_logger("statement_ingest.export")

LOCK_NAME_PREFIX = "si-export-lock:"


class SheetStore(Protocol):
    def known_hashes(self, sheet_id: str) -> set[str]: ...

    def append(
        self,
        sheet_id: str,
        transactions: Sequence[CanonicalTransaction],
        hashes: Sequence[str],
    ) -> int: ...


type LockFactory = Callable[[str], Lock]
"""Builds the lock guarding one sheet, given the sheet id."""


@dataclass(frozen=True, slots=True)
class ExportSummary:
    appended: int
    duplicate_count: int
    new_hashes: tuple[str, ...] = ()


def lock_name(sheet_id: str) -> str:
    return f"{LOCK_NAME_PREFIX}{sheet_id}"


def reservation_lock_factory(
    backend: ReservationBackend, *, ttl_sec: float = 30.0, max_wait_sec: float = 20.0
) -> LockFactory:
    """Lock factory producing a fresh :class:`CooperativeLock` per append."""

    def _factory(sheet_id: str) -> Lock:
        return CooperativeLock(
            backend, lock_name(sheet_id), ttl_sec=ttl_sec, max_wait_sec=max_wait_sec
        )

    return _factory


class DedupExporter:
    def __init__(self, store: SheetStore, lock_factory: LockFactory) -> None:
        self.store = store
        self.lock_factory = lock_factory

    def append(self, sheet_id: str, transactions: Sequence[CanonicalTransaction]) -> ExportSummary:
        """Append the transactions not yet on ``sheet_id``.

        Raises :class:`~statement_ingest.errors.LockTimeoutError` when the lock
        cannot be acquired; in that case nothing was written.
        """

        lock = self.lock_factory(sheet_id)
        lock.acquire()
        try:
            existing = self.store.known_hashes(sheet_id)
            result = filter_new(transactions, existing)
            appended = 0
            if result.unique:
                appended = self.store.append(sheet_id, result.unique, result.new_hashes)
        finally:
            lock.release()

        _logger.info(
            "export:append sheet=%s input=%d appended=%d duplicates=%d",
            sheet_id,
            len(transactions),
            appended,
            result.duplicate_count,
        )
        return ExportSummary(
            appended=appended,
            duplicate_count=result.duplicate_count,
            new_hashes=tuple(result.new_hashes),
        )


class InMemorySheetStore:
    """Process-local :class:`SheetStore` keeping rows and hashes per sheet."""

    def __init__(self) -> None:
        self.rows: dict[str, list[CanonicalTransaction]] = {}
        self.hashes: dict[str, set[str]] = {}

    def known_hashes(self, sheet_id: str) -> set[str]:
        return set(self.hashes.get(sheet_id, ()))

    def append(
        self,
        sheet_id: str,
        transactions: Sequence[CanonicalTransaction],
        hashes: Sequence[str],
    ) -> int:
        self.rows.setdefault(sheet_id, []).extend(transactions)
        self.hashes.setdefault(sheet_id, set()).update(hashes)
        return len(transactions)


__all__ = [
    "SheetStore",
    "LockFactory",
    "ExportSummary",
    "DedupExporter",
    "InMemorySheetStore",
    "lock_name",
    "reservation_lock_factory",
    "LOCK_NAME_PREFIX",
]
