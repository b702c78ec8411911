"""Cooperative cross-process lock built on a create-if-absent reservation.

The backing store offers no compare-and-append, only "create a uniquely named
object, fail if it exists". A caller holds the lock while its reservation
exists. Waiters retry with bounded exponential backoff plus jitter; a
reservation older than ``ttl_sec`` is treated as abandoned by a crashed holder
and force-removed by whichever waiter notices first.

:class:`CooperativeLock` depends only on the :class:`ReservationBackend`
protocol, so the primitive (database row, named range, lock service) can be
swapped without touching the exporter.
"""

from __future__ import annotations

import random
import threading
import time
import uuid
from collections.abc import Callable
from types import TracebackType
from typing import NamedTuple, Protocol

from .errors import LockTimeoutError, ReservationExistsError
from .logging_setup import get_logger

_logger = get_logger("statement_ingest.locking")

_INITIAL_DELAY_SEC: float = 0.05
_MAX_DELAY_SEC: float = 2.0
_JITTER_PCT: float = 0.20


class Reservation(NamedTuple):
    holder: str
    created_at: float


class ReservationBackend(Protocol):
    def create(self, name: str, holder: str, created_at: float) -> None:
        """Create the reservation or raise :class:`ReservationExistsError`."""
        ...

    def reservation(self, name: str) -> Reservation | None:
        """Holder and creation time read in one go, ``None`` when absent."""
        ...

    def created_at(self, name: str) -> float | None:
        """Epoch seconds the reservation was created, ``None`` when absent."""
        ...

    def delete(self, name: str, holder: str | None = None) -> bool:
        """Remove the reservation; with ``holder`` only when it matches."""
        ...


class Lock(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...

    def __enter__(self) -> Lock: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


def backoff_delay(attempt_no: int, *, rng: Callable[[float, float], float] = random.uniform) -> float:
    """Delay before retry ``attempt_no`` (1-based): doubling, capped, +/- jitter."""

    base = min(_INITIAL_DELAY_SEC * (2 ** max(0, attempt_no - 1)), _MAX_DELAY_SEC)
    jitter = base * _JITTER_PCT
    return max(0.0, base + rng(-jitter, jitter))


class CooperativeLock:
    """Reservation-based lock with TTL takeover and a bounded wait."""

    def __init__(
        self,
        backend: ReservationBackend,
        name: str,
        *,
        ttl_sec: float = 30.0,
        max_wait_sec: float = 20.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.backend = backend
        self.name = name
        self.ttl_sec = ttl_sec
        self.max_wait_sec = max_wait_sec
        self.holder = uuid.uuid4().hex
        self._clock = clock
        self._sleep = sleep
        self._rng = rng
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Block until the reservation is ours; raise :class:`LockTimeoutError` otherwise."""

        start = self._clock()
        attempt = 0
        while True:
            try:
                self.backend.create(self.name, self.holder, self._clock())
            except ReservationExistsError:
                pass
            else:
                self._held = True
                _logger.debug("lock:acquired name=%s attempts=%d", self.name, attempt + 1)
                return

            now = self._clock()
            current = self.backend.reservation(self.name)
            if current is not None and now - current.created_at > self.ttl_sec:
                _logger.warning(
                    "lock:stale_takeover name=%s stale_holder=%s age_sec=%.1f ttl_sec=%.1f",
                    self.name,
                    current.holder,
                    now - current.created_at,
                    self.ttl_sec,
                )
                # Only the reservation judged stale; a fresher takeover survives.
                self.backend.delete(self.name, holder=current.holder)
                continue

            waited = now - start
            if waited >= self.max_wait_sec:
                _logger.warning("lock:timeout name=%s waited_sec=%.1f", self.name, waited)
                raise LockTimeoutError(self.name, waited)
            attempt += 1
            self._sleep(min(backoff_delay(attempt, rng=self._rng), self.max_wait_sec - waited))

    def release(self) -> None:
        """Best-effort removal of our own reservation; never raises."""

        if not self._held:
            return
        self._held = False
        try:
            self.backend.delete(self.name, holder=self.holder)
        except Exception as exc:  # noqa: BLE001
            _logger.warning("lock:release_failed name=%s error=%s", self.name, exc)

    def __enter__(self) -> CooperativeLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class InMemoryReservations:
    """Process-local :class:`ReservationBackend`, for tests and single-process runs."""

    def __init__(self) -> None:
        self._rows: dict[str, Reservation] = {}
        # Guards the dict only; compare-and-delete must be one step.
        self._mutex = threading.Lock()

    def create(self, name: str, holder: str, created_at: float) -> None:
        with self._mutex:
            if name in self._rows:
                raise ReservationExistsError(name)
            self._rows[name] = Reservation(holder, created_at)

    def reservation(self, name: str) -> Reservation | None:
        with self._mutex:
            return self._rows.get(name)

    def created_at(self, name: str) -> float | None:
        row = self.reservation(name)
        return row.created_at if row else None

    def delete(self, name: str, holder: str | None = None) -> bool:
        with self._mutex:
            row = self._rows.get(name)
            if row is None or (holder is not None and row.holder != holder):
                return False
            del self._rows[name]
            return True


__all__ = [
    "Reservation",
    "ReservationBackend",
    "Lock",
    "CooperativeLock",
    "InMemoryReservations",
    "backoff_delay",
]
