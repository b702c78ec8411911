"""Per-process ingestion counters.

The only state shared across ingestion calls. Records are kept in a bounded
ring so a long-running worker does not grow without limit; summaries report
per-provenance counts and the mean latency.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from .models import Provenance

RECENT_LIMIT = 500


@dataclass(frozen=True, slots=True)
class IngestRecord:
    provenance: Provenance
    issuer: str
    latency_ms: float
    document_type: str
    count: int
    fallback_reason: str | None = None
    timestamp: float = field(default_factory=time.time)


class IngestMetrics:
    """Thread-safe counters for ingestion outcomes."""

    def __init__(self, limit: int = RECENT_LIMIT) -> None:
        self._lock = threading.Lock()
        self._records: deque[IngestRecord] = deque(maxlen=limit)
        self._counts: dict[str, int] = {"local": 0, "remote": 0, "none": 0}
        self._failures: deque[str] = deque(maxlen=limit)

    def record(self, rec: IngestRecord) -> None:
        with self._lock:
            self._records.append(rec)
            self._counts[rec.provenance] = self._counts.get(rec.provenance, 0) + 1

    def record_failure(self, message: str) -> None:
        with self._lock:
            self._failures.append(message)

    def summary(self, recent: int = 20) -> dict[str, Any]:
        with self._lock:
            records = list(self._records)
            counts = dict(self._counts)
            failures = list(self._failures)
        avg = sum(r.latency_ms for r in records) / len(records) if records else 0.0
        return {
            "counts": counts,
            "average_latency_ms": round(avg),
            "recent": records[-recent:] if recent else [],
            "failures": len(failures),
        }

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
            self._failures.clear()
            self._counts = {"local": 0, "remote": 0, "none": 0}


METRICS = IngestMetrics()

__all__ = ["IngestRecord", "IngestMetrics", "METRICS", "RECENT_LIMIT"]
