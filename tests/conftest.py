"""Pytest configuration for test isolation.

Ingestion records every outcome in the per-process ``METRICS`` counter and the
database client caches one engine per URL. Both are process-global, so each
test starts from a clean counter and disposes any engines it created.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from db.client import reset_engines
from statement_ingest.metrics import METRICS


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Reset shared counters and keep the host's ``.env`` settings out of tests."""

    for key in (
        "STATEMENT_INGEST_REMOTE_ENABLED",
        "STATEMENT_INGEST_REMOTE_PROCESSOR_ID",
        "STATEMENT_INGEST_DOCUMENT_TYPE",
        "STATEMENT_INGEST_CONCURRENCY",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(key, raising=False)
    METRICS.reset()
    yield
    reset_engines()
