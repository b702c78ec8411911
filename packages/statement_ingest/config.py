"""Runtime settings for ingestion and export, read from the environment.

Entry points call :func:`dotenv.load_dotenv` first, so a local ``.env`` works
the same as exported variables. Malformed values fall back to defaults rather
than failing at startup.

Variables
---------
``STATEMENT_INGEST_REMOTE_ENABLED``
    ``1/true/yes`` enables the remote extraction fallback (default off).
``STATEMENT_INGEST_REMOTE_PROCESSOR_ID``
    Processor identifier reported in telemetry and required when enabled.
``STATEMENT_INGEST_DOCUMENT_TYPE``
    ``bank_statement`` (default), ``invoice`` or ``receipt``.
``STATEMENT_INGEST_CONCURRENCY``
    Worker count for multi-file ingestion (default 4, capped at 32).
``STATEMENT_INGEST_LOCK_TTL_SEC`` / ``STATEMENT_INGEST_LOCK_MAX_WAIT_SEC``
    Export lock reservation TTL (default 30s) and maximum wait (default 20s).
``DATABASE_URL``
    SQLAlchemy URL for the sheet store and lock reservations.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import cast

from .models import DocumentType

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
_DOCUMENT_TYPES = ("bank_statement", "invoice", "receipt")

MAX_CONCURRENCY = 32


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def _env_positive(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True, slots=True)
class IngestSettings:
    remote_enabled: bool = False
    remote_processor_id: str | None = None
    document_type: DocumentType = "bank_statement"
    concurrency: int = 4
    lock_ttl_sec: float = 30.0
    lock_max_wait_sec: float = 20.0
    database_url: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> IngestSettings:
        """Build settings from ``env`` (defaults to :data:`os.environ`)."""

        e = os.environ if env is None else env
        doc_type = (e.get("STATEMENT_INGEST_DOCUMENT_TYPE") or "").strip().lower()
        processor = (e.get("STATEMENT_INGEST_REMOTE_PROCESSOR_ID") or "").strip()
        concurrency = int(_env_positive(e, "STATEMENT_INGEST_CONCURRENCY", 4))
        return cls(
            remote_enabled=_env_bool(e, "STATEMENT_INGEST_REMOTE_ENABLED", False),
            remote_processor_id=processor or None,
            document_type=cast(
                DocumentType, doc_type if doc_type in _DOCUMENT_TYPES else "bank_statement"
            ),
            concurrency=max(1, min(concurrency, MAX_CONCURRENCY)),
            lock_ttl_sec=_env_positive(e, "STATEMENT_INGEST_LOCK_TTL_SEC", 30.0),
            lock_max_wait_sec=_env_positive(e, "STATEMENT_INGEST_LOCK_MAX_WAIT_SEC", 20.0),
            database_url=(e.get("DATABASE_URL") or "").strip() or None,
        )


__all__ = ["IngestSettings", "MAX_CONCURRENCY"]
