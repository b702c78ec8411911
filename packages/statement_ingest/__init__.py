"""Public interface for the ``statement_ingest`` package.

Symbol re-exports only; the ingestion and export entry points live in
:mod:`statement_ingest.orchestrator` and :mod:`statement_ingest.export`.
"""

from .dedup import DedupResult, filter_new, transaction_hash
from .errors import (
    CleanupViolationError,
    IngestError,
    LockTimeoutError,
    RemoteConfigError,
    RemoteExtractionError,
    ReservationExistsError,
    TextExtractionError,
)
from .export import DedupExporter, ExportSummary, SheetStore
from .issuers import classify
from .locking import CooperativeLock, Lock, Reservation, ReservationBackend
from .models import (
    CanonicalTransaction,
    IngestionResult,
    IngestionTelemetry,
    ParsedEntry,
    RawLine,
    StatementContext,
    StatementPeriod,
)
from .normalizer import normalize
from .orchestrator import ingest_statement, ingest_statements
from .segmenter import segment

__all__ = [
    # API
    "classify",
    "segment",
    "normalize",
    "ingest_statement",
    "ingest_statements",
    "transaction_hash",
    "filter_new",
    "DedupExporter",
    "CooperativeLock",
    # Models / types
    "RawLine",
    "ParsedEntry",
    "StatementContext",
    "StatementPeriod",
    "CanonicalTransaction",
    "IngestionResult",
    "IngestionTelemetry",
    "DedupResult",
    "ExportSummary",
    "SheetStore",
    "Lock",
    "Reservation",
    "ReservationBackend",
    # Errors
    "IngestError",
    "TextExtractionError",
    "RemoteExtractionError",
    "RemoteConfigError",
    "ReservationExistsError",
    "LockTimeoutError",
    "CleanupViolationError",
]
