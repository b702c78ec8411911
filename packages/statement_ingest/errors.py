"""Exception types raised across the ingestion and export pipeline.

Per-line and per-row problems are never raised; they surface as ``None``
returns, skip counts, or warning strings. Only the conditions below cross a
module boundary as exceptions.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for errors raised by ``statement_ingest``."""

    retryable: bool = False


class TextExtractionError(IngestError):
    """The PDF text layer could not be read (corrupt, encrypted or not a PDF).

    The orchestrator treats this like an empty text layer and goes remote.
    """


class RemoteExtractionError(IngestError):
    """The remote document-understanding service failed or returned garbage.

    The orchestrator converts this into a ``Done(none)`` outcome with a
    warning; it never propagates past :func:`ingest_statement`.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class RemoteConfigError(RemoteExtractionError):
    """Remote extraction is enabled but not usable (e.g., missing processor id)."""


class ReservationExistsError(IngestError):
    """A lock reservation with the requested name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"reservation already exists: {name!r}")
        self.name = name


class LockTimeoutError(IngestError):
    """The cooperative export lock could not be acquired within ``max_wait``.

    Callers should retry the whole append later; nothing was written.
    """

    retryable = True

    def __init__(self, name: str, waited_sec: float) -> None:
        super().__init__(f"timed out after {waited_sec:.1f}s waiting for lock {name!r}")
        self.name = name
        self.waited_sec = waited_sec


class CleanupViolationError(ValueError):
    """A cleanup collaborator tried to change a non-text transaction field."""


__all__ = [
    "IngestError",
    "TextExtractionError",
    "RemoteExtractionError",
    "RemoteConfigError",
    "ReservationExistsError",
    "LockTimeoutError",
    "CleanupViolationError",
]
