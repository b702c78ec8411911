"""Ingestion orchestration: local grammars first, remote extraction as fallback.

Per file the flow is a small state machine::

    Start -> LocalAttempted -> LocalNonEmpty                 -> Done(local)
                            -> LocalEmpty -> RemoteAttempted -> Done(remote)
                                          -> remote failed / disabled -> Done(none)

Remote extraction only runs when the local path produced zero transactions;
the two paths never run in parallel for one file. Expected failures (no text
layer, unknown issuer, remote errors) become warnings on the result, never
exceptions.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from .config import MAX_CONCURRENCY, IngestSettings
from .errors import RemoteConfigError, RemoteExtractionError, TextExtractionError
from .grammars import get_grammar
from .grammars.base import year_from_filename
from .issuers import classify
from .logging_setup import get_logger
from .metrics import METRICS, IngestMetrics, IngestRecord
from .models import (
    CanonicalTransaction,
    DocumentType,
    IngestionResult,
    IngestionTelemetry,
    LocalTelemetry,
    Provenance,
    RemoteTelemetry,
)
from .normalizer import normalize
from .remote import RemoteExtractor, entities_to_entries, parse_remote_document
from .segmenter import segment
from .text_extract import TextExtractor, extract_text

_logger = get_logger("statement_ingest.orchestrator")

NO_REMOTE_TRANSACTIONS = "no transactions returned from remote extraction"


def _ms_since(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000.0, 2)


def _call_remote(
    remote: RemoteExtractor, file_bytes: bytes, document_type: DocumentType
) -> Mapping[str, Any]:
    """``remote.extract`` with transport failures raised as ``RemoteExtractionError``."""

    try:
        return remote.extract(file_bytes, document_type)
    except OSError as exc:
        # ConnectionError and TimeoutError are OSError subclasses.
        raise RemoteExtractionError(
            f"remote service unavailable: {exc}", code="unavailable"
        ) from exc


@dataclass(slots=True)
class _LocalOutcome:
    telemetry: LocalTelemetry
    transactions: list[CanonicalTransaction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    attempted: bool = False


def _run_local(text: str, issuer: str, file_name: str | None) -> _LocalOutcome:
    grammar = get_grammar(issuer)
    if grammar is None or not text.strip():
        warnings = []
        if grammar is None and issuer != "unknown":
            warnings.append(f"no local grammar for issuer {issuer!r}")
        return _LocalOutcome(LocalTelemetry(issuer=issuer), warnings=warnings)

    t0 = time.perf_counter()
    ctx = grammar.infer_context(text, file_name)
    lines = segment(text, issuer)
    entries = []
    for line in lines:
        if grammar.is_garbage(line.text):
            continue
        entry = grammar.parse(line, ctx)
        if entry is not None:
            entries.append(entry)
    norm = normalize(entries, issuer, context=ctx, source="local")

    warnings = list(norm.warnings)
    if lines and not entries:
        warnings.append(f"{len(lines)} candidate line(s) for {issuer} but none could be parsed")
    elif not lines:
        warnings.append(f"no transaction lines found for {issuer}")

    telemetry = LocalTelemetry(
        issuer=issuer,
        lines_segmented=len(lines),
        lines_parsed=len(entries),
        lines_skipped=len(lines) - len(entries),
        latency_ms=_ms_since(t0),
    )
    return _LocalOutcome(telemetry, norm.transactions, warnings, attempted=True)


def ingest_statement(
    file_bytes: bytes,
    *,
    file_name: str | None = None,
    text_extractor: TextExtractor = extract_text,
    remote: RemoteExtractor | None = None,
    settings: IngestSettings | None = None,
    metrics: IngestMetrics = METRICS,
) -> IngestionResult:
    """Ingest one statement file and return its canonical transactions.

    ``settings`` defaults to remote-enabled exactly when a ``remote`` extractor
    is supplied. Remote extraction is skipped unless both are present.
    """

    if settings is None:
        settings = IngestSettings(remote_enabled=remote is not None)
    t0 = time.perf_counter()
    warnings: list[str] = []
    attempted: list[str] = []
    _logger.info("ingest:start file=%s bytes=%d", file_name, len(file_bytes or b""))

    try:
        text = text_extractor(file_bytes) or ""
    except TextExtractionError as exc:
        warnings.append(f"text extraction failed: {exc}")
        text = ""
    if not text.strip() and not warnings:
        warnings.append("no text layer; local extraction not possible")

    issuer = classify(text, file_name)
    local = _run_local(text, issuer, file_name)
    if local.attempted:
        attempted.append("local")
    warnings.extend(local.warnings)
    _logger.info(
        "ingest:local_done file=%s issuer=%s segmented=%d parsed=%d transactions=%d",
        file_name,
        issuer,
        local.telemetry.lines_segmented,
        local.telemetry.lines_parsed,
        len(local.transactions),
    )

    remote_tel = RemoteTelemetry(enabled=bool(settings.remote_enabled and remote is not None))
    provenance: Provenance
    transactions: list[CanonicalTransaction]
    fallback_reason: str | None = None

    if local.transactions:
        provenance, transactions = "local", local.transactions
    elif remote is None or not settings.remote_enabled:
        provenance, transactions = "none", []
        fallback_reason = "disabled"
        warnings.append("remote extraction disabled; no transactions extracted")
    else:
        attempted.append("remote")
        processor_id = getattr(remote, "processor_id", None) or settings.remote_processor_id
        t_remote = time.perf_counter()
        try:
            if not processor_id:
                raise RemoteConfigError(
                    "remote extraction enabled without a processor id", code="config"
                )
            payload = _call_remote(remote, file_bytes, settings.document_type)
            document = parse_remote_document(payload)
        except RemoteExtractionError as exc:
            remote_tel = RemoteTelemetry(
                enabled=True, processor_id=processor_id, latency_ms=_ms_since(t_remote)
            )
            _logger.warning(
                "ingest:remote_failed file=%s processor=%s code=%s error=%s",
                file_name,
                processor_id,
                exc.code,
                exc,
            )
            metrics.record_failure(f"{file_name}: {exc}")
            provenance, transactions = "none", []
            fallback_reason = "failed"
            warnings.append(f"remote extraction failed: {exc}")
        else:
            entries = entities_to_entries(document, settings.document_type)
            norm = normalize(
                entries,
                issuer,
                statement_year=year_from_filename(file_name),
                source="remote",
                extra_metadata={"processor_id": processor_id} if processor_id else None,
            )
            remote_tel = RemoteTelemetry(
                enabled=True,
                processor_id=processor_id,
                latency_ms=_ms_since(t_remote),
                entity_count=len(document.entities),
            )
            warnings.extend(norm.warnings)
            provenance, transactions = "remote", norm.transactions
            if not transactions:
                warnings.append(NO_REMOTE_TRANSACTIONS)

    latency = _ms_since(t0)
    result = IngestionResult(
        transactions=tuple(transactions),
        provenance=provenance,
        telemetry=IngestionTelemetry(
            attempted=tuple(attempted),
            local=local.telemetry,
            remote=remote_tel,
            latency_ms=latency,
        ),
        warnings=tuple(warnings),
        issuer=issuer,
        file_name=file_name,
    )
    metrics.record(
        IngestRecord(
            provenance=provenance,
            issuer=issuer,
            latency_ms=latency,
            document_type=settings.document_type,
            count=result.count,
            fallback_reason=fallback_reason,
        )
    )
    _logger.info(
        "ingest:done file=%s issuer=%s provenance=%s count=%d warnings=%d latency_ms=%.1f",
        file_name,
        issuer,
        provenance,
        result.count,
        len(warnings),
        latency,
    )
    return result


def ingest_statements(
    files: Iterable[tuple[str | None, bytes]],
    *,
    concurrency: int = 4,
    text_extractor: TextExtractor = extract_text,
    remote: RemoteExtractor | None = None,
    settings: IngestSettings | None = None,
    metrics: IngestMetrics = METRICS,
) -> list[IngestionResult]:
    """Ingest ``(file_name, file_bytes)`` pairs concurrently, preserving input order.

    A file that fails unexpectedly yields a ``provenance="none"`` result with
    the error as its warning; the remaining files are unaffected.
    """

    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")
    items: Sequence[tuple[str | None, bytes]] = list(files)
    if not items:
        return []

    def _one(item: tuple[str | None, bytes]) -> IngestionResult:
        name, data = item
        try:
            return ingest_statement(
                data,
                file_name=name,
                text_extractor=text_extractor,
                remote=remote,
                settings=settings,
                metrics=metrics,
            )
        except Exception as exc:  # noqa: BLE001
            _logger.exception("ingest:file_failed file=%s", name)
            metrics.record_failure(f"{name}: {exc!r}")
            return IngestionResult(
                transactions=(),
                provenance="none",
                telemetry=IngestionTelemetry(),
                warnings=(f"ingestion failed: {exc.__class__.__name__}: {exc}",),
                file_name=name,
            )

    workers = max(1, min(concurrency, len(items), MAX_CONCURRENCY))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_one, items))


__all__ = ["ingest_statement", "ingest_statements", "NO_REMOTE_TRANSACTIONS"]
