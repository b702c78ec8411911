"""Data models and type aliases for ``statement_ingest``.

Records produced inside one ingestion call (``RawLine``, ``ParsedEntry``) are
lightweight and ephemeral. ``CanonicalTransaction`` is the durable unit handed
to exporters and renderers; it validates its debit/credit invariant on
construction and is immutable afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal, NamedTuple

# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------

type IssuerTag = Literal[
    "amex",
    "chase",
    "capital_one",
    "citi",
    "citizens",
    "dollar_bank",
    "amazon_synchrony",
    "lowes",
    "synchrony",
    "unknown",
]
"""Issuer whose statement layout a grammar targets.

``synchrony`` is recognised by the classifier but has no local grammar; it is
routed to remote extraction exactly like ``unknown``.
"""

ISSUER_TAGS: tuple[str, ...] = (
    "amex",
    "chase",
    "capital_one",
    "citi",
    "citizens",
    "dollar_bank",
    "amazon_synchrony",
    "lowes",
    "synchrony",
    "unknown",
)

type Section = Literal["debit", "credit", "none"]
"""Statement section in force while scanning lines (drives implicit signs)."""

type Provenance = Literal["local", "remote", "none"]

type DocumentType = Literal["bank_statement", "invoice", "receipt"]

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Ephemeral per-call records
# ---------------------------------------------------------------------------


class RawLine(NamedTuple):
    """A transaction-candidate line with its issuer and section context."""

    text: str
    issuer: str
    section: Section = "none"


@dataclass(frozen=True, slots=True)
class ParsedEntry:
    """Grammar output for one line (or one remote entity after flattening).

    ``date`` keeps the statement's own formatting (``MM/DD/YYYY`` when the
    grammar could resolve the year, ``MM/DD`` otherwise, ISO for remote rows).
    ``signed_amount`` is negative for debits and positive for credits; ``None``
    only occurs for remote rows whose amount could not be read.
    """

    date: str | None
    description: str
    signed_amount: Decimal | None
    posted_date: str | None = None
    balance: Decimal | None = None
    reference: str | None = None
    payee: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StatementPeriod:
    start: str | None = None
    end: str | None = None


@dataclass(frozen=True, slots=True)
class StatementContext:
    """Per-statement facts a grammar needs to resolve partial dates.

    ``closing_month`` enables year rollback for statements that straddle a
    year boundary (a December charge on a January statement).
    """

    year: int
    period: StatementPeriod = field(default_factory=StatementPeriod)
    closing_month: int | None = None

    def year_for_month(self, month: int) -> int:
        if self.closing_month is not None and month > self.closing_month:
            return self.year - 1
        return self.year


# ---------------------------------------------------------------------------
# Canonical transaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """Normalized, source-agnostic transaction record.

    Invariant: ``debit`` and ``credit`` are both non-negative and at most one
    of them is nonzero. Both zero marks a flagged row (see
    ``metadata["flagged"]``). Direction is never encoded by sign.
    """

    date: str | None
    posted_date: str | None
    description: str
    payee: str | None
    debit: Decimal
    credit: Decimal
    balance: Decimal | None = None
    account_id: str | None = None
    source_issuer: str | None = None
    statement_period: StatementPeriod = field(default_factory=StatementPeriod)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.debit < _ZERO or self.credit < _ZERO:
            raise ValueError(
                f"debit/credit must be non-negative (debit={self.debit}, credit={self.credit})"
            )
        if self.debit > _ZERO and self.credit > _ZERO:
            raise ValueError(
                f"debit and credit cannot both be nonzero (debit={self.debit}, "
                f"credit={self.credit})"
            )

    @property
    def net_amount(self) -> Decimal:
        """Signed amount: positive for credits, negative for debits."""

        return self.credit - self.debit

    @property
    def is_flagged(self) -> bool:
        return self.debit == _ZERO and self.credit == _ZERO

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view; money is rendered as 2dp strings."""

        return {
            "date": self.date,
            "posted_date": self.posted_date,
            "description": self.description,
            "payee": self.payee,
            "debit": f"{self.debit:.2f}",
            "credit": f"{self.credit:.2f}",
            "balance": None if self.balance is None else f"{self.balance:.2f}",
            "account_id": self.account_id,
            "source_issuer": self.source_issuer,
            "statement_period": {
                "start": self.statement_period.start,
                "end": self.statement_period.end,
            },
            "metadata": dict(self.metadata),
        }


# ---------------------------------------------------------------------------
# Ingestion result + telemetry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LocalTelemetry:
    issuer: str = "unknown"
    lines_segmented: int = 0
    lines_parsed: int = 0
    lines_skipped: int = 0
    latency_ms: float | None = None


@dataclass(frozen=True, slots=True)
class RemoteTelemetry:
    """Outbound telemetry record for observability/debug surfaces."""

    enabled: bool = False
    processor_id: str | None = None
    latency_ms: float | None = None
    entity_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "processorIdentifier": self.processor_id,
            "latencyMs": self.latency_ms,
            "entityCount": self.entity_count,
        }


@dataclass(frozen=True, slots=True)
class IngestionTelemetry:
    attempted: tuple[str, ...] = ()
    local: LocalTelemetry = field(default_factory=LocalTelemetry)
    remote: RemoteTelemetry = field(default_factory=RemoteTelemetry)
    latency_ms: float | None = None


@dataclass(frozen=True, slots=True)
class IngestionResult:
    """Outcome for one submitted statement file.

    ``provenance == "none"`` is a valid outcome ("nothing extracted"), always
    accompanied by at least one warning explaining why.
    """

    transactions: tuple[CanonicalTransaction, ...]
    provenance: Provenance
    telemetry: IngestionTelemetry
    warnings: tuple[str, ...] = ()
    issuer: str = "unknown"
    file_name: str | None = None

    @property
    def count(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict[str, Any]:
        t = self.telemetry
        return {
            "file_name": self.file_name,
            "issuer": self.issuer,
            "provenance": self.provenance,
            "count": self.count,
            "warnings": list(self.warnings),
            "telemetry": {
                "attempted": list(t.attempted),
                "latency_ms": t.latency_ms,
                "local": {
                    "issuer": t.local.issuer,
                    "lines_segmented": t.local.lines_segmented,
                    "lines_parsed": t.local.lines_parsed,
                    "lines_skipped": t.local.lines_skipped,
                    "latency_ms": t.local.latency_ms,
                },
                "remote": t.remote.to_dict(),
            },
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


__all__ = [
    "IssuerTag",
    "ISSUER_TAGS",
    "Section",
    "Provenance",
    "DocumentType",
    "RawLine",
    "ParsedEntry",
    "StatementPeriod",
    "StatementContext",
    "CanonicalTransaction",
    "LocalTelemetry",
    "RemoteTelemetry",
    "IngestionTelemetry",
    "IngestionResult",
]
