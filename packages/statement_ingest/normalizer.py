"""Map parsed statement rows onto :class:`CanonicalTransaction`.

Both ingestion paths end here: grammar output from the local path and
flattened entities from remote extraction (see :mod:`statement_ingest.remote`).
Rules:

- Dates become ISO ``YYYY-MM-DD`` (or ``None``); a missing year falls back to
  the statement year, then the current year.
- The signed amount is split into non-negative ``debit``/``credit`` columns.
  A zero amount, or an unreadable amount next to a valid date, is kept as a
  *flagged* row (both columns zero, ``metadata["flagged"]`` set).
- Balance and summary rows are dropped silently.
- Rows with neither a readable date nor a readable amount are dropped with a
  warning.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, NamedTuple

from .amounts import parse_amount, quantize_cents
from .logging_setup import get_logger
from .models import CanonicalTransaction, ParsedEntry, Provenance, StatementContext, StatementPeriod

_logger = get_logger("statement_ingest.normalizer")

_ZERO = Decimal("0.00")

_SUMMARY_WORDS = re.compile(r"\b(balance|summary)\b", re.IGNORECASE)
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")
_MDY = re.compile(r"^(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2}|\d{4}))?$")


class Normalized(NamedTuple):
    transactions: list[CanonicalTransaction]
    warnings: list[str]
    dropped: int


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def normalize_date(raw: str | None, year: int | None = None) -> str | None:
    """Return ``YYYY-MM-DD`` for a recognised, real calendar date, else ``None``.

    Accepted inputs: ``MM/DD``, ``MM/DD/YY``, ``MM/DD/YYYY`` (``-`` also
    accepted as separator) and ``YYYY-MM-DD`` optionally followed by a time
    component.
    """

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None

    iso = _ISO.match(s)
    if iso:
        y, m, d = (int(g) for g in iso.groups())
    else:
        mdy = _MDY.match(s)
        if not mdy:
            return None
        m, d = int(mdy.group(1)), int(mdy.group(2))
        y_raw = mdy.group(3)
        if y_raw is None:
            y = year if year is not None else date.today().year
        elif len(y_raw) == 2:
            # Two-digit years follow strptime's %y pivot.
            y = datetime.strptime(y_raw, "%y").year
        else:
            y = int(y_raw)
    try:
        return date(y, m, d).isoformat()
    except ValueError:
        return None


def normalize_amount(raw: str | None) -> Decimal | None:
    """Signed Decimal (cents) for printed money text; ``None`` when unreadable."""

    parsed = parse_amount(raw)
    if parsed is None:
        return None
    return -parsed.magnitude if parsed.negative else parsed.magnitude


def split_amount(signed_amount: Decimal) -> tuple[Decimal, Decimal]:
    """``(debit, credit)`` from a signed amount; negative means debit."""

    q = quantize_cents(signed_amount)
    if q < 0:
        return -q, _ZERO
    return _ZERO, q


def _is_summary_row(entry: ParsedEntry, description: str) -> bool:
    if entry.date is None or not entry.date.strip():
        if description and _SUMMARY_WORDS.search(description):
            return True
    if not description and entry.signed_amount is None and entry.balance is not None:
        return True
    return False


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize(
    entries: Iterable[ParsedEntry],
    issuer: str,
    statement_year: int | None = None,
    context: StatementContext | None = None,
    *,
    source: Provenance = "local",
    account_id: str | None = None,
    extra_metadata: Mapping[str, Any] | None = None,
) -> Normalized:
    """Normalize ``entries`` into canonical transactions.

    ``statement_year`` resolves year-less dates; when omitted the context's year
    is used, then the current year.
    """

    year = statement_year if statement_year is not None else (context.year if context else None)
    statement_period = context.period if context else StatementPeriod()

    out: list[CanonicalTransaction] = []
    warnings: list[str] = []
    dropped = 0

    for idx, entry in enumerate(entries):
        description = (entry.description or "").strip()
        if _is_summary_row(entry, description):
            dropped += 1
            continue

        iso_date = normalize_date(entry.date, year)
        amount = entry.signed_amount

        if iso_date is None and amount is None:
            dropped += 1
            warnings.append(
                f"dropped row {idx}: unreadable date {entry.date!r} and amount "
                f"(description={description[:40]!r})"
            )
            continue

        metadata: dict[str, Any] = {"source": source}
        if source == "local":
            metadata["grammar"] = issuer
        if extra_metadata:
            metadata.update(extra_metadata)
        metadata.update(entry.extra)
        if entry.reference:
            metadata["reference"] = entry.reference

        if amount is None:
            debit, credit = _ZERO, _ZERO
            metadata["flagged"] = "unreadable_amount"
        elif quantize_cents(amount) == 0:
            debit, credit = _ZERO, _ZERO
            metadata["flagged"] = "zero_amount"
        else:
            debit, credit = split_amount(amount)

        if iso_date is None:
            warnings.append(f"row {idx}: unreadable date {entry.date!r}")

        out.append(
            CanonicalTransaction(
                date=iso_date,
                posted_date=normalize_date(entry.posted_date, year),
                description=description,
                payee=(entry.payee or "").strip() or description or None,
                debit=debit,
                credit=credit,
                balance=quantize_cents(entry.balance) if entry.balance is not None else None,
                account_id=account_id,
                source_issuer=issuer,
                statement_period=statement_period,
                metadata=metadata,
            )
        )

    if dropped or warnings:
        _logger.debug(
            "normalize:done issuer=%s kept=%d dropped=%d warnings=%d",
            issuer,
            len(out),
            dropped,
            len(warnings),
        )
    return Normalized(out, warnings, dropped)


__all__ = ["Normalized", "normalize", "normalize_date", "normalize_amount", "split_amount"]
