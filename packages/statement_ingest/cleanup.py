"""Text-only cleanup pass over canonical transactions.

An external collaborator (typically an LLM prompt) may rewrite merchant text
for readability. It must never touch money, dates, balances or provenance;
:func:`apply_text_cleanup` compares every field outside ``description`` and
``payee`` and raises :class:`CleanupViolationError` on any difference.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, fields, replace
from typing import Protocol

from .errors import CleanupViolationError
from .logging_setup import get_logger
from .models import CanonicalTransaction

_logger = get_logger("statement_ingest.cleanup")

TEXT_FIELDS: frozenset[str] = frozenset({"description", "payee"})

_SHEETZ_STORE = re.compile(r"SHEETZ[^0-9]*([0-9]{2,5})", re.IGNORECASE)
_CITY_STATE = re.compile(r"\b([A-Z][A-Za-z]+)\s+([A-Z]{2})\b")


class CleanupFn(Protocol):
    def __call__(
        self, transactions: Sequence[CanonicalTransaction]
    ) -> Sequence[CanonicalTransaction]: ...


@dataclass(frozen=True, slots=True)
class CleanupResult:
    cleaned: list[CanonicalTransaction]
    removed: list[CanonicalTransaction]
    flagged: list[CanonicalTransaction]


def standardize_merchant(description: str) -> str:
    """Deterministic rewrites for merchants the cleanup model handles poorly."""

    upper = description.upper()
    if "SHEETZ" in upper:
        store = _SHEETZ_STORE.search(description)
        where = _CITY_STATE.search(description)
        out = "Sheetz"
        if store:
            out += f" #{store.group(1)}"
        if where:
            out += f", {where.group(1)} {where.group(2)}"
        return out
    if "AMAZON" in upper and "SYF" in upper:
        return "Amazon (Synchrony Payment)"
    return description


def is_likely_balance_row(tx: CanonicalTransaction) -> bool:
    desc = (tx.description or "").upper()
    if not tx.date and ("BALANCE" in desc or "SUMMARY" in desc):
        return True
    return not tx.description and tx.balance is not None and tx.is_flagged


def check_text_only(before: CanonicalTransaction, after: CanonicalTransaction) -> None:
    """Raise unless ``after`` differs from ``before`` only in text fields."""

    for f in fields(CanonicalTransaction):
        if f.name in TEXT_FIELDS:
            continue
        if getattr(before, f.name) != getattr(after, f.name):
            raise CleanupViolationError(
                f"cleanup changed non-text field {f.name!r}: "
                f"{getattr(before, f.name)!r} -> {getattr(after, f.name)!r}"
            )


def apply_text_cleanup(
    transactions: Sequence[CanonicalTransaction], cleaner: CleanupFn | None = None
) -> CleanupResult:
    """Drop balance-like rows, standardize payees, then run ``cleaner``.

    ``cleaner`` must return one transaction per input, in order.
    """

    kept: list[CanonicalTransaction] = []
    removed: list[CanonicalTransaction] = []
    for tx in transactions:
        (removed if is_likely_balance_row(tx) else kept).append(tx)

    prepared = [replace(tx, payee=standardize_merchant(tx.payee or tx.description)) for tx in kept]

    if cleaner is None:
        cleaned = prepared
    else:
        cleaned = list(cleaner(prepared))
        if len(cleaned) != len(prepared):
            raise CleanupViolationError(
                f"cleanup returned {len(cleaned)} transactions for {len(prepared)} inputs"
            )
        for before, after in zip(prepared, cleaned, strict=True):
            check_text_only(before, after)

    flagged = [tx for tx in cleaned if tx.is_flagged]
    _logger.info(
        "cleanup:done kept=%d removed=%d flagged=%d", len(cleaned), len(removed), len(flagged)
    )
    return CleanupResult(cleaned=cleaned, removed=removed, flagged=flagged)


__all__ = [
    "TEXT_FIELDS",
    "CleanupFn",
    "CleanupResult",
    "standardize_merchant",
    "is_likely_balance_row",
    "check_text_only",
    "apply_text_cleanup",
]
