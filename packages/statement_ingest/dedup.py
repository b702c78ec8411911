"""Content hashing and duplicate filtering for spreadsheet appends.

The hash is derived from the defining fields of a transaction (date, net
amount, description) and recomputed on demand; it is never stored on the
transaction, so changing the definition needs no migration of stored rows.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Set
from typing import NamedTuple

from .amounts import quantize_cents
from .models import CanonicalTransaction


class DedupResult(NamedTuple):
    unique: list[CanonicalTransaction]
    duplicate_count: int
    new_hashes: list[str]


def transaction_hash(tx: CanonicalTransaction) -> str:
    """SHA-256 hex digest of ``date|net amount (2dp)|description``.

    ``payee``, balance and metadata do not contribute.
    """

    payload = f"{tx.date or ''}|{quantize_cents(tx.net_amount):.2f}|{tx.description}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def filter_new(
    transactions: Iterable[CanonicalTransaction], existing_hashes: Set[str]
) -> DedupResult:
    """Drop transactions already known or repeated earlier in the same batch.

    ``existing_hashes`` is read, never mutated, so repeated calls with the same
    inputs return the same result.
    """

    seen: set[str] = set(existing_hashes)
    unique: list[CanonicalTransaction] = []
    new_hashes: list[str] = []
    duplicates = 0
    for tx in transactions:
        h = transaction_hash(tx)
        if h in seen:
            duplicates += 1
            continue
        seen.add(h)
        unique.append(tx)
        new_hashes.append(h)
    return DedupResult(unique, duplicates, new_hashes)


__all__ = ["DedupResult", "transaction_hash", "filter_new"]
