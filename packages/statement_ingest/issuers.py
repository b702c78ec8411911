"""Issuer identification from statement text and filename.

``classify`` is total and deterministic: it always returns one of
:data:`~statement_ingest.models.ISSUER_TAGS`. Filename templates are checked
first because an export filename is more specific than any header keyword.
Header rules only look at the first ``HEADER_CHARS`` characters so that issuer
names inside transaction descriptions (e.g., a "CAPITAL ONE PAYMENT" line on
another issuer's statement) cannot trigger a match.

Rule order is significant. The first rule that matches wins, so narrower
combinations (Amazon + Synchrony) must precede broader ones (bare Synchrony).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import IssuerTag

HEADER_CHARS: int = 500

_logger = get_logger("statement_ingest.issuers")


@dataclass(frozen=True, slots=True)
class ClassifierRule:
    """One ordered classification rule.

    ``matches`` receives ``(header, file_name)`` where ``header`` is the
    lowercased header area and ``file_name`` is the raw filename (or ``""``).
    """

    issuer: IssuerTag
    name: str
    matches: Callable[[str, str], bool]


def _filename(pattern: str) -> Callable[[str, str], bool]:
    rx = re.compile(pattern, re.IGNORECASE)
    return lambda _header, file_name: bool(rx.search(file_name))


def _header_any(*needles: str) -> Callable[[str, str], bool]:
    return lambda header, _file_name: any(n in header for n in needles)


def _header_all_of(anchor: str, *companions: str) -> Callable[[str, str], bool]:
    """``anchor`` plus at least one of ``companions`` must appear in the header."""

    return lambda header, _file_name: anchor in header and any(c in header for c in companions)


_AMAZON_SYNCHRONY_RX = re.compile(r"amazon[\s\S]*(synchrony|syncb)")


def _amazon_synchrony(header: str, _file_name: str) -> bool:
    if "amazon" not in header:
        return False
    return (
        "syf.com" in header
        or "prime store card" in header
        or bool(_AMAZON_SYNCHRONY_RX.search(header))
    )


def _capital_one(header: str, _file_name: str) -> bool:
    # Payment-coupon boilerplate on other issuers' statements mentions Capital One
    # next to "payment"; only a bare header mention identifies the issuer.
    return "capital one" in header and "payment" not in header


RULES: tuple[ClassifierRule, ...] = (
    # Filename templates
    ClassifierRule("capital_one", "capital_one_filename", _filename(r"Statement_\d{6}_\d+\.pdf")),
    ClassifierRule("citizens", "citizens_filename", _filename(r"STATEMENTS,.*-\d+\.pdf")),
    ClassifierRule("chase", "chase_filename", _filename(r"^\d{8}-statements-\d+")),
    # Header keywords
    ClassifierRule("dollar_bank", "dollar_bank_header", _header_any("dollar bank")),
    ClassifierRule("amex", "amex_header", _header_any("american express", "amex")),
    ClassifierRule("citizens", "citizens_header", _header_any("citizens bank", "citizens")),
    ClassifierRule("capital_one", "capital_one_header", _capital_one),
    ClassifierRule("chase", "chase_header", _header_all_of("chase", "sapphire", "chase.com")),
    ClassifierRule(
        "citi",
        "citi_product_header",
        _header_all_of("citi", "custom cash", "double cash", "citicards.com", "thankyou"),
    ),
    ClassifierRule("citi", "citibank_header", _header_any("citibank", "citi cards")),
    ClassifierRule("amazon_synchrony", "amazon_synchrony_header", _amazon_synchrony),
    ClassifierRule("lowes", "lowes_header", _header_all_of("lowe", "pro", "rewards", "lowes.com")),
    ClassifierRule("synchrony", "synchrony_header", _header_any("synchrony", "syncb")),
)


def classify(text: str | None, file_name: str | None = None) -> IssuerTag:
    """Return the issuer tag for a statement; ``"unknown"`` when nothing matches."""

    header = (text or "")[:HEADER_CHARS].lower()
    fname = file_name or ""
    for rule in RULES:
        if rule.matches(header, fname):
            _logger.debug("classify:match rule=%s issuer=%s", rule.name, rule.issuer)
            return rule.issuer
    return "unknown"


__all__ = ["ClassifierRule", "RULES", "HEADER_CHARS", "classify"]
