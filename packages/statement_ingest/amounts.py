"""Money parsing shared by issuer grammars and the canonical normalizer.

Statement amounts arrive as printed text: ``$1,234.56``, ``-$334.89``,
``- $25.00``, ``(273.33)``, ``$(12.00)``, ``45.10-`` and so on. Parsing keeps
the magnitude and the *explicit* sign markers apart so that grammars can
combine them with section or column context.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NamedTuple

CENT = Decimal("0.01")


class ParsedAmount(NamedTuple):
    magnitude: Decimal
    negative: bool
    """True when the text carried a minus sign (leading or trailing) or parentheses."""


def quantize_cents(d: Decimal) -> Decimal:
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: str | None) -> ParsedAmount | None:
    """Parse a printed amount; return ``None`` when no number can be read."""

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None

    negative = False
    # Strip sign, currency marker and parentheses in any order until stable.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.endswith("-"):
            negative = True
            s = s[:-1].rstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").replace(" ", "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    if d < 0:
        negative = True
    return ParsedAmount(quantize_cents(abs(d)), negative)


def signed(amount: ParsedAmount, *, debit: bool) -> Decimal:
    """Apply the sign convention: debits negative, credits positive."""

    return -amount.magnitude if debit else amount.magnitude


__all__ = ["CENT", "ParsedAmount", "quantize_cents", "parse_amount", "signed"]
