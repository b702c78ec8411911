"""Amazon store/Prime cards issued by Synchrony.

Line format::

    09/25 F9342008C00CHGDDA AUTOMATIC PAYMENT - THANK YOU -$290.88
    09/12 P9342008W0XKJ2T4Q AMAZON.COM*2K4LJ8 SEATTLE WA $54.19

Each row carries a reference number of at least 16 upper-case alphanumerics
between the date and the description; it is kept on the entry.
"""

from __future__ import annotations

import re

from ..amounts import parse_amount, signed
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    PO_BOX,
    IssuerGrammar,
    any_of,
    clean_description,
    closing_date_context,
    is_table_header,
    mdy_from_parts,
)

_AMOUNT = r"-?\$[\d,]+\.\d{2}"

LINE_SHAPE = re.compile(rf"^\d{{2}}/\d{{2}}\s+[A-Z0-9]{{16,}}\s+.*{_AMOUNT}$")

_LINE = re.compile(
    rf"^(?P<m>\d{{2}})/(?P<d>\d{{2}})\s+(?P<ref>[A-Z0-9]{{16,}})"
    rf"\s+(?P<desc>.+?)\s+(?P<amt>{_AMOUNT})$"
)

_GARBAGE = any_of(
    (
        PO_BOX,
        r"SYNCHRONY BANK",
        r"Payment Due Date",
    )
)


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def parse(line: RawLine, ctx: StatementContext) -> ParsedEntry | None:
    match = _LINE.match(line.text)
    if not match:
        return None
    amount = parse_amount(match.group("amt"))
    description = clean_description(match.group("desc"))
    if amount is None or not description:
        return None
    date = mdy_from_parts(match.group("m"), match.group("d"), None, ctx)
    if date is None:
        return None
    return ParsedEntry(
        date=date,
        description=description,
        signed_amount=signed(amount, debit=amount.negative),
        reference=match.group("ref"),
    )


GRAMMAR = IssuerGrammar(
    tag="amazon_synchrony",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=closing_date_context,
)
