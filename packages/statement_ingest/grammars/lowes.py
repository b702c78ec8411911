"""Lowe's (Synchrony-issued) commercial card statements.

Line format::

    09/06 09/06 75306 STORE 1660 MONROEVILLE PA $273.33
    09/18 09/18 PAYMENT - THANK YOU ($500.00)

Transaction date then posting date; parentheses mark payments and credits and
are read as debits, everything else as printed.
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

_AMOUNT = r"\(?\$?\(?[\d,]+\.\d{2}\)?"

LINE_SHAPE = re.compile(rf"^\d{{2}}/\d{{2}}\s+\d{{2}}/\d{{2}}\s+.*{_AMOUNT}$")

_LINE = re.compile(
    rf"^(?P<m>\d{{2}})/(?P<d>\d{{2}})\s+(?P<pm>\d{{2}})/(?P<pd>\d{{2}})"
    rf"\s+(?P<desc>.+?)\s+(?P<amt>{_AMOUNT})$"
)

_GARBAGE = any_of(
    (
        PO_BOX,
        r"LOWES BUSINESS ACCT",
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
        posted_date=mdy_from_parts(match.group("pm"), match.group("pd"), None, ctx),
        description=description,
        signed_amount=signed(amount, debit=amount.negative),
    )


GRAMMAR = IssuerGrammar(
    tag="lowes",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=closing_date_context,
)
