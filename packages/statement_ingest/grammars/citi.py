"""Citi card statements.

Line format::

    12/03 CONTRACTING.COM    TORONTO    CAN $7,300.00
    12/05 12/06 ONLINE PAYMENT, THANK YOU -$1,500.00

The year is resolved from the "Billing Period: MM/DD/YY-MM/DD/YY" header. A
period that straddles New Year places transactions dated after the closing
month in the starting year.
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
    expand_year,
    fallback_context,
    is_table_header,
    iso_from_mdy,
    mdy_from_parts,
    period,
)

_AMOUNT = r"-?\$[\d,]+\.\d{2}"

LINE_SHAPE = re.compile(rf"^\d{{2}}/\d{{2}}\s+.*{_AMOUNT}$")

_LINE = re.compile(
    rf"^(?P<m>\d{{2}})/(?P<d>\d{{2}})(?:\s+(?P<pm>\d{{2}})/(?P<pd>\d{{2}}))?"
    rf"\s+(?P<desc>.+?)\s+(?P<amt>{_AMOUNT})$"
)

_BILLING_PERIOD = re.compile(
    r"Billing\s+Period\s*:?\s*(\d{2})/(\d{2})/(\d{2,4})\s*-\s*(\d{2})/(\d{2})/(\d{2,4})",
    re.IGNORECASE,
)

_GARBAGE = any_of(
    (
        PO_BOX,
        r"Standard Purchases",
        r"Payments, Credits",
        r"Payment Due Date",
        r"New Balance",
        r"Total fees charged",
        r"Total interest charged",
    )
)


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def infer_context(text: str, file_name: str | None) -> StatementContext:
    match = _BILLING_PERIOD.search(text or "")
    if not match:
        return fallback_context(file_name)
    sm, sd, sy, em, ed, ey = match.groups()
    return StatementContext(
        year=expand_year(ey),
        closing_month=int(em),
        period=period(iso_from_mdy(sm, sd, sy), iso_from_mdy(em, ed, ey)),
    )


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
    posted = None
    if match.group("pm"):
        posted = mdy_from_parts(match.group("pm"), match.group("pd"), None, ctx)
    return ParsedEntry(
        date=date,
        posted_date=posted,
        description=description,
        signed_amount=signed(amount, debit=amount.negative),
    )


GRAMMAR = IssuerGrammar(
    tag="citi",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=infer_context,
)
