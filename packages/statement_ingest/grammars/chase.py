"""Chase credit card statements.

Line format::

    06/25 THE LEVITON LAW FIRM B 844-8435290 IL 1,233.96
    07/02 Payment Thank You-Mobile -500.00

Dates are ``MM/DD`` without a year and amounts never carry a currency marker.
The year comes from the export filename (``YYYYMMDD-statements-NNNN-.pdf``,
the date being the statement closing date) or the "Opening/Closing Date"
header; a December transaction on a January statement belongs to the
previous year.
"""

from __future__ import annotations

import re

from ..amounts import parse_amount, signed
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    PAGE_X_OF_Y,
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

LINE_SHAPE = re.compile(r"^\d{2}/\d{2}\s+.*\s-?[\d,]+\.\d{2}$")

_LINE = re.compile(r"^(?P<m>\d{2})/(?P<d>\d{2})\s+(?P<desc>.+?)\s+(?P<amt>-?[\d,]+\.\d{2})$")

_FILENAME = re.compile(r"^(?P<y>\d{4})(?P<m>\d{2})(?P<d>\d{2})-statements-\d+", re.IGNORECASE)

_OPEN_CLOSE = re.compile(
    r"Opening/Closing\s+Date\s*:?\s*(\d{2})/(\d{2})/(\d{2,4})\s*-\s*(\d{2})/(\d{2})/(\d{2,4})",
    re.IGNORECASE,
)

# Observed once in a Chase export: the text layer split an Amazon Marketplace
# merchant name and emitted its truncated head as a standalone zero-amount row.
# Kept deliberately narrow; do not widen without another sample.
_PHANTOM_TRUNCATED_MERCHANT = re.compile(r"^\d{2}/\d{2}\s+AMAZON MKTPL\*?\s+0\.00$")

_GARBAGE = any_of(
    (
        PAGE_X_OF_Y,
        r"Payment Due Date",
        r"New Balance",
        r"Previous Balance",
        r"Minimum Payment",
        r"Order Number",
        r"Year-to-date",
        r"Total (fees|interest) charged",
        _PHANTOM_TRUNCATED_MERCHANT,
    )
)


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def infer_context(text: str, file_name: str | None) -> StatementContext:
    fname = (file_name or "").rsplit("/", 1)[-1]
    match = _FILENAME.search(fname)
    if match:
        return StatementContext(year=int(match.group("y")), closing_month=int(match.group("m")))
    match = _OPEN_CLOSE.search(text or "")
    if match:
        om, od, oy, cm, cd, cy = match.groups()
        return StatementContext(
            year=expand_year(cy),
            closing_month=int(cm),
            period=period(iso_from_mdy(om, od, oy), iso_from_mdy(cm, cd, cy)),
        )
    return fallback_context(file_name)


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
    )


GRAMMAR = IssuerGrammar(
    tag="chase",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=infer_context,
)
