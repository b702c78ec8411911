"""Capital One card statements.

Line format::

    Sep 23 ACI*UPMC HEALTH PLANPITTSBURGHPA $176.56
    Sep 21 Sep 23 CAPITAL ONE MOBILE PYMT - $450.00

Month names instead of numbers, an optional posting date, and an explicit
minus (sometimes separated from the ``$`` by a space) for payments and credits.
The year and closing month come from the export filename
``Statement_MMYYYY_NNNN.pdf``.
"""

from __future__ import annotations

import re

from ..amounts import parse_amount, signed
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    MONTHS,
    PO_BOX,
    IssuerGrammar,
    any_of,
    clean_description,
    fallback_context,
    format_mdy,
    is_table_header,
)

_MON = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_AMOUNT = r"-?\s*\$[\d,]+\.\d{2}"

LINE_SHAPE = re.compile(rf"^{_MON}\s+\d{{1,2}}\s+.*{_AMOUNT}$", re.IGNORECASE)

_LINE = re.compile(
    rf"^(?P<mon>{_MON})\s+(?P<d>\d{{1,2}})"
    rf"(?:\s+(?P<pmon>{_MON})\s+(?P<pd>\d{{1,2}}))?"
    rf"\s+(?P<desc>.+?)\s+(?P<amt>{_AMOUNT})$",
    re.IGNORECASE,
)

_FILENAME = re.compile(r"Statement_(?P<m>\d{2})(?P<y>\d{4})_\d+\.pdf", re.IGNORECASE)

_GARBAGE = any_of(
    (
        PO_BOX,
        r"Payment Due Date",
        r"New Balance",
        r"Minimum Payment",
        r"Total Transactions for This Period",
    )
)


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def infer_context(text: str, file_name: str | None) -> StatementContext:
    match = _FILENAME.search(file_name or "")
    if match:
        month = int(match.group("m"))
        if 1 <= month <= 12:
            return StatementContext(year=int(match.group("y")), closing_month=month)
    return fallback_context(file_name)


def _mdy(mon: str, day: str, ctx: StatementContext) -> str | None:
    month = MONTHS[mon[:3].lower()]
    return format_mdy(month, int(day), ctx.year_for_month(month))


def parse(line: RawLine, ctx: StatementContext) -> ParsedEntry | None:
    match = _LINE.match(line.text)
    if not match:
        return None
    amount = parse_amount(match.group("amt"))
    description = clean_description(match.group("desc"))
    if amount is None or not description:
        return None
    date = _mdy(match.group("mon"), match.group("d"), ctx)
    if date is None:
        return None
    posted = None
    if match.group("pmon"):
        posted = _mdy(match.group("pmon"), match.group("pd"), ctx)
    return ParsedEntry(
        date=date,
        posted_date=posted,
        description=description,
        signed_amount=signed(amount, debit=amount.negative),
    )


GRAMMAR = IssuerGrammar(
    tag="capital_one",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=infer_context,
)
