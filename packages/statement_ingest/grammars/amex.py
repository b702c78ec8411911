"""American Express card statements.

Line format::

    08/21/22 AMERICAN EXPRESS TRAVEL SEATTLE WA $500.19
    12/26/22 TARGET 013821 09100013821 WESLEY CHAPEL FL -$334.89
    09/02/22* AMEX EPAYMENT ACH PMT -$1,250.00

Dates carry a two-digit year, optionally followed by ``*`` (pay-over-time
marker). Some extractions truncate the year to ``MM/DD/``; the statement
closing date then supplies it. Every amount has a ``$`` marker and signs are
explicit: a leading minus is a debit, an unsigned amount a credit.
"""

from __future__ import annotations

import re

from ..amounts import parse_amount, signed
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    PAGE_X_OF_Y,
    PO_BOX,
    IssuerGrammar,
    any_of,
    clean_description,
    closing_date_context,
    is_table_header,
    mdy_from_parts,
)

_AMOUNT = r"-?\s?\$[\d,]+\.\d{2}"

LINE_SHAPE = re.compile(rf"^\d{{2}}/\d{{2}}/(?:\d{{2}})?\*?\s+.*{_AMOUNT}$")

_LINE = re.compile(
    rf"^(?P<m>\d{{2}})/(?P<d>\d{{2}})/(?P<y>\d{{2}})?\*?\s+(?P<desc>.+?)\s+(?P<amt>{_AMOUNT})$"
)

_GARBAGE = any_of(
    (
        PAGE_X_OF_Y,
        PO_BOX,
        r"CAROL STREAM",
        r"NEWARK\s+NJ",
        r"Account\s+Ending",
        r"Account Summary",
        r"Payment Information",
        r"Membership Rewards",
        r"Pay Over Time",
        r"Minimum Payment Due",
        r"Total (Fees|Interest) (for|Charged)",
    )
)


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def parse(line: RawLine, ctx: StatementContext) -> ParsedEntry | None:
    match = _LINE.match(line.text)
    if not match:
        return None
    amount = parse_amount(match.group("amt"))
    if amount is None:
        return None
    description = clean_description(match.group("desc"))
    if not description:
        return None
    date = mdy_from_parts(match.group("m"), match.group("d"), match.group("y"), ctx)
    if date is None:
        return None
    return ParsedEntry(
        date=date,
        description=description,
        signed_amount=signed(amount, debit=amount.negative),
    )


GRAMMAR = IssuerGrammar(
    tag="amex",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=closing_date_context,
)
