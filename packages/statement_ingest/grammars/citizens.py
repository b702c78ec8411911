"""Citizens Bank checking statements.

Two row layouts appear, sometimes in the same document::

    06/01 POS DEBIT 1234 SHEETZ 0123 PITTSBURGH PA 45.10 -
    06/03 MOBILE DEPOSIT REF 55120 - 1,200.00
    06/07 25.00 ATM/DEBIT PURCHASE GIANT EAGLE

The first is dual-column (debit column, credit column; an absent value is
printed as ``-``). The second is single-column with the amount before the
description; its sign comes from the section the row sits in ("ATM/Purchases",
"Other Debits" → debit; "Deposits & Credits" → credit). An explicit minus or
parentheses always means debit, even outside a section; unsigned rows there
are skipped.
"""

from __future__ import annotations

import re
from decimal import Decimal

from ..amounts import parse_amount
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    MONTHS,
    IssuerGrammar,
    SectionRule,
    any_of,
    clean_description,
    fallback_context,
    format_mdy,
    is_table_header,
    mdy_from_parts,
    period,
)

_AMT = r"-?\(?\$?[\d,]+\.\d{2}\)?-?"
_COL = rf"(?:{_AMT}|-)"
_DATE = r"(?P<m>\d{1,2})/(?P<d>\d{1,2})(?:/(?P<y>\d{2,4}))?"

LINE_SHAPE = re.compile(r"^\d{1,2}/\d{1,2}(?:/\d{2,4})?\s+.*\d\.\d{2}")

_DUAL = re.compile(rf"^{_DATE}\s+(?P<desc>.+?)\s+(?P<debit>{_COL})\s+(?P<credit>{_COL})$")
_SINGLE = re.compile(rf"^{_DATE}\s+(?P<amt>{_AMT})\s+(?P<desc>.+)$")

# Header lines never start with a date; transaction rows mentioning "debits"
# must not flip the section.
_NOT_A_ROW = r"^(?!\d{1,2}/\d{1,2})"

SECTION_RULES: tuple[SectionRule, ...] = (
    SectionRule(re.compile(_NOT_A_ROW + r".*(ATM/Purchases|Other Debits|Debits)"), "debit"),
    SectionRule(re.compile(_NOT_A_ROW + r".*Deposits & Credits"), "credit"),
    SectionRule(re.compile(_NOT_A_ROW + r".*(Daily Balance|Balance Calculation)"), "none"),
)

_BEGINNING = re.compile(r"Beginning\s+([A-Za-z]+)\s+(\d{1,2}),\s+(\d{4})")
_ENDING = re.compile(r"Ending\s+([A-Za-z]+)\s+(\d{1,2}),\s+(\d{4})")
_ANY_YEAR = re.compile(r"\b(20\d{2})\b")

_GARBAGE = any_of(
    (
        r"Page\s+\d+\s+of\s+\d+",
        r"Please See Additional",
        r"Member FDIC",
        r"TRANSACTION DETAILS",
        r"Clearly Better Business",
    ),
    flags=0,
)

_CHANNEL_PREFIX = re.compile(r"^(POS\s+DEBIT|ACH\s+(DEBIT|CREDIT)|DBT\s+PURCHASE)\s+", re.IGNORECASE)
_CARD_PREFIX = re.compile(r"^\d{4}\s+(POS DEBIT|DBT PURCHASE|ATM DEPOSIT)\s+-\s+")


def is_garbage(line: str) -> bool:
    return is_table_header(line) or _GARBAGE(line)


def _month_number(name: str) -> int | None:
    return MONTHS.get(name[:3].lower())


def _long_date_iso(match: re.Match[str] | None) -> str | None:
    if not match:
        return None
    month = _month_number(match.group(1))
    if month is None:
        return None
    mdy = format_mdy(month, int(match.group(2)), int(match.group(3)))
    if mdy is None:
        return None
    m, d, y = mdy.split("/")
    return f"{y}-{m}-{d}"


def infer_context(text: str, file_name: str | None) -> StatementContext:
    text = text or ""
    begin = _BEGINNING.search(text)
    end = _ENDING.search(text)
    span = period(_long_date_iso(begin), _long_date_iso(end))
    if end and _month_number(end.group(1)):
        return StatementContext(
            year=int(end.group(3)), closing_month=_month_number(end.group(1)), period=span
        )
    if begin:
        return StatementContext(year=int(begin.group(3)), period=span)
    match = _ANY_YEAR.search(text)
    if match:
        return StatementContext(year=int(match.group(1)))
    return fallback_context(file_name)


def clean_payee(description: str) -> str:
    """Strip channel prefixes, trailing reference numbers and store ids."""

    cleaned = _CARD_PREFIX.sub("", description)
    cleaned = _CHANNEL_PREFIX.sub("", cleaned)
    cleaned = re.sub(r"\s+\d{6,}\s*$", "", cleaned)
    cleaned = re.sub(r"[:#]\d{3,}\s*$", "", cleaned)
    cleaned = re.sub(r"\s+[A-Z]{2}$", "", cleaned)
    return clean_description(cleaned) or description


def transaction_type(description: str, debit: bool) -> str:
    upper = description.upper()
    if "POS DEBIT" in upper or "DBT PURCHASE" in upper:
        return "Debit Card Purchase"
    for needle, label in (
        ("ATM DEPOSIT", "ATM Deposit"),
        ("MOBILE DEPOSIT", "Mobile Deposit"),
    ):
        if needle in upper:
            return label
    if "ACH" in upper:
        return "ACH Debit" if debit else "ACH Credit"
    for needle, label in (
        ("TRANSFER", "Transfer"),
        ("PAYMENT", "Payment"),
        ("OVERDRAFT FEE", "Fee"),
        ("DEPOSIT", "Deposit"),
        ("PAYPAL", "PayPal"),
        ("CASH APP", "Cash App"),
    ):
        if needle in upper:
            return label
    return "Debit" if debit else "Credit"


def _entry(
    match: re.Match[str], description: str, magnitude: Decimal, debit: bool, ctx: StatementContext
) -> ParsedEntry | None:
    description = clean_description(description)
    if not description:
        return None
    date = mdy_from_parts(match.group("m"), match.group("d"), match.group("y"), ctx)
    if date is None:
        return None
    return ParsedEntry(
        date=date,
        description=description,
        signed_amount=-magnitude if debit else magnitude,
        payee=clean_payee(description),
        extra={"type": transaction_type(description, debit)},
    )


def _parse_dual(match: re.Match[str], ctx: StatementContext) -> ParsedEntry | None:
    debit_raw, credit_raw = match.group("debit"), match.group("credit")
    has_debit, has_credit = debit_raw != "-", credit_raw != "-"
    if has_debit == has_credit:
        return None
    if has_debit:
        amount = parse_amount(debit_raw)
        debit = True
    else:
        amount = parse_amount(credit_raw)
        debit = amount is not None and amount.negative
    if amount is None:
        return None
    return _entry(match, match.group("desc"), amount.magnitude, debit, ctx)


def parse(line: RawLine, ctx: StatementContext) -> ParsedEntry | None:
    dual = _DUAL.match(line.text)
    if dual:
        return _parse_dual(dual, ctx)
    single = _SINGLE.match(line.text)
    if not single:
        return None
    amount = parse_amount(single.group("amt"))
    if amount is None:
        return None
    # Outside a section only an explicit sign says which way the money moved.
    if line.section == "none" and not amount.negative:
        return None
    debit = amount.negative or line.section == "debit"
    return _entry(single, single.group("desc"), amount.magnitude, debit, ctx)


GRAMMAR = IssuerGrammar(
    tag="citizens",
    mode="single_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=infer_context,
    section_rules=SECTION_RULES,
)
