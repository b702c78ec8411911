"""Dollar Bank checking statements.

Rows wrap across physical lines and never carry a currency marker::

    06/01 06/01 KFM247 LTD 1813173920 2,633.00
    05/21 ATM DB - PENN HILLS 9099 450.00
    03/01 VENMO 3264681992
    PAYMENT 1025529988381 ODD JOBS 195.00

The segmenter rebuilds wrapped rows (``multi_line`` mode) using
``STARTS_WITH_DATE``/``ENDS_WITH_AMOUNT``. Amounts are unsigned, so direction
comes from an explicit minus, else the section header in force, else the
description (deposits, credits and payroll are credits; anything else is a
withdrawal).
"""

from __future__ import annotations

import re

from ..amounts import parse_amount, signed
from ..models import ParsedEntry, RawLine, StatementContext
from .base import (
    PAGE_X_OF_Y,
    IssuerGrammar,
    SectionRule,
    any_of,
    clean_description,
    expand_year,
    fallback_context,
    iso_from_mdy,
    mdy_from_parts,
    period,
)

STARTS_WITH_DATE = re.compile(r"^\d{2}/\d{2}\s+")
ENDS_WITH_AMOUNT = re.compile(r"[\d,]+\.\d{2}-?$")

LINE_SHAPE = re.compile(r"^\d{2}/\d{2}\s+.*[\d,]+\.\d{2}-?$")

_AMT = r"-?[\d,]+\.\d{2}-?"
_LINE = re.compile(
    rf"^(?P<m>\d{{2}})/(?P<d>\d{{2}})(?:\s+(?P<pm>\d{{2}})/(?P<pd>\d{{2}}))?"
    rf"\s+(?P<desc>.+?)\s+(?P<amt>{_AMT})(?:\s+(?P<bal>[\d,]+\.\d{{2}}))?$"
)

_CREDIT_WORDS = re.compile(r"\b(DEPOSIT|CREDIT|PAYROLL)\b", re.IGNORECASE)

_CONTINUED = r"(?:\s*\(CONTINUED\))?$"

SECTION_RULES: tuple[SectionRule, ...] = (
    SectionRule(
        re.compile(rf"^(?:DEPOSITS(?: AND (?:OTHER )?CREDITS)?|(?:OTHER )?CREDITS){_CONTINUED}", re.I),
        "credit",
    ),
    SectionRule(
        re.compile(
            rf"^(?:WITHDRAWALS(?: AND (?:OTHER )?DEBITS)?|CHECKS(?: AND OTHER DEBITS)?"
            rf"|(?:OTHER )?DEBITS|ATM/DEBIT CARD (?:TRANSACTIONS|WITHDRAWALS)|FEES){_CONTINUED}",
            re.I,
        ),
        "debit",
    ),
    SectionRule(re.compile(r"^DAILY BALANCE SUMMARY", re.I), "none"),
)

_STATEMENT_PERIOD = re.compile(
    r"STATEMENT\s+PERIOD\s*:?\s*(\d{2})/(\d{2})/(\d{2,4})\s*(?:-|TO|THROUGH)\s*(\d{2})/(\d{2})/(\d{2,4})",
    re.IGNORECASE,
)

_GARBAGE = any_of(
    (
        PAGE_X_OF_Y,
        r"PENN HILLS OFFICE",
        r"218 RODI ROAD",
        r"\(412\) 244-8589",
        r"LEDGER BALANCE",
        r"AVAILABLE BALANCE",
        r"DAILY BALANCE",
        r"BEGINNING BALANCE",
        r"ENDING BALANCE",
        r"ACCOUNT NUMBER",
        r"STATEMENT PERIOD",
    )
)


def is_garbage(line: str) -> bool:
    if "Date" in line and "Description" in line:
        return True
    return _GARBAGE(line)


def infer_context(text: str, file_name: str | None) -> StatementContext:
    match = _STATEMENT_PERIOD.search(text or "")
    if not match:
        return fallback_context(file_name)
    sm, sd, sy, em, ed, ey = match.groups()
    return StatementContext(
        year=expand_year(ey),
        closing_month=int(em),
        period=period(iso_from_mdy(sm, sd, sy), iso_from_mdy(em, ed, ey)),
    )


def _is_debit(negative: bool, section: str, description: str) -> bool:
    if negative or section == "debit":
        return True
    if section == "credit":
        return False
    return not _CREDIT_WORDS.search(description)


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
    balance = parse_amount(match.group("bal")) if match.group("bal") else None
    return ParsedEntry(
        date=date,
        posted_date=posted,
        description=description,
        signed_amount=signed(amount, debit=_is_debit(amount.negative, line.section, description)),
        balance=balance.magnitude if balance else None,
    )


GRAMMAR = IssuerGrammar(
    tag="dollar_bank",
    mode="multi_line",
    line_shape=LINE_SHAPE,
    is_garbage=is_garbage,
    parse=parse,
    infer_context=infer_context,
    starts_with_date=STARTS_WITH_DATE,
    ends_with_amount=ENDS_WITH_AMOUNT,
    section_rules=SECTION_RULES,
)
