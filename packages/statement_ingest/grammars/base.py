"""Building blocks shared by the per-issuer grammars.

A grammar is a plain data record (:class:`IssuerGrammar`) rather than a class
hierarchy: line-shape regexes, a garbage predicate, a parse function, a
statement-context inference function and optional section rules. The
segmenter and orchestrator only talk to these records.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from ..models import ParsedEntry, RawLine, Section, StatementContext, StatementPeriod

type SegmentMode = Literal["single_line", "multi_line"]

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# "Page 2 of 5" / "PAGE 2 OF 5"
PAGE_X_OF_Y = re.compile(r"\bpage\s+\d+\s+of\s+\d+\b", re.IGNORECASE)
PO_BOX = re.compile(r"\bP\.?\s?O\.?\s*BOX\b", re.IGNORECASE)
_YEAR_IN_NAME = re.compile(r"(20\d{2})")
_CLOSING_DATE = re.compile(r"Closing\s+Date\s*:?\s*(\d{1,2})/(\d{1,2})/(\d{2,4})", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class SectionRule:
    """A header line matching ``pattern`` switches the scanner to ``section``."""

    pattern: re.Pattern[str]
    section: Section


@dataclass(frozen=True, slots=True)
class IssuerGrammar:
    """Registration record for one issuer layout.

    Attributes
    ----------
    tag:
        Issuer tag this grammar handles.
    mode:
        ``"single_line"``: a candidate must match ``line_shape``.
        ``"multi_line"``: candidates are rebuilt from wrapped physical lines
        using ``starts_with_date``/``ends_with_amount``.
    is_garbage:
        Boilerplate/noise predicate; checked before any parsing.
    parse:
        ``(line, context) -> ParsedEntry | None``; ``None`` means "skip".
    infer_context:
        ``(text, file_name) -> StatementContext``.
    section_rules:
        Ordered header rules; empty when the layout carries explicit signs.
    """

    tag: str
    mode: SegmentMode
    line_shape: re.Pattern[str]
    is_garbage: Callable[[str], bool]
    parse: Callable[[RawLine, StatementContext], ParsedEntry | None]
    infer_context: Callable[[str, str | None], StatementContext]
    starts_with_date: re.Pattern[str] | None = None
    ends_with_amount: re.Pattern[str] | None = None
    section_rules: tuple[SectionRule, ...] = field(default_factory=tuple)

    def section_for(self, line: str) -> Section | None:
        """Return the section a header line switches to, or ``None``."""

        for rule in self.section_rules:
            if rule.pattern.search(line):
                return rule.section
        return None


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def any_of(patterns: Iterable[str | re.Pattern[str]], *, flags: int = re.IGNORECASE):
    """Build a garbage predicate that is true when any pattern is found."""

    compiled = tuple(p if isinstance(p, re.Pattern) else re.compile(p, flags) for p in patterns)

    def _pred(line: str) -> bool:
        return any(rx.search(line) for rx in compiled)

    return _pred


def is_table_header(line: str) -> bool:
    return "Date" in line and "Description" in line and "Amount" in line


# ---------------------------------------------------------------------------
# Dates and years
# ---------------------------------------------------------------------------


def expand_year(raw: str) -> int:
    """``"22"`` -> 2022, ``"2022"`` -> 2022."""

    return 2000 + int(raw) if len(raw) <= 2 else int(raw)


def format_mdy(month: int, day: int, year: int) -> str | None:
    """Return ``MM/DD/YYYY`` for a real calendar day, else ``None``."""

    try:
        date(year, month, day)
    except ValueError:
        return None
    return f"{month:02d}/{day:02d}/{year:04d}"


def mdy_from_parts(month: str, day: str, year: str | None, ctx: StatementContext) -> str | None:
    m, d = int(month), int(day)
    y = expand_year(year) if year else ctx.year_for_month(m)
    return format_mdy(m, d, y)


def year_from_filename(file_name: str | None) -> int | None:
    if not file_name:
        return None
    match = _YEAR_IN_NAME.search(file_name)
    return int(match.group(1)) if match else None


def current_year() -> int:
    return date.today().year


def fallback_context(file_name: str | None) -> StatementContext:
    """Year from a ``20xx`` token in the filename, else the current year."""

    return StatementContext(year=year_from_filename(file_name) or current_year())


def iso_from_mdy(month: str, day: str, year: str) -> str | None:
    y = expand_year(year)
    try:
        return date(y, int(month), int(day)).isoformat()
    except ValueError:
        return None


def period(start: str | None, end: str | None) -> StatementPeriod:
    return StatementPeriod(start=start, end=end)


def clean_description(raw: str) -> str:
    return re.sub(r"\s+", " ", raw).strip()


def closing_date_context(text: str, file_name: str | None) -> StatementContext:
    """Context from a "(Statement) Closing Date MM/DD/YY" line, else fallback."""

    match = _CLOSING_DATE.search(text or "")
    if not match:
        return fallback_context(file_name)
    month, day, year = match.groups()
    return StatementContext(
        year=expand_year(year),
        closing_month=int(month),
        period=period(None, iso_from_mdy(month, day, year)),
    )


__all__ = [
    "SegmentMode",
    "MONTHS",
    "PAGE_X_OF_Y",
    "PO_BOX",
    "SectionRule",
    "IssuerGrammar",
    "any_of",
    "is_table_header",
    "expand_year",
    "format_mdy",
    "mdy_from_parts",
    "year_from_filename",
    "current_year",
    "fallback_context",
    "iso_from_mdy",
    "period",
    "clean_description",
    "closing_date_context",
]
