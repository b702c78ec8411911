"""Turn raw statement text into transaction-candidate lines.

Each issuer grammar decides how candidates are found:

- ``single_line``: after boilerplate removal a line is a candidate only when it
  matches the grammar's ``line_shape`` (date at the start, amount at the end).
- ``multi_line``: wrapped rows are rebuilt with a two-state machine. ``Idle``
  waits for a line that starts with a date; ``Pending`` accumulates
  continuation lines until one ends with an amount. A new date line replaces
  an unfinished partial, and a partial still open at a boilerplate line, a
  section header or end of input is discarded. Partials never leak into the
  output.

Grammars with section rules additionally carry an explicit section state
(``debit``/``credit``/``none``). Header lines switch the state and are not
emitted; every emitted :class:`RawLine` records the section in force.
"""

from __future__ import annotations

from .grammars import get_grammar
from .grammars.base import IssuerGrammar
from .logging_setup import get_logger
from .models import RawLine, Section

_logger = get_logger("statement_ingest.segmenter")

_PREVIEW = 60


def _physical_lines(text: str) -> list[str]:
    return [s for s in (raw.strip() for raw in text.splitlines()) if s]


def _single_line(lines: list[str], grammar: IssuerGrammar) -> list[RawLine]:
    out: list[RawLine] = []
    section: Section = "none"
    for line in lines:
        switched = grammar.section_for(line)
        if switched is not None:
            section = switched
            continue
        if grammar.is_garbage(line):
            continue
        if grammar.line_shape.match(line):
            out.append(RawLine(line, grammar.tag, section))
    return out


def _discard(pending: str | None, reason: str) -> None:
    if pending is not None:
        _logger.debug("segment:discard_partial reason=%s text=%r", reason, pending[:_PREVIEW])


def _multi_line(lines: list[str], grammar: IssuerGrammar) -> list[RawLine]:
    starts = grammar.starts_with_date
    ends = grammar.ends_with_amount
    if starts is None or ends is None:
        raise ValueError(f"multi_line grammar {grammar.tag!r} needs date/amount markers")

    out: list[RawLine] = []
    section: Section = "none"
    pending: str | None = None

    for line in lines:
        switched = grammar.section_for(line)
        if switched is not None:
            _discard(pending, "section_header")
            pending = None
            section = switched
            continue
        if grammar.is_garbage(line):
            _discard(pending, "garbage")
            pending = None
            continue

        has_date = bool(starts.match(line))
        has_amount = bool(ends.search(line))

        if has_date and has_amount:
            _discard(pending, "superseded")
            pending = None
            out.append(RawLine(line, grammar.tag, section))
        elif has_date:
            _discard(pending, "superseded")
            pending = line
        elif pending is not None:
            if has_amount:
                out.append(RawLine(f"{pending} {line}", grammar.tag, section))
                pending = None
            else:
                pending = f"{pending} {line}"
        elif has_amount:
            _logger.debug("segment:orphan_amount text=%r", line[:_PREVIEW])

    _discard(pending, "end_of_input")
    return out


def segment(text: str | None, issuer: str) -> list[RawLine]:
    """Return the transaction-candidate lines of ``text`` for ``issuer``.

    Issuers without a grammar yield an empty list.
    """

    grammar = get_grammar(issuer)
    if grammar is None or not text:
        return []
    lines = _physical_lines(text)
    if grammar.mode == "multi_line":
        out = _multi_line(lines, grammar)
    else:
        out = _single_line(lines, grammar)
    _logger.debug("segment:done issuer=%s physical=%d candidates=%d", issuer, len(lines), len(out))
    return out


__all__ = ["segment"]
