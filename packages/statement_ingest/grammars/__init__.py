"""Registry of per-issuer statement grammars, keyed by issuer tag.

Issuers without an entry here (``synchrony``, ``unknown``) have no local
parser; the orchestrator routes them straight to remote extraction.
"""

from __future__ import annotations

from . import (
    amazon_synchrony,
    amex,
    capital_one,
    chase,
    citi,
    citizens,
    dollar_bank,
    lowes,
)
from .base import IssuerGrammar, SectionRule

GRAMMARS: dict[str, IssuerGrammar] = {
    g.tag: g
    for g in (
        amex.GRAMMAR,
        chase.GRAMMAR,
        capital_one.GRAMMAR,
        citi.GRAMMAR,
        citizens.GRAMMAR,
        dollar_bank.GRAMMAR,
        amazon_synchrony.GRAMMAR,
        lowes.GRAMMAR,
    )
}


def get_grammar(issuer: str) -> IssuerGrammar | None:
    """Return the grammar for ``issuer`` or ``None`` when it has no local parser."""

    return GRAMMARS.get(issuer)


def register(grammar: IssuerGrammar) -> None:
    """Add or replace a grammar (used by tests and downstream layouts)."""

    GRAMMARS[grammar.tag] = grammar


__all__ = ["GRAMMARS", "IssuerGrammar", "SectionRule", "get_grammar", "register"]
