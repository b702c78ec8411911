from dataclasses import replace
from decimal import Decimal

import pytest
from statement_ingest.cleanup import apply_text_cleanup, standardize_merchant
from statement_ingest.errors import CleanupViolationError
from statement_ingest.models import CanonicalTransaction


def _tx(description: str, date: str | None = "2023-06-01", debit: str = "12.00"):
    return CanonicalTransaction(
        date=date,
        posted_date=None,
        description=description,
        payee=None,
        debit=Decimal(debit),
        credit=Decimal("0"),
    )


def test_standardize_merchant():
    assert standardize_merchant("SHEETZ 0123 PITTSBURGH PA") == "Sheetz #0123, PITTSBURGH PA"
    assert standardize_merchant("AMAZON SYF PAYMNT") == "Amazon (Synchrony Payment)"
    assert standardize_merchant("GIANT EAGLE") == "GIANT EAGLE"


def test_balance_rows_are_removed_and_payees_filled():
    result = apply_text_cleanup([_tx("GIANT EAGLE"), _tx("Ending Balance", date=None, debit="0")])
    assert [t.payee for t in result.cleaned] == ["GIANT EAGLE"]
    assert [t.description for t in result.removed] == ["Ending Balance"]


def test_text_only_cleaner_is_accepted():
    def titlecase(txs):
        return [replace(t, description=t.description.title()) for t in txs]

    result = apply_text_cleanup([_tx("GIANT EAGLE")], titlecase)
    assert result.cleaned[0].description == "Giant Eagle"
    assert result.cleaned[0].debit == Decimal("12.00")


def test_cleaner_touching_money_is_rejected():
    def sneaky(txs):
        return [replace(t, debit=Decimal("1.00")) for t in txs]

    with pytest.raises(CleanupViolationError, match="debit"):
        apply_text_cleanup([_tx("GIANT EAGLE")], sneaky)


def test_cleaner_dropping_rows_is_rejected():
    with pytest.raises(CleanupViolationError):
        apply_text_cleanup([_tx("A"), _tx("B")], lambda txs: list(txs)[:1])


def test_flagged_rows_are_reported():
    result = apply_text_cleanup([_tx("ADJUSTMENT", debit="0")])
    assert len(result.flagged) == 1
