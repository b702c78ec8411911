from decimal import Decimal

import pytest
from statement_ingest.amounts import parse_amount
from statement_ingest.models import CanonicalTransaction, ParsedEntry, StatementContext, StatementPeriod
from statement_ingest.normalizer import normalize, normalize_amount, normalize_date, split_amount


@pytest.mark.parametrize(
    ("raw", "year", "expected"),
    [
        ("08/21/2022", None, "2022-08-21"),
        ("08/21/22", None, "2022-08-21"),
        ("12/26", 2022, "2022-12-26"),
        ("8-5-23", None, "2023-08-05"),
        ("2023-06-01", None, "2023-06-01"),
        ("2023-06-01T10:15:00Z", None, "2023-06-01"),
        ("02/30/2022", None, None),
        ("13/01/2022", None, None),
        ("yesterday", None, None),
        ("", None, None),
        (None, None, None),
    ],
)
def test_normalize_date(raw, year, expected):
    assert normalize_date(raw, year) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.56", Decimal("1234.56")),
        ("-$334.89", Decimal("-334.89")),
        ("- $25.00", Decimal("-25.00")),
        ("(273.33)", Decimal("-273.33")),
        ("$(12.00)", Decimal("-12.00")),
        ("45.10-", Decimal("-45.10")),
        ("12.345", Decimal("12.35")),
        ("n/a", None),
        ("", None),
    ],
)
def test_normalize_amount(raw, expected):
    assert normalize_amount(raw) == expected


def test_parse_amount_keeps_sign_marker_apart_from_magnitude():
    parsed = parse_amount("(1,000.00)")
    assert parsed is not None
    assert parsed.magnitude == Decimal("1000.00")
    assert parsed.negative


def test_split_amount():
    assert split_amount(Decimal("-334.89")) == (Decimal("334.89"), Decimal("0.00"))
    assert split_amount(Decimal("500.19")) == (Decimal("0.00"), Decimal("500.19"))


def test_normalize_splits_sign_into_columns():
    ctx = StatementContext(2022, period=StatementPeriod(None, "2022-12-31"))
    entries = [
        ParsedEntry("08/21/2022", "AMERICAN EXPRESS TRAVEL", Decimal("500.19")),
        ParsedEntry("12/26/2022", "TARGET 013821", Decimal("-334.89")),
    ]
    result = normalize(entries, "amex", context=ctx)
    credit, debit = result.transactions
    assert (credit.date, credit.credit, credit.debit) == ("2022-08-21", Decimal("500.19"), 0)
    assert (debit.date, debit.debit, debit.credit) == ("2022-12-26", Decimal("334.89"), 0)
    assert debit.net_amount == Decimal("-334.89")
    assert debit.source_issuer == "amex"
    assert debit.statement_period.end == "2022-12-31"
    assert debit.metadata == {"source": "local", "grammar": "amex"}
    assert result.warnings == [] and result.dropped == 0


def test_year_less_dates_use_statement_year_before_context():
    entries = [ParsedEntry("03/04", "COFFEE", Decimal("-4.50"))]
    result = normalize(entries, "chase", statement_year=2021, context=StatementContext(2023))
    assert result.transactions[0].date == "2021-03-04"


def test_zero_and_unreadable_amounts_are_flagged_not_dropped():
    entries = [
        ParsedEntry("06/01/2023", "ADJUSTMENT", Decimal("0.00")),
        ParsedEntry("2023-06-02", "SMUDGED", None),
    ]
    result = normalize(entries, "dollar_bank", source="remote")
    zero, unreadable = result.transactions
    assert zero.is_flagged and zero.metadata["flagged"] == "zero_amount"
    assert unreadable.is_flagged and unreadable.metadata["flagged"] == "unreadable_amount"
    assert "grammar" not in unreadable.metadata
    assert result.dropped == 0


def test_unreadable_date_and_amount_is_dropped_with_warning():
    result = normalize([ParsedEntry("??", "MYSTERY", None)], "citi")
    assert result.transactions == []
    assert result.dropped == 1
    assert len(result.warnings) == 1 and "unreadable date" in result.warnings[0]


def test_summary_rows_are_dropped_silently():
    entries = [
        ParsedEntry(None, "Ending Balance", Decimal("1234.56")),
        ParsedEntry(None, "", None, balance=Decimal("99.00")),
        ParsedEntry("06/03/2023", "DEPOSIT", Decimal("10.00")),
    ]
    result = normalize(entries, "citizens")
    assert [t.description for t in result.transactions] == ["DEPOSIT"]
    assert result.dropped == 2
    assert result.warnings == []


def test_unreadable_date_with_amount_is_kept_and_warned():
    result = normalize([ParsedEntry("31/31", "ODD ROW", Decimal("-5.00"))], "amex")
    assert result.transactions[0].date is None
    assert result.transactions[0].debit == Decimal("5.00")
    assert result.warnings


def test_reference_and_extra_land_in_metadata():
    entry = ParsedEntry(
        "09/25/2023",
        "AUTOMATIC PAYMENT",
        Decimal("-290.88"),
        reference="F9342008C00CHGDDA",
        extra={"type": "Payment"},
    )
    tx = normalize([entry], "amazon_synchrony", account_id="acct-1").transactions[0]
    assert tx.metadata["reference"] == "F9342008C00CHGDDA"
    assert tx.metadata["type"] == "Payment"
    assert tx.account_id == "acct-1"
    assert tx.payee == "AUTOMATIC PAYMENT"


@pytest.mark.parametrize(
    ("debit", "credit"),
    [(Decimal("1.00"), Decimal("2.00")), (Decimal("-1.00"), Decimal("0"))],
)
def test_canonical_transaction_rejects_invalid_columns(debit, credit):
    with pytest.raises(ValueError):
        CanonicalTransaction(
            date="2023-01-01",
            posted_date=None,
            description="X",
            payee=None,
            debit=debit,
            credit=credit,
        )


def test_to_dict_renders_money_as_strings():
    tx = normalize([ParsedEntry("01/02/2023", "SHOP", Decimal("-7.5"))], "chase").transactions[0]
    d = tx.to_dict()
    assert d["debit"] == "7.50" and d["credit"] == "0.00"
    assert d["balance"] is None
