import pytest
from statement_ingest.issuers import HEADER_CHARS, classify


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("American Express\nPlatinum Card\nClosing Date 12/31/22", "amex"),
        ("DOLLAR BANK, FSB\nFree Checking", "dollar_bank"),
        ("Citizens Bank\nClearly Better Business Checking", "citizens"),
        ("Capital One\nQuicksilver Card | Account ending in 1234", "capital_one"),
        ("CHASE SAPPHIRE PREFERRED\nwww.chase.com/cardhelp", "chase"),
        ("Citi Double Cash Card\nBilling Period: 12/15/22-01/14/23", "citi"),
        ("Amazon Store Card\nSynchrony Bank", "amazon_synchrony"),
        ("Lowe's Pro Rewards\nCommercial Account", "lowes"),
        ("Synchrony Bank\nCar Care Card", "synchrony"),
        ("Some Credit Union\nMonthly statement", "unknown"),
        ("", "unknown"),
    ],
)
def test_classify_by_header(text, expected):
    assert classify(text) == expected


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("Statement_092023_1234.pdf", "capital_one"),
        ("STATEMENTS, Oct 2023-4821.pdf", "citizens"),
        ("20230715-statements-1234-.pdf", "chase"),
    ],
)
def test_filename_templates_win_over_empty_text(file_name, expected):
    assert classify("", file_name) == expected


def test_filename_rule_precedes_header_rules():
    # Amex header text, but the export filename identifies Capital One.
    assert classify("American Express", "Statement_092023_1234.pdf") == "capital_one"


def test_issuer_names_past_header_area_are_ignored():
    text = "x" * HEADER_CHARS + "\nCAPITAL ONE"
    assert classify(text) == "unknown"


def test_capital_one_payment_boilerplate_is_not_capital_one():
    assert classify("Make payment to Capital One Services") == "unknown"


def test_chase_requires_companion_keyword():
    assert classify("Purchase at chase field") == "unknown"
    assert classify("JPMorgan Chase Bank, N.A.\nchase.com") == "chase"


def test_classify_is_deterministic():
    text = "Amazon Prime Store Card\nsyf.com/amazon"
    assert {classify(text) for _ in range(5)} == {"amazon_synchrony"}
