from decimal import Decimal

import pytest
from statement_ingest.errors import RemoteExtractionError
from statement_ingest.remote import (
    entities_to_entries,
    parse_remote_document,
    property_kind,
)

from tests.helpers.remote_stub import bank_entity

CAMEL = {
    "text": "full document text",
    "entities": [
        {
            "type": "bank_transaction",
            "mentionText": "GIANT EAGLE  #4512",
            "confidence": 0.93,
            "properties": [
                {
                    "type": "amount",
                    "mentionText": "-45.10",
                    "normalizedValue": {"moneyValue": {"units": -45, "nanos": -100000000}},
                },
                {
                    "type": "transaction_date",
                    "mentionText": "06/01",
                    "normalizedValue": {"dateValue": {"year": 2023, "month": 6, "day": 1}},
                },
                {"type": "merchant_name", "mentionText": "Giant Eagle"},
                {"type": "card_last_four", "mentionText": "4321"},
            ],
        },
        {"type": "account_number", "mentionText": "****1234"},
    ],
}

SNAKE = {
    "text": "full document text",
    "entities": [
        {
            "type": "bank_transaction",
            "mention_text": "GIANT EAGLE  #4512",
            "confidence": 0.93,
            "properties": [
                {
                    "type": "amount",
                    "mention_text": "-45.10",
                    "normalized_value": {"money_value": {"units": -45, "nanos": -100000000}},
                },
                {
                    "type": "transaction_date",
                    "mention_text": "06/01",
                    "normalized_value": {"date_value": {"year": 2023, "month": 6, "day": 1}},
                },
                {"type": "merchant_name", "mention_text": "Giant Eagle"},
                {"type": "card_last_four", "mention_text": "4321"},
            ],
        },
        {"type": "account_number", "mention_text": "****1234"},
    ],
}


def test_camel_and_snake_payloads_flatten_identically():
    camel = entities_to_entries(parse_remote_document(CAMEL))
    snake = entities_to_entries(parse_remote_document(SNAKE))
    assert camel == snake
    (entry,) = camel
    assert entry.date == "2023-06-01"
    assert entry.signed_amount == Decimal("-45.1")
    assert entry.description == "GIANT EAGLE #4512"
    assert entry.payee == "Giant Eagle"
    assert entry.extra == {"entity_type": "bank_transaction", "confidence": 0.93}


def test_unknown_property_types_are_ignored():
    assert property_kind("card_last_four") == "ignored"
    assert property_kind("Merchant_Name") == "counterparty"
    assert property_kind(None) == "ignored"


def test_entity_type_sets_direction():
    doc = parse_remote_document(
        {
            "entities": [
                bank_entity(mention="REFUND", amount="-20.00", entity_type="credit_transaction"),
                bank_entity(mention="FEE", amount="3.00", entity_type="debit_transaction"),
                bank_entity(mention="WITHDRAWAL", amount="(60.00)"),
            ]
        }
    )
    amounts = [e.signed_amount for e in entities_to_entries(doc)]
    assert amounts == [Decimal("20.00"), Decimal("-3.00"), Decimal("-60.00")]


def test_first_property_of_each_kind_wins():
    entity = bank_entity(
        mention="SHOP",
        amount="10.00",
        extra_props=[{"type": "total", "mentionText": "999.00"}],
    )
    (entry,) = entities_to_entries(parse_remote_document({"entities": [entity]}))
    assert entry.signed_amount == Decimal("10.00")


def test_unreadable_amount_becomes_none():
    entity = bank_entity(mention="SHOP", amount="see attached", date="2023-06-02")
    (entry,) = entities_to_entries(parse_remote_document({"entities": [entity]}))
    assert entry.signed_amount is None
    assert entry.date == "2023-06-02"


def test_document_type_selects_entities():
    payload = {
        "entities": [
            {"type": "line_item", "mentionText": "Widget", "properties": []},
            {"type": "bank_entry", "mentionText": "Deposit", "properties": []},
        ]
    }
    doc = parse_remote_document(payload)
    assert [e.description for e in entities_to_entries(doc, "invoice")] == ["Widget"]
    assert [e.description for e in entities_to_entries(doc, "bank_statement")] == ["Deposit"]


@pytest.mark.parametrize("payload", [{"entities": "nope"}, ["not", "a", "mapping"]])
def test_invalid_payload_raises_remote_error(payload):
    with pytest.raises(RemoteExtractionError) as excinfo:
        parse_remote_document(payload)
    assert excinfo.value.code == "invalid_payload"
