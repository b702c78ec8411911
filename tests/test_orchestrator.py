from decimal import Decimal

import pytest
from statement_ingest.config import IngestSettings
from statement_ingest.errors import RemoteExtractionError, TextExtractionError
from statement_ingest.metrics import IngestMetrics
from statement_ingest.orchestrator import (
    NO_REMOTE_TRANSACTIONS,
    ingest_statement,
    ingest_statements,
)

from tests.helpers.remote_stub import RemoteStub, bank_entity

AMEX_TEXT = "\n".join(
    [
        "American Express",
        "Closing Date 12/31/22",
        "P.O. BOX 6031 CAROL STREAM IL 60197",
        "08/21/22 AMERICAN EXPRESS TRAVEL SEATTLE WA $500.19",
        "12/26/22 TARGET 013821 09100013821 WESLEY CHAPEL FL -$334.89",
    ]
)

UNKNOWN_TEXT = "Friendly Credit Union\nMonthly Statement\n06/01 SOMETHING 12.00"

REMOTE_PAYLOAD = {
    "entities": [
        bank_entity(mention="PAYCHECK", amount="1,500.00", date="2023-06-01"),
        bank_entity(mention="GROCERY", amount="-82.15", date="2023-06-03"),
    ]
}


def _text(value: str):
    return lambda _bytes: value


def test_local_path_wins_and_remote_is_not_called():
    remote = RemoteStub(REMOTE_PAYLOAD)
    result = ingest_statement(b"%PDF", file_name="amex.pdf", text_extractor=_text(AMEX_TEXT), remote=remote)
    assert result.provenance == "local"
    assert result.issuer == "amex"
    assert result.count == 2
    assert remote.calls == []
    assert result.telemetry.attempted == ("local",)
    assert result.telemetry.local.lines_segmented == 2
    assert result.telemetry.local.lines_parsed == 2
    first, second = result.transactions
    assert (first.date, first.credit) == ("2022-08-21", Decimal("500.19"))
    assert (second.date, second.debit) == ("2022-12-26", Decimal("334.89"))


def test_unknown_issuer_goes_remote():
    remote = RemoteStub(REMOTE_PAYLOAD, processor_id="proc-42")
    result = ingest_statement(b"bytes", file_name="cu.pdf", text_extractor=_text(UNKNOWN_TEXT), remote=remote)
    assert result.issuer == "unknown"
    assert result.provenance == "remote"
    assert result.telemetry.local.lines_segmented == 0
    assert result.telemetry.attempted == ("remote",)
    assert result.telemetry.remote.enabled
    assert result.telemetry.remote.entity_count == 2
    assert remote.calls == [(5, "bank_statement")]
    paycheck, grocery = result.transactions
    assert paycheck.credit == Decimal("1500.00")
    assert grocery.debit == Decimal("82.15")
    assert grocery.metadata["source"] == "remote"
    assert grocery.metadata["processor_id"] == "proc-42"


def test_remote_disabled_yields_none_with_warning():
    result = ingest_statement(b"bytes", text_extractor=_text(UNKNOWN_TEXT))
    assert result.provenance == "none"
    assert result.transactions == ()
    assert "remote extraction disabled; no transactions extracted" in result.warnings


def test_settings_can_disable_a_supplied_remote():
    remote = RemoteStub(REMOTE_PAYLOAD)
    result = ingest_statement(
        b"bytes",
        text_extractor=_text(UNKNOWN_TEXT),
        remote=remote,
        settings=IngestSettings(remote_enabled=False),
    )
    assert result.provenance == "none"
    assert remote.calls == []
    assert not result.telemetry.remote.enabled


def test_remote_failure_is_absorbed():
    metrics = IngestMetrics()
    remote = RemoteStub(error=RemoteExtractionError("service unavailable", code="unavailable"))
    result = ingest_statement(
        b"bytes", file_name="x.pdf", text_extractor=_text(""), remote=remote, metrics=metrics
    )
    assert result.provenance == "none"
    assert any(w.startswith("remote extraction failed") for w in result.warnings)
    assert any("no text layer" in w for w in result.warnings)
    summary = metrics.summary()
    assert summary["failures"] == 1
    assert summary["counts"]["none"] == 1


@pytest.mark.parametrize(
    "error", [ConnectionError("connection reset"), TimeoutError("deadline exceeded")]
)
def test_remote_transport_error_is_absorbed(error):
    metrics = IngestMetrics()
    remote = RemoteStub(error=error)
    result = ingest_statement(
        b"bytes", text_extractor=_text(UNKNOWN_TEXT), remote=remote, metrics=metrics
    )
    assert result.provenance == "none"
    assert result.telemetry.attempted == ("remote",)
    assert result.telemetry.remote.processor_id == "proc-test"
    prefix = "remote extraction failed: remote service unavailable"
    assert any(w.startswith(prefix) for w in result.warnings)
    assert metrics.summary()["failures"] == 1


def test_remote_enabled_without_extractor_is_disabled():
    result = ingest_statement(
        b"bytes", text_extractor=_text(UNKNOWN_TEXT), settings=IngestSettings(remote_enabled=True)
    )
    assert result.provenance == "none"
    assert result.telemetry.attempted == ()
    assert not result.telemetry.remote.enabled
    assert "remote extraction disabled; no transactions extracted" in result.warnings


def test_remote_with_no_entities_warns():
    result = ingest_statement(b"bytes", text_extractor=_text(UNKNOWN_TEXT), remote=RemoteStub())
    assert result.provenance == "remote"
    assert result.count == 0
    assert NO_REMOTE_TRANSACTIONS in result.warnings


def test_text_extraction_error_falls_back_to_remote():
    def _broken(_bytes: bytes) -> str:
        raise TextExtractionError("encrypted")

    remote = RemoteStub(REMOTE_PAYLOAD)
    result = ingest_statement(b"bytes", text_extractor=_broken, remote=remote)
    assert result.provenance == "remote"
    assert any("text extraction failed" in w for w in result.warnings)


def test_local_grammar_with_no_parsable_lines_falls_through_to_remote():
    text = "American Express\nClosing Date 12/31/22\nNothing to see here"
    remote = RemoteStub(REMOTE_PAYLOAD)
    result = ingest_statement(b"bytes", text_extractor=_text(text), remote=remote)
    assert result.issuer == "amex"
    assert result.provenance == "remote"
    assert result.telemetry.attempted == ("local", "remote")
    assert any("no transaction lines found for amex" in w for w in result.warnings)


def test_metrics_record_provenance():
    metrics = IngestMetrics()
    ingest_statement(b"a", text_extractor=_text(AMEX_TEXT), metrics=metrics)
    ingest_statement(b"b", text_extractor=_text(UNKNOWN_TEXT), metrics=metrics)
    assert metrics.summary()["counts"] == {"local": 1, "remote": 0, "none": 1}


def test_batch_preserves_order_and_isolates_failures():
    texts = {b"amex": AMEX_TEXT, b"unknown": UNKNOWN_TEXT}

    def _extract(data: bytes) -> str:
        if data == b"boom":
            raise RuntimeError("parser exploded")
        return texts[data]

    files = [("a.pdf", b"amex"), ("b.pdf", b"boom"), ("c.pdf", b"unknown"), ("d.pdf", b"amex")]
    results = ingest_statements(files, concurrency=3, text_extractor=_extract)
    assert [r.file_name for r in results] == ["a.pdf", "b.pdf", "c.pdf", "d.pdf"]
    assert [r.provenance for r in results] == ["local", "none", "none", "local"]
    assert results[1].warnings == ("ingestion failed: RuntimeError: parser exploded",)


def test_batch_rejects_bad_concurrency():
    with pytest.raises(ValueError):
        ingest_statements([("a", b"x")], concurrency=0)
    assert ingest_statements([], concurrency=2) == []


def test_result_to_dict_is_json_friendly():
    result = ingest_statement(b"a", file_name="amex.pdf", text_extractor=_text(AMEX_TEXT))
    d = result.to_dict()
    assert d["provenance"] == "local"
    assert d["count"] == 2
    assert d["telemetry"]["remote"] == {
        "enabled": False,
        "processorIdentifier": None,
        "latencyMs": None,
        "entityCount": 0,
    }
    assert d["transactions"][1]["debit"] == "334.89"


def test_remote_without_processor_id_is_a_config_failure():
    remote = RemoteStub(REMOTE_PAYLOAD, processor_id=None)
    result = ingest_statement(b"bytes", text_extractor=_text(UNKNOWN_TEXT), remote=remote)
    assert result.provenance == "none"
    assert remote.calls == []
    assert any("without a processor id" in w for w in result.warnings)


def test_processor_id_can_come_from_settings():
    remote = RemoteStub(REMOTE_PAYLOAD, processor_id=None)
    settings = IngestSettings(remote_enabled=True, remote_processor_id="from-env")
    result = ingest_statement(
        b"bytes", text_extractor=_text(UNKNOWN_TEXT), remote=remote, settings=settings
    )
    assert result.provenance == "remote"
    assert result.telemetry.remote.processor_id == "from-env"
