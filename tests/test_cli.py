import json
from pathlib import Path

from statement_ingest.cli import app
from typer.testing import CliRunner

from tests.helpers.db import bootstrap_sqlite_db

AMEX_TEXT = "\n".join(
    [
        "American Express",
        "Closing Date 12/31/22",
        "08/21/22 AMERICAN EXPRESS TRAVEL SEATTLE WA $500.19",
        "12/26/22 TARGET 013821 09100013821 WESLEY CHAPEL FL -$334.89",
    ]
)

runner = CliRunner()


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_classify_prints_issuer(tmp_path: Path):
    path = _write(tmp_path, "stmt.txt", AMEX_TEXT)
    result = runner.invoke(app, ["classify", str(path)])
    assert result.exit_code == 0, result.output
    assert "stmt.txt\tamex" in result.output


def test_ingest_writes_json(tmp_path: Path):
    path = _write(tmp_path, "stmt.txt", AMEX_TEXT)
    out = tmp_path / "out.json"
    result = runner.invoke(app, ["ingest", str(path), "--output", str(out)])
    assert result.exit_code == 0, result.output
    (payload,) = json.loads(out.read_text(encoding="utf-8"))
    assert payload["provenance"] == "local"
    assert payload["issuer"] == "amex"
    assert [t["date"] for t in payload["transactions"]] == ["2022-08-21", "2022-12-26"]


def test_export_appends_once(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "cli.sqlite3")
    path = _write(tmp_path, "stmt.txt", AMEX_TEXT)
    args = ["export", str(path), "--sheet-id", "amex-2022", "--database-url", url]

    first = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    assert json.loads(first.output.strip().splitlines()[-1]) == {
        "sheet_id": "amex-2022",
        "appended": 2,
        "duplicates": 0,
    }

    second = runner.invoke(app, args)
    assert second.exit_code == 0, second.output
    assert json.loads(second.output.strip().splitlines()[-1])["appended"] == 0


def test_export_requires_database_url(tmp_path: Path):
    path = _write(tmp_path, "stmt.txt", AMEX_TEXT)
    result = runner.invoke(app, ["export", str(path), "--sheet-id", "s"])
    assert result.exit_code == 1


def test_missing_file_fails(tmp_path: Path):
    result = runner.invoke(app, ["classify", str(tmp_path / "nope.pdf")])
    assert result.exit_code == 1
