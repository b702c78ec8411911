"""Typer console interface: ``statement-ingest classify|ingest|export``.

``ingest`` prints one JSON document per run (a list of per-file results);
``export`` additionally appends the extracted transactions to the SQL sheet
store through :class:`~statement_ingest.export.DedupExporter`.

Plain-text inputs are accepted alongside PDFs: a file that does not start
with the PDF magic bytes is decoded as UTF-8 and used as the text layer.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .config import IngestSettings
from .errors import LockTimeoutError, TextExtractionError
from .logging_setup import configure_logging, get_logger
from .text_extract import extract_text

_logger = get_logger("statement_ingest.cli")

_PDF_MAGIC = b"%PDF"


def _extract_any(file_bytes: bytes) -> str:
    if file_bytes.startswith(_PDF_MAGIC):
        return extract_text(file_bytes)
    try:
        return file_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TextExtractionError(f"not a PDF and not UTF-8 text: {exc}") from exc


def _read_inputs(paths: list[Path]) -> list[tuple[str, bytes]]:
    out: list[tuple[str, bytes]] = []
    for p in paths:
        try:
            out.append((p.name, p.read_bytes()))
        except OSError as e:
            typer.echo(f"Error: cannot read {p}: {e}", err=True)
            raise typer.Exit(1) from e
    return out


# Module-level argument/option objects keep calls out of parameter defaults.
FILES_ARGUMENT: ArgumentInfo = typer.Argument(
    ..., help="Statement files (PDF, or extracted text).", dir_okay=False
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract transactions from bank and card statements. "
        "Loads settings from a local .env before running."
    ),
)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


@app.command("classify")
def classify_cmd(files: Annotated[list[Path], FILES_ARGUMENT]) -> None:
    """Print ``<file>\\t<issuer>`` for each statement."""

    from .issuers import classify

    for name, data in _read_inputs(files):
        try:
            text = _extract_any(data)
        except TextExtractionError as e:
            _logger.warning("cli:classify_unreadable file=%s error=%s", name, e)
            text = ""
        typer.echo(f"{name}\t{classify(text, name)}")


@app.command("ingest")
def ingest_cmd(
    files: Annotated[list[Path], FILES_ARGUMENT],
    *,
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write JSON here instead of stdout.", dir_okay=False
    ),
    concurrency: int | None = typer.Option(
        None, min=1, help="Worker threads (defaults to STATEMENT_INGEST_CONCURRENCY)."
    ),
) -> None:
    """Ingest statements and emit canonical transactions as JSON."""

    from .orchestrator import ingest_statements

    settings = IngestSettings.from_env()
    results = ingest_statements(
        _read_inputs(files),
        concurrency=concurrency or settings.concurrency,
        text_extractor=_extract_any,
        settings=settings,
    )
    payload = json.dumps([r.to_dict() for r in results], indent=2)
    if output is None:
        typer.echo(payload)
    else:
        output.write_text(payload + "\n", encoding="utf-8")
        typer.echo(f"Wrote {len(results)} result(s) to {output}", err=True)


@app.command("export")
def export_cmd(
    files: Annotated[list[Path], FILES_ARGUMENT],
    *,
    sheet_id: str = typer.Option(..., "--sheet-id", help="Target sheet identifier."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Ingest statements and append new transactions to a sheet, skipping duplicates."""

    from .cleanup import apply_text_cleanup
    from .export import DedupExporter, reservation_lock_factory
    from .orchestrator import ingest_statements
    from .persistence import SqlReservationBackend, SqlSheetStore

    settings = IngestSettings.from_env()
    url = database_url or settings.database_url
    if not url:
        typer.echo("Error: DATABASE_URL is not set and --database-url was not given.", err=True)
        raise typer.Exit(1)

    results = ingest_statements(
        _read_inputs(files),
        concurrency=settings.concurrency,
        text_extractor=_extract_any,
        settings=settings,
    )
    for r in results:
        for w in r.warnings:
            typer.echo(f"{r.file_name}: {w}", err=True)
    transactions = [tx for r in results for tx in r.transactions]
    cleaned = apply_text_cleanup(transactions).cleaned

    exporter = DedupExporter(
        SqlSheetStore(database_url=url),
        reservation_lock_factory(
            SqlReservationBackend(database_url=url),
            ttl_sec=settings.lock_ttl_sec,
            max_wait_sec=settings.lock_max_wait_sec,
        ),
    )
    try:
        summary = exporter.append(sheet_id, cleaned)
    except LockTimeoutError as e:
        typer.echo(f"Error: {e}; retry later.", err=True)
        raise typer.Exit(2) from e

    typer.echo(
        json.dumps(
            {
                "sheet_id": sheet_id,
                "appended": summary.appended,
                "duplicates": summary.duplicate_count,
            }
        )
    )


if __name__ == "__main__":  # pragma: no cover
    app()
