"""DB helpers for tests: bootstrap a temporary SQLite database from the ORM."""

from __future__ import annotations

from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from db.models.ingest import SiSheetRow
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file with every table and return its URL.

    A file-backed database lets the exporter's separate sessions (lock
    reservations, hash reads, appends) see each other's commits.
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=get_engine(database_url=url))
    _assert_sheet_rows_schema_in_sync(url)
    return url


def _assert_sheet_rows_schema_in_sync(database_url: str) -> None:
    expected = {c.name for c in SiSheetRow.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('si_sheet_rows')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    assert got == expected, f"si_sheet_rows schema drift: expected={expected}, got={got}"
