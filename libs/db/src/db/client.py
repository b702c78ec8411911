"""Engine and session access for the export store.

One engine (and sessionmaker) is cached per database URL, so a process can
write to Postgres while tests point other calls at scratch SQLite files.

    from db.client import session_scope

    with session_scope(database_url=url) as s:
        s.add(row)
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

# Seconds a SQLite writer waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT_SEC = 15

_registry_lock = threading.Lock()
_makers: dict[str, sessionmaker[Session]] = {}


def resolve_database_url(override: str | None = None) -> str:
    """``override`` if given, else ``DATABASE_URL``; raise when neither is set."""

    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("no database URL: pass database_url or set DATABASE_URL")
    return url


def _engine_options(url: str) -> dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT_SEC}}
    return {"pool_pre_ping": True}


def _maker(url: str) -> sessionmaker[Session]:
    with _registry_lock:
        maker = _makers.get(url)
        if maker is None:
            engine = create_engine(url, **_engine_options(url))
            maker = sessionmaker(bind=engine, expire_on_commit=False)
            _makers[url] = maker
        return maker


def get_engine(*, database_url: str | None = None) -> Engine:
    """Cached engine for the resolved URL, created on first use."""

    bind = _maker(resolve_database_url(database_url)).kw["bind"]
    assert isinstance(bind, Engine)
    return bind


def get_session(*, database_url: str | None = None) -> Session:
    """New session on the cached engine; the caller owns commit and close."""

    return _maker(resolve_database_url(database_url))()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Session in a transaction: commit on success, roll back on error, then close."""

    with _maker(resolve_database_url(database_url)).begin() as session:
        yield session


def reset_engines() -> None:
    """Dispose every cached engine (tests call this between databases)."""

    with _registry_lock:
        makers = list(_makers.values())
        _makers.clear()
    for maker in makers:
        maker.kw["bind"].dispose()


__all__ = [
    "resolve_database_url",
    "get_engine",
    "get_session",
    "session_scope",
    "reset_engines",
]
