# ruff: noqa: I001
"""
Alembic environment for the export tables (``si_sheet_rows``, ``si_lock_reservations``).

URL resolution order: ``DATABASE_URL`` (after loading the nearest ``.env``
without overriding exported variables), then ``sqlalchemy.url`` from
``alembic.ini``. Autogenerate compares against ``db.metadata``.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

import db

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _resolve_url() -> str:
    # Works from the repo root and from libs/db alike.
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(dotenv_path=env_file, override=False)
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; export it or set sqlalchemy.url in alembic.ini"
        )
    return url


DATABASE_URL = _resolve_url()
COMMON_OPTIONS = {"target_metadata": db.metadata, "compare_type": True}


def run_offline(url: str) -> None:
    """Render SQL without connecting (``alembic upgrade --sql``)."""

    context.configure(url=url, literal_binds=True, **COMMON_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    ini_section = dict(config.get_section(config.config_ini_section) or {})
    ini_section["sqlalchemy.url"] = url
    engine = engine_from_config(ini_section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        # SQLite needs batch mode to alter constraints.
        batch = connection.dialect.name == "sqlite"
        context.configure(connection=connection, render_as_batch=batch, **COMMON_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(DATABASE_URL)
else:
    run_online(DATABASE_URL)
