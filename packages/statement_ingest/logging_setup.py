"""Logging for ``statement_ingest``: one package logger, configured by entrypoints.

Library code only ever calls ``get_logger("statement_ingest.<module>")`` and
logs ``event:key=value`` messages. Until an entrypoint (the CLI) calls
:func:`configure_logging`, the package logger carries a ``NullHandler`` so
embedding applications see nothing unless they opt in.

The level comes from the explicit argument, else ``STATEMENT_INGEST_LOG_LEVEL``
(a name such as ``DEBUG`` or a number), else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_ingest"
LEVEL_ENV = "STATEMENT_INGEST_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"

_configured = False


def _coerce_level(value: int | str | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text.upper())


def resolve_level(level: int | str | None = None) -> int:
    """Explicit level, then the environment, then ``logging.INFO``."""

    for candidate in (level, os.getenv(LEVEL_ENV)):
        resolved = _coerce_level(candidate)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Subsequent calls are no-ops unless ``force`` is set, in which case the
    previous handler is replaced. Records do not propagate to the root logger.
    """

    global _configured
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _configured and not force:
        return pkg

    for existing in list(pkg.handlers):
        pkg.removeHandler(existing)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(resolved)
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    pkg.propagate = False
    _configured = True
    return pkg


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level", "LEVEL_ENV"]
