"""Default text extractor: the PDF text layer via pdfplumber.

Any callable ``(bytes) -> str`` can replace this one (tests pass plain
lambdas). An empty string means the file has no usable text layer, which is
how scanned statements look; the orchestrator then goes remote.
"""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO

import pdfplumber

from .errors import TextExtractionError
from .logging_setup import get_logger

type TextExtractor = Callable[[bytes], str]

_logger = get_logger("statement_ingest.text_extract")

MAX_PAGES = 200


def extract_text(file_bytes: bytes, *, max_pages: int = MAX_PAGES) -> str:
    """Return page texts joined by newlines; ``""`` when no page has text."""

    if not file_bytes:
        return ""
    try:
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            pages = pdf.pages[:max_pages]
            if len(pdf.pages) > max_pages:
                _logger.warning("text_extract:truncated pages=%d max=%d", len(pdf.pages), max_pages)
            texts = [(page.extract_text() or "") for page in pages]
    except Exception as exc:  # pdfminer raises a wide range of parser errors
        raise TextExtractionError(f"could not read PDF text layer: {exc}") from exc
    text = "\n".join(t for t in texts if t.strip())
    _logger.debug("text_extract:done pages=%d chars=%d", len(texts), len(text))
    return text


__all__ = ["TextExtractor", "extract_text", "MAX_PAGES"]
