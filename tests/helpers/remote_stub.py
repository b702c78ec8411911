"""Test helper standing in for the remote document-understanding service.

``RemoteStub`` returns a canned payload (or raises a canned error) and records
every call so tests can assert whether the remote path ran at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class RemoteStub:
    def __init__(
        self,
        payload: Mapping[str, Any] | None = None,
        *,
        error: Exception | None = None,
        processor_id: str | None = "proc-test",
    ) -> None:
        self.payload = payload if payload is not None else {"entities": []}
        self.error = error
        self.processor_id = processor_id
        self.calls: list[tuple[int, str]] = []

    def extract(self, file_bytes: bytes, document_type: str) -> Mapping[str, Any]:
        self.calls.append((len(file_bytes), document_type))
        if self.error is not None:
            raise self.error
        return self.payload


def bank_entity(
    *,
    mention: str,
    amount: str,
    date: str | None = None,
    entity_type: str = "bank_transaction",
    extra_props: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """A camelCase transaction entity as the service SDK serializes it."""

    props: list[dict[str, Any]] = [{"type": "amount", "mentionText": amount}]
    if date is not None:
        props.append({"type": "transaction_date", "mentionText": date})
    props.extend(extra_props or [])
    return {"type": entity_type, "mentionText": mention, "confidence": 0.9, "properties": props}
