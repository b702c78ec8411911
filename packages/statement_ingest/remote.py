"""Remote (document-understanding service) extraction payloads.

The remote extractor returns a loosely structured document of *entities*, each
with typed child *properties*. Payloads arrive with camelCase keys from the
service SDK or snake_case keys from cached/replayed JSON; the Pydantic models
below accept both.

Only a closed set of property types means anything to us. Everything else is
classified as ``"ignored"`` and skipped, so new property types introduced by
the service cannot break ingestion.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import RemoteExtractionError
from .models import DocumentType, ParsedEntry
from .normalizer import normalize_amount

# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class MoneyValue(_Payload):
    """Structured money: either ``amount`` or ``units`` + ``nanos``."""

    amount: Decimal | None = None
    units: int | None = None
    nanos: int | None = None
    currency_code: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_from_any(cls, v: Any) -> Any:
        if v is None or isinstance(v, Decimal):
            return v
        try:
            return Decimal(str(v).replace(",", "").strip())
        except InvalidOperation:
            return None

    def to_decimal(self) -> Decimal | None:
        if self.amount is not None:
            return self.amount if self.amount.is_finite() else None
        if self.units is None and self.nanos is None:
            return None
        return Decimal(self.units or 0) + Decimal(self.nanos or 0) / Decimal(1_000_000_000)


class DateValue(_Payload):
    year: int | None = None
    month: int | None = None
    day: int | None = None

    def to_iso(self) -> str | None:
        if not (self.year and self.month and self.day):
            return None
        try:
            return date(self.year, self.month, self.day).isoformat()
        except ValueError:
            return None


class NormalizedValue(_Payload):
    text: str | None = None
    money_value: MoneyValue | None = None
    date_value: DateValue | str | None = None


class RemoteEntity(_Payload):
    type: str | None = None
    mention_text: str | None = None
    confidence: float | None = None
    normalized_value: NormalizedValue | None = None
    properties: list[RemoteEntity] = []


class RemoteDocument(_Payload):
    entities: list[RemoteEntity] = []
    text: str | None = None


def parse_remote_document(payload: Mapping[str, Any]) -> RemoteDocument:
    """Validate a raw payload; invalid shapes raise :class:`RemoteExtractionError`."""

    if not isinstance(payload, Mapping):
        raise RemoteExtractionError(
            f"remote payload must be a mapping, got {type(payload).__name__}",
            code="invalid_payload",
        )
    try:
        return RemoteDocument.model_validate(payload)
    except ValidationError as exc:
        raise RemoteExtractionError(
            f"invalid remote payload: {exc.error_count()} validation error(s)",
            code="invalid_payload",
        ) from exc


# ---------------------------------------------------------------------------
# Property classification
# ---------------------------------------------------------------------------

type PropertyKind = Literal["amount", "date", "balance", "counterparty", "description", "ignored"]

PROPERTY_KINDS: dict[str, PropertyKind] = {
    "amount": "amount",
    "total": "amount",
    "net_amount": "amount",
    "posting_date": "date",
    "transaction_date": "date",
    "date": "date",
    "balance": "balance",
    "merchant_name": "counterparty",
    "counterparty": "counterparty",
    "vendor": "counterparty",
    "payee": "counterparty",
    "description": "description",
}


def property_kind(type_: str | None) -> PropertyKind:
    return PROPERTY_KINDS.get((type_ or "").strip().lower(), "ignored")


@dataclass(slots=True)
class _Fields:
    amount: RemoteEntity | None = None
    date: RemoteEntity | None = None
    balance: RemoteEntity | None = None
    counterparty: RemoteEntity | None = None
    description: RemoteEntity | None = None


def _collect(entity: RemoteEntity) -> _Fields:
    fields = _Fields()
    for prop in entity.properties:
        kind = property_kind(prop.type)
        if kind == "ignored":
            continue
        # First property of each kind wins.
        if getattr(fields, kind) is None:
            setattr(fields, kind, prop)
    return fields


def is_transaction_entity(entity: RemoteEntity, document_type: DocumentType) -> bool:
    kind = (entity.type or "").lower()
    if "transaction" in kind:
        return True
    if document_type == "bank_statement":
        return "bank" in kind
    if document_type == "invoice":
        return "line_item" in kind or "lineitem" in kind
    if document_type == "receipt":
        return "purchase" in kind
    return False


# ---------------------------------------------------------------------------
# Entity → ParsedEntry
# ---------------------------------------------------------------------------

_WS = re.compile(r"\s+")
_NEGATIVE_MARK = re.compile(r"[-(]")


def _collapse(value: str | None) -> str:
    return _WS.sub(" ", value or "").strip()


def _direction(entity: RemoteEntity, amount_text: str) -> Literal["debit", "credit"] | None:
    kind = (entity.type or "").lower()
    if "credit" in kind:
        return "credit"
    if "debit" in kind:
        return "debit"
    if _NEGATIVE_MARK.search(amount_text):
        return "debit"
    return None


def _amount(entity: RemoteEntity, prop: RemoteEntity | None) -> Decimal | None:
    text = (prop.mention_text if prop else None) or entity.mention_text or ""
    money = prop.normalized_value.money_value if prop and prop.normalized_value else None
    value = money.to_decimal() if money else None
    if value is None:
        value = normalize_amount(text)
    if value is None:
        return None
    direction = _direction(entity, text)
    magnitude = abs(value)
    if direction == "debit" or (direction is None and value < 0):
        return -magnitude
    return magnitude


def _date_text(prop: RemoteEntity | None) -> str | None:
    if prop is None:
        return None
    nv = prop.normalized_value
    if nv is not None:
        if isinstance(nv.date_value, DateValue):
            iso = nv.date_value.to_iso()
            if iso:
                return iso
        elif isinstance(nv.date_value, str) and nv.date_value:
            return nv.date_value
        if nv.text:
            return nv.text
    return prop.mention_text


def _balance(prop: RemoteEntity | None) -> Decimal | None:
    if prop is None:
        return None
    if prop.normalized_value and prop.normalized_value.money_value:
        value = prop.normalized_value.money_value.to_decimal()
        if value is not None:
            return value
    return normalize_amount(prop.mention_text)


def entities_to_entries(
    document: RemoteDocument, document_type: DocumentType = "bank_statement"
) -> list[ParsedEntry]:
    """Flatten transaction entities into :class:`ParsedEntry` rows."""

    out: list[ParsedEntry] = []
    for entity in document.entities:
        if not is_transaction_entity(entity, document_type):
            continue
        fields = _collect(entity)
        counterparty = _collapse(fields.counterparty.mention_text if fields.counterparty else None)
        described = _collapse(fields.description.mention_text if fields.description else None)
        mention = _collapse(entity.mention_text)
        description = mention or described or counterparty or "Transaction"
        out.append(
            ParsedEntry(
                date=_date_text(fields.date),
                description=description,
                signed_amount=_amount(entity, fields.amount),
                balance=_balance(fields.balance),
                payee=counterparty or mention or "Transaction",
                extra={"entity_type": entity.type, "confidence": entity.confidence},
            )
        )
    return out


# ---------------------------------------------------------------------------
# Collaborator protocol
# ---------------------------------------------------------------------------


class RemoteExtractor(Protocol):
    """Remote document-understanding collaborator.

    ``extract`` returns the raw entity payload (mapping) or raises
    :class:`~statement_ingest.errors.RemoteExtractionError`. Transport errors
    (``OSError`` and subclasses) are also tolerated and treated as unavailable.
    """

    processor_id: str | None

    def extract(self, file_bytes: bytes, document_type: DocumentType) -> Mapping[str, Any]: ...


__all__ = [
    "MoneyValue",
    "DateValue",
    "NormalizedValue",
    "RemoteEntity",
    "RemoteDocument",
    "parse_remote_document",
    "PropertyKind",
    "PROPERTY_KINDS",
    "property_kind",
    "is_transaction_entity",
    "entities_to_entries",
    "RemoteExtractor",
]
