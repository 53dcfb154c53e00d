"""JSON wire format for growth record messages.

This module centralizes record serialization for the emitter and
validation of inbound payloads for the persister.
"""

from __future__ import annotations

from datetime import date, datetime
import json
import math
from typing import Any

from core.constants import (
    WIRE_DATE_FORMAT,
    WIRE_FIELD_CUSTOMER,
    WIRE_FIELD_FACILITY,
    WIRE_FIELD_GROWTH_RATE,
    WIRE_FIELD_TIME,
)
from core.errors import RatestreamMessageError
from core.types import GrowthRecord

_WIRE_DATE_LENGTH = len("YYYY-MM-DD")


def record_to_payload(record: GrowthRecord) -> dict[str, object]:
    """Serialize a record into the ordered wire dictionary.

    Args:
        record: Validated growth record.

    Returns:
        Dictionary keyed by wire field names.
    """
    return {
        WIRE_FIELD_TIME: record.time.isoformat(),
        WIRE_FIELD_CUSTOMER: record.customer,
        WIRE_FIELD_FACILITY: record.facility,
        WIRE_FIELD_GROWTH_RATE: record.growth_rate,
    }


def encode_record(record: GrowthRecord) -> bytes:
    """Encode a record as compact UTF-8 JSON bytes."""
    return json.dumps(record_to_payload(record), separators=(",", ":")).encode("utf-8")


def decode_record(payload: bytes | None) -> GrowthRecord:
    """Decode and validate a message payload.

    Unknown keys are ignored.

    Args:
        payload: Raw message value.

    Returns:
        Parsed growth record.

    Raises:
        RatestreamMessageError: If the payload is not a valid record object.
    """
    if payload is None:
        raise RatestreamMessageError("Message has no payload.")
    try:
        document = json.loads(payload.decode("utf-8"))
    except (ValueError, RecursionError) as error:
        raise RatestreamMessageError(f"Message is not valid UTF-8 JSON: {error}") from error
    if not isinstance(document, dict):
        raise RatestreamMessageError("Message payload must be a JSON object.")
    return GrowthRecord(
        time=_read_date(document),
        customer=_read_text(document, WIRE_FIELD_CUSTOMER),
        facility=_read_text(document, WIRE_FIELD_FACILITY),
        growth_rate=_read_rate(document),
    )


def _read_text(document: dict[str, Any], field_name: str) -> str:
    value = document.get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise RatestreamMessageError(f"Field {field_name} must be a non-empty string.")
    return value


def _read_date(document: dict[str, Any]) -> date:
    value = _read_text(document, WIRE_FIELD_TIME)
    try:
        # strptime alone accepts single-digit months and days
        if len(value) != _WIRE_DATE_LENGTH:
            raise ValueError(value)
        return datetime.strptime(value, WIRE_DATE_FORMAT).date()
    except ValueError as error:
        raise RatestreamMessageError(
            f"Field {WIRE_FIELD_TIME} must be a YYYY-MM-DD date, got '{value}'."
        ) from error


def _read_rate(document: dict[str, Any]) -> float:
    value = document.get(WIRE_FIELD_GROWTH_RATE)
    # bool is an int subclass but never a valid rate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RatestreamMessageError(f"Field {WIRE_FIELD_GROWTH_RATE} must be a number.")
    try:
        growth_rate = float(value)
    except OverflowError as error:
        raise RatestreamMessageError(
            f"Field {WIRE_FIELD_GROWTH_RATE} is out of range for a double."
        ) from error
    if not math.isfinite(growth_rate):
        raise RatestreamMessageError(f"Field {WIRE_FIELD_GROWTH_RATE} must be finite.")
    return growth_rate
