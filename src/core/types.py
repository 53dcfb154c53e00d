"""Shared typed models.

This module defines immutable data models used by ingest, stream,
and store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


@dataclass(frozen=True)
class GrowthRecord:
    """Validated growth-rate row.

    Attributes:
        time: Calendar date of the measurement.
        customer: Customer identifier.
        facility: Facility identifier.
        growth_rate: Finite growth rate value.
    """

    time: date
    customer: str
    facility: str
    growth_rate: float


class RejectionReason(str, Enum):
    """Why a source line did not produce a record."""

    MALFORMED = "malformed"
    MISSING_FIELD = "missing field"
    INVALID_DATE = "invalid date"
    INVALID_NUMBER = "invalid number"


@dataclass(frozen=True)
class RowRejection:
    """Rejected source line with diagnostic context.

    Attributes:
        line_number: One-based line number in the source file.
        raw_line: Line text as read, without the newline.
        reason: Validation rule that failed.
    """

    line_number: int
    raw_line: str
    reason: RejectionReason


@dataclass(frozen=True)
class DeliveredMessage:
    """Message handed to the persister by a subscriber.

    Attributes:
        payload: Raw message value bytes.
        topic: Topic the message was read from.
        partition: Partition index within the topic.
        offset: Offset of the message within its partition.
    """

    payload: bytes
    topic: str
    partition: int
    offset: int


@dataclass(frozen=True)
class EmitSummary:
    """Outcome of one emitter run.

    Attributes:
        processed: Whether the source was newer than the checkpoint.
        sent_count: Rows acknowledged by the broker.
        rejected_count: Rows that failed validation.
        failed_count: Valid rows the broker did not accept.
        checkpoint: Checkpoint value after the run, None when never written.
        interrupted: Whether a shutdown request cut the pass short.
    """

    processed: bool
    sent_count: int = 0
    rejected_count: int = 0
    failed_count: int = 0
    checkpoint: int | None = None
    interrupted: bool = False


@dataclass(frozen=True)
class PersistSummary:
    """Counters for one persister lifetime.

    Attributes:
        stored_count: Messages written and acknowledged.
        dropped_count: Undecodable messages acknowledged without a write.
        retry_count: Failed writes left unacknowledged for redelivery.
    """

    stored_count: int
    dropped_count: int
    retry_count: int
