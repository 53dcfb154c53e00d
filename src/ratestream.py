"""Public SDK surface for ratestream.

This module provides a stable import path for pipeline users.
It re-exports the entry points, adapters, and typed models.
"""

from __future__ import annotations

from core.config import DatabaseSettings, RatestreamConfig
from core.shutdown import ShutdownSignal
from core.types import (
    DeliveredMessage,
    EmitSummary,
    GrowthRecord,
    PersistSummary,
    RejectionReason,
    RowRejection,
)
from ingest.change_detector import should_process
from ingest.emitter import SourceEmitter, emit_source
from ingest.row_parser import parse_row
from store.persister import MessageOutcome, Persister, persist_stream
from stream.message_codec import decode_record, encode_record

__all__ = [
    "DatabaseSettings",
    "DeliveredMessage",
    "EmitSummary",
    "GrowthRecord",
    "MessageOutcome",
    "PersistSummary",
    "Persister",
    "RatestreamConfig",
    "RejectionReason",
    "RowRejection",
    "ShutdownSignal",
    "SourceEmitter",
    "decode_record",
    "emit_source",
    "encode_record",
    "parse_row",
    "persist_stream",
    "should_process",
]
