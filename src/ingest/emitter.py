"""Emitter orchestration for the CSV source.

This module coordinates change detection, row validation, per-row
publishing, and the end-of-run checkpoint update.
"""

from __future__ import annotations

from core.config import RatestreamConfig
from core.errors import RatestreamTransportError
from core.logging_config import get_logger
from core.shutdown import ShutdownSignal
from core.types import EmitSummary, GrowthRecord, RejectionReason, RowRejection
from ingest.change_detector import should_process
from ingest.checkpoint_store import CheckpointStore
from ingest.row_parser import parse_row
from ingest.source_reader import iter_data_lines, read_modification_time
from stream.message_codec import encode_record
from stream.transport import RecordPublisher

_LOGGER = get_logger(__name__)


class SourceEmitter:
    """Runs one pass of the source file into the publisher."""

    def __init__(
        self,
        config: RatestreamConfig,
        publisher: RecordPublisher,
        shutdown: ShutdownSignal | None = None,
    ) -> None:
        self._config = config
        self._publisher = publisher
        self._checkpoint = CheckpointStore(config.checkpoint_path)
        self._shutdown = shutdown or ShutdownSignal()

    def run(self) -> EmitSummary:
        """Emit every valid row if the source changed since the checkpoint.

        Returns:
            Counters for this run.

        Raises:
            RatestreamIngestError: If the source or checkpoint is unreadable.
            RatestreamBootstrapError: If the publisher cannot connect.
        """
        source_path = self._config.source_path
        modification_time = read_modification_time(source_path)
        checkpoint = self._checkpoint.read()
        if not should_process(modification_time, checkpoint):
            _LOGGER.info(
                "emit_skipped_unchanged",
                source_path=str(source_path),
                modification_time=modification_time,
                checkpoint=checkpoint,
            )
            return EmitSummary(processed=False, checkpoint=checkpoint)
        _LOGGER.info(
            "emit_started",
            source_path=str(source_path),
            modification_time=modification_time,
            checkpoint=checkpoint,
        )
        self._publisher.connect()
        try:
            return self._emit_rows(modification_time, checkpoint)
        finally:
            self._publisher.close()

    def _emit_rows(self, modification_time: int, checkpoint: int | None) -> EmitSummary:
        sent_count = 0
        rejected_count = 0
        failed_count = 0
        for line_number, line in iter_data_lines(self._config.source_path):
            if self._shutdown.is_requested():
                _LOGGER.warning(
                    "emit_interrupted",
                    line_number=line_number,
                    sent_count=sent_count,
                    checkpoint=checkpoint,
                )
                return EmitSummary(
                    processed=True,
                    sent_count=sent_count,
                    rejected_count=rejected_count,
                    failed_count=failed_count,
                    checkpoint=checkpoint,
                    interrupted=True,
                )
            if isinstance(line, bytes):
                result = RowRejection(line_number, repr(line), RejectionReason.MALFORMED)
            elif not line.strip():
                continue
            else:
                result = parse_row(line, line_number)
            if isinstance(result, RowRejection):
                _log_rejection(result)
                rejected_count += 1
                continue
            if self._send(result, line_number):
                sent_count += 1
            else:
                failed_count += 1
        self._checkpoint.write(modification_time)
        summary = EmitSummary(
            processed=True,
            sent_count=sent_count,
            rejected_count=rejected_count,
            failed_count=failed_count,
            checkpoint=modification_time,
        )
        _log_emit_completion(self._config, summary)
        return summary

    def _send(self, record: GrowthRecord, line_number: int) -> bool:
        """Publish one record; a failed send drops the row."""
        payload = encode_record(record)
        try:
            self._publisher.publish(payload)
        except RatestreamTransportError as error:
            _LOGGER.error(
                "message_send_failed",
                line_number=line_number,
                payload=payload.decode("utf-8"),
                error=str(error),
            )
            return False
        _LOGGER.info("message_published", line_number=line_number, payload=payload.decode("utf-8"))
        return True


def emit_source(
    config: RatestreamConfig,
    publisher: RecordPublisher | None = None,
    shutdown: ShutdownSignal | None = None,
) -> EmitSummary:
    """Run one emitter pass, defaulting to the Kafka publisher.

    Args:
        config: Runtime configuration.
        publisher: Optional publisher override.
        shutdown: Optional stop flag checked between rows.

    Returns:
        Counters for this run.
    """
    if publisher is None:
        from stream.kafka_transport import KafkaRecordPublisher

        publisher = KafkaRecordPublisher(config)
    return SourceEmitter(config, publisher, shutdown).run()


def _log_rejection(rejection: RowRejection) -> None:
    _LOGGER.warning(
        "row_rejected",
        line_number=rejection.line_number,
        raw_line=rejection.raw_line,
        reason=rejection.reason.value,
    )


def _log_emit_completion(config: RatestreamConfig, summary: EmitSummary) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "emit_completed",
        source_path=str(config.source_path),
        topic=config.topic,
        sent_count=summary.sent_count,
        rejected_count=summary.rejected_count,
        failed_count=summary.failed_count,
        checkpoint=summary.checkpoint,
    )
