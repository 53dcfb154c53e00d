"""Stream-to-table persistence loop.

This module pulls messages one at a time, writes each record to
storage, and acknowledges a message only after its write committed.
Failed writes are rewound for redelivery with exponential backoff.
"""

from __future__ import annotations

from enum import Enum

from core.config import RatestreamConfig
from core.errors import (
    RatestreamMessageError,
    RatestreamStorageError,
    RatestreamTransportError,
)
from core.logging_config import get_logger
from core.shutdown import ShutdownSignal
from core.types import DeliveredMessage, PersistSummary
from store.record_storage import RecordStorage
from store.retry_backoff import RetryBackoff
from stream.message_codec import decode_record
from stream.transport import MessageSubscriber

_LOGGER = get_logger(__name__)


class MessageOutcome(str, Enum):
    """Result of handling one delivered message."""

    STORED = "stored"
    DROPPED = "dropped"
    RETRY = "retry"


class Persister:
    """Stateful consume-and-persist runner."""

    def __init__(
        self,
        config: RatestreamConfig,
        subscriber: MessageSubscriber,
        storage: RecordStorage,
        shutdown: ShutdownSignal | None = None,
    ) -> None:
        self._config = config
        self._subscriber = subscriber
        self._storage = storage
        self._shutdown = shutdown or ShutdownSignal()
        self._backoff = RetryBackoff(
            initial_seconds=config.retry_backoff_seconds,
            max_seconds=config.retry_backoff_max_seconds,
        )
        self._stored_count = 0
        self._dropped_count = 0
        self._retry_count = 0

    def run(self) -> PersistSummary:
        """Consume until shutdown is requested, then release resources.

        The subscription is closed before the storage connection.

        Returns:
            Counters for this persister lifetime.

        Raises:
            RatestreamBootstrapError: If storage or the broker cannot connect.
            RatestreamTransportError: If the subscriber hits a fatal error.
        """
        self._storage.connect()
        try:
            self._subscriber.connect()
            try:
                self._consume_until_shutdown()
            finally:
                self._subscriber.close()
        finally:
            self._storage.close()
        summary = self.summary()
        _LOGGER.info(
            "persist_stopped",
            stored_count=summary.stored_count,
            dropped_count=summary.dropped_count,
            retry_count=summary.retry_count,
        )
        return summary

    def handle_message(self, message: DeliveredMessage) -> MessageOutcome:
        """Decode, write, and acknowledge one message.

        Args:
            message: Message returned by the subscriber.

        Returns:
            What happened to the message.
        """
        try:
            record = decode_record(message.payload)
        except RatestreamMessageError as error:
            _LOGGER.error(
                "message_dropped",
                **_message_context(message),
                error=str(error),
            )
            self._acknowledge(message)
            self._dropped_count += 1
            return MessageOutcome.DROPPED
        try:
            self._storage.insert_record(record)
        except RatestreamStorageError as error:
            _LOGGER.error(
                "message_store_failed",
                **_message_context(message),
                error=str(error),
            )
            self._subscriber.redeliver(message)
            self._retry_count += 1
            return MessageOutcome.RETRY
        self._acknowledge(message)
        self._stored_count += 1
        _LOGGER.info("message_stored", **_message_context(message))
        return MessageOutcome.STORED

    def summary(self) -> PersistSummary:
        return PersistSummary(
            stored_count=self._stored_count,
            dropped_count=self._dropped_count,
            retry_count=self._retry_count,
        )

    def _consume_until_shutdown(self) -> None:
        _LOGGER.info("persist_started", topic=self._config.topic)
        while not self._shutdown.is_requested():
            message = self._subscriber.poll(self._config.poll_timeout_seconds)
            if message is None:
                continue
            outcome = self.handle_message(message)
            if outcome is MessageOutcome.RETRY:
                delay = self._backoff.record_failure()
                _LOGGER.info("message_retry_scheduled", offset=message.offset, delay_seconds=delay)
                self._shutdown.wait(delay)
            elif outcome is MessageOutcome.STORED:
                self._backoff.record_success()

    def _acknowledge(self, message: DeliveredMessage) -> None:
        """Commit past ``message``; a failed commit only risks a duplicate."""
        try:
            self._subscriber.acknowledge(message)
        except RatestreamTransportError as error:
            _LOGGER.warning(
                "message_ack_failed",
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
                error=str(error),
            )


def persist_stream(
    config: RatestreamConfig,
    subscriber: MessageSubscriber | None = None,
    storage: RecordStorage | None = None,
    shutdown: ShutdownSignal | None = None,
) -> PersistSummary:
    """Run the persister, defaulting to Kafka and MySQL adapters.

    Args:
        config: Runtime configuration.
        subscriber: Optional subscriber override.
        storage: Optional storage override.
        shutdown: Stop flag; the loop runs until it is set.

    Returns:
        Final counters.
    """
    if subscriber is None:
        from stream.kafka_transport import KafkaMessageSubscriber

        subscriber = KafkaMessageSubscriber(config)
    if storage is None:
        from store.mysql_storage import MySqlRecordStorage

        storage = MySqlRecordStorage(config.database)
    return Persister(config, subscriber, storage, shutdown).run()


def _message_context(message: DeliveredMessage) -> dict[str, object]:
    payload = message.payload
    return {
        "topic": message.topic,
        "partition": message.partition,
        "offset": message.offset,
        "payload": payload.decode("utf-8", errors="replace") if payload is not None else None,
    }
