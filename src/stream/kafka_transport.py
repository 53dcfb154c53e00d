"""Kafka adapters for the transport protocols.

This module implements ``RecordPublisher`` and ``MessageSubscriber``
on confluent-kafka with synchronous sends and manual offset commits.
"""

from __future__ import annotations

from typing import Any

from confluent_kafka import Consumer, KafkaError, KafkaException, Producer, TopicPartition

from core.config import RatestreamConfig
from core.errors import RatestreamBootstrapError, RatestreamTransportError
from core.logging_config import get_logger
from core.types import DeliveredMessage

_LOGGER = get_logger(__name__)


class KafkaRecordPublisher:
    """Producer that waits for each message's delivery report."""

    def __init__(self, config: RatestreamConfig) -> None:
        self._config = config
        self._producer: Any = None

    def connect(self) -> None:
        """Create the producer and confirm the brokers answer.

        Raises:
            RatestreamBootstrapError: If metadata cannot be fetched.
        """
        _LOGGER.info("producer_connecting", brokers=",".join(self._config.kafka_brokers))
        producer = Producer(
            {
                "bootstrap.servers": ",".join(self._config.kafka_brokers),
                "client.id": self._config.producer_client_id,
                "acks": "all",
            }
        )
        try:
            producer.list_topics(timeout=self._config.send_timeout_seconds)
        except KafkaException as error:
            raise RatestreamBootstrapError(
                f"Failed to connect producer to {','.join(self._config.kafka_brokers)}: "
                f"{error}. Check RATESTREAM_KAFKA_BROKERS and broker availability."
            ) from error
        self._producer = producer
        _LOGGER.info("producer_connected", client_id=self._config.producer_client_id)

    def publish(self, payload: bytes) -> None:
        """Send one payload and flush until its delivery report arrives.

        Args:
            payload: Encoded message value.

        Raises:
            RatestreamTransportError: If the send fails or times out.
        """
        if self._producer is None:
            raise RatestreamTransportError("Producer is not connected; call connect() first.")
        delivery_errors: list[Any] = []

        def _on_delivery(error: Any, message: Any) -> None:
            if error is not None:
                delivery_errors.append(error)

        try:
            self._producer.produce(
                self._config.topic, value=payload, on_delivery=_on_delivery
            )
            pending_count = self._producer.flush(self._config.send_timeout_seconds)
        except (BufferError, KafkaException) as error:
            raise RatestreamTransportError(
                f"Failed to send message to topic {self._config.topic}: {error}"
            ) from error
        if pending_count > 0:
            raise RatestreamTransportError(
                f"Timed out after {self._config.send_timeout_seconds}s waiting for "
                f"topic {self._config.topic} to acknowledge a message."
            )
        if delivery_errors:
            raise RatestreamTransportError(
                f"Broker rejected message for topic {self._config.topic}: {delivery_errors[0]}"
            )

    def close(self) -> None:
        """Flush outstanding sends and drop the producer."""
        if self._producer is None:
            return
        self._producer.flush(self._config.send_timeout_seconds)
        self._producer = None
        _LOGGER.info("producer_disconnected")


class KafkaMessageSubscriber:
    """Consumer that commits offsets only when asked to."""

    def __init__(self, config: RatestreamConfig) -> None:
        self._config = config
        self._consumer: Any = None

    def connect(self) -> None:
        """Create the consumer, check the brokers, and subscribe.

        Raises:
            RatestreamBootstrapError: If the brokers are unreachable.
        """
        _LOGGER.info("consumer_connecting", brokers=",".join(self._config.kafka_brokers))
        consumer = Consumer(
            {
                "bootstrap.servers": ",".join(self._config.kafka_brokers),
                "client.id": self._config.consumer_client_id,
                "group.id": self._config.consumer_group,
                "enable.auto.commit": False,
                "auto.offset.reset": "earliest",
            }
        )
        try:
            consumer.list_topics(timeout=self._config.send_timeout_seconds)
            consumer.subscribe([self._config.topic])
        except KafkaException as error:
            consumer.close()
            raise RatestreamBootstrapError(
                f"Failed to subscribe consumer to topic {self._config.topic}: {error}. "
                "Check RATESTREAM_KAFKA_BROKERS and broker availability."
            ) from error
        self._consumer = consumer
        _LOGGER.info(
            "consumer_subscribed",
            topic=self._config.topic,
            group=self._config.consumer_group,
        )

    def poll(self, timeout_seconds: float) -> DeliveredMessage | None:
        """Fetch the next message.

        Args:
            timeout_seconds: Maximum wait for a message.

        Returns:
            The delivered message, or None on timeout or non-fatal broker events.

        Raises:
            RatestreamTransportError: If the consumer hits a fatal error.
        """
        message = self._consumer.poll(timeout_seconds)
        if message is None:
            return None
        error = message.error()
        if error is not None:
            if error.code() == KafkaError._PARTITION_EOF:
                return None
            if error.fatal():
                raise RatestreamTransportError(f"Fatal consumer error: {error}")
            _LOGGER.warning("consumer_poll_error", error=str(error))
            return None
        return DeliveredMessage(
            payload=message.value(),
            topic=message.topic(),
            partition=message.partition(),
            offset=message.offset(),
        )

    def acknowledge(self, message: DeliveredMessage) -> None:
        """Synchronously commit the offset after ``message``.

        Raises:
            RatestreamTransportError: If the commit fails.
        """
        next_position = TopicPartition(message.topic, message.partition, message.offset + 1)
        try:
            self._consumer.commit(offsets=[next_position], asynchronous=False)
        except KafkaException as error:
            raise RatestreamTransportError(
                f"Failed to commit offset {message.offset + 1} for "
                f"{message.topic}[{message.partition}]: {error}"
            ) from error

    def redeliver(self, message: DeliveredMessage) -> None:
        """Seek the partition back so ``message`` is polled again."""
        position = TopicPartition(message.topic, message.partition, message.offset)
        try:
            self._consumer.seek(position)
        except KafkaException as error:
            # Partition was revoked; the next owner resumes from the committed offset.
            _LOGGER.warning(
                "consumer_seek_failed",
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
                error=str(error),
            )

    def close(self) -> None:
        """Leave the group and close the consumer."""
        if self._consumer is None:
            return
        self._consumer.close()
        self._consumer = None
        _LOGGER.info("consumer_disconnected")
