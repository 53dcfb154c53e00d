"""Transport interfaces used by the emitter and persister.

The core pipeline depends on these protocols only; broker clients
live in adapter modules such as ``stream.kafka_transport``.
"""

from __future__ import annotations

from typing import Protocol

from core.types import DeliveredMessage


class RecordPublisher(Protocol):
    """Sends one message at a time and waits for the broker to accept it."""

    def connect(self) -> None:
        """Open the broker connection.

        Raises:
            RatestreamBootstrapError: If the broker is unreachable.
        """

    def publish(self, payload: bytes) -> None:
        """Publish one payload and block until it is acknowledged.

        Raises:
            RatestreamTransportError: If the broker rejects or times out.
        """

    def close(self) -> None:
        """Flush and release the connection. Safe to call when not connected."""


class MessageSubscriber(Protocol):
    """Pull-based reader with explicit acknowledgment."""

    def connect(self) -> None:
        """Open the connection and subscribe to the configured topic.

        Raises:
            RatestreamBootstrapError: If the broker is unreachable.
        """

    def poll(self, timeout_seconds: float) -> DeliveredMessage | None:
        """Return the next message, or None if none arrived in time."""

    def acknowledge(self, message: DeliveredMessage) -> None:
        """Advance the consumption position past ``message``.

        Raises:
            RatestreamTransportError: If the position cannot be committed.
        """

    def redeliver(self, message: DeliveredMessage) -> None:
        """Rewind so that ``message`` is returned again by a later poll."""

    def close(self) -> None:
        """Release the subscription. Safe to call when not connected."""
