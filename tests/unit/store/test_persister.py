"""Unit tests for the consume-and-persist loop."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from core.errors import RatestreamBootstrapError, RatestreamTransportError
from core.shutdown import ShutdownSignal
from core.types import DeliveredMessage, GrowthRecord
from store.persister import MessageOutcome, Persister
from tests.fakes import FakeStorage, FakeSubscriber, InMemoryTopic, make_config

_VALID_PAYLOAD = b'{"Time":"2024-01-01","Customer":"Acme","Facility":"PlantA","GrowthRate":3.5}'


def _topic(*payloads: bytes) -> InMemoryTopic:
    topic = InMemoryTopic()
    for payload in payloads:
        topic.append(payload)
    return topic


def _persister(
    tmp_path: Path,
    topic: InMemoryTopic,
    storage: FakeStorage,
) -> tuple[Persister, FakeSubscriber]:
    shutdown = ShutdownSignal()
    subscriber = FakeSubscriber(topic, shutdown)
    return Persister(make_config(tmp_path), subscriber, storage, shutdown), subscriber


def test_handle_message_stores_then_acknowledges(tmp_path: Path) -> None:
    """A valid message should be written and acknowledged."""
    storage = FakeStorage()
    persister, subscriber = _persister(tmp_path, _topic(_VALID_PAYLOAD), storage)
    message = DeliveredMessage(payload=_VALID_PAYLOAD, topic="csv-topic", partition=0, offset=0)

    outcome = persister.handle_message(message)

    assert outcome is MessageOutcome.STORED
    assert storage.rows == [GrowthRecord(date(2024, 1, 1), "Acme", "PlantA", 3.5)]
    assert subscriber.acknowledged == [0]


def test_handle_message_drops_and_acknowledges_malformed_payload(tmp_path: Path) -> None:
    """Undecodable messages should be acknowledged without a write."""
    storage = FakeStorage()
    persister, subscriber = _persister(tmp_path, _topic(b"garbage"), storage)
    message = DeliveredMessage(payload=b"garbage", topic="csv-topic", partition=0, offset=0)

    with capture_logs() as logs:
        outcome = persister.handle_message(message)

    assert outcome is MessageOutcome.DROPPED
    assert (storage.insert_attempts, subscriber.acknowledged) == (0, [0])
    assert logs[0]["event"] == "message_dropped" and logs[0]["payload"] == "garbage"


@pytest.mark.parametrize(
    "payload",
    [
        b'{"Time":"2024-01-01","Customer":"A","Facility":"B","GrowthRate":1' + b"0" * 400 + b"}",
        b"[" * 100_000 + b"]" * 100_000,
    ],
    ids=["overflowing-rate", "deeply-nested"],
)
def test_handle_message_drops_pathological_json(tmp_path: Path, payload: bytes) -> None:
    """Well-formed but unrepresentable JSON should be dropped, not crash the loop."""
    storage = FakeStorage()
    persister, subscriber = _persister(tmp_path, _topic(payload), storage)
    message = DeliveredMessage(payload=payload, topic="csv-topic", partition=0, offset=0)

    outcome = persister.handle_message(message)

    assert outcome is MessageOutcome.DROPPED
    assert (storage.insert_attempts, subscriber.acknowledged) == (0, [0])


def test_handle_message_leaves_failed_write_unacknowledged(tmp_path: Path) -> None:
    """A storage failure should rewind the message instead of acknowledging it."""
    storage = FakeStorage(fail_times=1)
    persister, subscriber = _persister(tmp_path, _topic(_VALID_PAYLOAD), storage)
    message = DeliveredMessage(payload=_VALID_PAYLOAD, topic="csv-topic", partition=0, offset=0)

    outcome = persister.handle_message(message)

    assert outcome is MessageOutcome.RETRY
    assert (subscriber.acknowledged, subscriber.redelivered) == ([], [0])


def test_run_retries_until_storage_recovers(tmp_path: Path) -> None:
    """A message should be written exactly once after storage comes back."""
    storage = FakeStorage(fail_times=2)
    persister, subscriber = _persister(tmp_path, _topic(_VALID_PAYLOAD), storage)

    summary = persister.run()

    assert (summary.stored_count, summary.retry_count) == (1, 2)
    assert len(storage.rows) == 1 and subscriber.acknowledged == [0]


def test_run_preserves_delivery_order(tmp_path: Path) -> None:
    """Rows should be inserted in the order messages were delivered."""
    second = _VALID_PAYLOAD.replace(b"Acme", b"Beta")
    storage = FakeStorage(fail_times=1)
    persister, _ = _persister(tmp_path, _topic(_VALID_PAYLOAD, second), storage)

    persister.run()

    assert [row.customer for row in storage.rows] == ["Acme", "Beta"]


def test_run_drops_bad_message_and_continues(tmp_path: Path) -> None:
    """A malformed message should not block the messages behind it."""
    storage = FakeStorage()
    persister, subscriber = _persister(tmp_path, _topic(b"{}", _VALID_PAYLOAD), storage)

    summary = persister.run()

    assert (summary.dropped_count, summary.stored_count) == (1, 1)
    assert subscriber.acknowledged == [0, 1]


def test_run_closes_subscription_before_storage(tmp_path: Path) -> None:
    """Shutdown should release the subscription, then the storage connection."""
    events: list[str] = []
    storage = FakeStorage(events=events)
    persister, subscriber = _persister(tmp_path, _topic(_VALID_PAYLOAD), storage)
    subscriber.events = events

    persister.run()

    assert events == [
        "storage_connect",
        "subscriber_connect",
        "subscriber_close",
        "storage_close",
    ]


def test_run_does_not_poll_after_shutdown(tmp_path: Path) -> None:
    """A stop requested before the loop should leave messages unconsumed."""
    storage = FakeStorage()
    shutdown = ShutdownSignal()
    subscriber = FakeSubscriber(_topic(_VALID_PAYLOAD), shutdown)
    persister = Persister(make_config(tmp_path), subscriber, storage, shutdown)
    shutdown.request()

    summary = persister.run()

    assert summary.stored_count == 0 and subscriber.acknowledged == []


def test_run_closes_storage_when_subscriber_cannot_connect(tmp_path: Path) -> None:
    """Bootstrap failures should propagate after releasing storage."""
    events: list[str] = []
    storage = FakeStorage(events=events)
    persister, subscriber = _persister(tmp_path, _topic(), storage)

    def _fail_connect() -> None:
        raise RatestreamBootstrapError("broker down")

    subscriber.connect = _fail_connect  # type: ignore[method-assign]

    with pytest.raises(RatestreamBootstrapError):
        persister.run()

    assert events == ["storage_connect", "storage_close"]


def test_ack_failure_after_write_is_logged_not_raised(tmp_path: Path) -> None:
    """A failed commit after a durable write should only be logged."""
    storage = FakeStorage()
    persister, subscriber = _persister(tmp_path, _topic(_VALID_PAYLOAD), storage)

    def _fail_ack(message: DeliveredMessage) -> None:
        raise RatestreamTransportError("commit failed")

    subscriber.acknowledge = _fail_ack  # type: ignore[method-assign]
    message = DeliveredMessage(payload=_VALID_PAYLOAD, topic="csv-topic", partition=0, offset=0)

    with capture_logs() as logs:
        outcome = persister.handle_message(message)

    assert outcome is MessageOutcome.STORED
    assert any(entry["event"] == "message_ack_failed" for entry in logs)
