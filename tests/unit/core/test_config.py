"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import RatestreamConfig, parse_log_level
from core.errors import RatestreamConfigError


def test_from_env_reads_source_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the source path from environment."""
    monkeypatch.setenv("RATESTREAM_SOURCE_PATH", "./inbox/rates.csv")

    config = RatestreamConfig.from_env()

    assert config.source_path.name == "rates.csv"


def test_from_env_splits_broker_list(monkeypatch: pytest.MonkeyPatch) -> None:
    """Comma-separated brokers should be split and trimmed."""
    monkeypatch.setenv("RATESTREAM_KAFKA_BROKERS", "k1:9092, k2:9092,")

    config = RatestreamConfig.from_env()

    assert config.kafka_brokers == ("k1:9092", "k2:9092")


def test_from_env_reads_database_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Database settings should come from RATESTREAM_DB_* variables."""
    monkeypatch.setenv("RATESTREAM_DB_HOST", "mysql")
    monkeypatch.setenv("RATESTREAM_DB_PORT", "3307")
    monkeypatch.setenv("RATESTREAM_DB_TABLE", "growth_rates")

    config = RatestreamConfig.from_env()

    assert (config.database.host, config.database.port, config.database.table) == (
        "mysql",
        3307,
        "growth_rates",
    )


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric timeouts."""
    monkeypatch.setenv("RATESTREAM_SEND_TIMEOUT_SECONDS", "soon")

    with pytest.raises(RatestreamConfigError):
        RatestreamConfig.from_env()

    assert os.getenv("RATESTREAM_SEND_TIMEOUT_SECONDS") == "soon"


def test_from_env_raises_for_non_positive_poll_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Zero or negative poll timeouts should be rejected."""
    monkeypatch.setenv("RATESTREAM_POLL_TIMEOUT_SECONDS", "0")

    with pytest.raises(RatestreamConfigError):
        RatestreamConfig.from_env()

    assert True


def test_from_env_raises_for_unsafe_table_name(monkeypatch: pytest.MonkeyPatch) -> None:
    """Table names must be plain identifiers since they are placed in SQL text."""
    monkeypatch.setenv("RATESTREAM_DB_TABLE", "rates; DROP TABLE users")

    with pytest.raises(RatestreamConfigError):
        RatestreamConfig.from_env()

    assert True


def test_from_env_raises_for_backoff_cap_below_initial(monkeypatch: pytest.MonkeyPatch) -> None:
    """The backoff cap must not be lower than the first delay."""
    monkeypatch.setenv("RATESTREAM_RETRY_BACKOFF_SECONDS", "10")
    monkeypatch.setenv("RATESTREAM_RETRY_BACKOFF_MAX_SECONDS", "2")

    with pytest.raises(RatestreamConfigError):
        RatestreamConfig.from_env()

    assert True


def test_parse_log_level_normalizes_case() -> None:
    """Level names should be accepted in any case."""
    assert parse_log_level("debug") == "DEBUG"


def test_parse_log_level_rejects_unknown_level() -> None:
    """Unknown level names should fail."""
    with pytest.raises(RatestreamConfigError):
        parse_log_level("loud")

    assert True
