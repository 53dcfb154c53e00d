"""Runtime configuration model for ratestream.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re

from core.constants import (
    DEFAULT_CHECKPOINT_PATH,
    DEFAULT_CONSUMER_CLIENT_ID,
    DEFAULT_CONSUMER_GROUP,
    DEFAULT_DB_HOST,
    DEFAULT_DB_NAME,
    DEFAULT_DB_PORT,
    DEFAULT_DB_TABLE,
    DEFAULT_DB_USER,
    DEFAULT_KAFKA_BROKERS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    DEFAULT_PRODUCER_CLIENT_ID,
    DEFAULT_RETRY_BACKOFF_MAX_SECONDS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_SEND_TIMEOUT_SECONDS,
    DEFAULT_SOURCE_PATH,
    DEFAULT_TOPIC,
)
from core.errors import RatestreamConfigError

_SQL_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the MySQL storage table.

    Attributes:
        host: Database server host name.
        port: Database server TCP port.
        user: Login user.
        password: Login password, empty when unset.
        database: Schema holding the target table.
        table: Target table name, a validated SQL identifier.
    """

    host: str
    port: int
    user: str
    password: str
    database: str
    table: str


@dataclass(frozen=True)
class RatestreamConfig:
    """Validated runtime configuration.

    Attributes:
        source_path: CSV file scanned by the emitter.
        checkpoint_path: File holding the last emitted modification time.
        kafka_brokers: Bootstrap broker addresses.
        topic: Topic that carries record messages.
        producer_client_id: Client id reported by the emitter.
        consumer_client_id: Client id reported by the persister.
        consumer_group: Consumer group that owns committed offsets.
        send_timeout_seconds: Max wait for one broker acknowledgment.
        poll_timeout_seconds: Max wait for one poll before re-checking shutdown.
        retry_backoff_seconds: First delay after a failed storage write.
        retry_backoff_max_seconds: Upper bound for storage retry delays.
        database: MySQL connection settings.
        log_level: Minimum structured log level.
    """

    source_path: Path
    checkpoint_path: Path
    kafka_brokers: tuple[str, ...]
    topic: str
    producer_client_id: str
    consumer_client_id: str
    consumer_group: str
    send_timeout_seconds: float
    poll_timeout_seconds: float
    retry_backoff_seconds: float
    retry_backoff_max_seconds: float
    database: DatabaseSettings
    log_level: str

    @classmethod
    def from_env(cls) -> "RatestreamConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RatestreamConfigError: If environment values are invalid.
        """
        retry_backoff = _parse_positive_float(
            "RATESTREAM_RETRY_BACKOFF_SECONDS", DEFAULT_RETRY_BACKOFF_SECONDS
        )
        retry_backoff_max = _parse_positive_float(
            "RATESTREAM_RETRY_BACKOFF_MAX_SECONDS", DEFAULT_RETRY_BACKOFF_MAX_SECONDS
        )
        if retry_backoff_max < retry_backoff:
            raise RatestreamConfigError(
                "Invalid RATESTREAM_RETRY_BACKOFF_MAX_SECONDS value: "
                f"{retry_backoff_max} is below the initial backoff {retry_backoff}. "
                "Set the maximum to at least RATESTREAM_RETRY_BACKOFF_SECONDS."
            )
        return cls(
            source_path=_parse_path("RATESTREAM_SOURCE_PATH", DEFAULT_SOURCE_PATH),
            checkpoint_path=_parse_path("RATESTREAM_CHECKPOINT_PATH", DEFAULT_CHECKPOINT_PATH),
            kafka_brokers=_parse_brokers(os.getenv("RATESTREAM_KAFKA_BROKERS")),
            topic=os.getenv("RATESTREAM_TOPIC", DEFAULT_TOPIC),
            producer_client_id=os.getenv(
                "RATESTREAM_PRODUCER_CLIENT_ID", DEFAULT_PRODUCER_CLIENT_ID
            ),
            consumer_client_id=os.getenv(
                "RATESTREAM_CONSUMER_CLIENT_ID", DEFAULT_CONSUMER_CLIENT_ID
            ),
            consumer_group=os.getenv("RATESTREAM_CONSUMER_GROUP", DEFAULT_CONSUMER_GROUP),
            send_timeout_seconds=_parse_positive_float(
                "RATESTREAM_SEND_TIMEOUT_SECONDS", DEFAULT_SEND_TIMEOUT_SECONDS
            ),
            poll_timeout_seconds=_parse_positive_float(
                "RATESTREAM_POLL_TIMEOUT_SECONDS", DEFAULT_POLL_TIMEOUT_SECONDS
            ),
            retry_backoff_seconds=retry_backoff,
            retry_backoff_max_seconds=retry_backoff_max,
            database=_database_settings_from_env(),
            log_level=parse_log_level(os.getenv("RATESTREAM_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )


def parse_log_level(raw_value: str) -> str:
    """Normalize and validate a log level name.

    Args:
        raw_value: Level name in any case.

    Returns:
        Upper-case level name.

    Raises:
        RatestreamConfigError: If the level is unknown.
    """
    level = raw_value.strip().upper()
    if level not in _LOG_LEVELS:
        raise RatestreamConfigError(
            f"Invalid log level '{raw_value}'. Use one of: {', '.join(_LOG_LEVELS)}."
        )
    return level


def _database_settings_from_env() -> DatabaseSettings:
    table = os.getenv("RATESTREAM_DB_TABLE", DEFAULT_DB_TABLE)
    if not _SQL_IDENTIFIER_PATTERN.match(table):
        raise RatestreamConfigError(
            f"Invalid RATESTREAM_DB_TABLE value: '{table}' is not a plain SQL identifier. "
            "Use letters, digits, and underscores only."
        )
    return DatabaseSettings(
        host=os.getenv("RATESTREAM_DB_HOST", DEFAULT_DB_HOST),
        port=_parse_port(os.getenv("RATESTREAM_DB_PORT", str(DEFAULT_DB_PORT))),
        user=os.getenv("RATESTREAM_DB_USER", DEFAULT_DB_USER),
        password=os.getenv("RATESTREAM_DB_PASSWORD", ""),
        database=os.getenv("RATESTREAM_DB_NAME", DEFAULT_DB_NAME),
        table=table,
    )


def _parse_path(name: str, default: Path) -> Path:
    return Path(os.getenv(name, str(default))).expanduser()


def _parse_brokers(raw_value: str | None) -> tuple[str, ...]:
    """Split a comma-separated broker list.

    Args:
        raw_value: Raw env value, or None when unset.

    Returns:
        Non-empty tuple of broker addresses.

    Raises:
        RatestreamConfigError: If the value names no broker.
    """
    if raw_value is None:
        return DEFAULT_KAFKA_BROKERS
    brokers = tuple(part.strip() for part in raw_value.split(",") if part.strip())
    if not brokers:
        raise RatestreamConfigError(
            "Invalid RATESTREAM_KAFKA_BROKERS value: no broker address given. "
            "Set it to a comma-separated list such as 'localhost:9092'."
        )
    return brokers


def _parse_positive_float(name: str, default: float) -> float:
    """Parse a strictly positive float environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed float.

    Raises:
        RatestreamConfigError: If value is non-numeric or not positive.
    """
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as error:
        raise RatestreamConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'. "
            f"Set {name} to a positive number of seconds."
        ) from error
    if not value > 0:
        raise RatestreamConfigError(
            f"Invalid {name} value: expected a positive number, got '{raw_value}'."
        )
    return value


def _parse_port(raw_value: str) -> int:
    try:
        port = int(raw_value)
    except ValueError as error:
        raise RatestreamConfigError(
            "Invalid RATESTREAM_DB_PORT value: "
            f"expected integer, got '{raw_value}'. "
            "Set RATESTREAM_DB_PORT to a numeric value."
        ) from error
    if not 0 < port < 65536:
        raise RatestreamConfigError(
            f"Invalid RATESTREAM_DB_PORT value: {port} is outside 1-65535."
        )
    return port
