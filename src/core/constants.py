"""Core constants used across ratestream modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_SOURCE_PATH = Path("data.csv")
DEFAULT_CHECKPOINT_PATH = Path(".ratestream") / "last_processed_timestamp.txt"
SOURCE_FIELD_DELIMITER = ","
SOURCE_FIELD_COUNT = 4
SOURCE_DATE_FORMAT = "%d-%m-%Y"
SOURCE_ENCODING = "utf-8"
DEFAULT_KAFKA_BROKERS = ("localhost:9092",)
DEFAULT_TOPIC = "csv-topic"
DEFAULT_PRODUCER_CLIENT_ID = "csv-producer"
DEFAULT_CONSUMER_CLIENT_ID = "csv-consumer"
DEFAULT_CONSUMER_GROUP = "csv-group"
DEFAULT_SEND_TIMEOUT_SECONDS = 10.0
DEFAULT_POLL_TIMEOUT_SECONDS = 1.0
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_RETRY_BACKOFF_MAX_SECONDS = 30.0
RETRY_BACKOFF_MULTIPLIER = 2.0
DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 3306
DEFAULT_DB_USER = "root"
DEFAULT_DB_NAME = "ratestream"
DEFAULT_DB_TABLE = "kafkaTable"
DEFAULT_DB_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_LOG_LEVEL = "INFO"
WIRE_FIELD_TIME = "Time"
WIRE_FIELD_CUSTOMER = "Customer"
WIRE_FIELD_FACILITY = "Facility"
WIRE_FIELD_GROWTH_RATE = "GrowthRate"
WIRE_DATE_FORMAT = "%Y-%m-%d"
