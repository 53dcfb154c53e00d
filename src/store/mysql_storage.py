"""MySQL persistence for growth records.

This module owns the storage connection and issues parameterized
single-row inserts into the configured table.
"""

from __future__ import annotations

from typing import Any

import pymysql

from core.config import DatabaseSettings
from core.constants import DEFAULT_DB_CONNECT_TIMEOUT_SECONDS
from core.errors import RatestreamBootstrapError, RatestreamStorageError
from core.logging_config import get_logger
from core.types import GrowthRecord

_LOGGER = get_logger(__name__)


class MySqlRecordStorage:
    """pymysql-backed ``RecordStorage`` with autocommit inserts."""

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._connection: Any = None
        self._insert_sql = (
            f"INSERT INTO `{settings.table}` (Time, Customer, Facility, GrowthRate) "
            "VALUES (%s, %s, %s, %s)"
        )

    def connect(self) -> None:
        """Open the database connection.

        Raises:
            RatestreamBootstrapError: If the server rejects or is unreachable.
        """
        try:
            self._connection = pymysql.connect(
                host=self._settings.host,
                port=self._settings.port,
                user=self._settings.user,
                password=self._settings.password,
                database=self._settings.database,
                autocommit=True,
                connect_timeout=DEFAULT_DB_CONNECT_TIMEOUT_SECONDS,
            )
        except pymysql.MySQLError as error:
            raise RatestreamBootstrapError(
                f"Failed to connect to MySQL at {self._settings.host}:{self._settings.port}/"
                f"{self._settings.database}: {error}. "
                "Check RATESTREAM_DB_* settings and database availability."
            ) from error
        _LOGGER.info(
            "storage_connected",
            host=self._settings.host,
            database=self._settings.database,
            table=self._settings.table,
        )

    def insert_record(self, record: GrowthRecord) -> None:
        """Insert one row, reconnecting first if the link dropped.

        Args:
            record: Record to persist.

        Raises:
            RatestreamStorageError: If the insert fails.
        """
        if self._connection is None:
            raise RatestreamStorageError("Storage is not connected; call connect() first.")
        params = (record.time, record.customer, record.facility, record.growth_rate)
        try:
            self._connection.ping(reconnect=True)
            with self._connection.cursor() as cursor:
                cursor.execute(self._insert_sql, params)
        except pymysql.MySQLError as error:
            raise RatestreamStorageError(
                f"Failed to insert into {self._settings.table}: {error}"
            ) from error

    def ensure_table(self) -> None:
        """Create the target table when it does not exist.

        Raises:
            RatestreamStorageError: If the DDL statement fails.
        """
        if self._connection is None:
            raise RatestreamStorageError("Storage is not connected; call connect() first.")
        ddl = (
            f"CREATE TABLE IF NOT EXISTS `{self._settings.table}` ("
            "id BIGINT AUTO_INCREMENT PRIMARY KEY, "
            "Time DATE NOT NULL, "
            "Customer VARCHAR(255) NOT NULL, "
            "Facility VARCHAR(255) NOT NULL, "
            "GrowthRate DOUBLE NOT NULL)"
        )
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(ddl)
        except pymysql.MySQLError as error:
            raise RatestreamStorageError(
                f"Failed to create table {self._settings.table}: {error}. "
                "Check that the database user has CREATE privileges."
            ) from error
        _LOGGER.info("storage_table_ready", table=self._settings.table)

    def close(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.close()
        except pymysql.MySQLError as error:
            _LOGGER.warning("storage_close_failed", error=str(error))
        self._connection = None
        _LOGGER.info("storage_closed")
