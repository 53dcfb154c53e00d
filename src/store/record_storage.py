"""Storage interface used by the persister.

Database clients live in adapter modules such as ``store.mysql_storage``.
"""

from __future__ import annotations

from typing import Protocol

from core.types import GrowthRecord


class RecordStorage(Protocol):
    """Durable single-row record sink."""

    def connect(self) -> None:
        """Open the storage connection.

        Raises:
            RatestreamBootstrapError: If storage is unreachable.
        """

    def insert_record(self, record: GrowthRecord) -> None:
        """Durably write one record.

        Raises:
            RatestreamStorageError: If the write did not commit.
        """

    def close(self) -> None:
        """Close the connection. Safe to call when not connected."""
