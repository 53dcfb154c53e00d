"""Emitter checkpoint persistence.

This module stores the source modification time of the last complete
emitter run. It enables skip-if-unchanged behavior across restarts.
"""

from __future__ import annotations

import os
from pathlib import Path

from core.errors import RatestreamIngestError


class CheckpointStore:
    """Filesystem-backed single-value checkpoint."""

    def __init__(self, checkpoint_path: Path) -> None:
        self._checkpoint_path = checkpoint_path

    @property
    def path(self) -> Path:
        return self._checkpoint_path

    def read(self) -> int | None:
        """Read the stored checkpoint.

        Returns:
            Epoch-millisecond value, or None when no checkpoint exists.

        Raises:
            RatestreamIngestError: If the file exists but is not an integer.
        """
        if not self._checkpoint_path.exists():
            return None
        raw_value = self._checkpoint_path.read_text(encoding="utf-8").strip()
        try:
            return int(raw_value)
        except ValueError as error:
            raise RatestreamIngestError(
                f"Failed to read checkpoint at {self._checkpoint_path}: "
                f"expected an integer, got '{raw_value}'. "
                "Delete the checkpoint file to reprocess the source from scratch."
            ) from error

    def write(self, value: int) -> None:
        """Replace the stored checkpoint.

        The value lands in a sibling temp file first and is renamed into
        place, so a crash never leaves a truncated checkpoint.

        Args:
            value: Epoch-millisecond modification time.

        Raises:
            RatestreamIngestError: If the file cannot be written.
        """
        temp_path = self._checkpoint_path.with_name(self._checkpoint_path.name + ".tmp")
        try:
            self._checkpoint_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(f"{value}\n", encoding="utf-8")
            os.replace(temp_path, self._checkpoint_path)
        except OSError as error:
            raise RatestreamIngestError(
                f"Failed to write checkpoint at {self._checkpoint_path}: {error}. "
                "Check write permissions for the checkpoint directory."
            ) from error
