"""Source file access for the emitter.

This module reads the CSV modification time and yields numbered
data lines in file order with the header line skipped.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from core.constants import SOURCE_ENCODING
from core.errors import RatestreamIngestError


def read_modification_time(source_path: Path) -> int:
    """Return the source modification time in epoch milliseconds.

    Args:
        source_path: CSV file path.

    Returns:
        Modification time truncated to whole milliseconds.

    Raises:
        RatestreamIngestError: If the file does not exist.
    """
    try:
        return source_path.stat().st_mtime_ns // 1_000_000
    except FileNotFoundError as error:
        raise RatestreamIngestError(
            f"Failed to read source at {source_path}: file does not exist. "
            "Set RATESTREAM_SOURCE_PATH or pass --source with an existing CSV file."
        ) from error


def iter_data_lines(source_path: Path) -> Iterator[tuple[int, str | bytes]]:
    """Yield ``(line_number, line)`` pairs after the header.

    Each line is decoded on its own so one undecodable line does not
    stop the lines after it. Such lines are yielded as raw bytes.

    Args:
        source_path: CSV file path.

    Yields:
        One-based line numbers and line text without line endings.

    Raises:
        RatestreamIngestError: If the file cannot be opened.
    """
    try:
        source_file = source_path.open("rb")
    except OSError as error:
        raise RatestreamIngestError(
            f"Failed to open source at {source_path}: {error}."
        ) from error
    with source_file:
        for line_number, raw_line in enumerate(source_file, 1):
            if line_number == 1:
                continue
            yield line_number, _decode_line(raw_line.rstrip(b"\r\n"))


def _decode_line(raw_line: bytes) -> str | bytes:
    try:
        return raw_line.decode(SOURCE_ENCODING)
    except UnicodeDecodeError:
        return raw_line
