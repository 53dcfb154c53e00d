"""Source change detection against the stored checkpoint."""

from __future__ import annotations


def should_process(current_mod_time: int, checkpoint: int | None) -> bool:
    """Return whether the source changed since the last emitted run.

    Args:
        current_mod_time: Source modification time in epoch milliseconds.
        checkpoint: Stored modification time, None when never written.

    Returns:
        ``True`` only when the source is strictly newer than the checkpoint.
    """
    return current_mod_time > (checkpoint or 0)
