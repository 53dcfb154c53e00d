"""Cooperative shutdown signalling.

This module turns SIGINT and SIGTERM into a flag that long-running
loops check between units of work, so in-flight work can finish.
"""

from __future__ import annotations

import signal
import threading
from typing import Any

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ShutdownSignal:
    """Thread-safe stop flag with optional OS signal wiring."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def install(self) -> None:
        """Route SIGINT and SIGTERM to this flag.

        Must be called from the main thread.
        """
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

    def request(self) -> None:
        """Ask running loops to stop after their current unit of work."""
        self._event.set()

    def is_requested(self) -> bool:
        """Return whether a stop has been requested."""
        return self._event.is_set()

    def wait(self, timeout_seconds: float) -> bool:
        """Sleep up to ``timeout_seconds`` unless a stop arrives first.

        Returns:
            Whether a stop was requested.
        """
        return self._event.wait(timeout_seconds)

    def _handle_signal(self, signum: int, frame: Any) -> None:
        _LOGGER.info("shutdown_requested", signal=signal.Signals(signum).name)
        self.request()
