"""Exponential backoff between storage retries.

Delays start at the configured base, double after each consecutive
failure, stop growing at the configured cap, and reset on success.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import RETRY_BACKOFF_MULTIPLIER

_MAX_EXPONENT = 32


@dataclass
class RetryBackoff:
    """Mutable consecutive-failure tracker."""

    initial_seconds: float
    max_seconds: float
    consecutive_failures: int = 0

    def record_failure(self) -> float:
        """Count a failure and return the delay before the next attempt."""
        # exponent is bounded so a long outage cannot overflow the float
        exponent = min(self.consecutive_failures, _MAX_EXPONENT)
        delay = self.initial_seconds * (RETRY_BACKOFF_MULTIPLIER**exponent)
        self.consecutive_failures += 1
        return min(delay, self.max_seconds)

    def record_success(self) -> None:
        self.consecutive_failures = 0
