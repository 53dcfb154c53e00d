"""Unit tests for cooperative shutdown signalling."""

from __future__ import annotations

import os
import signal

import pytest

from core.shutdown import ShutdownSignal


def test_request_sets_flag() -> None:
    """Requesting shutdown should be visible to loops."""
    shutdown = ShutdownSignal()

    shutdown.request()

    assert shutdown.is_requested()


def test_wait_returns_early_when_requested() -> None:
    """Waiting on a requested shutdown should not sleep."""
    shutdown = ShutdownSignal()
    shutdown.request()

    assert shutdown.wait(60.0) is True


def test_wait_times_out_without_request() -> None:
    """Waiting without a request should time out and report False."""
    assert ShutdownSignal().wait(0.001) is False


@pytest.mark.skipif(not hasattr(signal, "SIGTERM") or os.name == "nt", reason="POSIX only")
def test_install_routes_sigterm_to_flag() -> None:
    """SIGTERM should set the flag instead of killing the process."""
    previous_int = signal.getsignal(signal.SIGINT)
    previous_term = signal.getsignal(signal.SIGTERM)
    shutdown = ShutdownSignal()
    try:
        shutdown.install()
        os.kill(os.getpid(), signal.SIGTERM)
        requested = shutdown.wait(1.0)
    finally:
        signal.signal(signal.SIGINT, previous_int)
        signal.signal(signal.SIGTERM, previous_term)

    assert requested
