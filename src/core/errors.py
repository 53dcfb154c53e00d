"""Ratestream exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RatestreamError(Exception):
    """Base exception for all ratestream failures."""


class RatestreamConfigError(RatestreamError):
    """Raised for invalid runtime configuration."""


class RatestreamIngestError(RatestreamError):
    """Raised for source file and checkpoint failures."""


class RatestreamMessageError(RatestreamError):
    """Raised when a stream payload cannot be decoded into a record."""


class RatestreamTransportError(RatestreamError):
    """Raised for publish, poll, and commit failures against the broker."""


class RatestreamStorageError(RatestreamError):
    """Raised for relational storage write failures."""


class RatestreamBootstrapError(RatestreamError):
    """Raised when a broker or database connection cannot be established."""
