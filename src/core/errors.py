"""
Error hierarchy for the affiliate analytics core.

Range and aggregation errors are caller contract violations and propagate.
Backend errors are expected and recoverable: callers either fall back to the
local cache or surface a retryable error state.
"""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics and persistence errors."""


class BackendUnavailableError(AnalyticsError):
    """Raised when a remote call fails (network, auth, or service error)."""

    def __init__(self, operation: str, reason: str | None = None) -> None:
        self.operation = operation
        self.reason = reason
        message = f"Backend unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidRangeError(AnalyticsError):
    """Raised when a custom range has from > to or malformed dates."""


class NotFoundError(AnalyticsError):
    """Raised when an update/delete target does not exist."""

    def __init__(self, collection: str, record_id: str) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")


class ClearInProgressError(AnalyticsError):
    """Raised when a clear is requested while another is still running."""

    def __init__(self) -> None:
        super().__init__("A clear operation is already in progress")


class LocalCacheError(AnalyticsError):
    """Raised when the local cache cannot be read or written."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"Local cache error for {key}: {reason}")
