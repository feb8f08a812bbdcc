"""
Local Cache Port.

Synchronous key-value store local to the running client. No network.

Used as the sole store for low-stakes values (preferences, snapshots) and
as the fallback tier for collections whose remote write failed.
Read-modify-write sequences are not atomic; lost updates on the fallback
path are tolerated.
"""

from __future__ import annotations

from typing import Any, Protocol


class LocalCachePort(Protocol):
    """Namespaced key-value cache holding JSON-compatible values."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-compatible value under key.

        Raises:
            LocalCacheError: If the value cannot be persisted
        """
        ...

    def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""
        ...

    def keys(self) -> list[str]:
        """List un-prefixed keys currently stored."""
        ...
