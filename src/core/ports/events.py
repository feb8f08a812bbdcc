"""
Event Store Port.

Protocol-based interface for the append-only store of raw click events.
Implementations: remote table over HTTP, SQLite, in-memory.

Invariants:
- query() has no caller-visible side effects; returned order is unspecified
- delete_range() is all-or-nothing per call
- every operation may raise BackendUnavailableError
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.core.entities import ClickEvent


class EventStorePort(Protocol):
    """Async event store interface queried by event type and time range."""

    async def query(
        self,
        event_type: str,
        start: datetime,
        end: datetime,
    ) -> list[ClickEvent]:
        """
        Return events of the given type whose occurred_at is in [start, end].

        Raises:
            BackendUnavailableError: If the backing store cannot be reached
        """
        ...

    async def delete_range(
        self,
        event_type: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        """
        Delete events of the given type, returning the number removed.

        With no bounds every event of the type is removed ("all time").
        With bounds only events in [start, end] inclusive are removed.
        Deleting when nothing matches is a no-op returning 0.

        Raises:
            BackendUnavailableError: If the delete failed (store unchanged)
        """
        ...
