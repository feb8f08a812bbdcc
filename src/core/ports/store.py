"""
Collection Store Port.

CRUD contract shared by the primary (remote) and fallback (local) tiers of
a ResilientStore. Records are JSON-compatible dicts keyed by "id".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

Record = dict[str, Any]


class CollectionStorePort(Protocol):
    """Async CRUD interface over a single logical collection."""

    @property
    def collection(self) -> str:
        """Collection name (e.g. "blog_posts")."""
        ...

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        """
        List records whose fields equal every filter value.

        Raises:
            BackendUnavailableError: If the tier cannot be read
        """
        ...

    async def get(self, record_id: str) -> Record | None:
        """Get a record by id, or None."""
        ...

    async def insert(self, record: Record) -> Record:
        """Insert a record and return it as stored (with id assigned)."""
        ...

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> Record:
        """
        Merge changes into an existing record and return the result.

        Raises:
            NotFoundError: If no record has the id
        """
        ...

    async def remove(self, record_id: str) -> None:
        """
        Remove a record by id.

        Raises:
            NotFoundError: If no record has the id
        """
        ...
