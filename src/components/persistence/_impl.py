"""
ResilientStore - two-tier persistence with local fallback.

Composes a primary (remote) store and a fallback (local cache) store that
implement the same CRUD contract.

Key behaviors:
- Writes try the primary first; on BackendUnavailableError the same
  insert/replace/remove is applied to the fallback tier
- Reads prefer the primary and fall back on error or on an empty result
- Fallback reads apply the same filter and ordering rules client-side
- No sync-back: records written locally during an outage stay local
- Local read-modify-write is not atomic; lost updates are tolerated
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from src.core.errors import BackendUnavailableError, LocalCacheError, NotFoundError

from .models import ServedFrom, StoreResult
from .ports import CollectionStorePort, LocalCachePort, Record

logger = logging.getLogger(__name__)


# --- Client-side query rules ---


def matches_filters(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    """True when every filter field equals the record's value."""
    if not filters:
        return True
    return all(record.get(key) == value for key, value in filters.items())


def sort_records(
    records: list[Record],
    order_by: str | None,
    descending: bool = False,
) -> list[Record]:
    """Sort by a field; records missing the field sort last either way."""
    if not order_by:
        return records

    present = [r for r in records if r.get(order_by) is not None]
    missing = [r for r in records if r.get(order_by) is None]
    present.sort(key=lambda r: r[order_by], reverse=descending)
    return present + missing


# --- Fallback Store ---


class CachedCollectionStore:
    """
    Collection stored as a single JSON array under one cache key.

    Serves as the fallback tier of a ResilientStore and, over an in-memory
    cache, as a stand-in primary for development.
    """

    def __init__(self, cache: LocalCachePort, collection: str) -> None:
        self._cache = cache
        self._collection = collection

    @property
    def collection(self) -> str:
        return self._collection

    def _load(self) -> list[Record]:
        records = self._cache.get(self._collection, [])
        if not isinstance(records, list):
            logger.warning("Discarding malformed cached collection %s", self._collection)
            return []
        return records

    def _save(self, records: list[Record]) -> None:
        self._cache.set(self._collection, records)

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        records = [r for r in self._load() if matches_filters(r, filters)]
        return sort_records(records, order_by, descending)

    async def get(self, record_id: str) -> Record | None:
        for record in self._load():
            if str(record.get("id")) == str(record_id):
                return record
        return None

    async def insert(self, record: Record) -> Record:
        stored = dict(record)
        if not stored.get("id"):
            stored["id"] = uuid4().hex

        records = [r for r in self._load() if str(r.get("id")) != str(stored["id"])]
        records.append(stored)
        self._save(records)
        return stored

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> Record:
        records = self._load()
        for index, record in enumerate(records):
            if str(record.get("id")) == str(record_id):
                updated = {**record, **changes, "id": record.get("id")}
                records[index] = updated
                self._save(records)
                return updated
        raise NotFoundError(self._collection, str(record_id))

    async def remove(self, record_id: str) -> None:
        records = self._load()
        remaining = [r for r in records if str(r.get("id")) != str(record_id)]
        if len(remaining) == len(records):
            raise NotFoundError(self._collection, str(record_id))
        self._save(remaining)


# --- Resilient Store ---


class ResilientStore:
    """
    Primary-then-fallback composition over two CollectionStorePorts.

    Every call returns a StoreResult naming the tier that served it.
    """

    def __init__(self, primary: CollectionStorePort, fallback: CollectionStorePort) -> None:
        self._primary = primary
        self._fallback = fallback

    @property
    def collection(self) -> str:
        return self._primary.collection

    def _log_fallback(self, operation: str, error: Exception) -> None:
        logger.warning(
            "Primary store failed for %s.%s, using local fallback: %s",
            self.collection,
            operation,
            error,
        )

    # --- Reads ---

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> StoreResult[list[Record]]:
        """List records, preferring the primary unless it errors or is empty."""
        try:
            records = await self._primary.list(filters, order_by, descending)
        except BackendUnavailableError as e:
            self._log_fallback("list", e)
            local = await self._fallback.list(filters, order_by, descending)
            return StoreResult(local, ServedFrom.FALLBACK)

        if records:
            return StoreResult(records, ServedFrom.PRIMARY)

        local = await self._fallback.list(filters, order_by, descending)
        if local:
            logger.info("Primary %s empty, serving %d local records", self.collection, len(local))
            return StoreResult(local, ServedFrom.FALLBACK)
        return StoreResult(records, ServedFrom.PRIMARY)

    async def get(self, record_id: str) -> StoreResult[Record | None]:
        """Get by id from the primary, falling back on error or miss."""
        try:
            record = await self._primary.get(record_id)
        except BackendUnavailableError as e:
            self._log_fallback("get", e)
            return StoreResult(await self._fallback.get(record_id), ServedFrom.FALLBACK)

        if record is not None:
            return StoreResult(record, ServedFrom.PRIMARY)

        local = await self._fallback.get(record_id)
        if local is not None:
            return StoreResult(local, ServedFrom.FALLBACK)
        return StoreResult(None, ServedFrom.PRIMARY)

    async def find_one(self, filters: Mapping[str, Any]) -> StoreResult[Record | None]:
        """First record matching filters, with the same fallback rules as list()."""
        result = await self.list(filters)
        first = result.value[0] if result.value else None
        return StoreResult(first, result.served_from)

    # --- Writes ---

    async def insert(self, record: Record) -> StoreResult[Record]:
        try:
            return StoreResult(await self._primary.insert(record), ServedFrom.PRIMARY)
        except BackendUnavailableError as e:
            self._log_fallback("insert", e)
            stored = await self._write_fallback(e, self._fallback.insert(record))
            logger.info("Stored %s %s in local fallback", self.collection, stored.get("id"))
            return StoreResult(stored, ServedFrom.FALLBACK)

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> StoreResult[Record]:
        """
        Update a record.

        A primary NotFoundError is retried locally so that records created
        during an outage remain editable; it propagates if the fallback
        tier does not have the record either. During an outage a local miss
        raises the BackendUnavailableError instead, since the record may
        exist only on the primary.
        """
        try:
            return StoreResult(await self._primary.update(record_id, changes), ServedFrom.PRIMARY)
        except BackendUnavailableError as e:
            self._log_fallback("update", e)
            updated = await self._write_fallback(e, self._fallback.update(record_id, changes))
            return StoreResult(updated, ServedFrom.FALLBACK)
        except NotFoundError:
            if await self._fallback.get(record_id) is None:
                raise
            updated = await self._fallback.update(record_id, changes)
            return StoreResult(updated, ServedFrom.FALLBACK)

    async def remove(self, record_id: str) -> StoreResult[None]:
        """Remove a record; same NotFoundError handling as update()."""
        try:
            await self._primary.remove(record_id)
            return StoreResult(None, ServedFrom.PRIMARY)
        except BackendUnavailableError as e:
            self._log_fallback("remove", e)
            await self._write_fallback(e, self._fallback.remove(record_id))
            return StoreResult(None, ServedFrom.FALLBACK)
        except NotFoundError:
            if await self._fallback.get(record_id) is None:
                raise
            await self._fallback.remove(record_id)
            return StoreResult(None, ServedFrom.FALLBACK)

    async def _write_fallback(self, primary_error: BackendUnavailableError, write: Any) -> Any:
        """Await a fallback write; a cache failure or local miss surfaces the primary error."""
        try:
            return await write
        except LocalCacheError as cache_error:
            logger.error("Local fallback for %s failed: %s", self.collection, cache_error)
            raise primary_error from cache_error
        except NotFoundError as missing:
            logger.warning(
                "Local fallback for %s has no record %s", self.collection, missing.record_id
            )
            raise primary_error from missing


def create_resilient_store(
    primary: CollectionStorePort,
    cache: LocalCachePort,
) -> ResilientStore:
    """Create a ResilientStore whose fallback mirrors the primary's collection."""
    return ResilientStore(
        primary=primary,
        fallback=CachedCollectionStore(cache, primary.collection),
    )
