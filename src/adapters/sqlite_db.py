"""
SQLite Database Adapter.

Implements EventStorePort and CollectionStorePort using SQLite, for
single-server deployments and local development. Schema lives in
migrations/ and is applied with SQLiteMigrator.

Calls run in a worker thread (asyncio.to_thread) with one connection per
call, so the event loop never blocks on disk I/O.

Invariants:
- created_at is stored as fixed-width UTC text, so string comparison
  orders instants correctly
- delete_range runs in a single transaction (all-or-nothing)
- sqlite3 errors surface as BackendUnavailableError
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import uuid4

from src.components.persistence import matches_filters, sort_records
from src.core.entities import ClickEvent
from src.core.errors import BackendUnavailableError, NotFoundError
from src.core.ports.store import Record

T = TypeVar("T")

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def format_ts(value: datetime) -> str:
    """Fixed-width UTC text ("2024-01-15T10:30:00.000000")."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")


def parse_ts(s: str) -> datetime:
    """Parse stored UTC text back to an aware datetime."""
    parsed = datetime.fromisoformat(s)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def _run_sync(self, operation: str, work: Callable[[sqlite3.Connection], T]) -> T:
        conn = self._get_conn()
        try:
            return work(conn)
        except sqlite3.Error as e:
            raise BackendUnavailableError(operation, str(e)) from e
        finally:
            conn.close()

    async def _run(self, operation: str, work: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._run_sync, operation, work)


# -----------------------------------------------------------------------------
# Click Event Store
# -----------------------------------------------------------------------------


class SQLiteClickEventStore(SQLiteRepoBase):
    """SQLite implementation of EventStorePort over analytics_events."""

    @staticmethod
    def _range_clause(
        event_type: str,
        start: datetime | None,
        end: datetime | None,
    ) -> tuple[str, list[Any]]:
        clause = "event_type = ?"
        params: list[Any] = [event_type]
        if start is not None:
            clause += " AND created_at >= ?"
            params.append(format_ts(start))
        if end is not None:
            clause += " AND created_at <= ?"
            params.append(format_ts(end))
        return clause, params

    @staticmethod
    def _map_row(row: dict[str, Any]) -> ClickEvent:
        data = json.loads(row["data"] or "{}")
        return ClickEvent(
            occurred_at=parse_ts(row["created_at"]),
            source=data.get("source"),
            product_id=data.get("productId"),
            product_name=data.get("productName"),
            id=str(row["id"]),
        )

    async def query(
        self,
        event_type: str,
        start: datetime,
        end: datetime,
    ) -> list[ClickEvent]:
        clause, params = self._range_clause(event_type, start, end)

        def work(conn: sqlite3.Connection) -> list[ClickEvent]:
            rows = conn.execute(
                f"SELECT id, created_at, data FROM analytics_events WHERE {clause}",
                params,
            ).fetchall()
            return [self._map_row(row) for row in rows]

        return await self._run("query", work)

    async def delete_range(
        self,
        event_type: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        clause, params = self._range_clause(event_type, start, end)

        def work(conn: sqlite3.Connection) -> int:
            with conn:
                cursor = conn.execute(f"DELETE FROM analytics_events WHERE {clause}", params)
                return cursor.rowcount

        return await self._run("delete_range", work)

    async def record(self, event: ClickEvent, event_type: str) -> ClickEvent:
        """Append one event; returns it with the assigned id."""
        data = {
            "source": event.source,
            "productId": event.product_id,
            "productName": event.product_name,
        }

        def work(conn: sqlite3.Connection) -> int:
            with conn:
                cursor = conn.execute(
                    "INSERT INTO analytics_events (event_type, created_at, data) VALUES (?, ?, ?)",
                    (event_type, format_ts(event.occurred_at), json.dumps(data)),
                )
                return int(cursor.lastrowid or 0)

        event_id = await self._run("record", work)
        return event.model_copy(update={"id": str(event_id)})


# -----------------------------------------------------------------------------
# Collection Store
# -----------------------------------------------------------------------------


class SQLiteCollectionStore(SQLiteRepoBase):
    """
    SQLite implementation of CollectionStorePort.

    Records are JSON documents in collection_records; filtering and
    ordering use the same client-side rules as the local cache tier.
    """

    def __init__(self, db_path: str, collection: str):
        super().__init__(db_path)
        self._collection = collection

    @property
    def collection(self) -> str:
        return self._collection

    def _load(self, conn: sqlite3.Connection) -> list[Record]:
        rows = conn.execute(
            "SELECT data FROM collection_records WHERE collection = ?",
            (self._collection,),
        ).fetchall()
        return [json.loads(row["data"]) for row in rows]

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        def work(conn: sqlite3.Connection) -> list[Record]:
            records = [r for r in self._load(conn) if matches_filters(r, filters)]
            return sort_records(records, order_by, descending)

        return await self._run("list", work)

    async def get(self, record_id: str) -> Record | None:
        def work(conn: sqlite3.Connection) -> Record | None:
            row = conn.execute(
                "SELECT data FROM collection_records WHERE collection = ? AND id = ?",
                (self._collection, str(record_id)),
            ).fetchone()
            return json.loads(row["data"]) if row else None

        return await self._run("get", work)

    async def insert(self, record: Record) -> Record:
        stored = dict(record)
        if not stored.get("id"):
            stored["id"] = uuid4().hex

        def work(conn: sqlite3.Connection) -> Record:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO collection_records (collection, id, data) "
                    "VALUES (?, ?, ?)",
                    (self._collection, str(stored["id"]), json.dumps(stored)),
                )
            return stored

        return await self._run("insert", work)

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> Record:
        def work(conn: sqlite3.Connection) -> Record | None:
            with conn:
                row = conn.execute(
                    "SELECT data FROM collection_records WHERE collection = ? AND id = ?",
                    (self._collection, str(record_id)),
                ).fetchone()
                if row is None:
                    return None
                current = json.loads(row["data"])
                updated = {**current, **changes, "id": current.get("id")}
                conn.execute(
                    "UPDATE collection_records SET data = ? WHERE collection = ? AND id = ?",
                    (json.dumps(updated), self._collection, str(record_id)),
                )
                return updated

        updated = await self._run("update", work)
        if updated is None:
            raise NotFoundError(self._collection, str(record_id))
        return updated

    async def remove(self, record_id: str) -> None:
        def work(conn: sqlite3.Connection) -> int:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM collection_records WHERE collection = ? AND id = ?",
                    (self._collection, str(record_id)),
                )
                return cursor.rowcount

        if await self._run("remove", work) == 0:
            raise NotFoundError(self._collection, str(record_id))
