"""
Remote Table Adapter.

Implements EventStorePort and CollectionStorePort over a PostgREST-style
HTTP API (Supabase REST): one table per collection, filters expressed as
`column=op.value` query parameters.

Tables:
- analytics_events(id, event_type, created_at, data jsonb)
  data = {"source": ..., "productId": ..., "productName": ...}
- one table per CRUD collection (e.g. blog_posts), keyed by "id"

Invariants:
- Every transport failure and non-2xx response becomes
  BackendUnavailableError (network, auth and service errors alike)
- A range delete is a single DELETE request, so it either applies fully
  or not at all
- API keys are sent as headers and never logged
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from src.core.entities import ClickEvent
from src.core.errors import BackendUnavailableError, NotFoundError
from src.core.ports.store import Record

logger = logging.getLogger(__name__)

EVENTS_TABLE = "analytics_events"
DEFAULT_PAGE_SIZE = 1000
DEFAULT_TIMEOUT_SECONDS = 10.0

RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def _filter_value(value: Any) -> str:
    """Render a value as a PostgREST equality filter."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, datetime):
        return f"eq.{value.isoformat()}"
    return f"eq.{value}"


class RemoteTableClient:
    """
    Thin async wrapper over httpx for a PostgREST endpoint.

    Usable as an async context manager; close() releases the connection pool.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def __aenter__(self) -> RemoteTableClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        table: str,
        *,
        operation: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> list[Record]:
        """
        Send one request and return the JSON rows.

        Raises:
            BackendUnavailableError: On transport errors or non-2xx responses
        """
        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=dict(headers or {}),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Remote %s on %s failed with HTTP %d", operation, table, status)
            raise BackendUnavailableError(operation, f"HTTP {status}") from e
        except httpx.HTTPError as e:
            logger.warning("Remote %s on %s failed: %s", operation, table, e)
            raise BackendUnavailableError(operation, str(e) or type(e).__name__) from e

        if not response.content:
            return []
        try:
            rows = response.json()
        except ValueError as e:
            raise BackendUnavailableError(operation, "invalid JSON response") from e

        if isinstance(rows, dict):
            return [rows]
        return list(rows)


# --- Event Store ---


def row_to_click_event(row: Mapping[str, Any]) -> ClickEvent:
    """Map an analytics_events row to a ClickEvent."""
    data = row.get("data") or {}
    return ClickEvent(
        occurred_at=row["created_at"],
        source=data.get("source"),
        product_id=data.get("productId"),
        product_name=data.get("productName"),
        id=str(row["id"]) if row.get("id") is not None else None,
    )


class RemoteClickEventStore:
    """EventStorePort over the remote analytics_events table."""

    def __init__(
        self,
        client: RemoteTableClient,
        *,
        table: str = EVENTS_TABLE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._client = client
        self._table = table
        self._page_size = page_size

    def _range_params(
        self,
        event_type: str,
        start: datetime | None,
        end: datetime | None,
    ) -> list[tuple[str, str]]:
        params = [("event_type", f"eq.{event_type}")]
        if start is not None:
            params.append(("created_at", f"gte.{start.isoformat()}"))
        if end is not None:
            params.append(("created_at", f"lte.{end.isoformat()}"))
        return params

    async def query(
        self,
        event_type: str,
        start: datetime,
        end: datetime,
    ) -> list[ClickEvent]:
        events: list[ClickEvent] = []
        offset = 0

        while True:
            params = [
                ("select", "id,created_at,data"),
                *self._range_params(event_type, start, end),
                ("order", "created_at.asc"),
                ("limit", str(self._page_size)),
                ("offset", str(offset)),
            ]
            rows = await self._client.request("GET", self._table, operation="query", params=params)

            for row in rows:
                try:
                    events.append(row_to_click_event(row))
                except (KeyError, ValidationError) as e:
                    logger.warning("Skipping malformed event row %s: %s", row.get("id"), e)

            if len(rows) < self._page_size:
                return events
            offset += self._page_size

    async def delete_range(
        self,
        event_type: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        rows = await self._client.request(
            "DELETE",
            self._table,
            operation="delete_range",
            params=[("select", "id"), *self._range_params(event_type, start, end)],
            headers=RETURN_REPRESENTATION,
        )
        return len(rows)


# --- Collection Store ---


class RemoteCollectionStore:
    """CollectionStorePort over one remote table keyed by id."""

    def __init__(self, client: RemoteTableClient, collection: str) -> None:
        self._client = client
        self._collection = collection

    @property
    def collection(self) -> str:
        return self._collection

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Record]:
        params = [("select", "*")]
        params.extend((key, _filter_value(value)) for key, value in (filters or {}).items())
        if order_by:
            direction = "desc" if descending else "asc"
            params.append(("order", f"{order_by}.{direction}.nullslast"))

        return await self._client.request("GET", self._collection, operation="list", params=params)

    async def get(self, record_id: str) -> Record | None:
        rows = await self._client.request(
            "GET",
            self._collection,
            operation="get",
            params=[("select", "*"), ("id", _filter_value(record_id)), ("limit", "1")],
        )
        return rows[0] if rows else None

    async def insert(self, record: Record) -> Record:
        rows = await self._client.request(
            "POST",
            self._collection,
            operation="insert",
            json=record,
            headers=RETURN_REPRESENTATION,
        )
        if not rows:
            raise BackendUnavailableError("insert", "no row returned")
        return rows[0]

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> Record:
        rows = await self._client.request(
            "PATCH",
            self._collection,
            operation="update",
            params=[("id", _filter_value(record_id))],
            json=dict(changes),
            headers=RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFoundError(self._collection, record_id)
        return rows[0]

    async def remove(self, record_id: str) -> None:
        rows = await self._client.request(
            "DELETE",
            self._collection,
            operation="remove",
            params=[("id", _filter_value(record_id))],
            headers=RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFoundError(self._collection, record_id)


def create_remote_client(
    url: str,
    api_key: str | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> RemoteTableClient:
    """
    Factory function to create a RemoteTableClient for a project URL.

    Args:
        url: Project URL (e.g. https://xyz.supabase.co); /rest/v1 is appended
        api_key: Anon or service key
        timeout: Per-request timeout in seconds

    Returns:
        Configured RemoteTableClient
    """
    base = url.rstrip("/")
    if not base.endswith("/rest/v1"):
        base = f"{base}/rest/v1"
    return RemoteTableClient(base, api_key, timeout=timeout)
