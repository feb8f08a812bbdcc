"""
AffiliateAnalyticsService - click metrics query, clear and export.

Orchestrates RangeResolver -> EventStore -> Aggregator for one request.
Holds no per-request state; the stateful dashboard lives in _facade.

Key behaviors:
- Estimation constants are injected via AnalyticsConfig, never globals
- Every successful metrics query is mirrored into the local cache as a
  last-good snapshot keyed by period and view
- When the event store is unavailable a snapshot is served instead, marked
  as fallback; without one the BackendUnavailableError propagates
- Clears are all-or-nothing and drop every cached snapshot
- Exports never use a snapshot; the report is built fully in memory
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo

from src.core.entities import ClickEvent
from src.core.errors import BackendUnavailableError, LocalCacheError

from ._aggregate import (
    calculate_totals,
    to_daily_series,
    to_product_ranking,
    to_source_breakdown,
    to_weekly_or_monthly,
)
from ._export import export_analytics_report, report_filename
from ._range import ALL_TIME_WINDOW_DAYS, resolve_range
from .models import (
    DEFAULT_ESTIMATION,
    ChartView,
    ClearResult,
    ClearScope,
    EstimationConfig,
    ExportResult,
    MetricsResult,
    PeriodSelection,
    ResolvedRange,
)
from .ports import EventStorePort, LocalCachePort, TimePort

logger = logging.getLogger(__name__)

AFFILIATE_CLICK = "affiliate_click"
SNAPSHOT_KEY_PREFIX = "metrics."


# --- Configuration ---


@dataclass(frozen=True)
class AnalyticsConfig:
    """Affiliate analytics configuration."""

    event_type: str = AFFILIATE_CLICK
    estimation: EstimationConfig = DEFAULT_ESTIMATION
    all_time_window_days: int = ALL_TIME_WINDOW_DAYS


DEFAULT_CONFIG = AnalyticsConfig()


# --- In-Memory Event Store ---


class InMemoryClickEventStore:
    """
    In-memory event store for testing/dev.

    Set `available = False` to simulate an outage: every call then raises
    BackendUnavailableError and leaves the stored events untouched.
    """

    def __init__(self) -> None:
        self._events: dict[str, list[ClickEvent]] = {}
        self.available = True

    def _check_available(self, operation: str) -> None:
        if not self.available:
            raise BackendUnavailableError(operation, "in-memory store offline")

    def add(self, event: ClickEvent, event_type: str = AFFILIATE_CLICK) -> None:
        """Record an event."""
        self._events.setdefault(event_type, []).append(event)

    def add_many(self, events: list[ClickEvent], event_type: str = AFFILIATE_CLICK) -> None:
        for event in events:
            self.add(event, event_type)

    def get_all(self, event_type: str = AFFILIATE_CLICK) -> list[ClickEvent]:
        """Get all stored events (for testing)."""
        return list(self._events.get(event_type, []))

    async def query(
        self,
        event_type: str,
        start: datetime,
        end: datetime,
    ) -> list[ClickEvent]:
        self._check_available("query")
        return [e for e in self._events.get(event_type, []) if start <= e.occurred_at <= end]

    async def delete_range(
        self,
        event_type: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        self._check_available("delete_range")
        events = self._events.get(event_type, [])

        def matches(event: ClickEvent) -> bool:
            if start is not None and event.occurred_at < start:
                return False
            if end is not None and event.occurred_at > end:
                return False
            return True

        kept = [e for e in events if not matches(e)]
        self._events[event_type] = kept
        return len(events) - len(kept)


class DefaultTimePort:
    """Default time provider (UTC display timezone)."""

    @property
    def timezone(self) -> tzinfo:
        return UTC

    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_local(self) -> datetime:
        return self.now_utc()


# --- Service ---


def snapshot_key(selection: PeriodSelection, view: ChartView) -> str:
    """Cache key of the last-good metrics for a period and view."""
    return f"{SNAPSHOT_KEY_PREFIX}{selection.cache_tag}.{view.value}"


class AffiliateAnalyticsService:
    """
    Affiliate click analytics service.

    Provides the query, clear and export interfaces consumed by the
    dashboard, the HTTP routes and the CLI.
    """

    def __init__(
        self,
        event_store: EventStorePort,
        cache: LocalCachePort | None = None,
        time_port: TimePort | None = None,
        config: AnalyticsConfig | None = None,
    ) -> None:
        """Initialize service."""
        self._events = event_store
        self._cache = cache
        self._time = time_port or DefaultTimePort()
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    def resolve(self, selection: PeriodSelection) -> ResolvedRange:
        """
        Resolve a selection against the current local time.

        Raises:
            InvalidRangeError: If a custom range has from > to
        """
        return resolve_range(
            selection,
            self._time.now_local(),
            all_time_window_days=self._config.all_time_window_days,
        )

    # --- Query ---

    async def get_metrics(
        self,
        selection: PeriodSelection,
        view: ChartView = ChartView.DAILY,
        *,
        allow_snapshot: bool = True,
    ) -> MetricsResult:
        """
        Get daily series, source breakdown, product ranking and totals.

        Raises:
            InvalidRangeError: If the selection cannot be resolved
            BackendUnavailableError: If the store failed and no snapshot exists
        """
        resolved = self.resolve(selection)

        try:
            events = await self._events.query(
                self._config.event_type,
                resolved.start.astimezone(UTC),
                resolved.end.astimezone(UTC),
            )
        except BackendUnavailableError as e:
            snapshot = self._load_snapshot(selection, view) if allow_snapshot else None
            if snapshot is None:
                raise
            logger.warning(
                "Event store unavailable (%s); serving cached metrics for %s",
                e,
                selection.cache_tag,
            )
            return snapshot

        result = self.aggregate(events, resolved, view)
        self._save_snapshot(selection, view, result)
        return result

    def aggregate(
        self,
        events: list[ClickEvent],
        resolved: ResolvedRange,
        view: ChartView = ChartView.DAILY,
    ) -> MetricsResult:
        """Run the aggregation pipeline over already-fetched events."""
        estimation = self._config.estimation
        in_range = [e for e in events if resolved.contains(e.occurred_at)]

        daily = to_daily_series(in_range, resolved.start, resolved.end, estimation=estimation)

        return MetricsResult(
            daily=to_weekly_or_monthly(daily, view),
            sources=to_source_breakdown(in_range),
            products=to_product_ranking(in_range, estimation=estimation),
            totals=calculate_totals(daily),
            range=resolved,
            view=view,
        )

    # --- Clear ---

    async def clear_events(
        self,
        scope: ClearScope,
        selection: PeriodSelection,
    ) -> ClearResult:
        """
        Delete recorded clicks.

        "current" deletes events within the resolved range of selection;
        "all" ignores selection and deletes every tracked click.

        Raises:
            ValueError: If scope is not "current" or "all"
            BackendUnavailableError: If the delete failed (store unchanged)
        """
        if scope == "all":
            resolved = None
            deleted = await self._events.delete_range(self._config.event_type)
        elif scope == "current":
            resolved = self.resolve(selection)
            deleted = await self._events.delete_range(
                self._config.event_type,
                resolved.start.astimezone(UTC),
                resolved.end.astimezone(UTC),
            )
        else:
            raise ValueError(f"Unknown clear scope: {scope!r}")

        logger.info(
            "Cleared %d %s events (scope=%s, period=%s)",
            deleted,
            self._config.event_type,
            scope,
            selection.cache_tag,
        )
        self._drop_snapshots()
        return ClearResult(deleted_count=deleted, scope=scope, range=resolved)

    # --- Export ---

    async def export_report(self, selection: PeriodSelection) -> ExportResult:
        """
        Build the three-section CSV report for a selection.

        Raises:
            BackendUnavailableError: If the events cannot be fetched
        """
        metrics = await self.get_metrics(selection, ChartView.DAILY, allow_snapshot=False)
        generated_at = self._time.now_utc()

        content = export_analytics_report(
            metrics.daily,
            metrics.sources,
            metrics.products,
            generated_at=generated_at,
        )
        return ExportResult(
            filename=report_filename(selection.tag, generated_at),
            content=content,
        )

    # --- Snapshots ---

    def _load_snapshot(self, selection: PeriodSelection, view: ChartView) -> MetricsResult | None:
        if self._cache is None:
            return None
        data = self._cache.get(snapshot_key(selection, view))
        if not data:
            return None
        try:
            return MetricsResult.from_snapshot(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable metrics snapshot: %s", e)
            return None

    def _save_snapshot(
        self,
        selection: PeriodSelection,
        view: ChartView,
        result: MetricsResult,
    ) -> None:
        if self._cache is None:
            return
        try:
            self._cache.set(snapshot_key(selection, view), result.to_snapshot())
        except LocalCacheError as e:
            logger.warning("Could not cache metrics snapshot: %s", e)

    def _drop_snapshots(self) -> None:
        if self._cache is None:
            return
        try:
            for key in self._cache.keys():
                if key.startswith(SNAPSHOT_KEY_PREFIX):
                    self._cache.delete(key)
        except LocalCacheError as e:
            logger.warning("Could not drop cached metrics snapshots: %s", e)


# --- Factory ---


def create_analytics_service(
    event_store: EventStorePort,
    cache: LocalCachePort | None = None,
    time_port: TimePort | None = None,
    config: AnalyticsConfig | None = None,
) -> AffiliateAnalyticsService:
    """Create an AffiliateAnalyticsService."""
    return AffiliateAnalyticsService(
        event_store=event_store,
        cache=cache,
        time_port=time_port,
        config=config,
    )
