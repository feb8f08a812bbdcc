"""
DashboardFacade - stateful entry point for the affiliate dashboard.

State machine:
    Idle -> Loading -> Ready | Error
    Ready | Error -> Loading      (period, range or view change)
    Ready -> Loading -> Ready     (clear, then re-fetch)
    Ready -> Error                (clear failed; prior metrics kept)

Key behaviors:
- Every fetch is tagged with a monotonically increasing sequence number;
  a response is applied only if no newer fetch was invoked since, so the
  last invoked request wins regardless of completion order
- Superseded fetches are not cancelled, only discarded
- At most one clear may be in flight; a second raises ClearInProgressError
- Selected preset and chart view persist as scalar cache keys
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum

from src.components.persistence.models import ServedFrom
from src.core.errors import BackendUnavailableError, ClearInProgressError, LocalCacheError

from ._impl import AffiliateAnalyticsService
from .models import (
    ChartView,
    ClearResult,
    ClearScope,
    DashboardPreferences,
    ExportResult,
    MetricsResult,
    PeriodSelection,
    PresetPeriod,
)
from .ports import LocalCachePort

logger = logging.getLogger(__name__)

PERIOD_KEY = "dashboard.period"
VIEW_KEY = "dashboard.view"


class DashboardState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


# --- Preferences ---


def load_preferences(
    cache: LocalCachePort | None,
    default_period: PresetPeriod = PresetPeriod.LAST_7_DAYS,
) -> DashboardPreferences:
    """Restore saved preferences; unknown values fall back to defaults."""
    prefs = DashboardPreferences(period=default_period)
    if cache is None:
        return prefs

    stored_period = cache.get(PERIOD_KEY)
    if stored_period is not None:
        try:
            prefs.period = PresetPeriod(stored_period)
        except ValueError:
            logger.warning("Ignoring unknown saved period %r", stored_period)

    stored_view = cache.get(VIEW_KEY)
    if stored_view is not None:
        try:
            prefs.view = ChartView(stored_view)
        except ValueError:
            logger.warning("Ignoring unknown saved view %r", stored_view)

    return prefs


def _save_preference(cache: LocalCachePort | None, key: str, value: str) -> None:
    if cache is None:
        return
    try:
        cache.set(key, value)
    except LocalCacheError as e:
        logger.warning("Could not save dashboard preference %s: %s", key, e)


# --- Facade ---


class DashboardFacade:
    """
    Single entry point consumed by dashboard UI code.

    Exposes the current state, selection, metrics and error message; all
    mutations go through the async methods below.
    """

    def __init__(
        self,
        service: AffiliateAnalyticsService,
        cache: LocalCachePort | None = None,
        *,
        default_period: PresetPeriod | str = PresetPeriod.LAST_7_DAYS,
    ) -> None:
        self._service = service
        self._cache = cache

        prefs = load_preferences(cache, PresetPeriod(default_period))
        self.selection = PeriodSelection.of(prefs.period)
        self.view = prefs.view

        self.state = DashboardState.IDLE
        self.metrics: MetricsResult | None = None
        self.error: str | None = None

        self._issued = 0
        self._applied = 0
        self._clearing = False

    # --- Read-only views ---

    @property
    def is_stale(self) -> bool:
        """True when the displayed metrics came from the cached snapshot."""
        return self.metrics is not None and self.metrics.served_from == ServedFrom.FALLBACK

    @property
    def is_clearing(self) -> bool:
        return self._clearing

    @property
    def applied_sequence(self) -> int:
        return self._applied

    # --- Selection ---

    async def select_period(self, preset: PresetPeriod | str) -> MetricsResult | None:
        """Switch to a preset window (clears any custom range) and re-fetch."""
        self.selection = self.selection.with_preset(preset)
        _save_preference(self._cache, PERIOD_KEY, self.selection.tag)
        return await self.refresh()

    async def select_range(
        self,
        from_date: date | datetime,
        to_date: date | datetime,
    ) -> MetricsResult | None:
        """
        Switch to a custom range and re-fetch.

        Raises:
            InvalidRangeError: If from_date > to_date (selection unchanged)
        """
        selection = self.selection.with_custom(from_date, to_date)
        self._service.resolve(selection)
        self.selection = selection
        return await self.refresh()

    async def select_view(self, view: ChartView | str) -> MetricsResult | None:
        self.view = ChartView(view)
        _save_preference(self._cache, VIEW_KEY, self.view.value)
        return await self.refresh()

    # --- Fetch ---

    async def refresh(self) -> MetricsResult | None:
        """
        Fetch metrics for the current selection.

        Returns the applied result, or None if the fetch failed or was
        superseded by a newer one.
        """
        self._issued += 1
        seq = self._issued
        self.state = DashboardState.LOADING
        selection, view = self.selection, self.view

        try:
            result = await self._service.get_metrics(selection, view)
        except BackendUnavailableError as e:
            if self._is_superseded(seq):
                return None
            self._applied = seq
            self.state = DashboardState.ERROR
            self.error = str(e)
            logger.warning("Dashboard load failed: %s", e)
            return None

        if self._is_superseded(seq):
            return None

        self._applied = seq
        self.metrics = result
        self.error = None
        self.state = DashboardState.READY
        return result

    def _is_superseded(self, seq: int) -> bool:
        if seq < self._issued:
            logger.debug("Discarding stale dashboard response %d (latest %d)", seq, self._issued)
            return True
        return False

    # --- Clear ---

    async def clear(self, scope: ClearScope) -> ClearResult | None:
        """
        Delete events for the current period or all time, then re-fetch.

        On failure the prior metrics stay in place and the state is Error.

        Raises:
            ClearInProgressError: If another clear has not finished yet
        """
        if self._clearing:
            raise ClearInProgressError()

        self._clearing = True
        self.state = DashboardState.LOADING
        try:
            result = await self._service.clear_events(scope, self.selection)
        except BackendUnavailableError as e:
            self.state = DashboardState.ERROR
            self.error = str(e)
            logger.warning("Clear failed: %s", e)
            return None
        finally:
            self._clearing = False

        await self.refresh()
        return result

    # --- Export ---

    async def export(self) -> ExportResult:
        """
        Build the report for the current selection.

        Raises:
            BackendUnavailableError: If the events cannot be fetched
        """
        return await self._service.export_report(self.selection)
