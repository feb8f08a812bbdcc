"""
Tests for click aggregation (daily series, breakdowns, re-keying, totals).
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from src.components.analytics import (
    ChartView,
    DailyMetric,
    EstimationConfig,
    calculate_totals,
    find_best_day,
    period_label,
    round_half_up,
    to_daily_series,
    to_product_ranking,
    to_source_breakdown,
    to_weekly_or_monthly,
    week_of_month,
)
from src.core.entities import ClickEvent

# --- Helpers ---


def click(
    when: datetime,
    source: str | None = "blog",
    product_id: str | None = None,
    product_name: str | None = None,
) -> ClickEvent:
    return ClickEvent(
        occurred_at=when,
        source=source,
        product_id=product_id,
        product_name=product_name,
    )


def at(day: str, hour: int = 12) -> datetime:
    return datetime.fromisoformat(day).replace(hour=hour, tzinfo=UTC)


# --- Daily Series ---


class TestDailySeries:
    """Tests for to_daily_series."""

    def test_zero_filled_with_rounding(self) -> None:
        """Two clicks, a gap day, one click."""
        events = [click(at("2024-01-01")), click(at("2024-01-01")), click(at("2024-01-03"))]

        series = to_daily_series(events, date(2024, 1, 1), date(2024, 1, 3))

        assert series == [
            DailyMetric(date="2024-01-01", clicks=2, conversions=0.1, revenue=2.5),
            DailyMetric(date="2024-01-02", clicks=0, conversions=0.0, revenue=0.0),
            DailyMetric(date="2024-01-03", clicks=1, conversions=0.0, revenue=1.25),
        ]

    def test_one_entry_per_day_ascending(self) -> None:
        start = datetime(2024, 2, 1, tzinfo=UTC)
        end = datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC)

        series = to_daily_series([], start, end)

        assert len(series) == 29
        assert [m.date for m in series] == sorted(m.date for m in series)
        assert all(m.clicks == 0 for m in series)

    def test_events_outside_range_ignored(self) -> None:
        events = [
            click(at("2023-12-31", 23)),
            click(at("2024-01-02")),
            click(at("2024-01-04", 0)),
        ]

        series = to_daily_series(events, date(2024, 1, 1), date(2024, 1, 3))

        assert sum(m.clicks for m in series) == 1

    def test_bucketed_by_utc_date(self) -> None:
        """An evening click in New York lands on the next UTC day."""
        from zoneinfo import ZoneInfo

        evening = datetime(2024, 1, 1, 21, 0, tzinfo=ZoneInfo("America/New_York"))
        series = to_daily_series([click(evening)], date(2024, 1, 1), date(2024, 1, 2))

        assert series[0].clicks == 0
        assert series[1].clicks == 1

    def test_local_range_keeps_local_days(self) -> None:
        """A New York day range yields one bucket per local day."""
        from zoneinfo import ZoneInfo

        tz = ZoneInfo("America/New_York")
        start = datetime(2024, 1, 1, tzinfo=tz)
        end = datetime(2024, 1, 3, 23, 59, 59, 999000, tzinfo=tz)
        evening = datetime(2024, 1, 3, 21, 0, tzinfo=tz)

        series = to_daily_series([click(evening)], start, end)

        assert [m.date for m in series] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert series[-1].clicks == 1

    def test_estimation_is_injectable(self) -> None:
        estimation = EstimationConfig(conversion_rate_estimate=0.5, per_click_revenue_estimate=2.0)
        events = [click(at("2024-01-01")) for _ in range(3)]

        series = to_daily_series(events, date(2024, 1, 1), date(2024, 1, 1), estimation=estimation)

        assert series[0].conversions == 1.5
        assert series[0].revenue == 6.0

    def test_accumulates_before_rounding(self) -> None:
        """Ten clicks give 0.29 conversions, not ten rounded 0.0 values."""
        events = [click(at("2024-01-01")) for _ in range(10)]

        series = to_daily_series(events, date(2024, 1, 1), date(2024, 1, 1))

        assert series[0].conversions == 0.3
        assert series[0].revenue == 12.5

    def test_start_after_end_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_daily_series([], date(2024, 1, 5), date(2024, 1, 1))


# --- Sources and Products ---


class TestBreakdowns:
    """Tests for source breakdown and product ranking."""

    def test_sources_counted_in_first_seen_order(self) -> None:
        events = [
            click(at("2024-01-01"), source="newsletter"),
            click(at("2024-01-01"), source="blog"),
            click(at("2024-01-02"), source="newsletter"),
        ]

        breakdown = to_source_breakdown(events)

        assert [(s.name, s.value) for s in breakdown] == [("newsletter", 2), ("blog", 1)]

    def test_missing_source_reported_as_unknown(self) -> None:
        breakdown = to_source_breakdown([click(at("2024-01-01"), source=None)])

        assert breakdown[0].name == "unknown"

    def test_products_ranked_by_clicks(self) -> None:
        events = [
            click(at("2024-01-01"), product_id="a", product_name="Desk"),
            click(at("2024-01-01"), product_id="b", product_name="Chair"),
            click(at("2024-01-02"), product_id="b", product_name="Chair"),
            click(at("2024-01-02"), product_id=None),
        ]

        ranking = to_product_ranking(events)

        assert [(p.id, p.clicks) for p in ranking] == [("b", 2), ("a", 1)]
        assert ranking[0].revenue == 2.5

    def test_product_ties_keep_first_seen_order(self) -> None:
        events = [
            click(at("2024-01-01"), product_id="z", product_name="Lamp"),
            click(at("2024-01-01"), product_id="a", product_name="Desk"),
        ]

        ranking = to_product_ranking(events)

        assert [p.id for p in ranking] == ["z", "a"]

    def test_product_name_from_first_event(self) -> None:
        events = [
            click(at("2024-01-01"), product_id="7", product_name=None),
            click(at("2024-01-02"), product_id="7", product_name="Renamed"),
        ]

        ranking = to_product_ranking(events)

        assert ranking[0].name == "Unknown Product"


# --- Re-keying ---


class TestWeeklyMonthly:
    """Tests for weekly/monthly re-keying."""

    def test_week_of_month_is_sunday_based(self) -> None:
        # Jan 2024 starts on a Monday
        assert week_of_month(date(2024, 1, 1)) == 1
        assert week_of_month(date(2024, 1, 6)) == 1
        assert week_of_month(date(2024, 1, 7)) == 2
        assert week_of_month(date(2024, 1, 31)) == 5

    def test_period_labels(self) -> None:
        assert period_label(date(2024, 1, 15), ChartView.WEEKLY) == "Week 3, Jan 2024"
        assert period_label(date(2024, 1, 15), ChartView.MONTHLY) == "Jan 2024"

    def test_weekly_sums_daily_series(self) -> None:
        start = date(2024, 1, 1)
        daily = [
            DailyMetric(
                date=(start + timedelta(days=i)).isoformat(),
                clicks=1,
                conversions=0.0,
                revenue=1.25,
            )
            for i in range(8)
        ]

        weekly = to_weekly_or_monthly(daily, ChartView.WEEKLY)

        assert [(w.date, w.clicks) for w in weekly] == [
            ("Week 1, Jan 2024", 6),
            ("Week 2, Jan 2024", 2),
        ]
        assert weekly[0].revenue == 7.5

    def test_monthly_spans_months_in_order(self) -> None:
        daily = [
            DailyMetric(date="2024-01-31", clicks=3, conversions=0.1, revenue=3.75),
            DailyMetric(date="2024-02-01", clicks=1, conversions=0.0, revenue=1.25),
        ]

        monthly = to_weekly_or_monthly(daily, ChartView.MONTHLY)

        assert [m.date for m in monthly] == ["Jan 2024", "Feb 2024"]

    def test_daily_view_is_unchanged(self) -> None:
        daily = [DailyMetric(date="2024-01-01", clicks=1, conversions=0.0, revenue=1.25)]

        assert to_weekly_or_monthly(daily, ChartView.DAILY) == daily


# --- Summaries ---


class TestTotals:
    """Tests for calculate_totals, find_best_day and rounding."""

    def test_totals_from_series(self) -> None:
        events = [click(at("2024-01-01")), click(at("2024-01-01")), click(at("2024-01-03"))]
        series = to_daily_series(events, date(2024, 1, 1), date(2024, 1, 3))

        totals = calculate_totals(series)

        assert totals.clicks == 3
        assert totals.conversions == 0.1
        assert totals.revenue == 3.75
        assert totals.conversion_rate == 3.33

    def test_zero_clicks_gives_zero_rate(self) -> None:
        series = to_daily_series([], date(2024, 1, 1), date(2024, 1, 7))

        totals = calculate_totals(series)

        assert totals.clicks == 0
        assert totals.conversion_rate == 0.0

    def test_best_day_earliest_wins_ties(self) -> None:
        series = [
            DailyMetric(date="2024-01-01", clicks=1, conversions=0.0, revenue=1.25),
            DailyMetric(date="2024-01-02", clicks=4, conversions=0.1, revenue=5.0),
            DailyMetric(date="2024-01-03", clicks=4, conversions=0.1, revenue=5.0),
        ]

        assert find_best_day(series, "clicks") == "2024-01-02"
        assert find_best_day([], "clicks") is None

    def test_best_day_rejects_unknown_metric(self) -> None:
        series = [DailyMetric(date="2024-01-01", clicks=1, conversions=0.0, revenue=1.25)]

        with pytest.raises(ValueError):
            find_best_day(series, "views")

    def test_round_half_up(self) -> None:
        assert round_half_up(0.05, 1) == 0.1
        assert round_half_up(2.675, 2) == 2.68
        assert round_half_up(0.029, 1) == 0.0
