"""
Click aggregation - raw click events into metrics series and rankings.

Pure functions over already-fetched events; no I/O.

Key behaviors:
- Daily series is zero-filled: one entry per calendar day, ascending, no gaps
- Events are bucketed by calendar date in the timezone of the range start
- Events outside [start, end] are ignored even if the store returned them
- Estimates accumulate unrounded; rounding happens once at output
- Product ranking is sorted by clicks descending with first-seen tie-break
- Weekly/monthly views re-key a daily series into period labels
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from src.core.entities import UNKNOWN_SOURCE, ClickEvent

from ._range import end_of_day
from .models import (
    DEFAULT_ESTIMATION,
    ChartView,
    DailyMetric,
    EstimationConfig,
    ProductRanking,
    SourceBreakdown,
    Totals,
)

UNKNOWN_PRODUCT = "Unknown Product"

# Fixed English abbreviations; locale-independent labels
MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


# --- Rounding ---


def round_half_up(value: float, places: int) -> float:
    """Round half away from zero on the decimal representation of value."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# --- Bucket Calculation ---


def bucket_date(instant: datetime, tz: tzinfo = UTC) -> date:
    """Calendar date of an instant in tz (naive treated as UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(tz).date()


def iter_days(first: date, last: date) -> Iterator[date]:
    """Every calendar day in [first, last] inclusive."""
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def _bounds(start: date | datetime, end: date | datetime) -> tuple[datetime, datetime]:
    """Normalize range bounds to aware instants (naive and plain dates as UTC)."""
    if isinstance(start, datetime):
        start_dt = start if start.tzinfo else start.replace(tzinfo=UTC)
    else:
        start_dt = datetime(start.year, start.month, start.day, tzinfo=UTC)

    if isinstance(end, datetime):
        end_dt = end if end.tzinfo else end.replace(tzinfo=UTC)
    else:
        end_dt = end_of_day(datetime(end.year, end.month, end.day, tzinfo=UTC))

    if start_dt > end_dt:
        raise ValueError(f"Aggregation range start {start_dt} is after end {end_dt}")
    return start_dt, end_dt


@dataclass
class _Accumulator:
    clicks: int = 0
    conversions: float = 0.0
    revenue: float = 0.0

    def add_click(self, estimation: EstimationConfig) -> None:
        self.clicks += 1
        self.conversions += estimation.conversion_rate_estimate
        self.revenue += estimation.per_click_revenue_estimate


# --- Series Builders ---


def to_daily_series(
    events: Iterable[ClickEvent],
    start: date | datetime,
    end: date | datetime,
    *,
    estimation: EstimationConfig = DEFAULT_ESTIMATION,
) -> list[DailyMetric]:
    """
    Build the zero-filled per-day series for [start, end].

    Returns exactly one DailyMetric per day in the range, ascending.
    """
    start_dt, end_dt = _bounds(start, end)
    # Days follow the range's own calendar so a local preset keeps k buckets
    zone = start_dt.tzinfo or UTC

    buckets: dict[date, _Accumulator] = {
        day: _Accumulator()
        for day in iter_days(bucket_date(start_dt, zone), bucket_date(end_dt, zone))
    }

    for event in events:
        if not start_dt <= event.occurred_at <= end_dt:
            continue
        bucket = buckets.get(bucket_date(event.occurred_at, zone))
        if bucket is not None:
            bucket.add_click(estimation)

    return [
        DailyMetric(
            date=day.isoformat(),
            clicks=acc.clicks,
            conversions=round_half_up(acc.conversions, 1),
            revenue=round_half_up(acc.revenue, 2),
        )
        for day, acc in sorted(buckets.items())
    ]


def _source_name(event: ClickEvent) -> str:
    name = (event.source or "").strip()
    return name or UNKNOWN_SOURCE


def to_source_breakdown(events: Iterable[ClickEvent]) -> list[SourceBreakdown]:
    """Count clicks per source, in first-seen order."""
    counts: dict[str, int] = {}
    for event in events:
        name = _source_name(event)
        counts[name] = counts.get(name, 0) + 1

    return [SourceBreakdown(name=name, value=value) for name, value in counts.items()]


def to_product_ranking(
    events: Iterable[ClickEvent],
    *,
    estimation: EstimationConfig = DEFAULT_ESTIMATION,
) -> list[ProductRanking]:
    """
    Rank products by clicks.

    Events without a product_id are excluded. The product name is taken from
    the first event seen for that product.
    """
    names: dict[str, str] = {}
    accumulators: dict[str, _Accumulator] = {}

    for event in events:
        if not event.product_id:
            continue
        if event.product_id not in accumulators:
            accumulators[event.product_id] = _Accumulator()
            names[event.product_id] = event.product_name or UNKNOWN_PRODUCT
        accumulators[event.product_id].add_click(estimation)

    ranking = [
        ProductRanking(
            id=product_id,
            name=names[product_id],
            clicks=acc.clicks,
            conversions=round_half_up(acc.conversions, 1),
            revenue=round_half_up(acc.revenue, 2),
        )
        for product_id, acc in accumulators.items()
    ]
    # sorted() is stable: ties keep first-seen order
    return sorted(ranking, key=lambda p: p.clicks, reverse=True)


# --- Re-keying ---


def week_of_month(day: date) -> int:
    """
    Sunday-based week number within the month.

    ceil((day_of_month + weekday_of_first) / 7) with Sunday = 0. This is not
    an ISO week; weeks never span two months.
    """
    first = day.replace(day=1)
    offset = (first.weekday() + 1) % 7
    return math.ceil((day.day + offset) / 7)


def period_label(day: date, granularity: ChartView) -> str:
    """Label of the period containing day ("Week 3, Jan 2024" or "Jan 2024")."""
    month = f"{MONTH_ABBR[day.month - 1]} {day.year}"
    if granularity == ChartView.WEEKLY:
        return f"Week {week_of_month(day)}, {month}"
    if granularity == ChartView.MONTHLY:
        return month
    raise ValueError(f"Unsupported granularity: {granularity}")


def to_weekly_or_monthly(
    daily: Sequence[DailyMetric],
    granularity: ChartView,
) -> list[DailyMetric]:
    """
    Sum a daily series into weekly or monthly periods.

    Output order follows the first day of each period in the input, so an
    ascending daily series yields ascending periods.
    """
    if granularity == ChartView.DAILY:
        return list(daily)

    periods: dict[str, list[float]] = {}
    for metric in daily:
        label = period_label(date.fromisoformat(metric.date), granularity)
        sums = periods.setdefault(label, [0, 0.0, 0.0])
        sums[0] += metric.clicks
        sums[1] += metric.conversions
        sums[2] += metric.revenue

    return [
        DailyMetric(
            date=label,
            clicks=int(clicks),
            conversions=round_half_up(conversions, 1),
            revenue=round_half_up(revenue, 2),
        )
        for label, (clicks, conversions, revenue) in periods.items()
    ]


# --- Summaries ---


def calculate_totals(series: Sequence[DailyMetric]) -> Totals:
    """
    Sum a series; conversion_rate is a percentage, 0 when there are no clicks.
    """
    clicks = sum(m.clicks for m in series)
    conversions = sum(m.conversions for m in series)
    revenue = sum(m.revenue for m in series)

    rate = (conversions / clicks) * 100 if clicks > 0 else 0.0

    return Totals(
        clicks=clicks,
        conversions=round_half_up(conversions, 1),
        revenue=round_half_up(revenue, 2),
        conversion_rate=round_half_up(rate, 2),
    )


def find_best_day(series: Sequence[DailyMetric], metric: str) -> str | None:
    """Date label with the highest value of metric; earliest wins ties."""
    if not series:
        return None
    if metric not in ("clicks", "conversions", "revenue"):
        raise ValueError(f"Unknown metric: {metric}")

    best = series[0]
    for candidate in series[1:]:
        if getattr(candidate, metric) > getattr(best, metric):
            best = candidate
    return best.date
