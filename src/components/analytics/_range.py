"""
Range resolution - period selection to concrete instants.

Pure and deterministic given `now`; no I/O.

Key behaviors:
- Presets: start = now - (N-1) days at local midnight, end = end of today
- "all" is bounded by a configurable window (90 days by default)
- Custom ranges: start used as given, end normalized to end of day
- from > to raises InvalidRangeError
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo

from src.core.errors import InvalidRangeError

from .models import CustomRange, PeriodSelection, PresetPeriod, ResolvedRange

# 23:59:59.999 - millisecond precision end of day
END_OF_DAY = time(23, 59, 59, 999000)

ALL_TIME_WINDOW_DAYS = 90

PRESET_DAYS: dict[PresetPeriod, int | None] = {
    PresetPeriod.LAST_7_DAYS: 7,
    PresetPeriod.LAST_30_DAYS: 30,
    PresetPeriod.LAST_90_DAYS: 90,
    PresetPeriod.ALL: None,
}


def start_of_day(value: datetime) -> datetime:
    """Local midnight of the value's calendar day (tz preserved)."""
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    """23:59:59.999 of the value's calendar day (tz preserved)."""
    return value.replace(
        hour=END_OF_DAY.hour,
        minute=END_OF_DAY.minute,
        second=END_OF_DAY.second,
        microsecond=END_OF_DAY.microsecond,
    )


def _as_datetime(value: date | datetime, tz: tzinfo | None, field_name: str) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value.astimezone(tz) if tz is not None else value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)
    raise InvalidRangeError(f"Malformed {field_name}: {value!r}")


def parse_date_param(value: str, field_name: str = "date") -> date | datetime:
    """
    Parse a user-supplied date ("2024-02-10") or ISO datetime string.

    Raises:
        InvalidRangeError: If the string is not a valid date or datetime
    """
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidRangeError(f"Malformed {field_name}: {value!r}") from e


def resolve_preset(
    preset: PresetPeriod,
    now: datetime,
    *,
    all_time_window_days: int = ALL_TIME_WINDOW_DAYS,
) -> ResolvedRange:
    """Resolve a preset window ending today (inclusive)."""
    days = PRESET_DAYS[preset]
    if days is None:
        days = all_time_window_days

    start = start_of_day(now - timedelta(days=days - 1))
    return ResolvedRange(start=start, end=end_of_day(now))


def resolve_custom(custom: CustomRange, tz: tzinfo | None) -> ResolvedRange:
    """
    Resolve an explicit range.

    The end is moved to end of day whatever time component was supplied.
    """
    start = _as_datetime(custom.from_date, tz, "from")
    end = _as_datetime(custom.to_date, tz, "to")

    if start.date() > end.date():
        raise InvalidRangeError(
            f"Range start {start.date().isoformat()} is after end {end.date().isoformat()}"
        )

    return ResolvedRange(start=start, end=end_of_day(end))


def resolve_range(
    selection: PeriodSelection,
    now: datetime,
    *,
    all_time_window_days: int = ALL_TIME_WINDOW_DAYS,
) -> ResolvedRange:
    """
    Convert a period selection into a concrete [start, end] pair.

    `now` fixes the local timezone; a naive `now` is treated as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    if selection.preset is not None:
        return resolve_preset(
            selection.preset,
            now,
            all_time_window_days=all_time_window_days,
        )

    assert selection.custom is not None
    return resolve_custom(selection.custom, now.tzinfo)
