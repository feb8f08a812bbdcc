"""
Tests for period range resolution.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from src.components.analytics import (
    PeriodSelection,
    PresetPeriod,
    parse_date_param,
    resolve_range,
)
from src.core.errors import InvalidRangeError

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


class TestPresets:
    """Preset windows end at the end of today."""

    @pytest.mark.parametrize(
        ("preset", "expected_start"),
        [
            (PresetPeriod.LAST_7_DAYS, datetime(2024, 3, 9, tzinfo=UTC)),
            (PresetPeriod.LAST_30_DAYS, datetime(2024, 2, 15, tzinfo=UTC)),
            (PresetPeriod.LAST_90_DAYS, datetime(2023, 12, 17, tzinfo=UTC)),
        ],
    )
    def test_preset_start_is_local_midnight(
        self, preset: PresetPeriod, expected_start: datetime
    ) -> None:
        resolved = resolve_range(PeriodSelection.of(preset), NOW)

        assert resolved.start == expected_start
        assert resolved.end == datetime(2024, 3, 15, 23, 59, 59, 999000, tzinfo=UTC)

    def test_all_is_bounded_window(self) -> None:
        resolved = resolve_range(PeriodSelection.of("all"), NOW)

        assert resolved.start == datetime(2023, 12, 17, tzinfo=UTC)

    def test_all_window_is_configurable(self) -> None:
        resolved = resolve_range(PeriodSelection.of("all"), NOW, all_time_window_days=365)

        assert resolved.start == datetime(2023, 3, 17, tzinfo=UTC)

    def test_local_timezone_preserved(self) -> None:
        tz = ZoneInfo("Europe/London")
        now = datetime(2024, 7, 1, 9, 30, tzinfo=tz)

        resolved = resolve_range(PeriodSelection.of("7d"), now)

        assert resolved.start == datetime(2024, 6, 25, tzinfo=tz)
        assert resolved.end.tzinfo == tz

    def test_naive_now_treated_as_utc(self) -> None:
        resolved = resolve_range(PeriodSelection.of("7d"), NOW.replace(tzinfo=None))

        assert resolved.start.tzinfo == UTC


class TestCustomRange:
    """Custom ranges: start as given, end moved to end of day."""

    def test_single_day_range(self) -> None:
        selection = PeriodSelection.between(date(2024, 2, 10), date(2024, 2, 10))

        resolved = resolve_range(selection, NOW)

        assert resolved.start == datetime(2024, 2, 10, tzinfo=UTC)
        assert resolved.end == datetime(2024, 2, 10, 23, 59, 59, 999000, tzinfo=UTC)
        assert resolved.contains(datetime(2024, 2, 10, 23, 59, tzinfo=UTC))
        assert not resolved.contains(datetime(2024, 2, 11, 0, 0, 1, tzinfo=UTC))

    def test_time_component_of_end_ignored(self) -> None:
        selection = PeriodSelection.between(
            datetime(2024, 2, 1, 8, 0, tzinfo=UTC),
            datetime(2024, 2, 3, 10, 0, tzinfo=UTC),
        )

        resolved = resolve_range(selection, NOW)

        assert resolved.start == datetime(2024, 2, 1, 8, 0, tzinfo=UTC)
        assert resolved.end == datetime(2024, 2, 3, 23, 59, 59, 999000, tzinfo=UTC)

    def test_from_after_to_rejected(self) -> None:
        selection = PeriodSelection.between(date(2024, 2, 11), date(2024, 2, 10))

        with pytest.raises(InvalidRangeError):
            resolve_range(selection, NOW)


class TestSelection:
    """PeriodSelection holds exactly one of preset or custom."""

    def test_switching_clears_the_other(self) -> None:
        custom = PeriodSelection.of("30d").with_custom(date(2024, 1, 1), date(2024, 1, 2))
        assert custom.preset is None
        assert custom.tag == "custom"

        preset = custom.with_preset("7d")
        assert preset.custom is None
        assert preset.tag == "7d"

    def test_both_or_neither_rejected(self) -> None:
        with pytest.raises(ValueError):
            PeriodSelection()

    def test_unknown_preset_rejected(self) -> None:
        with pytest.raises(ValueError):
            PeriodSelection.of("14d")


class TestParseDateParam:
    """Tests for parse_date_param."""

    def test_plain_date(self) -> None:
        assert parse_date_param("2024-02-10") == date(2024, 2, 10)

    def test_zulu_datetime(self) -> None:
        parsed = parse_date_param("2024-02-10T08:30:00Z")

        assert parsed == datetime(2024, 2, 10, 8, 30, tzinfo=UTC)

    def test_malformed_value(self) -> None:
        with pytest.raises(InvalidRangeError, match="from"):
            parse_date_param("10/02/2024", "from")
