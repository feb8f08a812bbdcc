"""
Tests for CSV report export.
"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime

from src.components.analytics import (
    DailyMetric,
    ProductRanking,
    SourceBreakdown,
    export_analytics_report,
    report_filename,
    to_csv,
)


class TestToCsv:
    """Tests for to_csv."""

    def test_empty_input_yields_empty_string(self) -> None:
        assert to_csv([]) == ""

    def test_header_from_first_row(self) -> None:
        rows = [
            DailyMetric(date="2024-01-01", clicks=2, conversions=0.1, revenue=2.5),
            DailyMetric(date="2024-01-02", clicks=0, conversions=0.0, revenue=0.0),
        ]

        text = to_csv(rows)

        assert text.splitlines() == [
            "date,clicks,conversions,revenue",
            "2024-01-01,2,0.1,2.5",
            "2024-01-02,0,0,0",
        ]

    def test_values_needing_quotes_survive_parsing(self) -> None:
        rows = [
            {"name": 'Desk, "Pro" edition', "clicks": 3},
            {"name": "Lamp\nwith newline", "clicks": 1},
        ]

        text = to_csv(rows)
        parsed = list(csv.DictReader(io.StringIO(text)))

        assert '"Desk, ""Pro"" edition"' in text
        assert [row["name"] for row in parsed] == ['Desk, "Pro" edition', "Lamp\nwith newline"]
        assert [row["clicks"] for row in parsed] == ["3", "1"]

    def test_missing_keys_render_empty(self) -> None:
        text = to_csv([{"a": 1, "b": 2}, {"a": 3}])

        assert text.splitlines()[-1] == "3,"


class TestReport:
    """Tests for the three-section report and its filename."""

    def test_report_sections_in_order(self) -> None:
        generated_at = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

        report = export_analytics_report(
            [DailyMetric(date="2024-01-15", clicks=1, conversions=0.0, revenue=1.25)],
            [SourceBreakdown(name="blog", value=1)],
            [ProductRanking(id="7", name="Desk", clicks=1, conversions=0.0, revenue=1.25)],
            generated_at=generated_at,
        )

        assert report.startswith("# Analytics Export (2024-01-15T10:30:00+00:00)")
        daily = report.index("## Daily Metrics")
        sources = report.index("## Traffic Sources")
        products = report.index("## Top Products")
        assert daily < sources < products
        assert "name,value\nblog,1" in report
        assert "id,name,clicks,conversions,revenue\n7,Desk,1,0,1.25" in report

    def test_empty_sections_still_labeled(self) -> None:
        report = export_analytics_report(
            [], [], [], generated_at=datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert "## Daily Metrics" in report
        assert "## Top Products" in report

    def test_filename_embeds_period_and_timestamp(self) -> None:
        generated_at = datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=UTC)

        assert report_filename("30d", generated_at) == "affiliate-data-30d-2024-01-15T10-30-00.csv"
