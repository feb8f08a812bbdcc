"""
Report export - aggregated series to flat CSV text.

The whole report is built in memory before anything is written, so a
failure never produces a partial file.

Key behaviors:
- Header row = keys of the first row, in insertion order
- Strings containing a delimiter, quote or newline are quoted, quotes doubled
- Empty input yields an empty string
- Report = timestamp line + three labeled sections separated by blank lines
"""

from __future__ import annotations

import csv
import io
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from .models import DailyMetric, ProductRanking, SourceBreakdown

DAILY_SECTION = "## Daily Metrics"
SOURCES_SECTION = "## Traffic Sources"
PRODUCTS_SECTION = "## Top Products"

FILENAME_PREFIX = "affiliate-data"


class SupportsRow(Protocol):
    def to_row(self) -> dict[str, Any]: ...


Row = Mapping[str, Any] | SupportsRow


def _as_mapping(row: Row) -> Mapping[str, Any]:
    if isinstance(row, Mapping):
        return row
    return row.to_row()


def format_value(value: Any) -> str:
    """Render a cell the way the dashboard displays numbers."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def to_csv(rows: Sequence[Row]) -> str:
    """
    Serialize rows to CSV text, one line per row plus a header line.

    Missing keys in later rows render as empty cells; extra keys are dropped.
    """
    if not rows:
        return ""

    mappings = [_as_mapping(row) for row in rows]
    headers = list(mappings[0].keys())

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=headers,
        restval="",
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    for mapping in mappings:
        writer.writerow({key: format_value(mapping.get(key)) for key in headers})

    return buffer.getvalue()


def export_analytics_report(
    daily: Sequence[DailyMetric],
    sources: Sequence[SourceBreakdown],
    products: Sequence[ProductRanking],
    *,
    generated_at: datetime,
) -> str:
    """Render the three-section analytics report."""
    stamp = generated_at.isoformat(timespec="seconds")
    sections = [
        f"# Analytics Export ({stamp})",
        f"{DAILY_SECTION}\n\n{to_csv(daily)}",
        f"{SOURCES_SECTION}\n\n{to_csv(sources)}",
        f"{PRODUCTS_SECTION}\n\n{to_csv(products)}",
    ]
    return "\n\n".join(sections)


def report_filename(period_tag: str, generated_at: datetime) -> str:
    """
    Filename embedding the period tag and a filesystem-safe timestamp.

    e.g. affiliate-data-30d-2024-01-15T10-30-00.csv
    """
    stamp = generated_at.replace(microsecond=0, tzinfo=None).isoformat()
    return f"{FILENAME_PREFIX}-{period_tag}-{stamp.replace(':', '-')}.csv"
