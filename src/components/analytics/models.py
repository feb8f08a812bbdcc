"""
Analytics component input/output models.

All metric types are derived values: they are recomputed from click events
on every query and never persisted (except as an opaque last-good snapshot).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from src.components.persistence.models import ServedFrom

# --- Enums ---


class PresetPeriod(str, Enum):
    """Named relative time windows."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    ALL = "all"


class ChartView(str, Enum):
    """Granularity of the metrics series."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


ClearScope = Literal["current", "all"]


# --- Configuration ---


@dataclass(frozen=True)
class EstimationConfig:
    """
    Estimation constants used to derive conversions and revenue from clicks.

    revenue can be derived either per click (clicks x per_click_revenue) or
    per conversion (conversions x average_commission); the two agree to
    within rounding because average_commission is derived from the others.
    """

    conversion_rate_estimate: float = 0.029
    per_click_revenue_estimate: float = 1.25

    @property
    def average_commission_estimate(self) -> float:
        return self.per_click_revenue_estimate / self.conversion_rate_estimate


DEFAULT_ESTIMATION = EstimationConfig()


# --- Period Selection ---


@dataclass(frozen=True)
class CustomRange:
    """Explicit date pair chosen by the user."""

    from_date: date | datetime
    to_date: date | datetime


@dataclass(frozen=True)
class PeriodSelection:
    """
    Either a preset window or a custom range, never both.

    Switching to a preset clears the custom range and vice versa.
    """

    preset: PresetPeriod | None = None
    custom: CustomRange | None = None

    def __post_init__(self) -> None:
        if (self.preset is None) == (self.custom is None):
            raise ValueError("PeriodSelection needs exactly one of preset or custom")

    @classmethod
    def of(cls, preset: PresetPeriod | str) -> PeriodSelection:
        return cls(preset=PresetPeriod(preset))

    @classmethod
    def between(cls, from_date: date | datetime, to_date: date | datetime) -> PeriodSelection:
        return cls(custom=CustomRange(from_date=from_date, to_date=to_date))

    def with_preset(self, preset: PresetPeriod | str) -> PeriodSelection:
        return PeriodSelection.of(preset)

    def with_custom(self, from_date: date | datetime, to_date: date | datetime) -> PeriodSelection:
        return PeriodSelection.between(from_date, to_date)

    @property
    def tag(self) -> str:
        """Short label used in filenames and cache keys."""
        if self.preset is not None:
            return self.preset.value
        return "custom"

    @property
    def cache_tag(self) -> str:
        """Tag that also distinguishes between custom ranges."""
        if self.custom is None:
            return self.tag
        return f"custom:{self.custom.from_date.isoformat()}:{self.custom.to_date.isoformat()}"


@dataclass(frozen=True)
class ResolvedRange:
    """Concrete [start, end] instant pair, both inclusive."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


# --- Metric Models ---


@dataclass(frozen=True)
class DailyMetric:
    """
    One bucket in an aggregated series.

    date is an ISO calendar date ("2024-01-15") for daily series and a
    period label ("Week 3, Jan 2024" / "Jan 2024") for re-keyed series.
    """

    date: str
    clicks: int
    conversions: float
    revenue: float

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceBreakdown:
    """Click count for one traffic source."""

    name: str
    value: int

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProductRanking:
    """Clicks and estimates for one product."""

    id: str
    name: str
    clicks: int
    conversions: float
    revenue: float

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Totals:
    """Sums over a metrics series."""

    clicks: int
    conversions: float
    revenue: float
    conversion_rate: float


# --- Output Models ---


@dataclass(frozen=True)
class MetricsResult:
    """Output of the metrics query."""

    daily: list[DailyMetric]
    sources: list[SourceBreakdown]
    products: list[ProductRanking]
    totals: Totals
    range: ResolvedRange
    view: ChartView = ChartView.DAILY
    served_from: ServedFrom = ServedFrom.PRIMARY

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-compatible form stored in the local cache."""
        return {
            "daily": [m.to_row() for m in self.daily],
            "sources": [s.to_row() for s in self.sources],
            "products": [p.to_row() for p in self.products],
            "totals": asdict(self.totals),
            "range": {
                "start": self.range.start.isoformat(),
                "end": self.range.end.isoformat(),
            },
            "view": self.view.value,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> MetricsResult:
        """Rebuild a result from a cached snapshot; marked as fallback-served."""
        return cls(
            daily=[DailyMetric(**row) for row in data["daily"]],
            sources=[SourceBreakdown(**row) for row in data["sources"]],
            products=[ProductRanking(**row) for row in data["products"]],
            totals=Totals(**data["totals"]),
            range=ResolvedRange(
                start=datetime.fromisoformat(data["range"]["start"]),
                end=datetime.fromisoformat(data["range"]["end"]),
            ),
            view=ChartView(data.get("view", ChartView.DAILY.value)),
            served_from=ServedFrom.FALLBACK,
        )


@dataclass(frozen=True)
class ClearResult:
    """Output of a clear operation."""

    deleted_count: int
    scope: ClearScope
    range: ResolvedRange | None = None


@dataclass(frozen=True)
class ExportResult:
    """Downloadable report built fully in memory."""

    filename: str
    content: str
    content_type: str = "text/csv;charset=utf-8"


@dataclass
class DashboardPreferences:
    """Per-feature scalar settings persisted in the local cache."""

    period: PresetPeriod = PresetPeriod.LAST_7_DAYS
    view: ChartView = ChartView.DAILY


# --- Entry Point Inputs ---


@dataclass(frozen=True)
class OperationError:
    """Error reported by a shell entry point."""

    code: str
    message: str


@dataclass(frozen=True)
class GetMetricsInput:
    """Input for the metrics query."""

    selection: PeriodSelection
    view: ChartView = ChartView.DAILY


@dataclass(frozen=True)
class ClearEventsInput:
    """Input for clearing recorded click events."""

    scope: ClearScope
    selection: PeriodSelection


@dataclass(frozen=True)
class ExportReportInput:
    """Input for building a downloadable report."""

    selection: PeriodSelection


# --- Entry Point Outputs ---


@dataclass(frozen=True)
class MetricsOutput:
    """Output for the metrics query."""

    metrics: MetricsResult | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ClearOutput:
    """Output for clearing events."""

    result: ClearResult | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ExportOutput:
    """Output for report export."""

    export: ExportResult | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True
