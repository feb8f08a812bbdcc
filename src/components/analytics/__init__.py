"""
Analytics component - Affiliate click aggregation, clear and export.

Pipeline: RangeResolver -> EventStore -> Aggregator -> Exporter, with a
stateful DashboardFacade for UI consumers.
"""

from ._aggregate import (
    UNKNOWN_PRODUCT,
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
from ._export import export_analytics_report, report_filename, to_csv
from ._facade import DashboardFacade, DashboardState, load_preferences
from ._impl import (
    AFFILIATE_CLICK,
    AffiliateAnalyticsService,
    AnalyticsConfig,
    DefaultTimePort,
    InMemoryClickEventStore,
    create_analytics_service,
    snapshot_key,
)
from ._range import parse_date_param, resolve_range
from .component import (
    run,
    run_clear_events,
    run_export_report,
    run_get_metrics,
)
from .models import (
    DEFAULT_ESTIMATION,
    ChartView,
    ClearEventsInput,
    ClearOutput,
    ClearResult,
    ClearScope,
    CustomRange,
    DailyMetric,
    DashboardPreferences,
    EstimationConfig,
    ExportOutput,
    ExportReportInput,
    ExportResult,
    GetMetricsInput,
    MetricsOutput,
    MetricsResult,
    OperationError,
    PeriodSelection,
    PresetPeriod,
    ProductRanking,
    ResolvedRange,
    SourceBreakdown,
    Totals,
)
from .ports import EventStorePort, LocalCachePort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_get_metrics",
    "run_clear_events",
    "run_export_report",
    # Input models
    "GetMetricsInput",
    "ClearEventsInput",
    "ExportReportInput",
    "PeriodSelection",
    "PresetPeriod",
    "CustomRange",
    "ChartView",
    "ClearScope",
    # Output models
    "MetricsOutput",
    "ClearOutput",
    "ExportOutput",
    "OperationError",
    "MetricsResult",
    "ClearResult",
    "ExportResult",
    "DailyMetric",
    "SourceBreakdown",
    "ProductRanking",
    "Totals",
    "ResolvedRange",
    # Configuration
    "AnalyticsConfig",
    "EstimationConfig",
    "DEFAULT_ESTIMATION",
    "DashboardPreferences",
    # Ports
    "EventStorePort",
    "LocalCachePort",
    "TimePort",
    # Service
    "AFFILIATE_CLICK",
    "AffiliateAnalyticsService",
    "DefaultTimePort",
    "InMemoryClickEventStore",
    "create_analytics_service",
    "snapshot_key",
    # Dashboard
    "DashboardFacade",
    "DashboardState",
    "load_preferences",
    # Pure pipeline
    "UNKNOWN_PRODUCT",
    "calculate_totals",
    "export_analytics_report",
    "find_best_day",
    "parse_date_param",
    "period_label",
    "report_filename",
    "resolve_range",
    "round_half_up",
    "to_csv",
    "to_daily_series",
    "to_product_ranking",
    "to_source_breakdown",
    "to_weekly_or_monthly",
    "week_of_month",
]
