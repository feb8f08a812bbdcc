"""
Admin Analytics API.

Provides endpoints for affiliate click metrics, clearing recorded clicks
and downloading the CSV report.

A period is selected either with `period` (7d, 30d, 90d, all) or with a
`from`/`to` date pair; supplying a date pair overrides the preset.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from src.api.deps import get_analytics_service
from src.components.analytics import (
    AffiliateAnalyticsService,
    ChartView,
    ClearEventsInput,
    ExportReportInput,
    GetMetricsInput,
    MetricsResult,
    OperationError,
    PeriodSelection,
    PresetPeriod,
    parse_date_param,
    run_clear_events,
    run_export_report,
    run_get_metrics,
)
from src.core.errors import InvalidRangeError

router = APIRouter()

# Expected component error codes -> HTTP status
_ERROR_STATUS = {
    "invalid_range": status.HTTP_400_BAD_REQUEST,
    "invalid_scope": status.HTTP_400_BAD_REQUEST,
    "backend_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


# --- Request/Response Models ---


class DailyMetricResponse(BaseModel):
    date: str
    clicks: int
    conversions: float
    revenue: float


class SourceResponse(BaseModel):
    name: str
    value: int


class ProductResponse(BaseModel):
    id: str
    name: str
    clicks: int
    conversions: float
    revenue: float


class TotalsResponse(BaseModel):
    clicks: int
    conversions: float
    revenue: float
    conversion_rate: float


class MetricsResponse(BaseModel):
    """Dashboard metrics for one period."""

    range_start: str
    range_end: str
    view: str
    served_from: str
    daily: list[DailyMetricResponse]
    sources: list[SourceResponse]
    products: list[ProductResponse]
    totals: TotalsResponse


class ClearResponse(BaseModel):
    deleted_count: int
    scope: str
    range_start: str | None = None
    range_end: str | None = None


# --- Helper Functions ---


def build_selection(
    period: PresetPeriod,
    from_date: str | None,
    to_date: str | None,
) -> PeriodSelection:
    """Turn query parameters into a PeriodSelection."""
    if from_date is None and to_date is None:
        return PeriodSelection.of(period)
    if from_date is None or to_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both 'from' and 'to' are required for a custom range",
        )
    try:
        return PeriodSelection.between(
            parse_date_param(from_date, "from"),
            parse_date_param(to_date, "to"),
        )
    except InvalidRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def raise_for_errors(errors: list[OperationError]) -> None:
    error = errors[0]
    raise HTTPException(
        status_code=_ERROR_STATUS.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"code": error.code, "message": error.message},
    )


def to_metrics_response(metrics: MetricsResult) -> MetricsResponse:
    return MetricsResponse(
        range_start=metrics.range.start.isoformat(),
        range_end=metrics.range.end.isoformat(),
        view=metrics.view.value,
        served_from=metrics.served_from.value,
        daily=[DailyMetricResponse(**m.to_row()) for m in metrics.daily],
        sources=[SourceResponse(**s.to_row()) for s in metrics.sources],
        products=[ProductResponse(**p.to_row()) for p in metrics.products],
        totals=TotalsResponse(
            clicks=metrics.totals.clicks,
            conversions=metrics.totals.conversions,
            revenue=metrics.totals.revenue,
            conversion_rate=metrics.totals.conversion_rate,
        ),
    )


# --- Routes ---


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    response: Response,
    period: PresetPeriod = Query(PresetPeriod.LAST_7_DAYS, description="Preset window"),
    from_date: str | None = Query(None, alias="from", description="Custom range start"),
    to_date: str | None = Query(None, alias="to", description="Custom range end"),
    view: ChartView = Query(ChartView.DAILY, description="daily, weekly or monthly"),
    service: AffiliateAnalyticsService = Depends(get_analytics_service),
) -> MetricsResponse:
    """
    Get the click series, source breakdown, product ranking and totals.

    When the event store is unreachable the last cached result for the
    same period is returned with served_from = "fallback".
    """
    selection = build_selection(period, from_date, to_date)
    result = await run_get_metrics(GetMetricsInput(selection=selection, view=view), service=service)

    if not result.success or result.metrics is None:
        raise_for_errors(result.errors)

    assert result.metrics is not None
    response.headers["X-Served-From"] = result.metrics.served_from.value
    return to_metrics_response(result.metrics)


@router.delete("/events", response_model=ClearResponse)
async def clear_events(
    scope: Literal["current", "all"] = Query(..., description="current period or all time"),
    period: PresetPeriod = Query(PresetPeriod.LAST_7_DAYS, description="Preset window"),
    from_date: str | None = Query(None, alias="from", description="Custom range start"),
    to_date: str | None = Query(None, alias="to", description="Custom range end"),
    service: AffiliateAnalyticsService = Depends(get_analytics_service),
) -> ClearResponse:
    """Delete recorded clicks for the selected period, or all of them."""
    selection = build_selection(period, from_date, to_date)
    result = await run_clear_events(
        ClearEventsInput(scope=scope, selection=selection),
        service=service,
    )

    if not result.success or result.result is None:
        raise_for_errors(result.errors)

    assert result.result is not None
    cleared = result.result
    return ClearResponse(
        deleted_count=cleared.deleted_count,
        scope=cleared.scope,
        range_start=cleared.range.start.isoformat() if cleared.range else None,
        range_end=cleared.range.end.isoformat() if cleared.range else None,
    )


@router.get("/export")
async def export_report(
    period: PresetPeriod = Query(PresetPeriod.LAST_7_DAYS, description="Preset window"),
    from_date: str | None = Query(None, alias="from", description="Custom range start"),
    to_date: str | None = Query(None, alias="to", description="Custom range end"),
    service: AffiliateAnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Download the three-section CSV report as an attachment."""
    selection = build_selection(period, from_date, to_date)
    result = await run_export_report(ExportReportInput(selection=selection), service=service)

    if not result.success or result.export is None:
        raise_for_errors(result.errors)

    assert result.export is not None
    return Response(
        content=result.export.content,
        media_type=result.export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.export.filename}"'},
    )
