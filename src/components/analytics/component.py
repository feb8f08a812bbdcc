"""
Analytics component - Affiliate click metrics, clear and export.

Shell entry points wrapping AffiliateAnalyticsService. Expected failures
are reported as OperationError entries rather than raised, so HTTP and CLI
callers can map them to a status code or exit code.

Error codes:
- invalid_range: custom range with from > to, or malformed dates
- backend_unavailable: event store unreachable (and no snapshot to serve)
- invalid_scope: clear scope other than "current" or "all"
"""

from __future__ import annotations

from src.core.errors import BackendUnavailableError, InvalidRangeError

from ._impl import AffiliateAnalyticsService
from .models import (
    ClearEventsInput,
    ClearOutput,
    ExportOutput,
    ExportReportInput,
    GetMetricsInput,
    MetricsOutput,
    OperationError,
)

INVALID_RANGE = "invalid_range"
BACKEND_UNAVAILABLE = "backend_unavailable"
INVALID_SCOPE = "invalid_scope"


def _to_error(e: Exception) -> OperationError:
    if isinstance(e, InvalidRangeError):
        return OperationError(code=INVALID_RANGE, message=str(e))
    if isinstance(e, BackendUnavailableError):
        return OperationError(code=BACKEND_UNAVAILABLE, message=str(e))
    return OperationError(code=INVALID_SCOPE, message=str(e))


async def run_get_metrics(
    inp: GetMetricsInput,
    *,
    service: AffiliateAnalyticsService,
) -> MetricsOutput:
    """
    Query metrics for a period selection.

    Args:
        inp: Input containing the selection and chart view.
        service: Analytics service.

    Returns:
        MetricsOutput with metrics, or errors.
    """
    try:
        metrics = await service.get_metrics(inp.selection, inp.view)
    except (InvalidRangeError, BackendUnavailableError) as e:
        return MetricsOutput(errors=[_to_error(e)], success=False)

    return MetricsOutput(metrics=metrics)


async def run_clear_events(
    inp: ClearEventsInput,
    *,
    service: AffiliateAnalyticsService,
) -> ClearOutput:
    """
    Clear recorded clicks for the current period or all time.

    Args:
        inp: Input containing the scope and selection.
        service: Analytics service.

    Returns:
        ClearOutput with the deleted count, or errors.
    """
    try:
        result = await service.clear_events(inp.scope, inp.selection)
    except (InvalidRangeError, BackendUnavailableError, ValueError) as e:
        return ClearOutput(errors=[_to_error(e)], success=False)

    return ClearOutput(result=result)


async def run_export_report(
    inp: ExportReportInput,
    *,
    service: AffiliateAnalyticsService,
) -> ExportOutput:
    """
    Build the downloadable CSV report.

    Args:
        inp: Input containing the selection.
        service: Analytics service.

    Returns:
        ExportOutput with filename and content, or errors.
    """
    try:
        export = await service.export_report(inp.selection)
    except (InvalidRangeError, BackendUnavailableError) as e:
        return ExportOutput(errors=[_to_error(e)], success=False)

    return ExportOutput(export=export)


async def run(
    inp: GetMetricsInput | ClearEventsInput | ExportReportInput,
    *,
    service: AffiliateAnalyticsService,
) -> MetricsOutput | ClearOutput | ExportOutput:
    """
    Main entry point for the analytics component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, GetMetricsInput):
        return await run_get_metrics(inp, service=service)
    elif isinstance(inp, ClearEventsInput):
        return await run_clear_events(inp, service=service)
    elif isinstance(inp, ExportReportInput):
        return await run_export_report(inp, service=service)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
