import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.app_shell.config import ConfigurationError, validate_backend_rules
from src.app_shell.context import ServiceContext
from src.components.analytics import (
    ChartView,
    ClearEventsInput,
    ExportReportInput,
    GetMetricsInput,
    MetricsOutput,
    OperationError,
    PeriodSelection,
    PresetPeriod,
    parse_date_param,
    run_clear_events,
    run_export_report,
    run_get_metrics,
)
from src.components.blog import run_publish_due
from src.components.persistence import ServedFrom
from src.core.errors import InvalidRangeError
from src.rules.loader import load_rules, resolve_rules_path

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

EXIT_INVALID = 2
EXIT_UNAVAILABLE = 3


def get_context(rules_path: Path) -> ServiceContext:
    if not rules_path.exists():
        logger.error(f"Rules file {rules_path} not found.")
        sys.exit(1)

    try:
        rules = load_rules(rules_path)
        validate_backend_rules(rules)
    except (ValueError, ConfigurationError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    return ServiceContext.create(rules)


def selection_from_args(args: argparse.Namespace) -> PeriodSelection:
    if args.from_date is None and args.to_date is None:
        return PeriodSelection.of(args.period)
    if args.from_date is None or args.to_date is None:
        logger.error("--from and --to must be given together")
        sys.exit(EXIT_INVALID)
    try:
        return PeriodSelection.between(
            parse_date_param(args.from_date, "from"),
            parse_date_param(args.to_date, "to"),
        )
    except InvalidRangeError as e:
        logger.error(str(e))
        sys.exit(EXIT_INVALID)


def fail(errors: list[OperationError]) -> None:
    for error in errors:
        logger.error(f"{error.code}: {error.message}")
    code = EXIT_UNAVAILABLE if errors and errors[0].code == "backend_unavailable" else EXIT_INVALID
    sys.exit(code)


def print_metrics(result: MetricsOutput) -> None:
    metrics = result.metrics
    assert metrics is not None
    if metrics.served_from == ServedFrom.FALLBACK:
        print("(offline: showing last cached metrics)")

    print(f"Range: {metrics.range.start.date()} .. {metrics.range.end.date()} ({metrics.view.value})")
    for point in metrics.daily:
        print(f"  {point.date:<20} {point.clicks:>6} clicks  {point.revenue:>10.2f}")

    totals = metrics.totals
    print(
        f"Totals: {totals.clicks} clicks, {totals.conversions} est. conversions, "
        f"{totals.revenue:.2f} est. revenue ({totals.conversion_rate}%)"
    )
    if metrics.sources:
        print("Sources: " + ", ".join(f"{s.name}={s.value}" for s in metrics.sources))
    for product in metrics.products[:10]:
        print(f"  #{product.id} {product.name}: {product.clicks} clicks")


async def handle_metrics(ctx: ServiceContext, args: argparse.Namespace) -> None:
    inp = GetMetricsInput(selection=selection_from_args(args), view=ChartView(args.view))
    result = await run_get_metrics(inp, service=ctx.analytics_service)
    if not result.success:
        fail(result.errors)
    print_metrics(result)


async def handle_export(ctx: ServiceContext, args: argparse.Namespace) -> None:
    inp = ExportReportInput(selection=selection_from_args(args))
    result = await run_export_report(inp, service=ctx.analytics_service)
    if not result.success or result.export is None:
        fail(result.errors)
        return

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / result.export.filename
    target.write_text(result.export.content, encoding="utf-8")
    print(f"Report written: {target}")


async def handle_clear(ctx: ServiceContext, args: argparse.Namespace) -> None:
    inp = ClearEventsInput(scope=args.scope, selection=selection_from_args(args))
    result = await run_clear_events(inp, service=ctx.analytics_service)
    if not result.success or result.result is None:
        fail(result.errors)
        return
    print(f"Deleted {result.result.deleted_count} click events (scope={args.scope}).")


async def handle_publish(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = await run_publish_due(ctx.blog_service)
    suffix = " (stored locally)" if result.served_from == ServedFrom.FALLBACK else ""
    print(f"Published {result.total} posts.{suffix}")


HANDLERS = {
    "metrics": handle_metrics,
    "export": handle_export,
    "clear": handle_clear,
    "publish_due": handle_publish,
}


def add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--period",
        default=PresetPeriod.LAST_7_DAYS.value,
        choices=[p.value for p in PresetPeriod],
        help="Preset window (default: 7d)",
    )
    parser.add_argument("--from", dest="from_date", help="Custom range start (YYYY-MM-DD)")
    parser.add_argument("--to", dest="to_date", help="Custom range end (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Affiliate Console CLI")
    parser.add_argument("--rules", help="Path to rules.yaml (default: $AFFILIATE_RULES_PATH)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # metrics
    metrics_parser = subparsers.add_parser("metrics", help="Show click metrics for a period")
    add_period_arguments(metrics_parser)
    metrics_parser.add_argument(
        "--view",
        default=ChartView.DAILY.value,
        choices=[v.value for v in ChartView],
        help="Series granularity",
    )

    # export
    export_parser = subparsers.add_parser("export", help="Write the CSV report")
    add_period_arguments(export_parser)
    export_parser.add_argument("--out", default=".", help="Output directory")

    # clear
    clear_parser = subparsers.add_parser("clear", help="Delete recorded clicks")
    add_period_arguments(clear_parser)
    clear_parser.add_argument("--scope", required=True, choices=["current", "all"])

    # publish_due
    subparsers.add_parser("publish_due", help="Publish scheduled blog posts")

    return parser


async def dispatch(ctx: ServiceContext, args: argparse.Namespace) -> None:
    try:
        await HANDLERS[args.command](ctx, args)
    finally:
        await ctx.aclose()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    rules_path = Path(args.rules) if args.rules else resolve_rules_path()
    ctx = get_context(rules_path)
    asyncio.run(dispatch(ctx, args))


if __name__ == "__main__":
    main()
