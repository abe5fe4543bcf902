"""Command-line entry point for the weekly stability report.

Usage:
    stability-report                       # last week's report to stdout
    stability-report --date 2026-10-12     # report as if run on that day
    stability-report --no-ai --output report.txt
    stability-report --schedule            # run on REPORT_SCHEDULE_CRON until interrupted
"""

import argparse
import asyncio
import logging
import sys
import time
from datetime import date
from pathlib import Path

from prometheus_client import start_http_server

from stability_report.config import get_settings
from stability_report.observability.metrics import REPORT_DURATION, REPORTS_TOTAL
from stability_report.report.email import send_report_email
from stability_report.report.generator import generate_report
from stability_report.report.scheduler import start_scheduler, stop_scheduler
from stability_report.report.window import select_window

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the weekly stability report from the outage ledger")
    parser.add_argument("--csv", type=str, default=None, help="Outage ledger CSV (default: OUTAGES_CSV_PATH)")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference date YYYY-MM-DD; the report covers the week before it (default: today)",
    )
    parser.add_argument("--no-ai", action="store_true", help="Skip LM Studio and use the standard format")
    parser.add_argument("--output", type=Path, default=None, help="Also write the report to this file")
    parser.add_argument("--email", action="store_true", help="Also email the report (requires SMTP settings)")
    parser.add_argument("--schedule", action="store_true", help="Run on REPORT_SCHEDULE_CRON until interrupted")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info logs, -vv for debug")
    return parser.parse_args(argv)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


async def _run_once(args: argparse.Namespace) -> None:
    """Generate one report and deliver it to stdout, a file and/or email."""
    reference = args.date or date.today()
    start = time.monotonic()
    try:
        report = await generate_report(
            reference_date=reference,
            csv_path=args.csv,
            use_ai=False if args.no_ai else None,
        )
    except Exception:
        REPORTS_TOTAL.labels(trigger="manual", status="error").inc()
        raise
    REPORTS_TOTAL.labels(trigger="manual", status="success").inc()
    REPORT_DURATION.observe(time.monotonic() - start)

    print(report, end="")
    if args.output is not None:
        args.output.write_text(report, encoding="utf-8")
        logger.info("Report written to %s", args.output)
    if args.email and not send_report_email(report, select_window(reference)):
        print("Report generated but email delivery failed", file=sys.stderr)


async def _run_scheduled() -> None:
    """Keep the scheduler alive until the process is interrupted."""
    settings = get_settings()
    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        logger.info("Serving metrics on port %d", settings.metrics_port)
    if not start_scheduler():
        print("REPORT_SCHEDULE_CRON is not set; nothing to schedule.", file=sys.stderr)
        sys.exit(1)
    try:
        await asyncio.Event().wait()
    finally:
        stop_scheduler()


def main(argv: list[str] | None = None) -> None:
    """Parse args, generate the report, exit non-zero if the ledger is unreadable."""
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    try:
        asyncio.run(_run_scheduled() if args.schedule else _run_once(args))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"Failed to generate report: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
