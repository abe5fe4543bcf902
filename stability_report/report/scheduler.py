"""APScheduler integration for recurring report generation.

Uses AsyncIOScheduler with a CronTrigger built from REPORT_SCHEDULE_CRON.
No-ops gracefully if no cron expression is configured.
"""

import asyncio
import contextlib
import logging
import time
from datetime import date

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.cron import CronTrigger  # type: ignore[import-untyped]

from stability_report.config import get_settings
from stability_report.observability.metrics import REPORT_DURATION, REPORTS_TOTAL
from stability_report.report.email import is_email_configured, send_report_email
from stability_report.report.generator import generate_report
from stability_report.report.models import ReportWindow
from stability_report.report.window import select_window

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def _deliver(report: str, window: ReportWindow) -> None:
    """Email the report, or log it when no SMTP delivery is configured."""
    if not is_email_configured():
        logger.info("Week %d report ready (email not configured):\n%s", window.week_number, report)
        return
    if not await asyncio.to_thread(send_report_email, report, window):
        logger.warning("Week %d report generated but email delivery failed", window.week_number)


async def scheduled_report_job() -> None:
    """Generate last week's report and deliver it; failures are logged, never raised."""
    start = time.monotonic()
    today = date.today()
    status = "success"
    try:
        report = await generate_report(reference_date=today)
        await _deliver(report, select_window(today))
    except Exception:
        status = "error"
        logger.exception("Scheduled report generation failed")
    finally:
        REPORTS_TOTAL.labels(trigger="scheduled", status=status).inc()
        REPORT_DURATION.observe(time.monotonic() - start)


def start_scheduler() -> bool:
    """Start the scheduler if a cron expression is configured.

    Returns:
        True if a job was scheduled.
    """
    global _scheduler  # noqa: PLW0603

    settings = get_settings()
    if not settings.report_schedule_cron:
        logger.info("Report scheduler disabled (REPORT_SCHEDULE_CRON not set)")
        return False

    trigger = CronTrigger.from_crontab(settings.report_schedule_cron)
    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        scheduled_report_job,
        trigger=trigger,
        id="weekly_stability_report",
        name="Weekly Stability Report",
        replace_existing=True,
    )
    _scheduler.start()
    logger.info("Report scheduler started with cron: %s", settings.report_schedule_cron)
    return True


def stop_scheduler() -> None:
    """Shut down the scheduler if it is running."""
    global _scheduler  # noqa: PLW0603

    if _scheduler is not None:
        with contextlib.suppress(Exception):
            _scheduler.shutdown(wait=False)
        logger.info("Report scheduler stopped")
        _scheduler = None
