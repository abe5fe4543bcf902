"""Reporting-window selection and record filtering.

All arithmetic is on calendar dates; there is no time-of-day or timezone
handling here, so every function is a pure function of its inputs.
"""

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from stability_report.report.models import OutageRecord, ReportWindow

logger = logging.getLogger(__name__)


def select_window(reference: date | None = None) -> ReportWindow:
    """Return the most recently completed Sunday-Saturday week before ``reference``.

    The week containing ``reference`` is still in progress and is never
    reported; a Sunday reference reports the week that ended the day before.

    Args:
        reference: Day the report is generated. Defaults to today.
    """
    today = reference if reference is not None else date.today()
    days_since_sunday = (today.weekday() + 1) % 7
    current_week_start = today - timedelta(days=days_since_sunday)
    start = current_week_start - timedelta(days=7)
    return ReportWindow(start=start, end=start + timedelta(days=6))


def filter_records(records: Iterable[OutageRecord], window: ReportWindow) -> list[OutageRecord]:
    """Keep records dated inside the window (both ends inclusive), preserving order."""
    return [r for r in records if window.contains(r.date)]


def sort_records(records: Iterable[OutageRecord]) -> list[OutageRecord]:
    """Order by date ascending; same-day records keep their input order."""
    return sorted(records, key=lambda r: r.date)


def records_in_window(records: Iterable[OutageRecord], window: ReportWindow) -> list[OutageRecord]:
    """Filter then sort — the record set every later stage works on."""
    selected = sort_records(filter_records(records, window))
    logger.info(
        "Found %d outage(s) for week %d (%s)",
        len(selected),
        window.week_number,
        window.date_range_label,
    )
    return selected
