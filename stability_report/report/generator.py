"""Weekly stability report generator.

Reads the outage ledger, selects last week's records, enriches them from
Jira where possible, and renders the report through the AI-or-standard
narrative formatter.  Only an unreadable ledger aborts a run; every other
upstream failure just reduces the report to what the ledger itself says.
"""

import logging
from collections.abc import Sequence
from datetime import date

from stability_report.config import get_settings
from stability_report.report.assembler import assemble_report
from stability_report.report.enrichment import enrich_records
from stability_report.report.models import OutageRecord, ReportWindow
from stability_report.report.narrative import format_narrative
from stability_report.report.source import load_outage_records
from stability_report.report.window import records_in_window, select_window

logger = logging.getLogger(__name__)


async def build_report(
    records: Sequence[OutageRecord],
    window: ReportWindow,
    use_ai: bool | None = None,
) -> str:
    """Run the filter → enrich → format → assemble stages over loaded records.

    Args:
        records: Every record from the ledger, in file order.
        window: The week being reported on.
        use_ai: Attempt AI formatting first. Defaults to the USE_AI setting.

    Returns:
        The rendered report text.
    """
    selected = records_in_window(records, window)
    enriched = await enrich_records(selected)
    narrative = await format_narrative(enriched, window, use_ai=use_ai)
    logger.info("Report body rendered in %s mode", narrative.mode.value)
    return assemble_report(window, enriched, narrative)


async def generate_report(
    reference_date: date | None = None,
    csv_path: str | None = None,
    use_ai: bool | None = None,
) -> str:
    """Generate the stability report for the week before ``reference_date``.

    Args:
        reference_date: Day the report is generated for. Defaults to today.
        csv_path: Outage ledger path. Defaults to the OUTAGES_CSV_PATH setting.
        use_ai: Attempt AI formatting first. Defaults to the USE_AI setting.

    Returns:
        The rendered report text.

    Raises:
        OutageSourceError: The ledger could not be read.
    """
    settings = get_settings()
    window = select_window(reference_date)
    logger.info("Generating report for week %d (%s)", window.week_number, window.date_range_label)

    records = load_outage_records(csv_path or settings.outages_csv_path)
    return await build_report(records, window, use_ai=use_ai)
