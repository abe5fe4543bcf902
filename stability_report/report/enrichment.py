"""Best-effort enrichment of outage records with Jira ticket descriptions."""

import asyncio
import logging
from collections.abc import Sequence

from stability_report.clients.jira import fetch_description, is_jira_configured
from stability_report.report.models import OutageRecord

logger = logging.getLogger(__name__)


async def enrich_record(record: OutageRecord) -> OutageRecord:
    """Attach the ticket description to ``record`` in place, if one can be fetched.

    Records without a ticket reference are returned untouched with no
    request made. Lookup failures leave ``enriched_description`` unset.
    """
    if not record.ticket_reference or record.enriched_description is not None:
        return record
    description = await fetch_description(record.ticket_reference)
    if description is not None:
        record.enriched_description = description
    return record


async def enrich_records(records: Sequence[OutageRecord]) -> list[OutageRecord]:
    """Enrich every record concurrently; returns the same records in the same order.

    Skipped entirely when Jira is not configured.
    """
    if not is_jira_configured():
        logger.info("Jira not configured — skipping ticket enrichment")
        return list(records)

    enriched = await asyncio.gather(*(enrich_record(r) for r in records))

    attempted = sum(1 for r in records if r.ticket_reference)
    failed = sum(1 for r in enriched if r.ticket_reference and r.enriched_description is None)
    if failed:
        logger.warning("%d of %d Jira ticket(s) could not be fetched, using CSV data only", failed, attempted)
    return list(enriched)
