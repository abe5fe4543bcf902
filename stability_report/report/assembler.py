"""Final plain-text layout of the weekly stability report.

The banner and footer layout is consumed by downstream readers and must
stay byte-for-byte stable.
"""

import logging
from collections.abc import Sequence

from stability_report.report.models import NarrativeMode, NarrativeResult, OutageRecord, ReportWindow

logger = logging.getLogger(__name__)

RULE = "=" * 80
TITLE = "WEEKLY STABILITY REPORT"
AI_TITLE = "WEEKLY STABILITY REPORT (AI-Generated)"
TIMEZONE_LABEL = "All times UTC"
CLOSING_LINE = "Regards,"


def week_heading(window: ReportWindow) -> str:
    """``Week 40 (October 04 - October 10)``"""
    return f"Week {window.week_number} ({window.date_range_label})"


def assemble_report(
    window: ReportWindow,
    records: Sequence[OutageRecord],
    narrative: NarrativeResult,
) -> str:
    """Wrap the narrative body with the banner and closing line.

    AI bodies already carry the week heading, timezone line and sign-off
    (the prompt asks for them), so only the banner is added. Standard bodies
    get the full header and the closing salutation.

    Returns:
        The report text, ending with exactly one newline.
    """
    logger.debug("Assembling %s report for %d record(s)", narrative.mode.value, len(records))
    if narrative.mode is NarrativeMode.AI:
        lines = [RULE, AI_TITLE, RULE, "", narrative.text.strip("\n")]
    else:
        lines = [
            RULE,
            TITLE,
            week_heading(window),
            TIMEZONE_LABEL,
            RULE,
            "",
            narrative.text,
            "",
            CLOSING_LINE,
        ]
    return "\n".join(lines).rstrip("\n") + "\n"
