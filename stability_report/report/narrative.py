"""Narrative formatting for the weekly stability report.

Two modes produce the report body for the whole batch of records:

* AI mode sends every record to the local language model in one request and
  uses its reply verbatim.
* Standard mode renders a fixed template per record and never fails.

AI mode is attempted first; any failure downgrades the *entire* batch to
standard mode, so a report never mixes the two.
"""

import logging
import re
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta

from stability_report.clients import lm_studio
from stability_report.config import get_settings
from stability_report.observability.metrics import NARRATIVE_MODE_TOTAL
from stability_report.report.models import NarrativeMode, NarrativeResult, OutageRecord, ReportWindow

logger = logging.getLogger(__name__)

EMPTY_WEEK_MESSAGE = "No outages were recorded this week."

_TIME_RANGE_RE = re.compile(r"(\d{1,2}:\d{2})\s*[-–]\s*(\d{1,2}:\d{2})")

# A section runs until the next "Heading:" line or the end of the text.
_SECTION_END = r"(?=\n\s*[A-Za-z][^:\n]*:|\Z)"
_RCA_RE = re.compile(
    r"(?:^|\n)\s*(?:RCA|Root Cause(?: Analysis)?)[ \t]*(?::|(?=\n))\s*(.*?)" + _SECTION_END,
    re.IGNORECASE | re.DOTALL,
)
_PREVENTION_RE = re.compile(
    r"(?:^|\n)\s*(?:Prevent(?:at)?ive Measures?|Prevention)[ \t]*(?::|(?=\n))\s*(.*?)" + _SECTION_END,
    re.IGNORECASE | re.DOTALL,
)
_RCA_KEYWORDS = ("root cause", "caused by", "due to")


# ---------------------------------------------------------------------------
# Text extraction helpers
# ---------------------------------------------------------------------------


def extract_time_range(text: str | None) -> tuple[str | None, str | None]:
    """Find an ``HH:MM - HH:MM`` range (hyphen or en dash) in free text."""
    if not text:
        return None, None
    match = _TIME_RANGE_RE.search(text)
    if match is None:
        return None, None
    return match.group(1), match.group(2)


def infer_incident_times(day: date, duration_minutes: int, description: str | None) -> tuple[str, str]:
    """Best-guess UTC start/end times for an incident, as ``HH:MM`` strings.

    An explicit range in the ticket description wins. Otherwise assume
    business-hour starts: 14:00 at weekends; on weekdays 10:30 for short
    incidents, 13:00 for medium ones and 09:00 for anything over two hours.
    """
    start, end = extract_time_range(description)
    if start is not None and end is not None:
        return start, end

    if day.weekday() >= 5:
        start_time = time(14, 0)
    elif duration_minutes <= 30:
        start_time = time(10, 30)
    elif duration_minutes <= 120:
        start_time = time(13, 0)
    else:
        start_time = time(9, 0)

    start_dt = datetime.combine(day, start_time)
    end_dt = start_dt + timedelta(minutes=duration_minutes)
    return f"{start_dt:%H:%M}", f"{end_dt:%H:%M}"


def extract_rca_summary(description: str | None) -> str:
    """Pull the RCA and preventative-measure sections out of a ticket description.

    Falls back to the first line mentioning a root cause when the ticket has
    no such headed sections. Returns an empty string when nothing relevant is found.
    """
    if not description:
        return ""

    parts: list[str] = []
    rca = _RCA_RE.search(description)
    if rca and rca.group(1).strip():
        parts.append(f"RCA: {rca.group(1).strip()}")
    prevention = _PREVENTION_RE.search(description)
    if prevention and prevention.group(1).strip():
        parts.append(f"Preventative Measures: {prevention.group(1).strip()}")

    if not parts:
        for line in description.splitlines():
            stripped = line.strip()
            if any(k in stripped.lower() for k in _RCA_KEYWORDS):
                parts.append(stripped)
                break

    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Standard (template) mode
# ---------------------------------------------------------------------------


def _as_sentence(text: str) -> str:
    return text if text.endswith(".") else f"{text}."


def format_description(cause: str, solution: str) -> str:
    """Join cause and solution into one narrative, each ending with a period."""
    return " ".join(_as_sentence(part) for part in (cause, solution) if part)


def format_entry(record: OutageRecord) -> str:
    """Render one record as a headline line followed by its narrative.

    ``October 05 (18:40 - 18:43 - 3min) Billing API (Regional)``
    """
    start, end = extract_time_range(record.enriched_description)
    if start is not None and end is not None:
        time_range = f" ({start} - {end} - {record.duration_minutes}min)"
    elif record.duration_minutes > 0:
        time_range = f" ({record.duration_minutes}min)"
    else:
        time_range = ""

    severity = f" ({record.severity})" if record.severity else ""
    headline = f"{record.date:%B %d}{time_range} {record.service_label}{severity}"
    return f"{headline}\n{format_description(record.cause, record.solution)}"


def render_standard_body(records: Sequence[OutageRecord]) -> str:
    """Blank-line-separated template entries, or the empty-week message."""
    if not records:
        return EMPTY_WEEK_MESSAGE
    return "\n\n".join(format_entry(r) for r in records)


# ---------------------------------------------------------------------------
# AI mode
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a technical writer creating executive stability reports. Focus heavily on "
    "PREVENTION - each incident must clearly explain what we're doing to prevent recurrence. "
    "Be concise and direct. Include AI recommendations after the email."
)


def _summarize_record(record: OutageRecord) -> str:
    start, end = infer_incident_times(record.date, record.duration_minutes, record.enriched_description)
    rca = extract_rca_summary(record.enriched_description)
    return (
        f"Date: {record.date:%A %B %d, %Y}\n"
        f"Service: {record.service_label}\n"
        f"Start Time: {start} UTC\n"
        f"End Time: {end} UTC\n"
        f"Duration: {record.duration_minutes} minutes\n"
        f"Severity: {record.severity or 'N/A'}\n"
        f"Cause: {record.cause}\n"
        f"Solution: {record.solution}\n"
        f"Jira RCA/Preventative Measures: {rca or 'N/A'}\n"
    )


def build_ai_prompt(records: Sequence[OutageRecord], window: ReportWindow) -> str:
    """Build the user prompt covering every record in the window."""
    raw_data = "\n---\n".join(_summarize_record(r) for r in records)
    return f"""Create a concise weekly stability report for week {window.week_number} ({window.start:%B %d} to {window.end:%B %d}).

Start the report with these two lines exactly:
Week {window.week_number} ({window.date_range_label})
All times UTC

Then format each incident EXACTLY like these examples:

Sept 15th (18:40 - 18:43 - 3min) Payments Gateway API (Regional)
A configuration change by our cloud provider caused a temporary disruption to the CDN. The change originated on the provider's side and was rolled back by them; we have added a synthetic check so a repeat is detected within a minute.

Sept 17th (15:07 - 15:12 - 5min) Customer Mail API (Regional)
Connection-pool exhaustion in the mail worker surfaced as database timeouts. The worker was restarted to restore service, and the pool limit is being raised alongside new saturation alerts so the condition is caught before it affects customers.

Raw data:
{raw_data}

CRITICAL REQUIREMENTS:
- Each incident MUST clearly explain what we're doing to PREVENT it from happening again
- If preventative measures aren't clear from the data, mention what should be done in the AI Recommendations section
- Keep descriptions to 2-3 sentences maximum
- Use the provided Start Time and End Time in UTC format (HH:MM - HH:MM)
- Use Month day format (Sept 15th, not September 15)
- Format: Sept 15th (18:40 - 18:43 - 3min) Service Name (Severity)
- Combine root cause, immediate resolution, AND prevention steps
- Include severity in parentheses if available
- End the email portion with "Regards,"
- This will be read by the CEO and CTO

AFTER the email content, add a separate section titled "--- AI RECOMMENDATIONS ---" with any additional prevention suggestions you think would be beneficial that weren't mentioned in the incidents.
"""


async def _try_ai_narrative(records: Sequence[OutageRecord], window: ReportWindow) -> NarrativeResult:
    """Attempt AI formatting, folding every failure into a standard-mode result."""
    prompt = build_ai_prompt(records, window)
    logger.debug("LM Studio request prompt:\n%s", prompt)
    try:
        text = await lm_studio.complete(SYSTEM_PROMPT, prompt)
    except TimeoutError:
        reason = "LM Studio request timed out"
    except Exception as e:
        reason = f"{type(e).__name__}: {e}"
    else:
        return NarrativeResult(text=text, mode=NarrativeMode.AI)

    logger.warning("Could not generate AI report: %s", reason)
    return NarrativeResult(
        text=render_standard_body(records),
        mode=NarrativeMode.STANDARD,
        fallback_reason=reason,
    )


async def format_narrative(
    records: Sequence[OutageRecord],
    window: ReportWindow,
    use_ai: bool | None = None,
) -> NarrativeResult:
    """Produce the report body for the whole batch in exactly one mode.

    Args:
        records: Filtered, ordered, possibly enriched records.
        window: Reporting window the records belong to.
        use_ai: Attempt AI formatting first. Defaults to the USE_AI setting.

    Returns:
        A NarrativeResult tagged with the mode that produced the text.
    """
    if use_ai is None:
        use_ai = get_settings().use_ai

    if not records:
        result = NarrativeResult(
            text=EMPTY_WEEK_MESSAGE,
            mode=NarrativeMode.STANDARD,
            fallback_reason="no outages in window",
        )
    elif not use_ai:
        result = NarrativeResult(
            text=render_standard_body(records),
            mode=NarrativeMode.STANDARD,
            fallback_reason="AI generation disabled",
        )
    else:
        logger.info("Generating AI-formatted report...")
        result = await _try_ai_narrative(records, window)

    if result.mode is NarrativeMode.STANDARD:
        logger.info("Using standard format")
    NARRATIVE_MODE_TOTAL.labels(mode=result.mode.value).inc()
    return result
