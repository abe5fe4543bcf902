"""Prometheus metric definitions for report-generation instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Report metrics
# ---------------------------------------------------------------------------

REPORT_DURATION_BUCKETS = (1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0)

REPORTS_TOTAL = Counter(
    "stability_report_reports_total",
    "Total number of generated reports",
    labelnames=["trigger", "status"],
)

REPORT_DURATION = Histogram(
    "stability_report_report_duration_seconds",
    "Time taken to generate a report in seconds",
    buckets=REPORT_DURATION_BUCKETS,
)

# ---------------------------------------------------------------------------
# Upstream outcome metrics
# ---------------------------------------------------------------------------

NARRATIVE_MODE_TOTAL = Counter(
    "stability_report_narrative_mode_total",
    "Reports rendered per narrative mode (ai or standard)",
    labelnames=["mode"],
)

TICKET_LOOKUPS_TOTAL = Counter(
    "stability_report_ticket_lookups_total",
    "Jira description lookups by outcome",
    labelnames=["status"],
)
