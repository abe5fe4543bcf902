"""CSV outage-ledger loading and parsing."""

import logging
import re
from datetime import date
from pathlib import Path

import pandas as pd

from stability_report.report.models import OutageRecord

logger = logging.getLogger(__name__)

# Ledger column header -> OutageRecord field
COLUMN_MAP: dict[str, str] = {
    "Date": "date",
    "Ticket": "ticket_reference",
    "Name": "service_name",
    "CloudStack/Service": "system_or_service_category",
    "Duration (in minutes)": "duration_minutes",
    "Cause": "cause",
    "Solution": "solution",
    "Assignee": "assignee",
    "Status": "status",
    "Severity": "severity",
}

_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_HOURS_MINUTES_RE = re.compile(r"(\d+)\s*h\s*(\d+)\s*m")
_FIRST_NUMBER_RE = re.compile(r"(\d+)")


class OutageSourceError(Exception):
    """The outage ledger could not be read at all."""


def parse_ledger_date(value: str) -> date | None:
    """Parse a ``D/Mon/YY`` ledger date such as ``5/Oct/26``.

    Two-digit years are taken as 20YY. Returns None when the value does not
    have that shape or names an impossible day.
    """
    parts = value.strip().split("/")
    if len(parts) != 3:
        return None
    day_str, month_str, year_str = parts
    month = _MONTHS.get(month_str.strip().lower())
    if month is None:
        return None
    try:
        return date(2000 + int(year_str), month, int(day_str))
    except ValueError:
        return None


def parse_duration_minutes(value: str) -> int:
    """Parse a free-form duration cell into whole minutes.

    Accepts plain minutes (``45``, ``45 min``), ``hours+minutes`` (``4+29``)
    and ``4h29m``. Empty or unparsable cells count as 0.
    """
    text = value.strip().lower()
    if not text:
        return 0

    if "+" in text:
        hours_str, _, minutes_str = text.partition("+")
        minutes_str = minutes_str.replace("minutes", "").replace("min", "").strip()
        hours = int(hours_str) if hours_str.strip().isdigit() else 0
        minutes = int(minutes_str) if minutes_str.isdigit() else 0
        return hours * 60 + minutes

    match = _HOURS_MINUTES_RE.search(text)
    if match:
        return int(match.group(1)) * 60 + int(match.group(2))

    match = _FIRST_NUMBER_RE.search(text)
    if match:
        return int(match.group(1))

    logger.debug("Unparsable duration %r, using 0", value)
    return 0


def _row_to_record(row: dict[str, str]) -> OutageRecord | None:
    """Map one raw ledger row to an OutageRecord; None when the date is unusable."""
    day = parse_ledger_date(row.get("Date", ""))
    if day is None:
        return None
    fields: dict[str, object] = {
        field: row.get(column, "").strip() for column, field in COLUMN_MAP.items() if field != "date"
    }
    fields["date"] = day
    fields["duration_minutes"] = parse_duration_minutes(row.get("Duration (in minutes)", ""))
    return OutageRecord(**fields)  # type: ignore[arg-type]


def _reject_row(fields: list[str]) -> None:
    """``on_bad_lines`` hook: drop a row that has more fields than the header."""
    logger.warning(
        "Skipping invalid record dated %r: %d fields, more than the header allows",
        fields[0] if fields else "",
        len(fields),
    )


def _read_ledger(path: Path) -> pd.DataFrame:
    """Read the ledger as strings, dropping rows with more fields than the header.

    pandas takes an over-long *first* data row as an index column instead of
    reporting it, so that row is skipped explicitly and the file re-read.
    """
    skip: list[int] = []
    while True:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            engine="python",
            skiprows=skip,
            on_bad_lines=_reject_row,
        )
        if df.empty or isinstance(df.index, pd.RangeIndex):
            # Short rows are padded with NaN
            return df.fillna("")
        first_data_row = len(skip) + 1
        logger.warning(
            "Skipping invalid record on line %d: more fields than the header allows",
            first_data_row + 1,
        )
        skip.append(first_data_row)


def load_outage_records(csv_path: str | Path) -> list[OutageRecord]:
    """Load every valid outage record from the ledger CSV, in file order.

    Rows with an unparsable date or too many fields (an unquoted comma in a
    free-text cell) are skipped with a warning; the rest of the file is
    still loaded.

    Raises:
        OutageSourceError: The file is missing, unreadable, or has no Date column.
    """
    path = Path(csv_path)
    try:
        df = _read_ledger(path)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise OutageSourceError(f"Cannot read outage ledger {path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    if "Date" not in df.columns:
        raise OutageSourceError(f"Outage ledger {path} has no 'Date' column")

    records: list[OutageRecord] = []
    for row in df.to_dict(orient="records"):
        record = _row_to_record({str(k): str(v) for k, v in row.items()})
        if record is None:
            logger.warning("Skipping invalid record: unparsable date %r", row.get("Date"))
            continue
        records.append(record)

    logger.info("Loaded %d outage record(s) from %s", len(records), path)
    return records
