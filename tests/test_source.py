"""Unit tests for the CSV outage-ledger source."""

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from stability_report.report.source import (
    OutageSourceError,
    load_outage_records,
    parse_duration_minutes,
    parse_ledger_date,
)


class TestParseLedgerDate:
    def test_day_month_two_digit_year(self) -> None:
        assert parse_ledger_date("5/Oct/26") == date(2026, 10, 5)

    def test_zero_padded_day_and_lowercase_month(self) -> None:
        assert parse_ledger_date(" 05/oct/26 ") == date(2026, 10, 5)

    def test_impossible_day(self) -> None:
        assert parse_ledger_date("31/Feb/26") is None

    def test_unknown_month(self) -> None:
        assert parse_ledger_date("5/Foo/26") is None

    def test_wrong_shape(self) -> None:
        assert parse_ledger_date("2026-10-05") is None
        assert parse_ledger_date("") is None


class TestParseDurationMinutes:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("45", 45),
            ("45 min", 45),
            ("4+29", 269),
            ("1 + 30 min", 90),
            ("4h29m", 269),
            ("", 0),
            ("unknown", 0),
        ],
    )
    def test_formats(self, raw: str, expected: int) -> None:
        assert parse_duration_minutes(raw) == expected


class TestLoadOutageRecords:
    def test_loads_rows_in_file_order(self, write_ledger: Any) -> None:
        path = write_ledger(
            '8/Oct/26,https://jira.test/browse/OPS-123,Mail Relay,Global,12,"Queue backed up, retries stalled",'
            "Flushed the queue,bob,Resolved,Global",
            "5/Oct/26,,Billing API,Regional,4+29,Disk full,Rotated logs,alice,Resolved,Regional",
        )

        records = load_outage_records(path)

        assert len(records) == 2
        first, second = records
        assert first.date == date(2026, 10, 8)
        assert first.ticket_reference == "https://jira.test/browse/OPS-123"
        assert first.service_name == "Mail Relay"
        assert first.system_or_service_category == "Global"
        assert first.duration_minutes == 12
        assert first.cause == "Queue backed up, retries stalled"
        assert first.assignee == "bob"
        assert first.enriched_description is None
        assert second.ticket_reference == ""
        assert second.duration_minutes == 269

    def test_skips_rows_with_bad_dates(self, write_ledger: Any, caplog: pytest.LogCaptureFixture) -> None:
        path = write_ledger(
            "not-a-date,,Billing API,Regional,5,Cause,Fix,,,",
            "6/Oct/26,,Billing API,Regional,5,Cause,Fix,,,",
        )

        records = load_outage_records(path)

        assert [r.date for r in records] == [date(2026, 10, 6)]
        assert "Skipping invalid record" in caplog.text

    def test_skips_row_with_unquoted_comma(self, write_ledger: Any, caplog: pytest.LogCaptureFixture) -> None:
        path = write_ledger(
            "6/Oct/26,,Mail Relay,Global,12,Queue backed up,Flushed the queue,bob,Resolved,Global",
            "5/Oct/26,,Billing API,Regional,5,Disk full, logs grew,Rotated logs,alice,Resolved,Regional",
            "7/Oct/26,,Search,Regional,3,Index rebuild,Rebuilt index,carol,Resolved,Regional",
        )

        records = load_outage_records(path)

        assert [r.date for r in records] == [date(2026, 10, 6), date(2026, 10, 7)]
        assert [r.service_name for r in records] == ["Mail Relay", "Search"]
        assert "Skipping invalid record dated '5/Oct/26'" in caplog.text

    def test_skips_first_row_with_unquoted_comma(self, write_ledger: Any, caplog: pytest.LogCaptureFixture) -> None:
        path = write_ledger(
            "5/Oct/26,,Billing API,Regional,5,Disk full, logs grew,Rotated logs,alice,Resolved,Regional",
            "6/Oct/26,,Mail Relay,Global,12,Queue backed up,Flushed the queue,bob,Resolved,Global",
        )

        records = load_outage_records(path)

        assert len(records) == 1
        assert records[0].date == date(2026, 10, 6)
        assert records[0].service_name == "Mail Relay"
        assert records[0].cause == "Queue backed up"
        assert records[0].severity == "Global"
        assert "Skipping invalid record on line 2" in caplog.text

    def test_skips_consecutive_leading_rows_with_extra_fields(
        self, write_ledger: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = write_ledger(
            "4/Oct/26,,Search,Regional,3,Index rebuild, again,Rebuilt index,carol,Resolved,Regional",
            "5/Oct/26,,Billing API,Regional,5,Disk full, logs grew,Rotated logs,alice,Resolved,Regional",
            "6/Oct/26,,Mail Relay,Global,12,Queue backed up,Flushed the queue,bob,Resolved,Global",
        )

        records = load_outage_records(path)

        assert [r.service_name for r in records] == ["Mail Relay"]
        assert "line 2" in caplog.text
        assert "line 3" in caplog.text

    def test_short_row_is_padded_with_empty_fields(self, write_ledger: Any) -> None:
        path = write_ledger("6/Oct/26,,Search")

        records = load_outage_records(path)

        assert records[0].service_name == "Search"
        assert records[0].severity == ""
        assert records[0].duration_minutes == 0

    def test_empty_optional_fields_are_kept(self, write_ledger: Any) -> None:
        path = write_ledger("6/Oct/26,,,,,,,,,")

        records = load_outage_records(path)

        assert len(records) == 1
        assert records[0].service_name == ""
        assert records[0].duration_minutes == 0
        assert records[0].severity == ""

    def test_missing_optional_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "minimal.csv"
        _ = path.write_text("Date,Cause\n6/Oct/26,Power loss\n", encoding="utf-8")

        records = load_outage_records(path)

        assert records[0].cause == "Power loss"
        assert records[0].solution == ""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OutageSourceError, match="Cannot read outage ledger"):
            load_outage_records(tmp_path / "missing.csv")

    def test_missing_date_column_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        _ = path.write_text("When,Cause\n6/Oct/26,Power loss\n", encoding="utf-8")

        with pytest.raises(OutageSourceError, match="no 'Date' column"):
            load_outage_records(path)

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        _ = path.write_text("", encoding="utf-8")

        with pytest.raises(OutageSourceError):
            load_outage_records(path)
