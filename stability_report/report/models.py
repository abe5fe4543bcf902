"""Pydantic models for outage records, reporting windows, and narrative outcomes."""

import datetime
from datetime import timedelta
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class OutageRecord(BaseModel):
    """One logged service-disruption event from the outage ledger."""

    date: datetime.date
    ticket_reference: str = ""
    service_name: str = ""
    system_or_service_category: str = ""
    duration_minutes: int = Field(default=0, ge=0)
    cause: str = ""
    solution: str = ""
    assignee: str = ""
    status: str = ""
    severity: str = ""
    # Set at most once, by the ticket enricher
    enriched_description: str | None = None

    @property
    def service_label(self) -> str:
        """Name shown in the entry headline; falls back to the category column."""
        return self.service_name or self.system_or_service_category


class ReportWindow(BaseModel):
    """A closed Sunday-through-Saturday date interval."""

    start: datetime.date
    end: datetime.date

    @model_validator(mode="after")
    def _check_week_shape(self) -> "ReportWindow":
        if self.start.weekday() != 6:
            raise ValueError(f"window must start on a Sunday, got {self.start:%A}")
        if self.end - self.start != timedelta(days=6):
            raise ValueError("window must span exactly seven days")
        return self

    @property
    def week_number(self) -> int:
        return self.start.isocalendar().week

    @property
    def date_range_label(self) -> str:
        return f"{self.start:%B %d} - {self.end:%B %d}"

    def contains(self, day: datetime.date) -> bool:
        return self.start <= day <= self.end


class NarrativeMode(StrEnum):
    AI = "ai"
    STANDARD = "standard"


class NarrativeResult(BaseModel):
    """Formatting outcome for a whole batch of records.

    Exactly one mode applies to the entire report body; ``fallback_reason``
    is set when AI formatting was skipped or failed.
    """

    text: str
    mode: NarrativeMode
    fallback_reason: str | None = None
