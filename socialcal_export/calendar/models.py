"""Data models for calendar export processing."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# (year, month, day, hour, minute), month 1-indexed
DateArray = tuple[int, int, int, int, int]

PRODUCT_ID = "SocialDashboard/CalendarExport"
DEFAULT_TITLE = "Untitled Event"
UID_PREFIX = "socialdashboard-event"


class EventCategory(str, Enum):
    """Category label emitted for an event's source tag."""

    GENERAL = "General"
    MANUAL = "Manual"
    AI_GENERATED = "AI Generated"


class EventStatus(str, Enum):
    """iCalendar VEVENT status values used by the export."""

    CONFIRMED = "CONFIRMED"


class RawEvent(BaseModel):
    """A calendar event record as returned by the event store.

    Date fields are deliberately untyped: stored events were written by
    several clients over time, so they hold timestamp objects, ISO strings,
    epoch milliseconds, or nothing at all.
    """

    id: Any = None
    title: Any = None
    description: Any = None
    start_date: Any = Field(default=None, alias="startDate")
    end_date: Any = Field(default=None, alias="endDate")
    all_day: Any = Field(default=None, alias="allDay")
    created_at: Any = Field(default=None, alias="createdAt")
    updated_at: Any = Field(default=None, alias="updatedAt")
    source: Any = None
    user_id: Any = Field(default=None, alias="userId")

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        arbitrary_types_allowed=True,
    )


class SanitizedEvent(BaseModel):
    """An event whose temporal and textual fields are all well-formed."""

    uid: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    start: datetime
    end: datetime
    created: datetime
    updated: datetime
    all_day: bool = False
    source: Optional[str] = None
    has_explicit_end: bool = False


class DurationParts(BaseModel):
    """An iCalendar duration broken down largest-unit-first."""

    weeks: int = Field(default=0, ge=0)
    days: int = Field(default=0, ge=0)
    hours: int = Field(default=0, ge=0)
    minutes: int = Field(default=0, ge=0)
    seconds: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    def total_seconds(self) -> int:
        """Sum the parts back into a number of seconds."""
        return (
            self.weeks * 7 * 24 * 60 * 60
            + self.days * 24 * 60 * 60
            + self.hours * 3600
            + self.minutes * 60
            + self.seconds
        )

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.total_seconds())


class MappedEvent(BaseModel):
    """Serialization-ready representation of one sanitized event.

    Exactly one of ``end`` and ``duration`` is emitted by the assembler:
    DTEND when ``end`` is set, DURATION otherwise. ``duration`` is always
    populated so callers can inspect the span of timed events too.
    """

    title: str
    description: str
    start: DateArray
    start_input_type: str = "local"
    end: Optional[DateArray] = None
    end_input_type: Optional[str] = None
    duration: DurationParts
    created: DateArray
    last_modified: DateArray
    uid: str
    categories: list[EventCategory]
    status: EventStatus = EventStatus.CONFIRMED
    product_id: str = PRODUCT_ID

    model_config = ConfigDict(frozen=True)


class SkippedEvent(BaseModel):
    """Diagnostic record for an event dropped from the export."""

    event_id: str = "unknown"
    reason: str
