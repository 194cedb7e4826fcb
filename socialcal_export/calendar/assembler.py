"""Document assembler: renders mapped events as one iCalendar document.

DTSTART and DTEND are emitted as floating local times. DTSTAMP, CREATED and
LAST-MODIFIED are converted to UTC as RFC 5545 requires for those
properties.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from icalendar import Calendar, Event

from socialcal_export.core.exceptions import CalendarSerializationError
from socialcal_export.core.timezone_utils import local_naive_to_utc

from .models import DateArray, MappedEvent

logger = logging.getLogger(__name__)

CALENDAR_PRODID = "-//SocialDashboard//CalendarExport//EN"
CALENDAR_VERSION = "2.0"

# Used when even the library rendering of an empty calendar fails
MINIMAL_CALENDAR = (
    "BEGIN:VCALENDAR\r\n"
    f"VERSION:{CALENDAR_VERSION}\r\n"
    f"PRODID:{CALENDAR_PRODID}\r\n"
    "END:VCALENDAR\r\n"
)


def _from_date_array(value: DateArray) -> datetime:
    year, month, day, hour, minute = value
    return datetime(year, month, day, hour, minute)


class IcsDocumentAssembler:
    """Builds calendar documents for one export request."""

    def __init__(self, stamp: datetime, prodid: str = CALENDAR_PRODID):
        """Initialize assembler.

        Args:
            stamp: Export-time "now" (naive local), emitted as DTSTAMP
            prodid: Calendar product identifier
        """
        self.stamp = local_naive_to_utc(stamp)
        self.prodid = prodid

    def _build_calendar(self) -> Calendar:
        cal = Calendar()
        cal.add("version", CALENDAR_VERSION)
        cal.add("prodid", self.prodid)
        cal.add("calscale", "GREGORIAN")
        cal.add("method", "PUBLISH")
        return cal

    def _build_vevent(self, mapped: MappedEvent) -> Event:
        vevent = Event()
        vevent.add("uid", mapped.uid)
        vevent.add("dtstamp", self.stamp)
        vevent.add("summary", mapped.title)
        vevent.add("description", mapped.description)
        vevent.add("dtstart", _from_date_array(mapped.start))
        if mapped.end is not None:
            vevent.add("dtend", _from_date_array(mapped.end))
        else:
            vevent.add("duration", mapped.duration.to_timedelta())
        vevent.add("created", local_naive_to_utc(_from_date_array(mapped.created)))
        vevent.add("last-modified", local_naive_to_utc(_from_date_array(mapped.last_modified)))
        for category in mapped.categories:
            vevent.add("categories", category.value)
        vevent.add("status", mapped.status.value)
        return vevent

    def build_empty_document(self) -> str:
        """Render a header-only calendar with no event blocks."""
        try:
            return self._build_calendar().to_ical().decode("utf-8")
        except (ValueError, TypeError, UnicodeDecodeError):
            logger.exception("Failed to render empty calendar; using minimal document")
            return MINIMAL_CALENDAR

    def serialize(self, events: Sequence[MappedEvent]) -> str:
        """Render mapped events, in order, as one calendar document.

        Args:
            events: Mapped events in storage order

        Returns:
            iCalendar document text

        Raises:
            CalendarSerializationError: If any event cannot be encoded
        """
        try:
            cal = self._build_calendar()
            for mapped in events:
                cal.add_component(self._build_vevent(mapped))
            return cal.to_ical().decode("utf-8")
        except (ValueError, TypeError, UnicodeDecodeError) as exc:
            raise CalendarSerializationError(
                f"failed to encode {len(events)} events: {exc}"
            ) from exc
