"""Maps sanitized events onto the fields the document assembler emits."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .models import (
    DateArray,
    DurationParts,
    EventCategory,
    EventStatus,
    MappedEvent,
    SanitizedEvent,
)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY

ALL_DAY_DURATION = DurationParts(days=1)
FALLBACK_DURATION = DurationParts(hours=1)

SOURCE_CATEGORIES: dict[str, EventCategory] = {
    "ai": EventCategory.AI_GENERATED,
    "manual": EventCategory.MANUAL,
}


def to_date_array(dt: datetime) -> DateArray:
    """Return ``(year, month, day, hour, minute)`` for a datetime."""
    return (dt.year, dt.month, dt.day, dt.hour, dt.minute)


def compute_duration(start: datetime, end: datetime) -> DurationParts:
    """Decompose the span between two instants into duration parts.

    Each unit is taken from the remainder of the next-larger one, so hours
    stay below 24, minutes and seconds below 60, and days below 7. A span
    that is zero or negative yields exactly one hour.

    Args:
        start: Start instant
        end: End instant

    Returns:
        DurationParts for ``end - start`` in whole seconds
    """
    span: timedelta = end - start
    if span <= timedelta(0):
        return FALLBACK_DURATION

    total = int(span.total_seconds())
    return DurationParts(
        weeks=total // SECONDS_PER_WEEK,
        days=(total % SECONDS_PER_WEEK) // SECONDS_PER_DAY,
        hours=(total % SECONDS_PER_DAY) // SECONDS_PER_HOUR,
        minutes=(total % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE,
        seconds=total % SECONDS_PER_MINUTE,
    )


def map_category(source: Optional[str]) -> EventCategory:
    """Map an event's source tag to its category label."""
    if not source:
        return EventCategory.GENERAL
    return SOURCE_CATEGORIES.get(source, EventCategory.MANUAL)


def map_event(event: SanitizedEvent) -> MappedEvent:
    """Build the serialization-ready form of a sanitized event.

    All-day events start at local midnight and carry a one-day duration with
    no end. Timed events carry their computed duration, and an explicit end
    only when the stored record had one.

    Args:
        event: Sanitized event

    Returns:
        MappedEvent ready for the assembler
    """
    end: Optional[DateArray] = None
    end_input_type: Optional[str] = None

    if event.all_day:
        start = event.start.replace(hour=0, minute=0)
        duration = ALL_DAY_DURATION
    else:
        start = event.start
        duration = compute_duration(event.start, event.end)
        if event.has_explicit_end:
            end = to_date_array(event.end)
            end_input_type = "local"

    return MappedEvent(
        title=event.title,
        description=event.description,
        start=to_date_array(start),
        start_input_type="local",
        end=end,
        end_input_type=end_input_type,
        duration=duration,
        created=to_date_array(event.created),
        last_modified=to_date_array(event.updated),
        uid=event.uid,
        categories=[map_category(event.source)],
        status=EventStatus.CONFIRMED,
    )
