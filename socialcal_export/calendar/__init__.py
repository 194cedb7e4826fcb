"""Calendar event to iCalendar compilation: sanitizer, mapper and assembler."""

from .assembler import CALENDAR_PRODID, MINIMAL_CALENDAR, IcsDocumentAssembler
from .date_coercion import CoercionResult, classify_date_value, coerce_instant
from .field_mapper import compute_duration, map_category, map_event
from .models import (
    DurationParts,
    EventCategory,
    MappedEvent,
    RawEvent,
    SanitizedEvent,
    SkippedEvent,
)
from .sanitizer import SanitizeOutcome, sanitize_event

__all__ = [
    "CALENDAR_PRODID",
    "MINIMAL_CALENDAR",
    "CoercionResult",
    "DurationParts",
    "EventCategory",
    "IcsDocumentAssembler",
    "MappedEvent",
    "RawEvent",
    "SanitizeOutcome",
    "SanitizedEvent",
    "SkippedEvent",
    "classify_date_value",
    "coerce_instant",
    "compute_duration",
    "map_category",
    "map_event",
    "sanitize_event",
]
