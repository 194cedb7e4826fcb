"""Export pipeline: raw stored events in, one calendar document out.

Each raw event is sanitized and mapped on its own; events that fail either
step are dropped and recorded for diagnostics. The resulting batch is handed
to the assembler. Empty batches and serialization failures both produce a
header-only document, so callers always have a parseable body to return.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from socialcal_export.calendar.assembler import IcsDocumentAssembler
from socialcal_export.calendar.field_mapper import map_event
from socialcal_export.calendar.models import MappedEvent, RawEvent, SkippedEvent
from socialcal_export.calendar.sanitizer import UidFactory, sanitize_event
from socialcal_export.core.exceptions import CalendarSerializationError

logger = logging.getLogger(__name__)


class ExportOutcome(str, Enum):
    """How a compiled export should be reported to the client."""

    EVENTS = "events"
    EMPTY = "empty"
    SERIALIZATION_FAILED = "serialization_failed"


@dataclass
class CalendarExport:
    """Result of compiling one user's events."""

    body: str
    outcome: ExportOutcome
    total_events: int = 0
    exported_events: int = 0
    skipped: list[SkippedEvent] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.outcome is ExportOutcome.SERIALIZATION_FAILED


def _map_one(
    raw: Union[RawEvent, Mapping[str, Any]],
    now: datetime,
    uid_factory: Optional[UidFactory],
    skipped: list[SkippedEvent],
) -> Optional[MappedEvent]:
    outcome = sanitize_event(raw, now, uid_factory=uid_factory)
    if outcome.event is None:
        if outcome.skip is not None:
            skipped.append(outcome.skip)
        return None

    try:
        return map_event(outcome.event)
    # Mapping failures are isolated to the event, like sanitization failures
    except Exception as exc:
        logger.exception("Error mapping event %s", outcome.event.uid)
        skipped.append(SkippedEvent(event_id=outcome.event.uid, reason=f"error: {exc}"))
        return None


def compile_calendar(
    raw_events: Iterable[Union[RawEvent, Mapping[str, Any]]],
    now: datetime,
    *,
    user_id: str = "unknown",
    uid_factory: Optional[UidFactory] = None,
    assembler: Optional[IcsDocumentAssembler] = None,
) -> CalendarExport:
    """Compile raw stored events into a calendar document.

    Args:
        raw_events: Events in storage order
        now: Export-time "now" (naive local) used for every fallback
        user_id: Owner of the events, for log messages
        uid_factory: Optional override for generating missing identifiers
        assembler: Optional assembler (defaults to one stamped with ``now``)

    Returns:
        CalendarExport holding the document body and outcome
    """
    assembler = assembler or IcsDocumentAssembler(stamp=now)
    events = list(raw_events)
    skipped: list[SkippedEvent] = []

    mapped = [
        m for m in (_map_one(raw, now, uid_factory, skipped) for raw in events) if m is not None
    ]

    if not mapped:
        if events:
            logger.info(
                "No valid events to export for user %s after processing (%d skipped). "
                "Returning empty calendar.",
                user_id,
                len(skipped),
            )
        else:
            logger.info("No calendar events found for user %s. Returning empty calendar.", user_id)
        return CalendarExport(
            body=assembler.build_empty_document(),
            outcome=ExportOutcome.EMPTY,
            total_events=len(events),
            skipped=skipped,
        )

    try:
        body = assembler.serialize(mapped)
    except CalendarSerializationError:
        logger.exception(
            "Critical error creating ICS file for user %s (original=%d, processed=%d)",
            user_id,
            len(events),
            len(mapped),
        )
        return CalendarExport(
            body=assembler.build_empty_document(),
            outcome=ExportOutcome.SERIALIZATION_FAILED,
            total_events=len(events),
            skipped=skipped,
        )

    if skipped:
        logger.info(
            "Exported %d of %d events for user %s; skipped: %s",
            len(mapped),
            len(events),
            user_id,
            ", ".join(f"{s.event_id} ({s.reason})" for s in skipped),
        )
    else:
        logger.debug("Exported %d events for user %s", len(mapped), user_id)

    return CalendarExport(
        body=body,
        outcome=ExportOutcome.EVENTS,
        total_events=len(events),
        exported_events=len(mapped),
        skipped=skipped,
    )
