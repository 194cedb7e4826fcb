"""Event sanitizer: turns one raw stored event into a well-formed event.

The sanitizer never raises. Each call returns a SanitizeOutcome holding
either the sanitized event or the reason the event was skipped, so a single
corrupt record can never take down an export.
"""

from __future__ import annotations

import logging
import math
import random
import string
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from socialcal_export.core.timezone_utils import local_naive_to_utc

from .date_coercion import coerce_instant
from .models import DEFAULT_TITLE, UID_PREFIX, RawEvent, SanitizedEvent, SkippedEvent

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DURATION = timedelta(hours=1)
MISSING_START_REASON = "missing start"

_UID_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_UID_SUFFIX_LENGTH = 7

UidFactory = Callable[[datetime], str]


@dataclass(frozen=True)
class SanitizeOutcome:
    """Result of sanitizing one raw event: an event or a skip record."""

    event: Optional[SanitizedEvent] = None
    skip: Optional[SkippedEvent] = None

    @property
    def ok(self) -> bool:
        return self.event is not None


def generate_fallback_uid(now: datetime) -> str:
    """Build a unique id from the current time and a random base36 suffix.

    Args:
        now: Current naive local time

    Returns:
        Identifier of the form ``socialdashboard-event-<epoch-ms>-<suffix>``
    """
    millis = int(local_naive_to_utc(now).timestamp() * 1000)
    suffix = "".join(random.choices(_UID_SUFFIX_ALPHABET, k=_UID_SUFFIX_LENGTH))  # nosec B311 - not a secret
    return f"{UID_PREFIX}-{millis}-{suffix}"


def _is_blank(value: Any) -> bool:
    """Mirror the stored-record notion of "no value": None, empty string, zero, NaN or False."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, (bool, int, float)):
        return not value
    return False


def _utc_convertible(instant: datetime, fallback: datetime, field: str, event_id: str) -> datetime:
    """Return instant if it can be emitted as a UTC stamp, otherwise fallback."""
    try:
        local_naive_to_utc(instant)
    except (ValueError, OverflowError, OSError):
        logger.warning(
            "%s for event %s is outside the representable UTC range; using fallback. "
            "Original value: %s",
            field,
            event_id,
            instant,
        )
        return fallback
    return instant


def _text_or_default(value: Any, default: str) -> str:
    if _is_blank(value):
        return default
    return value if isinstance(value, str) else str(value)


def _event_label(raw: Union[RawEvent, Mapping[str, Any]]) -> str:
    event_id = raw.id if isinstance(raw, RawEvent) else raw.get("id")
    return str(event_id) if not _is_blank(event_id) else "unknown"


def _resolve_end(raw: RawEvent, start: datetime, all_day: bool, event_id: str) -> datetime:
    default_end = start + DEFAULT_EVENT_DURATION

    if not _is_blank(raw.end_date):
        result = coerce_instant(raw.end_date, default_end)
        if result.used_fallback:
            logger.warning(
                "Original endDate for event %s was invalid or unparsable; "
                "calculating fallback from startDate. Original value: %r",
                event_id,
                raw.end_date,
            )
        end = result.instant
    elif all_day:
        # All-day span is expressed as a one-day duration downstream
        end = start
    else:
        end = default_end

    if not all_day and end <= start:
        logger.warning(
            "endDate is not after startDate for event %s; adjusting to one hour after start",
            event_id,
        )
        end = default_end

    return end


def _sanitize(raw: RawEvent, now: datetime, uid_factory: UidFactory) -> SanitizeOutcome:
    event_id = _event_label(raw)

    if _is_blank(raw.start_date):
        logger.warning("Skipping event %s due to missing startDate", event_id)
        return SanitizeOutcome(skip=SkippedEvent(event_id=event_id, reason=MISSING_START_REASON))

    start_result = coerce_instant(raw.start_date, now)
    if start_result.used_fallback:
        logger.warning(
            "Original startDate for event %s was invalid or unparsable; using current time. "
            "Original value: %r",
            event_id,
            raw.start_date,
        )
    start = start_result.instant

    all_day = bool(raw.all_day)
    end = _resolve_end(raw, start, all_day, event_id)

    # CREATED and LAST-MODIFIED are emitted in UTC
    created = _utc_convertible(
        coerce_instant(raw.created_at, now).instant, now, "createdAt", event_id
    )
    updated = _utc_convertible(
        coerce_instant(raw.updated_at, created).instant, created, "updatedAt", event_id
    )

    source = None if _is_blank(raw.source) else str(raw.source)
    uid = str(raw.id) if not _is_blank(raw.id) else uid_factory(now)

    event = SanitizedEvent(
        uid=uid,
        title=_text_or_default(raw.title, DEFAULT_TITLE),
        description=_text_or_default(raw.description, ""),
        start=start,
        end=end,
        created=created,
        updated=updated,
        all_day=all_day,
        source=source,
        has_explicit_end=not _is_blank(raw.end_date),
    )
    return SanitizeOutcome(event=event)


def sanitize_event(
    raw: Union[RawEvent, Mapping[str, Any]],
    now: datetime,
    *,
    uid_factory: Optional[UidFactory] = None,
) -> SanitizeOutcome:
    """Sanitize one raw event record.

    Args:
        raw: RawEvent or a mapping with the stored event's keys
        now: Export-time "now" used for fallbacks (naive local)
        uid_factory: Optional override for generating missing identifiers

    Returns:
        SanitizeOutcome carrying either the event or the skip reason
    """
    event_id = "unknown"
    try:
        if not isinstance(raw, (RawEvent, Mapping)):
            return SanitizeOutcome(
                skip=SkippedEvent(reason=f"not an event record: {type(raw).__name__}")
            )
        event_id = _event_label(raw)
        if not isinstance(raw, RawEvent):
            raw = RawEvent.model_validate(dict(raw))
        return _sanitize(raw, now, uid_factory or generate_fallback_uid)
    except ValidationError as exc:
        logger.warning("Skipping event %s: record failed validation: %s", event_id, exc)
        return SanitizeOutcome(skip=SkippedEvent(event_id=event_id, reason=f"invalid record: {exc}"))
    # One corrupt record must not abort the batch
    except Exception as exc:
        logger.exception("Error processing event %s", event_id)
        return SanitizeOutcome(skip=SkippedEvent(event_id=event_id, reason=f"error: {exc}"))
