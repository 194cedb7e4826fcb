"""Unit tests for socialcal_export.calendar.sanitizer."""

import re
from datetime import datetime, timedelta

import pytest

from socialcal_export.calendar.models import DEFAULT_TITLE, RawEvent
from socialcal_export.core.timezone_utils import local_naive_to_utc
from socialcal_export.calendar.sanitizer import (
    MISSING_START_REASON,
    generate_fallback_uid,
    sanitize_event,
)

pytestmark = pytest.mark.unit


class _BrokenTimestamp:
    def to_datetime(self) -> datetime:
        raise RuntimeError("corrupt timestamp")


class TestSanitizeEventSkips:
    """Records that cannot become events are skipped, never raised."""

    @pytest.mark.parametrize("start", [None, "", 0, False, float("nan")])
    def test_sanitize_when_start_blank_then_skipped(self, fixed_now, start) -> None:
        outcome = sanitize_event({"id": "evt-9", "startDate": start}, fixed_now)

        assert not outcome.ok
        assert outcome.event is None
        assert outcome.skip is not None
        assert outcome.skip.event_id == "evt-9"
        assert outcome.skip.reason == MISSING_START_REASON

    def test_sanitize_when_start_key_absent_then_skipped(self, fixed_now) -> None:
        outcome = sanitize_event({"title": "No start"}, fixed_now)

        assert outcome.skip is not None
        assert outcome.skip.event_id == "unknown"

    @pytest.mark.parametrize("raw", ["not a record", 42, None, ["2025-01-01"]])
    def test_sanitize_when_not_a_mapping_then_skipped(self, fixed_now, raw) -> None:
        outcome = sanitize_event(raw, fixed_now)

        assert outcome.skip is not None
        assert outcome.skip.reason.startswith("not an event record")


class TestSanitizeEventFields:
    """Field defaults and fallbacks on sanitized events."""

    def test_sanitize_when_complete_then_fields_preserved(self, fixed_now, timed_event) -> None:
        outcome = sanitize_event(timed_event, fixed_now)

        event = outcome.event
        assert outcome.ok
        assert event.uid == "evt-1"
        assert event.title == "Launch post"
        assert event.description == "Publish the spring campaign"
        assert event.start == datetime(2025, 3, 12, 10, 0)
        assert event.end == datetime(2025, 3, 12, 11, 30)
        assert event.created == datetime(2025, 3, 1, 8, 0)
        assert event.updated == datetime(2025, 3, 2, 8, 0)
        assert event.all_day is False
        assert event.source == "manual"
        assert event.has_explicit_end is True

    def test_sanitize_when_title_and_description_missing_then_defaults(self, fixed_now) -> None:
        outcome = sanitize_event({"id": "a", "startDate": "2025-03-12T10:00:00"}, fixed_now)

        assert outcome.event.title == DEFAULT_TITLE
        assert outcome.event.description == ""

    def test_sanitize_when_title_empty_then_default(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "title": "", "startDate": "2025-03-12T10:00:00"}, fixed_now
        )

        assert outcome.event.title == DEFAULT_TITLE

    def test_sanitize_when_id_missing_then_uid_generated(self, fixed_now, sequential_uids) -> None:
        outcome = sanitize_event(
            {"startDate": "2025-03-12T10:00:00"}, fixed_now, uid_factory=sequential_uids
        )

        assert outcome.event.uid == "gen-1"

    def test_sanitize_when_numeric_id_then_uid_is_text(self, fixed_now) -> None:
        outcome = sanitize_event({"id": 42, "startDate": "2025-03-12T10:00:00"}, fixed_now)

        assert outcome.event.uid == "42"

    def test_sanitize_when_start_unparsable_then_uses_now(self, fixed_now) -> None:
        outcome = sanitize_event({"id": "a", "startDate": "garbage"}, fixed_now)

        assert outcome.event.start == fixed_now
        assert outcome.event.end == fixed_now + timedelta(hours=1)

    def test_sanitize_when_start_conversion_raises_then_uses_now(self, fixed_now) -> None:
        outcome = sanitize_event({"id": "a", "startDate": _BrokenTimestamp()}, fixed_now)

        assert outcome.ok
        assert outcome.event.start == fixed_now

    def test_sanitize_when_created_missing_then_now_and_updated_follows(self, fixed_now) -> None:
        outcome = sanitize_event({"id": "a", "startDate": "2025-03-12T10:00:00"}, fixed_now)

        assert outcome.event.created == fixed_now
        assert outcome.event.updated == fixed_now

    def test_sanitize_when_updated_missing_then_equals_created(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12T10:00:00", "createdAt": "2025-02-01T12:00:00"},
            fixed_now,
        )

        assert outcome.event.updated == datetime(2025, 2, 1, 12, 0)

    def test_sanitize_when_stamps_at_calendar_limits_then_utc_convertible(self, fixed_now) -> None:
        outcome = sanitize_event(
            {
                "id": "a",
                "startDate": "2025-03-12T10:00:00",
                "createdAt": "0001-01-01T00:00:00",
                "updatedAt": "9999-12-31T23:59:59",
            },
            fixed_now,
        )

        event = outcome.event
        assert outcome.ok
        assert event.created in (fixed_now, datetime(1, 1, 1))
        assert event.updated in (event.created, datetime(9999, 12, 31, 23, 59, 59))
        local_naive_to_utc(event.created)
        local_naive_to_utc(event.updated)

    @pytest.mark.parametrize("source", [None, ""])
    def test_sanitize_when_source_blank_then_none(self, fixed_now, source) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12T10:00:00", "source": source}, fixed_now
        )

        assert outcome.event.source is None

    def test_sanitize_when_given_raw_event_model_then_accepted(self, fixed_now) -> None:
        raw = RawEvent(id="m1", start_date="2025-03-12T10:00:00", source="ai")

        outcome = sanitize_event(raw, fixed_now)

        assert outcome.event.uid == "m1"
        assert outcome.event.source == "ai"

    def test_sanitize_when_extra_fields_then_ignored(self, fixed_now, timed_event) -> None:
        timed_event["platform"] = "instagram"

        assert sanitize_event(timed_event, fixed_now).ok


class TestSanitizeEventEnd:
    """End derivation rules."""

    def test_sanitize_when_no_end_then_one_hour_after_start(self, fixed_now) -> None:
        outcome = sanitize_event({"id": "a", "startDate": "2025-03-12T10:00:00"}, fixed_now)

        assert outcome.event.end == datetime(2025, 3, 12, 11, 0)
        assert outcome.event.has_explicit_end is False

    def test_sanitize_when_end_before_start_then_one_hour_after_start(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12T10:00:00", "endDate": "2025-03-12T09:00:00"},
            fixed_now,
        )

        assert outcome.event.end == datetime(2025, 3, 12, 11, 0)
        assert outcome.event.has_explicit_end is True

    def test_sanitize_when_end_equals_start_then_one_hour_after_start(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12T10:00:00", "endDate": "2025-03-12T10:00:00"},
            fixed_now,
        )

        assert outcome.event.end == datetime(2025, 3, 12, 11, 0)

    def test_sanitize_when_end_unparsable_then_one_hour_after_start(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12T10:00:00", "endDate": "garbage"},
            fixed_now,
        )

        assert outcome.event.end == datetime(2025, 3, 12, 11, 0)

    def test_sanitize_when_all_day_without_end_then_end_is_start(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12", "allDay": True}, fixed_now
        )

        assert outcome.event.all_day is True
        assert outcome.event.end == outcome.event.start
        assert outcome.event.has_explicit_end is False

    def test_sanitize_when_all_day_end_before_start_then_kept(self, fixed_now) -> None:
        outcome = sanitize_event(
            {"id": "a", "startDate": "2025-03-12", "endDate": "2025-03-11", "allDay": True},
            fixed_now,
        )

        assert outcome.event.end == datetime(2025, 3, 11)


class TestGenerateFallbackUid:
    """Fallback identifier format."""

    def test_generate_fallback_uid_when_called_then_prefixed_with_millis(self, fixed_now) -> None:
        uid = generate_fallback_uid(fixed_now)

        match = re.fullmatch(r"socialdashboard-event-(\d+)-([a-z0-9]{7})", uid)
        assert match is not None
        assert int(match.group(1)) == int(fixed_now.astimezone().timestamp() * 1000)

    def test_generate_fallback_uid_when_called_twice_then_distinct(self, fixed_now) -> None:
        uids = {generate_fallback_uid(fixed_now) for _ in range(20)}

        assert len(uids) > 1
