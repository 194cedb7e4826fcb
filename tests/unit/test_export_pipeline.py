"""Unit tests for socialcal_export.domain.export_pipeline."""

from datetime import datetime, timedelta

import pytest
from icalendar import Calendar

from socialcal_export.calendar.assembler import IcsDocumentAssembler
from socialcal_export.calendar.sanitizer import MISSING_START_REASON
from socialcal_export.core.exceptions import CalendarSerializationError
from socialcal_export.domain.export_pipeline import ExportOutcome, compile_calendar

pytestmark = pytest.mark.unit


def _vevents(body: str) -> list:
    return Calendar.from_ical(body).walk("VEVENT")


class TestCompileCalendar:
    """End-to-end compilation of raw events."""

    def test_compile_when_no_events_then_empty_header_only(self, fixed_now) -> None:
        export = compile_calendar([], fixed_now, user_id="user-1")

        assert export.outcome is ExportOutcome.EMPTY
        assert not export.is_error
        assert export.total_events == 0
        assert "BEGIN:VCALENDAR" in export.body
        assert "BEGIN:VEVENT" not in export.body

    def test_compile_when_one_invalid_and_one_valid_then_only_valid_exported(
        self, fixed_now, timed_event
    ) -> None:
        broken = {"id": "evt-broken", "title": "No start"}

        export = compile_calendar([broken, timed_event], fixed_now, user_id="user-1")

        assert export.outcome is ExportOutcome.EVENTS
        assert export.total_events == 2
        assert export.exported_events == 1
        assert [s.event_id for s in export.skipped] == ["evt-broken"]
        assert export.skipped[0].reason == MISSING_START_REASON
        vevents = _vevents(export.body)
        assert len(vevents) == 1
        assert str(vevents[0].get("uid")) == "evt-1"

    def test_compile_when_created_at_year_one_then_all_events_exported(self, fixed_now) -> None:
        raws = [
            {"id": "good", "startDate": "2025-03-12T10:00:00"},
            {"id": "ancient", "startDate": "2025-03-12T10:00:00", "createdAt": "0001-01-01T00:00:00"},
        ]

        export = compile_calendar(raws, fixed_now)

        assert export.outcome is ExportOutcome.EVENTS
        assert not export.is_error
        assert export.exported_events == 2
        assert [str(v.get("uid")) for v in _vevents(export.body)] == ["good", "ancient"]

    def test_compile_when_all_day_without_end_then_one_day_duration(self, fixed_now) -> None:
        raw = {"id": "day-1", "title": "Campaign day", "startDate": "2025-03-14", "allDay": True}

        vevent = _vevents(compile_calendar([raw], fixed_now).body)[0]

        assert vevent.decoded("dtstart") == datetime(2025, 3, 14, 0, 0)
        assert vevent.decoded("duration") == timedelta(days=1)
        assert vevent.get("dtend") is None

    def test_compile_when_end_before_start_then_end_one_hour_after_start(self, fixed_now) -> None:
        raw = {
            "id": "evt-2",
            "startDate": "2025-03-12T10:00:00",
            "endDate": "2025-03-12T08:00:00",
        }

        vevent = _vevents(compile_calendar([raw], fixed_now).body)[0]

        assert vevent.decoded("dtend") == datetime(2025, 3, 12, 11, 0)

    def test_compile_when_timed_without_end_then_one_hour_duration(self, fixed_now) -> None:
        raw = {"id": "evt-3", "startDate": "2025-03-12T10:00:00"}

        vevent = _vevents(compile_calendar([raw], fixed_now).body)[0]

        assert vevent.get("dtend") is None
        assert vevent.decoded("duration") == timedelta(hours=1)

    def test_compile_when_every_event_invalid_then_empty(self, fixed_now) -> None:
        raws = [{"id": "a"}, "not a record", {"id": "b", "startDate": ""}]

        export = compile_calendar(raws, fixed_now)

        assert export.outcome is ExportOutcome.EMPTY
        assert export.total_events == 3
        assert len(export.skipped) == 3
        assert "BEGIN:VEVENT" not in export.body

    def test_compile_when_events_then_storage_order_kept(self, fixed_now) -> None:
        raws = [
            {"id": "late", "startDate": "2025-12-01T10:00:00"},
            {"id": "early", "startDate": "2025-01-01T10:00:00"},
        ]

        vevents = _vevents(compile_calendar(raws, fixed_now).body)

        assert [str(v.get("uid")) for v in vevents] == ["late", "early"]

    def test_compile_when_missing_fields_then_fallbacks_use_now(
        self, fixed_now, sequential_uids
    ) -> None:
        raws = [{"startDate": "2025-03-12T10:00:00"}]

        export = compile_calendar(raws, fixed_now, uid_factory=sequential_uids)
        vevent = _vevents(export.body)[0]

        assert str(vevent.get("uid")) == "gen-1"
        assert str(vevent.get("summary")) == "Untitled Event"
        assert "CATEGORIES:General" in export.body.split("\r\n")

    def test_compile_when_same_input_and_clock_then_identical_output(
        self, fixed_now, timed_event
    ) -> None:
        raws = [timed_event, {"id": "evt-2", "startDate": "2025-03-13", "allDay": True}]

        first = compile_calendar(raws, fixed_now)
        second = compile_calendar(raws, fixed_now)

        assert first.body == second.body

    def test_compile_when_rendered_then_round_trips_through_parser(
        self, fixed_now, timed_event
    ) -> None:
        export = compile_calendar([timed_event], fixed_now)
        vevent = _vevents(export.body)[0]

        assert str(vevent.get("summary")) == "Launch post"
        assert str(vevent.get("description")) == "Publish the spring campaign"
        assert vevent.decoded("dtstart") == datetime(2025, 3, 12, 10, 0)
        assert vevent.decoded("dtend") == datetime(2025, 3, 12, 11, 30)
        assert str(vevent.get("status")) == "CONFIRMED"

    def test_compile_when_serialization_fails_then_error_with_header_only_body(
        self, fixed_now, timed_event, monkeypatch
    ) -> None:
        assembler = IcsDocumentAssembler(stamp=fixed_now)

        def _fail(_events):
            raise CalendarSerializationError("boom")

        monkeypatch.setattr(assembler, "serialize", _fail)

        export = compile_calendar([timed_event], fixed_now, assembler=assembler)

        assert export.outcome is ExportOutcome.SERIALIZATION_FAILED
        assert export.is_error
        assert export.body.startswith("BEGIN:VCALENDAR")
        assert "BEGIN:VEVENT" not in export.body

    def test_compile_when_mapping_raises_then_event_skipped(
        self, fixed_now, timed_event, monkeypatch
    ) -> None:
        import socialcal_export.domain.export_pipeline as pipeline

        def _fail(_event):
            raise RuntimeError("unmappable")

        monkeypatch.setattr(pipeline, "map_event", _fail)

        export = compile_calendar([timed_event], fixed_now)

        assert export.outcome is ExportOutcome.EMPTY
        assert export.skipped[0].event_id == "evt-1"
        assert export.skipped[0].reason == "error: unmappable"
