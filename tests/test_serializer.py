"""Unit tests for the calendar serializer and its fallback chain."""

import pytest
from icalendar import Calendar

from calsnap.dto import Event
from calsnap.errors import SerializationError
from calsnap.ics.serializer import (
    PLACEHOLDER_DOCUMENT,
    CalendarBuilder,
    CalendarSerializer,
    ManualCalendarBuilder,
    PlaceholderCalendarBuilder,
    StructuredCalendarBuilder,
    calendar_filename,
    escape_text,
    fold_line,
)

pytestmark = pytest.mark.unit


def _standup() -> Event:
    return Event(
        title="Standup",
        start_datetime="2025-01-01T09:00:00Z",
        end_datetime="2025-01-01T09:15:00Z",
        location="Room 4",
        description="Agenda[br]- updates[br][br][br][br]- blockers",
        original_link="https://example.com/standup",
    )


class _Exploding(CalendarBuilder):
    name = "exploding"

    def build(self, events, now):
        raise RuntimeError("boom")


class TestStructuredBuilder:
    def test_standup_document(self, now):
        document = CalendarSerializer().serialize([_standup()], now=now)

        assert "DTSTART:20250101T090000Z" in document
        assert "DTEND:20250101T091500Z" in document
        assert "SUMMARY:Standup" in document
        assert "https://example.com/standup" in document
        assert "METHOD:PUBLISH" in document
        assert "X-PUBLISHED-TTL:PT1H" in document

    def test_description_line_breaks_are_collapsed(self, now):
        document = StructuredCalendarBuilder().build([_standup()], now)
        event = Calendar.from_ical(document).walk("VEVENT")[0]
        assert str(event["DESCRIPTION"]) == "Agenda\n- updates\n\n- blockers"

    def test_one_block_per_event(self, now):
        events = [_standup(), {"title": "Retro", "start_datetime": "2025-01-02T15:00:00Z"}]
        document = StructuredCalendarBuilder().build(events, now)

        blocks = Calendar.from_ical(document).walk("VEVENT")
        assert [str(b["SUMMARY"]) for b in blocks] == ["Standup", "Retro"]
        assert blocks[1]["DTEND"].dt.isoformat() == "2025-01-02T16:00:00+00:00"
        assert all("UID" in b and "DTSTAMP" in b for b in blocks)

    def test_non_canonical_record_is_defaulted(self, now):
        document = StructuredCalendarBuilder().build([{"start_datetime": "garbage"}], now)
        assert "SUMMARY:Untitled Event" in document
        assert "DTSTART:20250610T000000Z" in document
        assert "DTEND:20250610T010000Z" in document

    @pytest.mark.parametrize("builder", [StructuredCalendarBuilder(), ManualCalendarBuilder()])
    def test_start_at_end_of_time_is_defaulted(self, builder, now):
        document = builder.build([{"title": "Far", "start_datetime": "9999-12-31T23:30:00Z"}], now)
        assert "DTSTART:20250610T000000Z" in document
        assert "DTEND:20250610T010000Z" in document

    def test_empty_list_is_an_error(self, now):
        with pytest.raises(SerializationError):
            StructuredCalendarBuilder().build([], now)


class TestManualBuilder:
    def test_first_event_only(self, now):
        document = ManualCalendarBuilder().build([_standup(), {"title": "Other"}], now)

        assert document.startswith("BEGIN:VCALENDAR\r\n")
        assert document.endswith("END:VCALENDAR\r\n")
        assert "SUMMARY:Standup" in document
        assert "Other" not in document
        assert "DTSTAMP:20250610T000000Z" in document
        assert "DTSTART:20250101T090000Z" in document
        assert "DESCRIPTION:Agenda\\n- updates\\n\\n- blockers" in document

    def test_manual_document_parses(self, now):
        document = ManualCalendarBuilder().build([{"title": "Lunch; with, friends", "location": "x" * 200}], now)
        event = Calendar.from_ical(document).walk("VEVENT")[0]
        assert str(event["SUMMARY"]) == "Lunch; with, friends"
        assert str(event["LOCATION"]) == "x" * 200

    def test_escape_text(self):
        assert escape_text("a;b,c\\d\ne") == "a\\;b\\,c\\\\d\\ne"

    def test_fold_line(self):
        folded = fold_line("DESCRIPTION:" + "y" * 150)
        assert all(len(part.encode("utf-8")) <= 75 for part in folded.split("\r\n"))
        assert folded.replace("\r\n ", "") == "DESCRIPTION:" + "y" * 150


class TestFallbackChain:
    def test_empty_list_returns_placeholder(self):
        document = CalendarSerializer().serialize([])
        assert document == PLACEHOLDER_DOCUMENT
        assert len(Calendar.from_ical(document).walk("VEVENT")) == 1

    def test_level_two_used_when_level_one_fails(self, now):
        serializer = CalendarSerializer([_Exploding(), ManualCalendarBuilder(), PlaceholderCalendarBuilder()])
        document = serializer.serialize([_standup()], now=now)
        assert "SUMMARY:Standup" in document
        assert document != PLACEHOLDER_DOCUMENT

    def test_corrupt_records_fall_through_to_placeholder(self, now):
        assert CalendarSerializer().serialize([42], now=now) == PLACEHOLDER_DOCUMENT

    def test_never_raises_even_if_every_builder_fails(self):
        assert CalendarSerializer([_Exploding()]).serialize([_standup()]) == PLACEHOLDER_DOCUMENT

    def test_envelope_is_stable(self, now):
        for events in ([], [_standup()], [_standup(), _standup()]):
            document = CalendarSerializer().serialize(events, now=now)
            assert document.startswith("BEGIN:VCALENDAR")
            assert document.rstrip().endswith("END:VCALENDAR")
            assert "VERSION:2.0" in document


class TestFilename:
    def test_single_event_uses_title(self):
        assert calendar_filename([_standup()]) == "Standup.ics"

    def test_several_events(self):
        assert calendar_filename([_standup(), _standup()]) == "events.ics"

    def test_unsafe_characters_are_replaced(self):
        assert calendar_filename([{"title": "Café/Night"}]) == "Caf__Night.ics"

    def test_missing_title(self):
        assert calendar_filename([{}]) == "event.ics"
