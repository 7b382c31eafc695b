"""Unit tests for oracle response decoding and field defaulting."""

import pytest

from calsnap.canonical.events import canonicalize_candidate, canonicalize_response, placeholder_event
from calsnap.canonical.parser import Empty, EventArray, SingleEvent, decode_oracle_text, iter_balanced_spans

pytestmark = pytest.mark.unit


class TestDecode:
    def test_array_inside_prose_and_fences(self):
        text = 'Here you go:\n```json\n[{"title": "A"}, {"title": "B"}]\n```\nEnjoy!'
        result = decode_oracle_text(text)
        assert isinstance(result, EventArray)
        assert [c["title"] for c in result.candidates] == ["A", "B"]

    def test_single_object(self):
        result = decode_oracle_text('Sure! {"title": "Standup", "start_datetime": "2025-01-01T09:00:00Z"}')
        assert result == SingleEvent({"title": "Standup", "start_datetime": "2025-01-01T09:00:00Z"})

    def test_array_takes_precedence_over_object(self):
        result = decode_oracle_text('{"note": "x"} then [{"title": "A"}]')
        assert isinstance(result, EventArray)

    def test_wrapped_events_object(self):
        result = decode_oracle_text('{"events": [{"title": "A"}, "junk", {"title": "B"}]}')
        assert result == EventArray([{"title": "A"}, {"title": "B"}])

    def test_array_without_events_falls_through_to_object(self):
        result = decode_oracle_text('{"title": "Only", "tags": ["a", "b"]}')
        assert isinstance(result, SingleEvent)
        assert result.candidate["title"] == "Only"

    def test_brackets_inside_strings_are_ignored(self):
        text = '[{"title": "Room [B] ]", "description": "use } carefully"}]'
        spans = list(iter_balanced_spans(text, "[", "]"))
        assert spans[0] == text

    def test_no_json(self):
        assert decode_oracle_text("I could not find any events.") == Empty("I could not find any events.")

    def test_broken_json(self):
        assert isinstance(decode_oracle_text('[{"title": "A",]'), Empty)

    def test_empty_text(self):
        assert decode_oracle_text("") == Empty("")


class TestCandidateDefaults:
    def test_start_without_end_gets_one_hour(self, now):
        event = canonicalize_candidate({"title": "Fair", "startDate": "2025-03-01T10:00:00Z"}, now=now)
        assert event.start_datetime == "2025-03-01T10:00:00Z"
        assert event.end_datetime == "2025-03-01T11:00:00Z"

    def test_invalid_start_is_replaced_by_now(self, now):
        event = canonicalize_candidate({"title": "X", "start_datetime": "not-a-date"}, now=now)
        assert event.start_datetime == "2025-06-10T00:00:00Z"
        assert event.end_datetime == "2025-06-10T01:00:00Z"

    def test_impossible_calendar_date_is_invalid(self, now):
        event = canonicalize_candidate({"start_datetime": "2025-02-30T10:00:00Z"}, now=now)
        assert event.start_datetime == "2025-06-10T00:00:00Z"

    def test_start_at_end_of_time_is_replaced_by_now(self, now):
        events = canonicalize_response('{"title": "X", "start_datetime": "9999-12-31T23:30:00Z"}', now=now)
        assert len(events) == 1
        assert events[0].title == "X"
        assert events[0].start_datetime == "2025-06-10T00:00:00Z"
        assert events[0].end_datetime == "2025-06-10T01:00:00Z"

    def test_start_at_end_of_time_keeps_explicit_end(self, now):
        event = canonicalize_candidate({
            "start_datetime": "9999-12-31T23:30:00Z",
            "end_datetime": "9999-12-31T23:45:00Z",
        }, now=now)
        assert event.start_datetime == "9999-12-31T23:30:00Z"
        assert event.end_datetime == "9999-12-31T23:45:00Z"

    def test_offsets_are_converted_to_utc(self, now):
        event = canonicalize_candidate({
            "start_datetime": "2025-06-12T15:00:00-04:00",
            "end_datetime": "2025-06-12T16:30:00-04:00",
        }, now=now)
        assert event.start_datetime == "2025-06-12T19:00:00Z"
        assert event.end_datetime == "2025-06-12T20:30:00Z"

    def test_explicit_inverted_range_is_passed_through(self, now):
        event = canonicalize_candidate({
            "start_datetime": "2025-06-12T15:00:00Z",
            "end_datetime": "2025-06-12T14:00:00Z",
        }, now=now)
        assert event.end_datetime == "2025-06-12T14:00:00Z"

    def test_missing_fields_get_placeholders(self, now):
        event = canonicalize_candidate({}, now=now)
        assert event.title == "Untitled Event"
        assert event.location == ""
        assert event.description == "No description provided"
        assert event.original_link is None

    def test_aliases_and_structured_location(self, now):
        event = canonicalize_candidate({
            "name": "Gala",
            "start": "2025-07-01",
            "location": {"@type": "Place", "name": "Opera", "address": "1 Plaza"},
            "description": "Black tie[br]RSVP",
        }, now=now, original_link="https://example.com/gala")
        assert event.title == "Gala"
        assert event.start_datetime == "2025-07-01T00:00:00Z"
        assert event.location == "Opera, 1 Plaza"
        assert event.description == "Black tie[br]RSVP"
        assert event.original_link == "https://example.com/gala"

    def test_events_are_immutable(self, now):
        event = canonicalize_candidate({"title": "A"}, now=now)
        with pytest.raises(Exception):
            event.title = "B"


class TestCanonicalizeResponse:
    def test_one_object_yields_one_event(self, now):
        events = canonicalize_response('{"title": "Standup", "start_datetime": "2025-01-01T09:00:00Z"}', now=now)
        assert len(events) == 1
        assert events[0].title == "Standup"
        assert events[0].end_datetime == "2025-01-01T10:00:00Z"

    def test_array_yields_every_event_with_link(self, now):
        events = canonicalize_response(
            '[{"title": "A"}, {"title": "B"}]', now=now, original_link="https://example.com/p",
        )
        assert [e.title for e in events] == ["A", "B"]
        assert all(e.original_link == "https://example.com/p" for e in events)

    def test_no_json_yields_fallback_with_excerpt(self, now):
        raw = "Sorry, nothing here. " * 30
        events = canonicalize_response(raw, now=now)

        assert len(events) == 1
        event = events[0]
        assert event.title == "Extracted Event"
        assert "could not extract structured event data" in event.description
        assert raw.strip()[:200] + "..." in event.description
        assert raw.strip() not in event.description
        assert event.start_datetime == "2025-06-10T00:00:00Z"

    def test_wrapper_with_no_events_yields_fallback(self, now):
        events = canonicalize_response('{"events": []}', now=now, fallback_title="Analysis of flyer.png")
        assert len(events) == 1
        assert events[0].title == "Analysis of flyer.png"

    def test_description_placeholder_is_configurable(self, now):
        events = canonicalize_response('[{"title": "Talk"}]', now=now, description_placeholder="Extracted from image")
        assert events[0].description == "Extracted from image"

    def test_placeholder_event(self, now):
        event = placeholder_event("Event from example.com", "Blocked", now=now, original_link="https://example.com")
        assert event.location == "Unknown"
        assert event.end_datetime == "2025-06-10T01:00:00Z"
        assert event.original_link == "https://example.com"
