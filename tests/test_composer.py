"""Unit tests for the context composer."""

import pytest

from calsnap.composer import prompts
from calsnap.composer.context import (
    PageFraming,
    compose_media_context,
    compose_page_context,
    compose_text_context,
    expects_multiple_events,
    media_label,
)
from calsnap.scraper.signals import PageSignals

pytestmark = pytest.mark.unit


def _signals(**overrides) -> PageSignals:
    values = dict(
        url="https://example.com/e",
        title="Spring Fair",
        body_text="Fair " * 1000,
        date_strings=["2025-04-05"],
        metadata={"og:title": "Spring Fair"},
    )
    values.update(overrides)
    return PageSignals(**values)


class TestTextContext:
    def test_new_york_time_context(self, now):
        context = compose_text_context("Team sync tomorrow at 3pm", "America/New_York", now)

        assert "2025-06-10T00:00:00Z" in context.text
        assert "2025-06-09 20:00:00 EDT" in context.text
        assert "(America/New_York)" in context.text
        assert "MUST be UTC ISO 8601" in context.text
        assert "Team sync tomorrow at 3pm" in context.text
        assert context.expect_multiple is False
        assert prompts.SINGLE_EVENT_CARDINALITY in context.text

    def test_unknown_timezone_falls_back_to_utc(self, now):
        context = compose_text_context("Lunch", "Mars/Olympus", now)
        assert "2025-06-10 00:00:00 UTC" in context.text
        assert "'Mars/Olympus' not recognized" in context.text

    def test_missing_timezone(self, now):
        context = compose_text_context("Lunch", None, now)
        assert "user timezone unknown" in context.text

    def test_is_pure(self, now):
        first = compose_text_context("Lunch at noon", "Europe/Berlin", now)
        second = compose_text_context("Lunch at noon", "Europe/Berlin", now)
        assert first == second

    def test_multi_event_phrases_switch_framing(self, now):
        context = compose_text_context("The first event is Monday, the second event Tuesday", "UTC", now)
        assert context.expect_multiple is True
        assert prompts.MULTIPLE_EVENT_CARDINALITY in context.text

    @pytest.mark.parametrize("text, expected", [
        ("We have several events this week", True),
        ("See event 2 below", True),
        ("Dinner on Friday", False),
    ])
    def test_expects_multiple_events(self, text, expected):
        assert expects_multiple_events(text) is expected

    def test_original_date_is_appended(self, now):
        context = compose_text_context("Dinner", "UTC", now, original_date={"start_datetime": "2025-06-12"})
        assert 'ORIGINAL DATE (as provided by the client): {"start_datetime": "2025-06-12"}' in context.text


class TestPageContext:
    def test_single_structured_event(self, now):
        candidate = {"name": "Spring Fair", "start": "2025-04-05T15:00:00Z"}
        signals = _signals(structured_events=[candidate])

        context = compose_page_context(signals, "UTC", now, PageFraming.STRUCTURED_SINGLE)

        assert context.has_structured_data is True
        assert context.expect_multiple is False
        assert context.original_link == "https://example.com/e"
        assert prompts.STRUCTURED_DATA_NOTE in context.text
        assert '"start": "2025-04-05T15:00:00Z"' in context.text
        assert "PAGE METADATA" not in context.text
        assert "PAGE CONTENT:\n" + "Fair " * 199 + "Fair" in context.text
        assert "Fair " * 201 not in context.text

    def test_structured_candidate_has_no_excerpt(self, now):
        signals = _signals(structured_events=[{"name": "A"}, {"name": "B"}])

        context = compose_page_context(
            signals, "UTC", now, PageFraming.STRUCTURED_CANDIDATE, candidate={"name": "B"},
        )

        assert '"name": "B"' in context.text
        assert '"name": "A"' not in context.text
        assert "PAGE CONTENT" not in context.text

    def test_listing_framing_expects_many(self, now):
        context = compose_page_context(_signals(), "UTC", now, PageFraming.EVENT_LISTING, hostname="lu.ma")

        assert context.expect_multiple is True
        assert context.has_structured_data is False
        assert "This page is from lu.ma" in context.text
        assert "- 2025-04-05" in context.text
        assert "PAGE METADATA" in context.text

    def test_general_framing_without_dates(self, now):
        context = compose_page_context(_signals(date_strings=[]), "UTC", now, PageFraming.GENERAL)
        assert prompts.NO_DATES_DETECTED in context.text
        assert prompts.STRUCTURED_DATA_NOTE not in context.text

    def test_page_timezone_hint_is_shown(self, now):
        context = compose_page_context(_signals(timezone_hint="PST"), None, now, PageFraming.DATE_SIGNALS)
        assert "PAGE TIMEZONE: PST" in context.text


class TestMediaContext:
    @pytest.mark.parametrize("category, wording", [
        ("document", "Analyze this document"),
        ("image", "Analyze this image"),
        ("audio", "Listen to this audio recording"),
    ])
    def test_wording_changes_per_category(self, now, category, wording):
        context = compose_media_context("flyer.bin", category, "UTC", now)

        assert context.text.startswith(wording)
        assert "File name: flyer.bin" in context.text
        assert context.expect_multiple is True
        assert context.media_category == category
        assert prompts.MULTIPLE_EVENT_CARDINALITY in context.text

    def test_audio_focus_only_for_audio(self, now):
        assert prompts.AUDIO_FOCUS in compose_media_context("a.mp3", "audio", "UTC", now).text
        assert prompts.AUDIO_FOCUS not in compose_media_context("a.png", "image", "UTC", now).text

    def test_media_label(self):
        assert media_label("audio") == "audio recording"
