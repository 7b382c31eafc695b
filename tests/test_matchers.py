"""Unit tests for the ordered date matchers and host classification."""

import pytest
from bs4 import BeautifulSoup

from calsnap.scraper.domains import HostClass, classify_host, is_blocked_domain, is_event_listing_domain
from calsnap.scraper.matchers import (
    DATE_MATCHERS,
    collect_date_strings,
    datetime_attributes,
    dedupe,
    iso_dates,
    iso_datetimes,
    month_name_dates,
    month_name_times,
    us_dates,
)

pytestmark = pytest.mark.unit

EMPTY = BeautifulSoup("", "html.parser")


class TestMatchers:
    def test_each_matcher_is_independent(self):
        text = "Kickoff 2025-09-01T17:30:00Z, backup 2025-09-02, flyer says 9/3/2025 or Sept 4th, 2025 at 7:30 pm"

        assert iso_datetimes(EMPTY, text) == ["2025-09-01T17:30:00Z"]
        assert iso_dates(EMPTY, text) == ["2025-09-01", "2025-09-02"]
        assert us_dates(EMPTY, text) == ["9/3/2025"]
        assert month_name_dates(EMPTY, text) == ["Sept 4th, 2025"]
        assert month_name_times(EMPTY, text) == ["Sept 4th, 2025 at 7:30 pm"]

    def test_datetime_attributes(self):
        soup = BeautifulSoup('<time datetime=" 2025-01-01 ">x</time><div datetime="">y</div>', "html.parser")
        assert datetime_attributes(soup, "") == ["2025-01-01"]

    def test_no_matches_yield_empty_lists(self):
        assert all(matcher(EMPTY, "nothing to see") == [] for matcher in DATE_MATCHERS)

    def test_collect_keeps_seed_first_and_deduplicates(self):
        soup = BeautifulSoup('<time datetime="2025-02-02">x</time>', "html.parser")
        dates = collect_date_strings(soup, "on 2025-02-02 and 2025-02-03", seed=["2025-02-03"])
        assert dates == ["2025-02-03", "2025-02-02"]

    def test_custom_matcher_list(self):
        dates = collect_date_strings(EMPTY, "12/25/2025", matchers=[us_dates])
        assert dates == ["12/25/2025"]

    def test_dedupe_drops_empty_values(self):
        assert dedupe(["a", "", "b", "a"]) == ["a", "b"]


class TestHostClassification:
    @pytest.mark.parametrize("host", ["www.facebook.com", "m.instagram.com", "LinkedIn.com"])
    def test_blocked(self, host):
        assert is_blocked_domain(host)
        assert classify_host(host) is HostClass.BLOCKED

    @pytest.mark.parametrize("host", ["lu.ma", "www.eventbrite.com", "pycon-summit.org", "events.example.org"])
    def test_listing(self, host):
        assert is_event_listing_domain(host)
        assert classify_host(host) is HostClass.EVENT_LISTING

    def test_general(self):
        assert classify_host("blog.example.com") is HostClass.GENERAL

    def test_blocked_wins_over_listing(self):
        assert classify_host("facebook.com") is HostClass.BLOCKED
        assert classify_host("events.facebook.com") is HostClass.BLOCKED
