"""
Date signal matchers.

Each matcher is independent: it takes the parsed page (with scripts and
styles already removed) plus its visible text and returns zero or more raw
date strings. collect_date_strings runs them in order, concatenates the
results and deduplicates while keeping first-seen order.
"""

import re
from typing import Callable, Iterable, List

from bs4 import BeautifulSoup

DateMatcher = Callable[[BeautifulSoup, str], List[str]]

_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"

ISO_DATETIME_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{3})?Z?")
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
US_DATE_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b")
MONTH_NAME_DATE_RE = re.compile(
    rf"\b{_MONTH} \d{{1,2}}(?:st|nd|rd|th)?,? \d{{4}}\b",
    re.IGNORECASE,
)
MONTH_NAME_TIME_RE = re.compile(
    rf"\b{_MONTH} \d{{1,2}}(?:st|nd|rd|th)?,? \d{{4}} at \d{{1,2}}(?::\d{{2}})?\s*(?:am|pm)?\b",
    re.IGNORECASE,
)


def datetime_attributes(soup: BeautifulSoup, text: str) -> List[str]:
    """Every explicit datetime="..." attribute, <time> elements included."""
    values = []
    for element in soup.find_all(attrs={"datetime": True}):
        value = element.get("datetime")
        if isinstance(value, str) and value.strip():
            values.append(value.strip())
    return values


def _pattern_matcher(pattern: re.Pattern) -> DateMatcher:
    def matcher(soup: BeautifulSoup, text: str) -> List[str]:
        return [match.group(0).strip() for match in pattern.finditer(text)]

    return matcher


iso_datetimes = _pattern_matcher(ISO_DATETIME_RE)
iso_dates = _pattern_matcher(ISO_DATE_RE)
us_dates = _pattern_matcher(US_DATE_RE)
month_name_dates = _pattern_matcher(MONTH_NAME_DATE_RE)
month_name_times = _pattern_matcher(MONTH_NAME_TIME_RE)


DATE_MATCHERS: List[DateMatcher] = [
    datetime_attributes,
    iso_datetimes,
    iso_dates,
    us_dates,
    month_name_dates,
    month_name_times,
]


def dedupe(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


def collect_date_strings(
    soup: BeautifulSoup,
    text: str,
    seed: Iterable[str] = (),
    matchers: Iterable[DateMatcher] = DATE_MATCHERS,
) -> List[str]:
    """
    Run every matcher over the page and merge the results.

    Args:
        soup: Parsed page with scripts and styles removed
        text: Visible page text
        seed: Dates already known (e.g. from structured events), kept first
        matchers: Ordered matcher list

    Returns:
        Deduplicated date strings in discovery order
    """
    found = list(seed)
    for matcher in matchers:
        found.extend(matcher(soup, text))
    return dedupe(found)
