"""
Response Canonicalizer

The trust boundary between the oracle and the rest of the system. Whatever
the oracle returned, canonicalize_response hands back at least one fully
populated Event: missing or unparseable fields are defaulted, never
propagated.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from calsnap.canonical.parser import Empty, EventArray, SingleEvent, decode_oracle_text
from calsnap.constants import CANONICAL_SETTINGS
from calsnap.dto import Event
from calsnap.utils.datetime_utils import parse_datetime, shift, to_utc_iso, utc_now
from calsnap.utils.text_utils import flatten_location

logger = logging.getLogger(__name__)

TITLE_KEYS = ("title", "name", "summary")
START_KEYS = ("start_datetime", "startDate", "start")
END_KEYS = ("end_datetime", "endDate", "end")

DEFAULT_DURATION = timedelta(hours=CANONICAL_SETTINGS.DEFAULT_DURATION_HOURS)


def _first(raw: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def canonicalize_candidate(
    raw: Dict[str, Any],
    now: Optional[datetime] = None,
    original_link: Optional[str] = None,
    description_placeholder: str = CANONICAL_SETTINGS.DEFAULT_DESCRIPTION,
) -> Event:
    """
    Apply field defaulting to one raw candidate.

    Args:
        raw: Loosely-typed candidate from the oracle or the page extractor
        now: Instant used when the start is missing or invalid
        original_link: Provenance URL of the page the event came from
        description_placeholder: Description used when none is supplied

    Returns:
        Canonical Event
    """
    now = now or utc_now()

    start = parse_datetime(_first(raw, START_KEYS))
    end = parse_datetime(_first(raw, END_KEYS))
    if start is not None and end is None:
        end = shift(start, DEFAULT_DURATION)
        if end is None:
            logger.warning("Start %s leaves no room for the default duration, using current time", start)
            start = None
    if start is None:
        start = now
    if end is None:
        end = start + DEFAULT_DURATION

    return Event(
        title=_text(_first(raw, TITLE_KEYS)) or CANONICAL_SETTINGS.DEFAULT_TITLE,
        start_datetime=to_utc_iso(start),
        end_datetime=to_utc_iso(end),
        location=flatten_location(raw.get("location")) or CANONICAL_SETTINGS.DEFAULT_LOCATION,
        description=_text(raw.get("description")) or description_placeholder,
        original_link=original_link,
    )


def _excerpt(raw_text: str) -> str:
    limit = CANONICAL_SETTINGS.RAW_EXCERPT_LIMIT
    text = (raw_text or "").strip()
    return text if len(text) <= limit else text[:limit] + "..."


def fallback_event(
    raw_text: str,
    now: Optional[datetime] = None,
    original_link: Optional[str] = None,
    title: str = CANONICAL_SETTINGS.FALLBACK_TITLE,
    source_label: str = "Content",
) -> Event:
    """One event carrying an excerpt of an unusable oracle response."""
    description = (
        f"{source_label} processed but could not extract structured event data. "
        f"Raw content: {_excerpt(raw_text)}"
    )
    return placeholder_event(title, description, now=now, original_link=original_link)


def placeholder_event(
    title: str,
    description: str,
    now: Optional[datetime] = None,
    original_link: Optional[str] = None,
) -> Event:
    """An event starting now, used wherever extraction cannot proceed."""
    return canonicalize_candidate(
        {"title": title, "description": description, "location": "Unknown"},
        now=now,
        original_link=original_link,
    )


def canonicalize_response(
    raw_text: str,
    now: Optional[datetime] = None,
    original_link: Optional[str] = None,
    fallback_title: str = CANONICAL_SETTINGS.FALLBACK_TITLE,
    description_placeholder: str = CANONICAL_SETTINGS.DEFAULT_DESCRIPTION,
    source_label: str = "Content",
) -> List[Event]:
    """
    Turn raw oracle text into canonical events.

    Args:
        raw_text: Oracle response text
        now: Current instant, defaults to the real clock
        original_link: Provenance URL for page-derived events
        fallback_title: Title of the fallback event when no JSON is found
        description_placeholder: Description used when a candidate has none
        source_label: Source name used in the fallback description

    Returns:
        Non-empty list of Events
    """
    now = now or utc_now()
    result = decode_oracle_text(raw_text)

    if isinstance(result, EventArray):
        candidates = result.candidates
    elif isinstance(result, SingleEvent):
        candidates = [result.candidate]
    else:
        candidates = []

    events = [
        canonicalize_candidate(
            candidate,
            now=now,
            original_link=original_link,
            description_placeholder=description_placeholder,
        )
        for candidate in candidates
    ]

    if not events:
        raw = result.raw_text if isinstance(result, Empty) else raw_text
        logger.warning("Oracle response held no usable events, returning fallback event")
        return [fallback_event(raw, now=now, original_link=original_link, title=fallback_title, source_label=source_label)]

    logger.info("Canonicalized %d event(s) from oracle response", len(events))
    return events
