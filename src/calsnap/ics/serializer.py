"""
Calendar Serializer

Turns events into an iCalendar document. Output is guaranteed: builders are
tried in order and the first one that produces a document wins.

1. StructuredCalendarBuilder: full multi-event document built with icalendar
2. ManualCalendarBuilder: first event only, assembled line by line
3. PlaceholderCalendarBuilder: fixed one-event document, cannot fail
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from icalendar import Calendar
from icalendar import Event as ICalEvent

from calsnap.constants import CANONICAL_SETTINGS, ICS_SETTINGS
from calsnap.dto import Event
from calsnap.errors import SerializationError
from calsnap.utils.datetime_utils import parse_datetime, shift, to_ics_stamp, utc_now
from calsnap.utils.text_utils import format_description

logger = logging.getLogger(__name__)

EventLike = Union[Event, Mapping[str, Any]]

DEFAULT_DURATION = timedelta(hours=CANONICAL_SETTINGS.DEFAULT_DURATION_HOURS)

PLACEHOLDER_DOCUMENT = "\r\n".join([
    "BEGIN:VCALENDAR",
    f"VERSION:{ICS_SETTINGS.VERSION}",
    f"CALSCALE:{ICS_SETTINGS.CALSCALE}",
    f"PRODID:{ICS_SETTINGS.PRODID}",
    f"METHOD:{ICS_SETTINGS.METHOD}",
    f"X-PUBLISHED-TTL:{ICS_SETTINGS.PUBLISHED_TTL}",
    "BEGIN:VEVENT",
    f"UID:calsnap-fallback@{ICS_SETTINGS.UID_DOMAIN}",
    "SUMMARY:Calendar Event",
    "DTSTAMP:20250101T000000Z",
    "DTSTART:20250101T000000Z",
    "DTEND:20250101T010000Z",
    "DESCRIPTION:There was an issue generating the full event details.",
    "END:VEVENT",
    "END:VCALENDAR",
]) + "\r\n"


def _as_dict(event: EventLike) -> Dict[str, Any]:
    if isinstance(event, Event):
        return event.model_dump()
    if isinstance(event, Mapping):
        return dict(event)
    raise SerializationError(f"Unsupported event record: {type(event).__name__}")


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _event_span(record: Mapping[str, Any], now: datetime):
    """Start and end instants for a record, defaulted like the canonicalizer does."""
    start = parse_datetime(record.get("start_datetime"))
    end = parse_datetime(record.get("end_datetime"))
    if start is not None and end is None:
        end = shift(start, DEFAULT_DURATION)
        if end is None:
            start = None
    if start is None:
        logger.warning("No valid start for '%s', using current time", record.get("title"))
        start = now
    if end is None:
        end = start + DEFAULT_DURATION
    return start, end


def _uid() -> str:
    return f"{uuid.uuid4()}@{ICS_SETTINGS.UID_DOMAIN}"


class CalendarBuilder(ABC):
    """One strategy in the serializer chain."""

    name = "builder"

    @abstractmethod
    def build(self, events: Sequence[EventLike], now: datetime) -> str:
        """Return a calendar document or raise."""


class StructuredCalendarBuilder(CalendarBuilder):
    """Builds the full document with icalendar, one VEVENT per event."""

    name = "structured"

    def build(self, events: Sequence[EventLike], now: datetime) -> str:
        if not events:
            raise SerializationError("No events to serialize")

        cal = Calendar()
        cal.add("prodid", ICS_SETTINGS.PRODID)
        cal.add("version", ICS_SETTINGS.VERSION)
        cal.add("calscale", ICS_SETTINGS.CALSCALE)
        cal.add("method", ICS_SETTINGS.METHOD)
        cal.add("x-published-ttl", ICS_SETTINGS.PUBLISHED_TTL)

        for event in events:
            record = _as_dict(event)
            start, end = _event_span(record, now)

            ve = ICalEvent()
            ve.add("uid", _uid())
            ve.add("dtstamp", now)
            ve.add("summary", _text(record.get("title")) or CANONICAL_SETTINGS.DEFAULT_TITLE)
            ve.add("dtstart", start)
            ve.add("dtend", end)

            location = _text(record.get("location"))
            if location:
                ve.add("location", location)
            description = format_description(_text(record.get("description")))
            if description:
                ve.add("description", description)
            link = _text(record.get("original_link"))
            if link:
                ve.add("url", link)

            cal.add_component(ve)

        return cal.to_ical().decode("utf-8")


def escape_text(value: str) -> str:
    """Escape a TEXT property value (backslash, semicolon, comma, newline)."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str, limit: int = 75) -> str:
    """Fold a content line at the octet limit with CRLF plus a single space."""
    encoded = line.encode("utf-8")
    if len(encoded) <= limit:
        return line

    parts: List[str] = []
    current = ""
    size = 0
    budget = limit
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > budget:
            parts.append(current)
            current, size, budget = "", 0, limit - 1
        current += char
        size += width
    parts.append(current)
    return "\r\n ".join(parts)


class ManualCalendarBuilder(CalendarBuilder):
    """Assembles a single-event document from the first event by hand."""

    name = "manual"

    def build(self, events: Sequence[EventLike], now: datetime) -> str:
        if not events:
            raise SerializationError("No events to serialize")

        record = _as_dict(events[0])
        start, end = _event_span(record, now)

        lines = [
            "BEGIN:VCALENDAR",
            f"VERSION:{ICS_SETTINGS.VERSION}",
            f"CALSCALE:{ICS_SETTINGS.CALSCALE}",
            f"PRODID:{ICS_SETTINGS.PRODID}",
            f"METHOD:{ICS_SETTINGS.METHOD}",
            f"X-PUBLISHED-TTL:{ICS_SETTINGS.PUBLISHED_TTL}",
            "BEGIN:VEVENT",
            f"UID:{_uid()}",
            f"SUMMARY:{escape_text(_text(record.get('title')) or 'Event')}",
            f"DTSTAMP:{to_ics_stamp(now)}",
            f"DTSTART:{to_ics_stamp(start)}",
            f"DTEND:{to_ics_stamp(end)}",
            f"LOCATION:{escape_text(_text(record.get('location')))}",
            f"DESCRIPTION:{escape_text(format_description(_text(record.get('description'))))}",
        ]
        link = _text(record.get("original_link"))
        if link:
            lines.append(f"URL:{link}")
        lines += ["END:VEVENT", "END:VCALENDAR"]

        return "\r\n".join(fold_line(line) for line in lines) + "\r\n"


class PlaceholderCalendarBuilder(CalendarBuilder):
    """Last resort: a fixed, always valid document."""

    name = "placeholder"

    def build(self, events: Sequence[EventLike], now: datetime) -> str:
        return PLACEHOLDER_DOCUMENT


class CalendarSerializer:
    """
    Runs the builder chain until one produces a document.

    Never raises: the final builder returns a constant.
    """

    def __init__(self, builders: Optional[List[CalendarBuilder]] = None):
        self.builders = builders or [
            StructuredCalendarBuilder(),
            ManualCalendarBuilder(),
            PlaceholderCalendarBuilder(),
        ]

    def serialize(self, events: Optional[Sequence[EventLike]], now: Optional[datetime] = None) -> str:
        """
        Serialize events into an iCalendar document.

        Args:
            events: Canonical Events or loosely-typed event dicts
            now: Timestamp used for DTSTAMP and missing starts

        Returns:
            Calendar document text
        """
        events = list(events or [])
        now = now or utc_now()
        logger.info("Generating calendar document for %d event(s)", len(events))

        for builder in self.builders:
            try:
                return builder.build(events, now)
            except Exception as e:
                logger.warning("Calendar builder '%s' failed, falling back: %s", builder.name, e)

        logger.error("Every calendar builder failed, returning placeholder document")
        return PLACEHOLDER_DOCUMENT


def calendar_filename(events: Sequence[EventLike]) -> str:
    """Attachment filename: the event title for one event, events.ics otherwise."""
    if len(events) != 1:
        return "events.ics"
    try:
        title = _text(_as_dict(events[0]).get("title"))
    except SerializationError:
        title = ""
    safe = "".join(c if (c.isascii() and c.isalnum()) or c in "-_ " else "_" for c in title).strip()
    return f"{safe or 'event'}.ics"
