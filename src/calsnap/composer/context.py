"""
Context Composer

Builds the bounded text block sent to the extraction oracle. Every function
here is pure: the same inputs (including the current instant) always give
the same block.

Three source shapes are supported:
- free text
- a web page signal bundle, framed according to what the page looks like
- an uploaded media file (document, image or audio), referenced by handle
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from calsnap.composer import prompts
from calsnap.constants import COMPOSER_SETTINGS
from calsnap.scraper.signals import PageSignals
from calsnap.utils.datetime_utils import format_in_timezone, resolve_timezone, to_utc_iso
from calsnap.utils.text_utils import truncate

MULTI_EVENT_INDICATORS = [
    re.compile(r"\b(first|second|third|next|another)\s+event\b", re.IGNORECASE),
    re.compile(r"\b(also|additionally)\b.*\b(attend|go to|participating)\b", re.IGNORECASE),
    re.compile(r"\b(multiple|several|many|two|three|few)\s+events\b", re.IGNORECASE),
    re.compile(r"\bevent\s+\d+\b", re.IGNORECASE),
    re.compile(r"\b(and|also)\b.*\b(on|at)\b.*\b(different|another)\b", re.IGNORECASE),
]


class PageFraming(str, Enum):
    STRUCTURED_SINGLE = "structured_single"
    STRUCTURED_CANDIDATE = "structured_candidate"
    DATE_SIGNALS = "date_signals"
    EVENT_LISTING = "event_listing"
    GENERAL = "general"


EXCERPT_BUDGETS = {
    PageFraming.STRUCTURED_SINGLE: COMPOSER_SETTINGS.SINGLE_STRUCTURED_EXCERPT,
    PageFraming.STRUCTURED_CANDIDATE: 0,
    PageFraming.DATE_SIGNALS: COMPOSER_SETTINGS.DATE_SIGNAL_EXCERPT,
    PageFraming.EVENT_LISTING: COMPOSER_SETTINGS.LISTING_EXCERPT,
    PageFraming.GENERAL: COMPOSER_SETTINGS.GENERAL_EXCERPT,
}


@dataclass(frozen=True)
class ComposedContext:
    """A prompt ready for the oracle plus the flags that shaped it."""
    text: str
    expect_multiple: bool = False
    has_structured_data: bool = False
    original_link: Optional[str] = None
    media_category: Optional[str] = None


def expects_multiple_events(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in MULTI_EVENT_INDICATORS)


def _header(expect_multiple: bool) -> str:
    cardinality = (
        prompts.MULTIPLE_EVENT_CARDINALITY if expect_multiple else prompts.SINGLE_EVENT_CARDINALITY
    )
    return prompts.OUTPUT_SHAPE_HEADER.format(cardinality=cardinality)


def _time_context(now: datetime, user_timezone: Optional[str]) -> str:
    now_local, used_zone = format_in_timezone(now, user_timezone)
    if resolve_timezone(user_timezone):
        label = used_zone
    elif user_timezone:
        label = f"UTC; '{user_timezone}' not recognized"
    else:
        label = "UTC; user timezone unknown"
    return prompts.TIME_CONTEXT.format(
        now_utc=to_utc_iso(now),
        timezone_label=label,
        now_local=now_local,
    )


def _assemble(sections: List[str]) -> str:
    return "\n\n".join(section.strip("\n") for section in sections if section and section.strip())


def compose_text_context(
    text: str,
    user_timezone: Optional[str],
    now: datetime,
    original_date: Any = None,
    expect_multiple: Optional[bool] = None,
) -> ComposedContext:
    """
    Compose the oracle context for free text.

    Args:
        text: Raw user text
        user_timezone: IANA timezone name, or None when unknown
        now: Current instant (aware)
        original_date: Optional client-supplied date hints, appended verbatim
        expect_multiple: Force multi-event framing; detected from the text when None

    Returns:
        ComposedContext
    """
    if expect_multiple is None:
        expect_multiple = expects_multiple_events(text)

    sections = [
        _header(expect_multiple),
        prompts.DESCRIPTION_LAYOUT,
        _time_context(now, user_timezone),
        prompts.TEXT_SOURCE.format(text=text.strip()),
    ]
    if original_date:
        sections.append(prompts.ORIGINAL_DATE_SOURCE.format(original_date=json.dumps(original_date, default=str)))

    return ComposedContext(text=_assemble(sections), expect_multiple=expect_multiple)


def _dates_section(dates: List[str], framing: PageFraming) -> str:
    if dates:
        return prompts.DETECTED_DATES_SOURCE.format(dates="\n".join(f"- {d}" for d in dates))
    if framing in (PageFraming.STRUCTURED_SINGLE, PageFraming.STRUCTURED_CANDIDATE):
        return ""
    return prompts.DETECTED_DATES_SOURCE.format(dates=prompts.NO_DATES_DETECTED)


def compose_page_context(
    signals: PageSignals,
    user_timezone: Optional[str],
    now: datetime,
    framing: PageFraming,
    hostname: str = "",
    candidate: Optional[Dict[str, Any]] = None,
) -> ComposedContext:
    """
    Compose the oracle context for a scraped web page.

    Args:
        signals: Output of the structured signal extractor
        user_timezone: IANA timezone name, or None when unknown
        now: Current instant (aware)
        framing: How the page should be presented to the oracle
        hostname: Page hostname, used in the listing-site notice
        candidate: The structured event to focus on (structured framings only)

    Returns:
        ComposedContext with original_link set to the page URL
    """
    structured = framing in (PageFraming.STRUCTURED_SINGLE, PageFraming.STRUCTURED_CANDIDATE)
    expect_multiple = framing == PageFraming.EVENT_LISTING
    if structured and candidate is None and signals.structured_events:
        candidate = signals.structured_events[0]

    sections = [_header(expect_multiple), prompts.DESCRIPTION_LAYOUT]
    sections.append(_time_context(now, user_timezone))
    if structured:
        sections.append(prompts.STRUCTURED_DATA_NOTE)
    if framing == PageFraming.EVENT_LISTING:
        sections.append(prompts.LISTING_PAGE_NOTICE.format(hostname=hostname or signals.url))

    sections.append(prompts.PAGE_HEADER.format(
        title=signals.title or "Unknown",
        timezone=signals.timezone_hint or user_timezone or "Unknown",
        url=signals.url,
    ))
    if structured and candidate is not None:
        sections.append(prompts.STRUCTURED_EVENT_SOURCE.format(
            structured_event=json.dumps(candidate, indent=2, ensure_ascii=False),
        ))
    sections.append(_dates_section(signals.date_strings, framing))
    if signals.metadata and not structured:
        sections.append(prompts.PAGE_METADATA_SOURCE.format(
            metadata=json.dumps(signals.metadata, ensure_ascii=False),
        ))

    excerpt = truncate(signals.body_text, EXCERPT_BUDGETS[framing])
    if excerpt:
        sections.append(prompts.PAGE_CONTENT_SOURCE.format(content=excerpt))

    return ComposedContext(
        text=_assemble(sections),
        expect_multiple=expect_multiple,
        has_structured_data=structured,
        original_link=signals.url or None,
    )


def compose_media_context(
    file_name: Optional[str],
    media_category: str,
    user_timezone: Optional[str],
    now: datetime,
) -> ComposedContext:
    """
    Compose the oracle context for an uploaded media file.

    The framing wording changes per category; the output contract does not.
    """
    framing = prompts.MEDIA_FRAMING[media_category]
    sections = [
        prompts.MEDIA_SOURCE.format(
            action=framing["action"],
            media_label=framing["media_label"],
            hint=framing["hint"],
            file_name=file_name or "unknown",
        ),
        _header(True),
        prompts.DESCRIPTION_LAYOUT,
        _time_context(now, user_timezone),
    ]
    if media_category == "audio":
        sections.append(prompts.AUDIO_FOCUS)

    return ComposedContext(
        text=_assemble(sections),
        expect_multiple=True,
        media_category=media_category,
    )


def media_label(media_category: str) -> str:
    return prompts.MEDIA_FRAMING[media_category]["media_label"]
