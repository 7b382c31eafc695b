"""
Structured Signal Extractor

Pulls machine-readable event candidates out of raw page markup:
- schema.org Event objects embedded as JSON-LD (arrays and @graph wrappers included)
- explicit datetime attributes and date-shaped text (see matchers)
- a timezone hint from metadata or the raw markup
- a bounded excerpt of the page's main text

Pure and synchronous; the caller supplies the fetched markup.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup

from calsnap.constants import SCRAPER_SETTINGS
from calsnap.scraper.matchers import collect_date_strings
from calsnap.utils.text_utils import collapse_whitespace, flatten_location, truncate

logger = logging.getLogger(__name__)

TIMEZONE_PATTERNS = [
    re.compile(r"\b(UTC|GMT)([+-]\d{1,2}(?::\d{2})?)?"),
    re.compile(r"\b(PDT|PST|EDT|EST|CDT|CST|MDT|MST|CEST|CET|BST|IST|JST|AEST)\b"),
    re.compile(r"\bTime\s?zone:\s*([A-Za-z/_]+)", re.IGNORECASE),
]


@dataclass
class PageSignals:
    """Everything the extractor found on one page."""
    url: str
    title: str = ""
    timezone_hint: str = ""
    structured_events: List[Dict[str, Any]] = field(default_factory=list)
    date_strings: List[str] = field(default_factory=list)
    body_text: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)


def _is_event_type(value: Any) -> bool:
    types = value if isinstance(value, list) else [value]
    return any(isinstance(t, str) and t.endswith("Event") for t in types)


def iter_structured_events(data: Any) -> Iterator[Dict[str, Any]]:
    """Walk a decoded JSON-LD payload and yield every Event-typed object."""
    if isinstance(data, list):
        for item in data:
            yield from iter_structured_events(item)
        return
    if not isinstance(data, dict):
        return

    if _is_event_type(data.get("@type")):
        yield data
    if "@graph" in data:
        yield from iter_structured_events(data["@graph"])
    entries = data.get("itemListElement") or []
    if not isinstance(entries, list):
        entries = [entries]
    for entry in entries:
        if isinstance(entry, dict) and "item" in entry:
            yield from iter_structured_events(entry["item"])
        else:
            yield from iter_structured_events(entry)


def _text_value(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("name") or value.get("@id") or ""
    if isinstance(value, list):
        value = ", ".join(_text_value(v) for v in value if _text_value(v))
    return str(value).strip() if value is not None else ""


def normalize_structured_event(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a schema.org Event object to a loosely-typed candidate.

    Args:
        data: Raw JSON-LD object tagged as an Event

    Returns:
        Candidate dict with at least name, start, end, description and location
    """
    candidate = {
        "name": _text_value(data.get("name")),
        "start": _text_value(data.get("startDate")),
        "end": _text_value(data.get("endDate")),
        "description": _text_value(data.get("description")),
        "location": flatten_location(data.get("location")),
    }
    for key in ("url", "organizer", "eventStatus", "eventAttendanceMode"):
        value = _text_value(data.get(key))
        if value:
            candidate[key] = value
    return candidate


def extract_structured_events(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    events = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Skipping unparseable JSON-LD block: %s", e)
            continue
        events.extend(normalize_structured_event(item) for item in iter_structured_events(data))
    return events


def extract_metadata(soup: BeautifulSoup) -> Dict[str, str]:
    metadata = {}
    for meta in soup.find_all("meta"):
        name = meta.get("name") or meta.get("property")
        content = meta.get("content")
        if name and content:
            metadata[name] = content
    return metadata


def detect_timezone(soup: BeautifulSoup, html: str) -> str:
    """
    Find a timezone hint: metadata tags first, then a token scan of the raw markup.

    Returns:
        The first match, or an empty string when nothing is found
    """
    for attr in ("name", "property"):
        meta = soup.find("meta", attrs={attr: "timezone"})
        if meta and meta.get("content"):
            return meta["content"].strip()

    for pattern in TIMEZONE_PATTERNS:
        match = pattern.search(html or "")
        if match:
            return match.group(0).strip()
    return ""


def extract_body_text(soup: BeautifulSoup, limit: int = SCRAPER_SETTINGS.BODY_TEXT_LIMIT) -> str:
    """Main-content excerpt, falling back to the whole body when containers are thin."""
    text = ""
    for selector in SCRAPER_SETTINGS.CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = truncate(collapse_whitespace(element.get_text(" ")), limit)
        if len(text) > SCRAPER_SETTINGS.MIN_CONTENT_LENGTH:
            return text

    root = soup.body or soup
    body_text = truncate(collapse_whitespace(root.get_text(" ")), limit)
    return body_text if len(body_text) > len(text) else text


def extract_page_signals(html: str, url: Optional[str] = "") -> PageSignals:
    """
    Extract every structured signal from one page.

    Args:
        html: Raw page markup
        url: Page URL, carried through for provenance

    Returns:
        PageSignals bundle
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""
    metadata = extract_metadata(soup)
    timezone_hint = detect_timezone(soup, html)
    structured_events = extract_structured_events(soup)

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    root = soup.body or soup
    visible_text = collapse_whitespace(root.get_text(" "))

    seeds = []
    for event in structured_events:
        seeds.extend(value for value in (event.get("start"), event.get("end")) if value)

    signals = PageSignals(
        url=url or "",
        title=title,
        timezone_hint=timezone_hint,
        structured_events=structured_events,
        date_strings=collect_date_strings(soup, visible_text, seed=seeds),
        body_text=extract_body_text(soup),
        metadata=metadata,
    )

    logger.info(
        "Extracted page signals from %s: %d structured events, %d date strings, timezone=%r",
        url, len(signals.structured_events), len(signals.date_strings), signals.timezone_hint,
    )
    return signals
