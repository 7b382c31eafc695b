"""
Event extraction pipeline.

Wires the components together for each source kind:

text  -> compose -> oracle -> canonicalize
url   -> fetch -> extract signals -> compose (framed) -> oracle -> canonicalize
file  -> validate -> compose -> oracle (upload, poll, generate) -> canonicalize

The oracle client is injected so tests can substitute a double.
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

from calsnap.canonical.events import canonicalize_response, placeholder_event
from calsnap.composer.context import (
    PageFraming,
    compose_media_context,
    compose_page_context,
    compose_text_context,
    media_label,
)
from calsnap.constants import CANONICAL_SETTINGS, UPLOAD_SETTINGS
from calsnap.dto import Event
from calsnap.errors import FileTooLargeError, InputValidationError, OracleError, PageFetchError
from calsnap.oracle.client import MediaUpload, OracleClient
from calsnap.scraper.domains import HostClass, classify_host
from calsnap.scraper.fetch import fetch_page
from calsnap.scraper.signals import PageSignals, extract_page_signals
from calsnap.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

BLOCKED_SITE_MESSAGE = (
    "Unable to extract details from this website automatically as it restricts access. "
    "Please copy and paste the event details as text instead."
)

MAX_FILE_BYTES = UPLOAD_SETTINGS.MAX_FILE_SIZE_MB * 1024 * 1024


def classify_mime(mime_type: Optional[str]) -> Optional[str]:
    """
    Map a MIME type to its media category.

    Codec suffixes are ignored (audio/webm;codecs=opus is audio/webm) and
    any audio/* type counts as audio.

    Returns:
        "document", "image", "audio" or None when unsupported
    """
    if not mime_type:
        return None
    base = mime_type.split(";", 1)[0].strip().lower()
    if base in UPLOAD_SETTINGS.DOCUMENT_TYPES:
        return "document"
    if base in UPLOAD_SETTINGS.IMAGE_TYPES:
        return "image"
    if base in UPLOAD_SETTINGS.AUDIO_TYPES or base.startswith("audio/"):
        return "audio"
    return None


def check_file_size(size: int) -> None:
    """Raise FileTooLargeError when size exceeds the upload limit."""
    if size > MAX_FILE_BYTES:
        raise FileTooLargeError(
            f"File size ({size} bytes) exceeds maximum allowed size ({MAX_FILE_BYTES} bytes)"
        )


def decode_file_data(file_data: str) -> bytes:
    """Decode base64 file data, accepting an optional data URL prefix and line breaks."""
    payload = file_data.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    payload = "".join(payload.split())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputValidationError("File data is not valid base64") from e
    if not data:
        raise InputValidationError("File data is empty")
    return data


class EventExtractionPipeline:
    """
    Runs the extraction flows against one shared oracle client.

    Holds no per-request state; safe to share between concurrent requests.
    """

    def __init__(
        self,
        oracle: OracleClient,
        fetcher: Callable[[str], Awaitable[str]] = fetch_page,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            oracle: Extraction oracle client
            fetcher: Coroutine returning a page's HTML for a URL
            clock: Returns the current instant (aware, UTC)
        """
        self.oracle = oracle
        self.fetcher = fetcher
        self.clock = clock

    async def extract_from_text(
        self,
        text: Optional[str],
        user_timezone: Optional[str] = None,
        original_date=None,
    ) -> List[Event]:
        if not text or not text.strip():
            raise InputValidationError("No text provided")

        now = self.clock()
        context = compose_text_context(text, user_timezone, now, original_date=original_date)
        logger.info(
            "Extracting events from text (%d characters, expect_multiple=%s)",
            len(text), context.expect_multiple,
        )
        raw = await self.oracle.complete(context.text)
        return canonicalize_response(raw, now=now, source_label="Text")

    async def extract_from_url(self, url: Optional[str], user_timezone: Optional[str] = None) -> List[Event]:
        """
        Extract events from a web page.

        Unusable URLs, blocked hosts and fetch failures degrade to a single
        placeholder event instead of an error.

        Args:
            url: Page URL
            user_timezone: IANA timezone name of the user

        Returns:
            Non-empty list of Events, each carrying original_link
        """
        if not url or not url.strip():
            raise InputValidationError("No URL provided")

        url = url.strip()
        now = self.clock()
        try:
            parsed = urlparse(url)
            scheme, hostname = parsed.scheme, parsed.hostname or ""
        except ValueError:
            scheme, hostname = "", ""
        if scheme not in ("http", "https") or not hostname:
            logger.warning("Invalid URL format: %s", url)
            return [placeholder_event("Unknown Event", f"Invalid URL format: {url}", now=now, original_link=url)]

        host_class = classify_host(hostname)
        if host_class is HostClass.BLOCKED:
            logger.warning("URL is from a domain known to block scrapers: %s", hostname)
            return [placeholder_event(f"Event from {hostname}", BLOCKED_SITE_MESSAGE, now=now, original_link=url)]

        try:
            html = await self.fetcher(url)
        except PageFetchError as e:
            logger.error("Error fetching %s: %s", url, e)
            return [placeholder_event(
                f"Event from {hostname}",
                f"Error extracting content from URL: {e}",
                now=now,
                original_link=url,
            )]

        signals = extract_page_signals(html, url)

        if len(signals.structured_events) > 1:
            return await self._extract_structured_candidates(signals, user_timezone, now, hostname)

        if signals.structured_events:
            framing = PageFraming.STRUCTURED_SINGLE
        elif signals.date_strings and host_class is not HostClass.EVENT_LISTING:
            framing = PageFraming.DATE_SIGNALS
        elif host_class is HostClass.EVENT_LISTING:
            framing = PageFraming.EVENT_LISTING
        else:
            framing = PageFraming.GENERAL

        logger.info("Extracting events from %s with %s framing", url, framing.value)
        context = compose_page_context(signals, user_timezone, now, framing, hostname=hostname)
        raw = await self.oracle.complete(context.text)
        return canonicalize_response(
            raw,
            now=now,
            original_link=context.original_link,
            fallback_title=signals.title or f"Event from {hostname}",
            source_label="Web page",
        )

    async def _extract_structured_candidates(
        self,
        signals: PageSignals,
        user_timezone: Optional[str],
        now: datetime,
        hostname: str,
    ) -> List[Event]:
        logger.info("Found %d structured events on %s, extracting each", len(signals.structured_events), signals.url)
        events: List[Event] = []
        for index, candidate in enumerate(signals.structured_events, start=1):
            context = compose_page_context(
                signals, user_timezone, now, PageFraming.STRUCTURED_CANDIDATE,
                hostname=hostname, candidate=candidate,
            )
            try:
                raw = await self.oracle.complete(context.text)
            except OracleError as e:
                logger.error("Structured candidate %d failed (%s): %s", index, e.kind, e)
                continue
            events.extend(canonicalize_response(
                raw,
                now=now,
                original_link=context.original_link,
                fallback_title=candidate.get("name") or signals.title or CANONICAL_SETTINGS.FALLBACK_TITLE,
                source_label="Web page",
            ))

        if not events:
            return [placeholder_event(
                signals.title or f"Event from {hostname}",
                "Could not extract event details",
                now=now,
                original_link=signals.url,
            )]
        return events

    async def extract_from_file(
        self,
        file_data: Optional[str],
        file_type: Optional[str],
        file_name: Optional[str] = None,
        user_timezone: Optional[str] = None,
    ) -> List[Event]:
        """Extract events from base64 encoded media."""
        if not file_data:
            raise InputValidationError("No file data provided")
        if not file_type:
            raise InputValidationError("File type not specified")
        data = decode_file_data(file_data)
        return await self.extract_from_media(data, file_type, file_name, user_timezone)

    async def extract_from_media(
        self,
        data: bytes,
        file_type: Optional[str],
        file_name: Optional[str] = None,
        user_timezone: Optional[str] = None,
    ) -> List[Event]:
        """
        Extract events from raw media bytes.

        Args:
            data: File contents
            file_type: MIME type as reported by the client
            file_name: Original file name
            user_timezone: IANA timezone name of the user

        Returns:
            Non-empty list of Events
        """
        if not data:
            raise InputValidationError("No file data provided")
        check_file_size(len(data))
        category = classify_mime(file_type)
        if category is None:
            raise InputValidationError(f"Unsupported file type: {file_type}")

        mime_type = file_type.split(";", 1)[0].strip().lower()
        file_name = file_name or "uploaded-file"
        now = self.clock()
        context = compose_media_context(file_name, category, user_timezone, now)
        label = media_label(category)

        logger.info("Extracting events from %s %s (%d bytes)", category, file_name, len(data))
        raw = await self.oracle.complete_with_media(
            context.text,
            MediaUpload(data=data, mime_type=mime_type, file_name=file_name, category=category),
        )
        return canonicalize_response(
            raw,
            now=now,
            fallback_title=f"Analysis of {file_name}",
            description_placeholder=f"Extracted from {label}",
            source_label=label.capitalize(),
        )
