"""
Hostname classification for the URL flow.
"""

from enum import Enum
from typing import Iterable

from calsnap.constants import SCRAPER_SETTINGS


class HostClass(str, Enum):
    BLOCKED = "blocked"
    EVENT_LISTING = "event_listing"
    GENERAL = "general"


def _matches(hostname: str, fragments: Iterable[str]) -> bool:
    host = (hostname or "").lower()
    return any(fragment in host for fragment in fragments)


def is_blocked_domain(hostname: str) -> bool:
    return _matches(hostname, SCRAPER_SETTINGS.BLOCKED_DOMAINS)


def is_event_listing_domain(hostname: str) -> bool:
    return _matches(hostname, SCRAPER_SETTINGS.EVENT_LISTING_DOMAINS)


def classify_host(hostname: str) -> HostClass:
    """Blocked hosts win over listing hosts; everything else is general."""
    if is_blocked_domain(hostname):
        return HostClass.BLOCKED
    if is_event_listing_domain(hostname):
        return HostClass.EVENT_LISTING
    return HostClass.GENERAL
