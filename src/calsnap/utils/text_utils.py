"""
Text helpers shared by the scraper, the canonicalizer and the serializer.
"""

import re
from typing import Any

from calsnap.constants import COMPOSER_SETTINGS

_WHITESPACE_RE = re.compile(r"\s+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_ADDRESS_KEYS = (
    "streetAddress",
    "addressLocality",
    "addressRegion",
    "postalCode",
    "addressCountry",
)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def truncate(text: str, limit: int) -> str:
    if not text or limit <= 0:
        return ""
    return text[:limit]


def flatten_location(location: Any) -> str:
    """
    Flatten a location value into a display string.

    Handles plain strings, schema.org Place / PostalAddress /
    VirtualLocation objects and lists of either.

    Args:
        location: Location in any of the supported shapes

    Returns:
        Comma separated display string, empty when nothing usable is present
    """
    if location is None:
        return ""
    if isinstance(location, str):
        return location.strip()
    if isinstance(location, (int, float)):
        return str(location)
    if isinstance(location, list):
        parts = [flatten_location(item) for item in location]
        return "; ".join(part for part in parts if part)
    if not isinstance(location, dict):
        return ""

    if location.get("@type") == "VirtualLocation":
        return str(location.get("url") or location.get("name") or "").strip()

    parts = []
    name = location.get("name")
    if isinstance(name, str) and name.strip():
        parts.append(name.strip())

    address = location.get("address")
    if isinstance(address, str):
        if address.strip():
            parts.append(address.strip())
    elif isinstance(address, dict):
        for key in _ADDRESS_KEYS:
            value = address.get(key)
            if isinstance(value, dict):
                value = value.get("name")
            if isinstance(value, str) and value.strip():
                parts.append(value.strip())

    # PostalAddress passed directly
    for key in _ADDRESS_KEYS:
        value = location.get(key)
        if isinstance(value, str) and value.strip():
            parts.append(value.strip())

    if not parts and location.get("url"):
        parts.append(str(location["url"]).strip())

    return ", ".join(dict.fromkeys(parts))


def format_description(description: str) -> str:
    """Turn [br] markers into real newlines and cap blank runs at one empty line."""
    if not description:
        return ""
    formatted = description.replace(COMPOSER_SETTINGS.LINE_BREAK_TOKEN, "\n")
    return _EXCESS_NEWLINES_RE.sub("\n\n", formatted)
