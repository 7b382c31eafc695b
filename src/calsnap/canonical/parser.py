"""
Oracle response decoding.

The oracle is asked for JSON but answers in free text: sometimes a bare
array, sometimes a single object, sometimes an object wrapping an "events"
array, often surrounded by prose or code fences. decode_oracle_text finds
the payload with bracket-balanced scans in a fixed order:

1. the first array-shaped span that parses to event-like objects
2. the first object-shaped span that parses
3. nothing, which the canonicalizer turns into a fallback event
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Union

from calsnap.errors import ParseError

logger = logging.getLogger(__name__)

EVENT_MARKER_KEYS = {"title", "start_datetime", "end_datetime", "startDate", "start"}


@dataclass(frozen=True)
class SingleEvent:
    candidate: Dict[str, Any]


@dataclass(frozen=True)
class EventArray:
    candidates: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class Empty:
    raw_text: str = ""


OracleResult = Union[SingleEvent, EventArray, Empty]


def iter_balanced_spans(text: str, open_char: str, close_char: str) -> Iterator[str]:
    """
    Yield every balanced span starting at an occurrence of open_char.

    Brackets inside JSON string literals are ignored once a span has started.
    Spans are yielded in order of their starting position.
    """
    for start, char in enumerate(text):
        if char != open_char:
            continue
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(text)):
            current = text[end]
            if in_string:
                if escaped:
                    escaped = False
                elif current == "\\":
                    escaped = True
                elif current == '"':
                    in_string = False
                continue
            if current == '"':
                in_string = True
            elif current == open_char:
                depth += 1
            elif current == close_char:
                depth -= 1
                if depth == 0:
                    yield text[start:end + 1]
                    break


def parse_json_span(span: str) -> Any:
    try:
        return json.loads(span)
    except (ValueError, RecursionError) as e:
        raise ParseError(str(e)) from e


def _looks_like_event(value: Any) -> bool:
    return isinstance(value, dict) and bool(EVENT_MARKER_KEYS & set(value))


def _decode_array(text: str) -> Union[EventArray, None]:
    for span in iter_balanced_spans(text, "[", "]"):
        try:
            data = parse_json_span(span)
        except ParseError:
            continue
        if isinstance(data, list) and any(_looks_like_event(item) for item in data):
            return EventArray([item for item in data if isinstance(item, dict)])
    return None


def _decode_object(text: str) -> Union[SingleEvent, EventArray, Empty, None]:
    for span in iter_balanced_spans(text, "{", "}"):
        try:
            data = parse_json_span(span)
        except ParseError:
            continue
        if not isinstance(data, dict):
            continue
        wrapped = data.get("events")
        if isinstance(wrapped, list):
            candidates = [item for item in wrapped if isinstance(item, dict)]
            return EventArray(candidates) if candidates else Empty(text)
        return SingleEvent(data)
    return None


def decode_oracle_text(text: str) -> OracleResult:
    """
    Decode raw oracle text into an OracleResult.

    Args:
        text: Raw response text

    Returns:
        EventArray, SingleEvent or Empty; never raises
    """
    if not text or not text.strip():
        return Empty(text or "")

    result = _decode_array(text) or _decode_object(text)
    if result is None:
        logger.warning("No recoverable JSON in oracle response (%d characters)", len(text))
        return Empty(text)
    return result
