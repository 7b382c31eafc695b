"""
Extraction Prompts

This module contains ALL the prompt text sent to the extraction oracle.
It is the only place that encodes the response grammar the canonicalizer
expects. No prompts should exist outside this file.
"""

# Output contract shared by every source type
OUTPUT_SHAPE_HEADER = """You are an expert event data extraction assistant. You receive content that may describe one or more events with missing or malformed details.
Your task is to extract complete, accurate event information optimized for calendar applications.

Each event MUST be a JSON object with exactly these fields:
{{
  "title": "<Event Title>",
  "start_datetime": "<ISO 8601 UTC, e.g. 2024-01-15T09:00:00Z>",
  "end_datetime": "<ISO 8601 UTC; if no end time is given, start_datetime plus 1 hour>",
  "location": "<Physical address or online meeting link>",
  "description": "<Plain text description using only [br] for line breaks>"
}}

{cardinality}"""

SINGLE_EVENT_CARDINALITY = "Return ONLY the JSON object described above, with no surrounding prose."

MULTIPLE_EVENT_CARDINALITY = (
    "The content may contain MULTIPLE EVENTS. Identify EACH SEPARATE EVENT and return them as "
    "a JSON array of complete objects, one per event, with no surrounding prose."
)

DESCRIPTION_LAYOUT = """Use minimal formatting for the description with only [br] tags for line breaks. Structure it as follows, omitting sections with no information:
EVENT OVERVIEW[br]Brief summary of the event's purpose[br][br]
DATE & TIME[br]Start - End (include the original timezone in parentheses)[br][br]
LOCATION[br]Physical address or online meeting link[br][br]
AGENDA[br]- Time - Activity[br][br]
SPEAKERS[br]- Name - Title/Affiliation[br][br]
REGISTRATION INFO[br]If there is a URL, format it as: URL Link: https://example.com[br][br]
ADDITIONAL INFORMATION[br]Any other relevant details[br]
Do not use any other markup. Calendar clients have very limited formatting support."""

TIME_CONTEXT = """CURRENT DATE AND TIME (UTC): {now_utc}
CURRENT DATE AND TIME IN USER TIMEZONE ({timezone_label}): {now_local}

Resolve relative date phrases such as "today", "tomorrow", "next Friday" or "in two weeks" against the instants above, reading them in the user's timezone.
Be precise about year, month and day; never invent placeholder dates like January 1.
CRITICAL: every datetime you output MUST be UTC ISO 8601 (YYYY-MM-DDTHH:MM:SSZ). Convert local times to UTC; never output local or offset times."""

STRUCTURED_DATA_NOTE = (
    "NOTE: The content contains structured data (schema.org JSON-LD). This is highly reliable "
    "information and takes precedence over dates found in the free text."
)

TEXT_SOURCE = """SOURCE TEXT:
{text}"""

ORIGINAL_DATE_SOURCE = """ORIGINAL DATE (as provided by the client): {original_date}"""

PAGE_HEADER = """PAGE TITLE: {title}
PAGE TIMEZONE: {timezone}
URL: {url}"""

LISTING_PAGE_NOTICE = (
    "IMPORTANT: This page is from {hostname}, which is likely an EVENT SITE containing MULTIPLE EVENTS. "
    "Carefully analyze and extract ALL events from this page."
)

STRUCTURED_EVENT_SOURCE = """STRUCTURED EVENT DATA:
{structured_event}"""

DETECTED_DATES_SOURCE = """IMPORTANT - EXACT DATES DETECTED:
{dates}"""

NO_DATES_DETECTED = "No specific dates detected automatically. Extract dates from the content below."

PAGE_METADATA_SOURCE = """PAGE METADATA:
{metadata}"""

PAGE_CONTENT_SOURCE = """PAGE CONTENT:
{content}"""

MEDIA_SOURCE = """{action} {media_label} and extract any event information mentioned. {hint}
The {media_label} is attached to this request as an uploaded file.
File name: {file_name}"""

AUDIO_FOCUS = "Focus on the spoken content and extract clear, actionable event details."

MEDIA_FRAMING = {
    "document": {
        "action": "Analyze this",
        "media_label": "document",
        "hint": "Look for dates, times, locations, event titles, and descriptions in the text content.",
    },
    "image": {
        "action": "Analyze this",
        "media_label": "image",
        "hint": (
            "Look for any text containing dates, times, locations, event titles, and descriptions. "
            "This could be a screenshot, poster, invitation, or any image with event information."
        ),
    },
    "audio": {
        "action": "Listen to this",
        "media_label": "audio recording",
        "hint": (
            'Pay attention to spoken dates and times (like "tomorrow at 3", "next Tuesday"), '
            "event descriptions, locations mentioned, and people or attendees referenced."
        ),
    },
}
