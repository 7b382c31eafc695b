"""
Calsnap Constants

Fixed tunables shared across the extraction pipeline:
- Application metadata
- Page scraping budgets and domain lists
- Oracle prompt and polling limits
- Upload MIME tables
- Calendar document envelope
"""

from calsnap.config import settings


class APP_SETTINGS:
    """Application metadata"""
    APP_NAME = "Calsnap Event Extraction API"
    VERSION = "1.0.0"
    DESCRIPTION = "Turns text, web pages and uploaded media into calendar events and .ics files"


class SCRAPER_SETTINGS:
    """Web page fetching and signal extraction settings"""
    FETCH_TIMEOUT_SECONDS: float = settings.FETCH_TIMEOUT_SECONDS
    BODY_TEXT_LIMIT = 5000
    MIN_CONTENT_LENGTH = 100

    REQUEST_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Referer": "https://www.google.com/",
    }

    CONTENT_SELECTORS = [
        "main", "article", ".content", "#content", ".main-content",
        ".post-content", ".entry-content", "[role='main']",
    ]

    # Hosts that refuse automated fetching outright
    BLOCKED_DOMAINS = ["facebook.com", "instagram.com", "twitter.com", "linkedin.com"]

    # Hosts (or hostname fragments) that usually list many events per page
    EVENT_LISTING_DOMAINS = [
        "lu.ma", "luma.com", "eventbrite.com", "meetup.com", "evite.com",
        "ticketmaster.com", "splashthat.com", "hopin.com", "airmeet.com",
        "airtable.com", "universe.com", "dice.fm", "tito.io", "eventscase.com",
        "event.is", "event.com", "events.", ".events.", "conf", "conference",
        "summit", "meetup", "webinar", "agenda",
    ]


class COMPOSER_SETTINGS:
    """Context block budgets"""
    SINGLE_STRUCTURED_EXCERPT = 1000
    DATE_SIGNAL_EXCERPT = 1500
    LISTING_EXCERPT = 2000
    GENERAL_EXCERPT = 2000
    LINE_BREAK_TOKEN = "[br]"


class CANONICAL_SETTINGS:
    """Defaults applied at the oracle trust boundary"""
    DEFAULT_TITLE = "Untitled Event"
    DEFAULT_LOCATION = ""
    DEFAULT_DESCRIPTION = "No description provided"
    FALLBACK_TITLE = "Extracted Event"
    RAW_EXCERPT_LIMIT = 200
    DEFAULT_DURATION_HOURS = 1


class ORACLE_SETTINGS:
    """External reasoning service settings"""
    API_KEY: str = settings.GEMINI_API_KEY
    PROVIDER: str = settings.ORACLE_PROVIDER
    MODEL: str = settings.ORACLE_MODEL
    MEDIA_MODEL: str = settings.ORACLE_MEDIA_MODEL
    TEMPERATURE: float = settings.ORACLE_TEMPERATURE
    API_ROOT: str = settings.GEMINI_API_ROOT
    TIMEOUT_SECONDS: float = settings.ORACLE_TIMEOUT_SECONDS

    POLL_INTERVAL_SECONDS = 1.0
    POLL_MAX_ATTEMPTS = {
        "document": 30,
        "image": 30,
        "audio": 45,
    }


class UPLOAD_SETTINGS:
    """Uploaded media settings"""
    MAX_FILE_SIZE_MB = 50
    STREAMING_CHUNK_SIZE_KB = 64

    DOCUMENT_TYPES = [
        "application/pdf",
        "text/plain",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/rtf",
    ]

    IMAGE_TYPES = [
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/webp",
        "image/heif",
    ]

    AUDIO_TYPES = [
        "audio/wav",
        "audio/mp3",
        "audio/mpeg",
        "audio/aiff",
        "audio/aac",
        "audio/ogg",
        "audio/flac",
        "audio/webm",
        "audio/mp4",
    ]


class ICS_SETTINGS:
    """Calendar document envelope"""
    PRODID = "-//calsnap//ics//EN"
    VERSION = "2.0"
    CALSCALE = "GREGORIAN"
    METHOD = "PUBLISH"
    PUBLISHED_TTL = "PT1H"
    UID_DOMAIN = "calsnap.app"
    MEDIA_TYPE = "text/calendar"
    STAMP_FORMAT = "%Y%m%dT%H%M%SZ"
