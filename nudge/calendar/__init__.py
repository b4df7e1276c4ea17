"""Calendar events and the Google Calendar event source."""

from .events import CalendarEvent, ConferenceLink
from .conference import find_conference_links, identify_conference_link, extract_all_links
from .url_validator import is_safe_external_url, MEETING_HOST_ALLOWLIST, EXTERNAL_HOST_ALLOWLIST

__all__ = [
    "CalendarEvent",
    "ConferenceLink",
    "find_conference_links",
    "identify_conference_link",
    "extract_all_links",
    "is_safe_external_url",
    "MEETING_HOST_ALLOWLIST",
    "EXTERNAL_HOST_ALLOWLIST",
]
