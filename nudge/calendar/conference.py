"""Conference link detection - finds video-call URLs on calendar events."""

import re
from typing import Optional

from .events import ConferenceLink
from .url_validator import MEETING_HOST_ALLOWLIST, is_safe_external_url

# (provider name, pattern, icon)
CONFERENCE_PATTERNS = [
    ("Zoom", re.compile(r'https?://(?:[\w-]+\.)?zoom\.us/(?:j|my)/[\w-]+(?:\?[\w=&-]*)?', re.IGNORECASE), "📹"),
    ("Google Meet", re.compile(r'https?://meet\.google\.com/[\w-]+', re.IGNORECASE), "🟢"),
    ("Microsoft Teams", re.compile(r'https?://teams\.microsoft\.com/l/meetup-join/[\w%\-@.]+', re.IGNORECASE), "🟣"),
    ("Webex", re.compile(r'https?://(?:[\w-]+\.)?webex\.com/(?:meet|join)/[\w-]+', re.IGNORECASE), "🔵"),
    ("GoTo Meeting", re.compile(r'https?://(?:[\w-]+\.)?gotomeet(?:ing)?\.com/[\w-]+', re.IGNORECASE), "🟠"),
    ("BlueJeans", re.compile(r'https?://(?:[\w-]+\.)?bluejeans\.com/[\w-]+', re.IGNORECASE), "🔷"),
    ("Slack", re.compile(r'https?://(?:[\w-]+\.)?slack\.com/[\w/-]+huddle[\w/-]*', re.IGNORECASE), "💬"),
    ("Discord", re.compile(r'https?://discord\.(?:gg|com)/[\w/-]+', re.IGNORECASE), "🎮"),
    ("Whereby", re.compile(r'https?://whereby\.com/[\w-]+', re.IGNORECASE), "📞"),
    ("Around", re.compile(r'https?://(?:[\w-]+\.)?around\.co/[\w-]+', re.IGNORECASE), "⭕"),
    ("Jitsi", re.compile(r'https?://meet\.jit\.si/[\w-]+', re.IGNORECASE), "🎥"),
    ("Amazon Chime", re.compile(r'https?://chime\.aws/[\w-]+', re.IGNORECASE), "📱"),
    ("RingCentral", re.compile(r'https?://(?:[\w-]+\.)?ringcentral\.com/[\w/-]+', re.IGNORECASE), "📞"),
]

_URL_PATTERN = re.compile(r'https?://[^\s<>"{}|\\^`\[\]]+', re.IGNORECASE)


def extract_all_links(text: str) -> list[str]:
    """Return unique URLs found in text, in order of appearance."""
    return list(dict.fromkeys(_URL_PATTERN.findall(text or "")))


def identify_conference_link(url: str) -> Optional[ConferenceLink]:
    """Match a single URL against known conference providers.

    The link is trimmed to what the provider pattern matched, which drops
    trailing punctuation picked up from free text.
    """
    for name, pattern, icon in CONFERENCE_PATTERNS:
        match = pattern.match(url)
        if match:
            return ConferenceLink(url=match.group(0), name=name, icon=icon)
    return None


def _structured_link(conference_data: Optional[dict]) -> Optional[ConferenceLink]:
    """Video entry point from Google's conferenceData block."""
    if not conference_data:
        return None

    for entry in conference_data.get("entryPoints") or []:
        if entry.get("entryPointType") == "video" and entry.get("uri"):
            solution = conference_data.get("conferenceSolution") or {}
            return ConferenceLink(
                url=entry["uri"],
                name=solution.get("name") or "Video Call",
                icon="📹",
            )
    return None


def find_conference_links(
    location: str = "",
    description: str = "",
    conference_data: Optional[dict] = None,
) -> tuple[ConferenceLink, ...]:
    """Collect every safe conference link on an event.

    Structured conference data comes first, then links from location and
    description in order of appearance. Links that fail the meeting-host
    allowlist (including plain http) are dropped.
    """
    found: list[ConferenceLink] = []

    structured = _structured_link(conference_data)
    if structured:
        found.append(structured)

    search_text = " ".join([location or "", description or ""])
    for url in extract_all_links(search_text):
        link = identify_conference_link(url)
        if link:
            found.append(link)

    links: list[ConferenceLink] = []
    seen: set[str] = set()
    for link in found:
        if link.url in seen or not is_safe_external_url(link.url, MEETING_HOST_ALLOWLIST):
            continue
        seen.add(link.url)
        links.append(link)

    return tuple(links)
