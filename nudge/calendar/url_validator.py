"""URL safety checks for links that may be opened from a reminder."""

from typing import Optional, Sequence
from urllib.parse import urlparse

MEETING_HOST_ALLOWLIST = [
    "zoom.us",
    "meet.google.com",
    "teams.microsoft.com",
    "webex.com",
    "gotomeeting.com",
    "gotomeet.com",
    "bluejeans.com",
    "slack.com",
    "discord.gg",
    "discord.com",
    "whereby.com",
    "around.co",
    "meet.jit.si",
    "chime.aws",
    "ringcentral.com",
]

EXTERNAL_HOST_ALLOWLIST = [
    "console.cloud.google.com",
    "cloud.google.com",
    "developers.google.com",
    "accounts.google.com",
]


def is_allowed_host(hostname: Optional[str], allowlist: Sequence[str]) -> bool:
    """True if hostname equals an allowlisted host or is a subdomain of one."""
    host = (hostname or "").lower()
    return any(host == allowed or host.endswith(f".{allowed}") for allowed in allowlist)


def is_safe_external_url(url, allowlist: Optional[Sequence[str]] = None) -> bool:
    """Validate a URL before handing it to the OS to open.

    Only https is accepted. With a non-empty allowlist the host must match it.
    """
    if not isinstance(url, str):
        return False

    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme != "https" or not parsed.hostname:
        return False

    if allowlist:
        return is_allowed_host(parsed.hostname, allowlist)

    return True
