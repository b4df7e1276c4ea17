"""Google credentials from a stored refresh token.

The interactive consent flow happens elsewhere; this only turns an existing
refresh token into credentials and a Calendar API service.
"""

from typing import Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

import config

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def is_configured() -> bool:
    """True if client id, secret and refresh token are all set."""
    return all([config.GOOGLE_CLIENT_ID, config.GOOGLE_CLIENT_SECRET, config.GOOGLE_REFRESH_TOKEN])


def build_credentials() -> Optional[Credentials]:
    """Credentials from the configured refresh token, or None if unconfigured.

    The access token is fetched lazily by the HTTP layer on first request;
    a revoked refresh token surfaces there as ``RefreshError``.
    """
    if not is_configured():
        return None

    # Don't pass scopes - use whatever the token was granted
    return Credentials(
        token=None,
        refresh_token=config.GOOGLE_REFRESH_TOKEN,
        token_uri=TOKEN_URI,
        client_id=config.GOOGLE_CLIENT_ID,
        client_secret=config.GOOGLE_CLIENT_SECRET,
    )


def build_calendar_service(credentials: Credentials):
    """Calendar v3 API service."""
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)
