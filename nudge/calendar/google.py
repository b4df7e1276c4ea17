"""Google Calendar event source.

Fetches upcoming events from one or more calendars, normalizes them into
CalendarEvent records and classifies failures as auth or transient.
"""

import asyncio
from datetime import datetime, timedelta, tzinfo
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from dateutil.parser import parse as parse_datetime
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

import config as app_config
from logger import logger
from utils import sanitize_for_log
from .. import config
from ..callbacks import Clock, utc_now
from ..errors import AuthError, TransientFetchError
from .conference import find_conference_links
from .events import CalendarEvent
from .google_auth import build_calendar_service, build_credentials

UNAUTHORIZED = 401
FORBIDDEN = 403
RATE_LIMIT_REASONS = (b"rateLimitExceeded", b"userRateLimitExceeded")


def _parse_when(value: Optional[dict], tz: tzinfo) -> tuple[Optional[datetime], bool]:
    """Parse a Google start/end block. Returns (datetime, all_day)."""
    if not value:
        return None, False

    if value.get("dateTime"):
        when = parse_datetime(value["dateTime"])
        if when.tzinfo is None:
            when = when.replace(tzinfo=tz)
        return when, False

    if value.get("date"):
        return parse_datetime(value["date"]).replace(tzinfo=tz), True

    return None, False


def event_from_google(item: dict, calendar_id: str, tz: tzinfo) -> CalendarEvent:
    """Normalize a Calendar API event item.

    Raises:
        ValueError: If the item has no id or no usable start time
    """
    if not item.get("id"):
        raise ValueError("event has no id")

    start, all_day = _parse_when(item.get("start"), tz)
    if start is None:
        raise ValueError(f"event {item['id']} has no start time")
    end, _ = _parse_when(item.get("end"), tz)

    location = item.get("location") or ""
    description = item.get("description") or ""

    return CalendarEvent(
        id=f"google-{calendar_id}-{item['id']}",
        title=item.get("summary") or "Untitled Event",
        start=start,
        end=end,
        location=location,
        description=description,
        source="google",
        calendar_id=calendar_id,
        calendar_name="Primary" if calendar_id == "primary" else calendar_id,
        all_day=all_day,
        conference_links=find_conference_links(location, description, item.get("conferenceData")),
    )


def _is_forbidden(error: HttpError) -> bool:
    """403 that is not a quota error (no read access to this calendar)."""
    if getattr(error.resp, "status", None) != FORBIDDEN:
        return False
    content = error.content or b""
    return not any(reason in content for reason in RATE_LIMIT_REASONS)


class GoogleCalendarSource:
    """Upcoming events from Google Calendar."""

    def __init__(
        self,
        calendar_ids: Optional[list[str]] = None,
        lookahead_days: int = config.DEFAULT_LOOKAHEAD_DAYS,
        timezone: Optional[str] = None,
        service_factory: Optional[Callable[[], Any]] = None,
        clock: Clock = utc_now,
    ):
        """Initialize source.

        Args:
            calendar_ids: Calendars to read (default: ['primary'])
            lookahead_days: How far ahead to fetch
            timezone: Zone for all-day and naive timestamps
            service_factory: Returns a Calendar API service (default: from
                the configured refresh token); may raise AuthError
            clock: Returns the current timezone-aware time
        """
        self.calendar_ids = calendar_ids or ["primary"]
        self.lookahead_days = lookahead_days
        self.tz = ZoneInfo(timezone or app_config.CALENDAR_TIMEZONE)
        self.service_factory = service_factory or self._default_service
        self.clock = clock
        self._service = None

    @staticmethod
    def _default_service():
        credentials = build_credentials()
        if credentials is None:
            raise AuthError("Google Calendar credentials not configured")
        return build_calendar_service(credentials)

    def _get_service(self):
        if self._service is None:
            self._service = self.service_factory()
        return self._service

    def disconnect(self) -> None:
        """Drop the cached service so the next fetch rebuilds credentials."""
        self._service = None

    def _list_events(self, service, calendar_id: str, time_min: datetime, time_max: datetime) -> list[dict]:
        """Blocking API call - run via asyncio.to_thread."""
        response = service.events().list(
            calendarId=calendar_id,
            timeMin=time_min.isoformat(),
            timeMax=time_max.isoformat(),
            singleEvents=True,
            orderBy="startTime",
            maxResults=config.MAX_RESULTS_PER_CALENDAR,
        ).execute()
        return response.get("items", [])

    async def fetch(self) -> list[CalendarEvent]:
        """Fetch upcoming events from every configured calendar.

        A calendar that fails is skipped, including one that answers 403
        (no read access). A 401 or a rejected refresh token means the
        credentials themselves are bad and fails the whole fetch.

        Raises:
            AuthError: Credentials missing, revoked or expired, or every
                calendar refused access
            TransientFetchError: Every calendar failed, at least one for a
                retryable reason
        """
        service = self._get_service()
        now = self.clock()
        time_max = now + timedelta(days=self.lookahead_days)

        events: list[CalendarEvent] = []
        failures: list[str] = []
        forbidden = 0

        for calendar_id in self.calendar_ids:
            try:
                items = await asyncio.to_thread(self._list_events, service, calendar_id, now, time_max)
            except HttpError as e:
                if getattr(e.resp, "status", None) == UNAUTHORIZED:
                    self.disconnect()
                    raise AuthError("Google Calendar authentication expired (401). Please reconnect.") from e
                if _is_forbidden(e):
                    forbidden += 1
                failures.append(f"{calendar_id}: HTTP {getattr(e.resp, 'status', '?')}")
                logger.error(f"Failed to fetch events from calendar {calendar_id}: {sanitize_for_log(e)}")
                continue
            except RefreshError as e:
                self.disconnect()
                raise AuthError("Google Calendar refresh token was rejected. Please reconnect.") from e
            except Exception as e:
                failures.append(f"{calendar_id}: {type(e).__name__}")
                logger.error(f"Failed to fetch events from calendar {calendar_id}: {sanitize_for_log(e)}")
                continue

            for item in items:
                try:
                    events.append(event_from_google(item, calendar_id, self.tz))
                except ValueError as e:
                    logger.warning(f"Skipping malformed event from {calendar_id}: {e}")

            logger.info(f"Fetched {len(items)} events from {calendar_id}")

        if failures and len(failures) == len(self.calendar_ids):
            if forbidden == len(failures):
                self.disconnect()
                raise AuthError(f"Google Calendar access denied ({'; '.join(failures)}). Please reconnect.")
            raise TransientFetchError(f"All calendars failed ({'; '.join(failures)})")

        events.sort(key=lambda e: e.start)
        logger.info(f"Total events from {len(self.calendar_ids)} calendars: {len(events)}")
        return events
