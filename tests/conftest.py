"""Pytest configuration and fixtures.

Schedulers are never started in tests: jobs stay pending inside APScheduler
and tests fire them explicitly with the ``fire_job`` fixture.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nudge.calendar.events import CalendarEvent, ConferenceLink
from nudge.settings import ReminderSettings

BASE_TIME = datetime(2026, 3, 2, 0, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class CallRecorder:
    """Records reminder/preview/failure callback invocations."""

    def __init__(self):
        self.reminders = []
        self.previews = []
        self.failures = []

    def on_reminder(self, event, offset_minutes, snoozed):
        self.reminders.append((event.id, offset_minutes, snoozed))

    def on_preview(self, event, offset_minutes):
        self.previews.append((event.id, offset_minutes))

    def on_failure(self, error, kind, terminal):
        self.failures.append((error, kind, terminal))


@pytest.fixture
def clock():
    """Clock pinned to 2026-03-02 00:00:00 UTC."""
    return FakeClock(BASE_TIME)


@pytest.fixture
def scheduler():
    """An APScheduler instance that is never started."""
    return AsyncIOScheduler()


@pytest.fixture
def recorder():
    return CallRecorder()


@pytest.fixture
def make_event():
    """Factory for calendar events starting relative to BASE_TIME."""
    def _make(event_id="evt-1", minutes=15, seconds=0, title="Standup", **kwargs):
        start = BASE_TIME + timedelta(minutes=minutes, seconds=seconds)
        kwargs.setdefault("end", start + timedelta(minutes=30))
        return CalendarEvent(id=event_id, title=title, start=start, **kwargs)
    return _make


@pytest.fixture
def zoom_link():
    return ConferenceLink(url="https://zoom.us/j/123456789", name="Zoom", icon="📹")


@pytest.fixture
def settings():
    """Mutable holder so tests can change settings between reschedules."""
    holder = {"value": ReminderSettings(offsets=frozenset({10, 5, 1}), preview_enabled=True, preview_lead_seconds=30)}
    return holder


@pytest.fixture
def fire_job():
    """Run a pending job the way APScheduler would: remove it, then await it."""
    async def _fire(scheduler, job_id):
        job = scheduler.get_job(job_id)
        assert job is not None, f"job {job_id} is not armed"
        scheduler.remove_job(job_id)
        await job.func(*job.args, **job.kwargs)
    return _fire
