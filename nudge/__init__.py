"""Meeting Nudge - reminder scheduling engine for calendar meetings.

Turns calendar events plus user lead times into cancellable one-shot
APScheduler timers, and keeps the event list fresh with a retrying sync.
"""

from .calendar.events import CalendarEvent, ConferenceLink
from .engine import ReminderEngine
from .errors import (
    AuthError,
    ConfigError,
    InvalidSnoozeRequest,
    NudgeError,
    SchedulingFailure,
    TransientFetchError,
)
from .settings import ReminderSettings, load_settings
from .sync import FailureKind, SyncPhase, SyncRetryController, SyncState

__all__ = [
    "CalendarEvent",
    "ConferenceLink",
    "ReminderEngine",
    "ReminderSettings",
    "load_settings",
    "SyncRetryController",
    "SyncState",
    "SyncPhase",
    "FailureKind",
    "NudgeError",
    "ConfigError",
    "SchedulingFailure",
    "AuthError",
    "TransientFetchError",
    "InvalidSnoozeRequest",
]
