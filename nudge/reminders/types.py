"""Job records for reminder, preview and snooze timers."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NamedTuple

from ..calendar.events import CalendarEvent


class JobKind(str, Enum):
    """What a job delivers when it fires."""
    REMINDER = "reminder"
    PREVIEW = "preview"   # Lighter nudge shortly before the reminder


class JobKey(NamedTuple):
    """Identity of a reminder/preview job. At most one live job per key."""
    event_id: str
    offset_minutes: int
    kind: JobKind


@dataclass(frozen=True)
class PlannedJob:
    """A job the planner wants armed."""
    event: CalendarEvent
    offset_minutes: int
    kind: JobKind
    fire_at: datetime

    @property
    def key(self) -> JobKey:
        return JobKey(self.event.id, self.offset_minutes, self.kind)


@dataclass(frozen=True)
class ScheduledJob:
    """A planned job with a live APScheduler timer."""
    planned: PlannedJob
    job_id: str

    @property
    def key(self) -> JobKey:
        return self.planned.key

    @property
    def fire_at(self) -> datetime:
        return self.planned.fire_at


@dataclass(frozen=True)
class SnoozeJob:
    """An ad-hoc reminder re-armed by the user. Keyed by event id."""
    event: CalendarEvent
    minutes: int
    fire_at: datetime
    job_id: str
