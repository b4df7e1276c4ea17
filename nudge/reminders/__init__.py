"""Reminder planning and timers.

Uses APScheduler date triggers; nothing is persisted across restarts.
"""

from .types import JobKind, JobKey, PlannedJob, ScheduledJob, SnoozeJob
from .planner import plan, plan_for_settings
from .scheduler import JobScheduler
from .snooze import SnoozeManager

__all__ = [
    "JobKind",
    "JobKey",
    "PlannedJob",
    "ScheduledJob",
    "SnoozeJob",
    "plan",
    "plan_for_settings",
    "JobScheduler",
    "SnoozeManager",
]
