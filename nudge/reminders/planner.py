"""Plan reminder and preview jobs for a batch of events.

Pure: every call is a cold recomputation from (events, settings, now), which
is what makes rescheduling idempotent.
"""

from datetime import datetime, timedelta
from typing import Iterable

from logger import logger
from ..calendar.events import CalendarEvent
from ..settings import ReminderSettings
from .types import JobKind, PlannedJob


def plan(
    events: Iterable[CalendarEvent],
    offsets: Iterable[int],
    preview_enabled: bool,
    preview_lead_seconds: int,
    now: datetime,
) -> list[PlannedJob]:
    """Compute every job that should be armed at ``now``.

    For each future event and each offset, a reminder fires at
    ``start - offset``; with previews enabled a preview fires
    ``preview_lead_seconds`` before that. Any fire time not strictly after
    ``now`` is dropped.

    Args:
        events: Calendar events, any order
        offsets: Reminder offsets in minutes (validated upstream)
        preview_enabled: Whether to emit preview jobs
        preview_lead_seconds: Preview lead before each reminder
        now: Current time (timezone-aware)

    Returns:
        Planned jobs ordered by fire time
    """
    offsets = sorted(set(offsets), reverse=True)
    preview_lead = timedelta(seconds=preview_lead_seconds)
    jobs: list[PlannedJob] = []
    seen_ids: set[str] = set()

    for event in events:
        if event.id in seen_ids:
            logger.warning(f"Duplicate event id {event.id} in batch, skipping")
            continue
        seen_ids.add(event.id)

        try:
            if event.start <= now:
                continue

            for offset in offsets:
                if offset <= 0:
                    logger.warning(f"Ignoring non-positive offset {offset} for event {event.id}")
                    continue

                reminder_at = event.start - timedelta(minutes=offset)
                if reminder_at <= now:
                    continue

                jobs.append(PlannedJob(event, offset, JobKind.REMINDER, reminder_at))

                if preview_enabled:
                    preview_at = reminder_at - preview_lead
                    if preview_at > now:
                        jobs.append(PlannedJob(event, offset, JobKind.PREVIEW, preview_at))

        except TypeError as e:
            # Naive vs aware datetime comparison
            logger.error(f"Cannot plan reminders for event {event.id}: {e}")

    jobs.sort(key=lambda job: job.fire_at)
    return jobs


def plan_for_settings(
    events: Iterable[CalendarEvent],
    settings: ReminderSettings,
    now: datetime,
) -> list[PlannedJob]:
    """Plan using a ReminderSettings bundle."""
    return plan(
        events,
        settings.offsets,
        settings.preview_enabled,
        settings.preview_lead_seconds,
        now,
    )
