"""Arm reminder and preview jobs with APScheduler."""

import uuid
from datetime import datetime
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from ..callbacks import Clock, PreviewCallback, ReminderCallback, invoke, utc_now
from ..calendar.events import CalendarEvent
from ..errors import SchedulingFailure
from ..settings import ReminderSettings
from .planner import plan
from .types import JobKey, JobKind, PlannedJob, ScheduledJob


class JobScheduler:
    """Owns the live reminder/preview timers for the current event list.

    Every ``update_events`` call throws the previous job set away and plans a
    new one from scratch. A fired job removes itself and is never re-armed.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        settings_provider: Callable[[], ReminderSettings],
        on_reminder: ReminderCallback,
        on_preview: Optional[PreviewCallback] = None,
        clock: Clock = utc_now,
        misfire_grace_time: Optional[int] = None,
    ):
        """Initialize scheduler.

        Args:
            scheduler: APScheduler instance that owns the timers
            settings_provider: Returns current reminder settings (read on every reschedule)
            on_reminder: Called as on_reminder(event, offset_minutes, False)
            on_preview: Called as on_preview(event, offset_minutes); previews are
                only planned when this is set and enabled in settings
            clock: Returns the current timezone-aware time
            misfire_grace_time: Seconds a timer may run late (APScheduler default if None)
        """
        self.scheduler = scheduler
        self.settings_provider = settings_provider
        self.on_reminder = on_reminder
        self.on_preview = on_preview
        self.clock = clock
        self.misfire_grace_time = misfire_grace_time

        self._events: list[CalendarEvent] = []
        self._jobs: dict[JobKey, ScheduledJob] = {}

    @property
    def events(self) -> list[CalendarEvent]:
        """Current event list, sorted by start."""
        return list(self._events)

    @property
    def jobs(self) -> dict[JobKey, ScheduledJob]:
        """Snapshot of live jobs."""
        return dict(self._jobs)

    def update_events(self, events: list[CalendarEvent]) -> int:
        """Replace the event list and re-arm every job.

        Stale timers are all cancelled before any new timer is armed, so a
        job from a previous event list can never fire afterwards.

        Events whose start is not timezone-aware are dropped with an error;
        the rest of the batch is still scheduled.

        Args:
            events: Full current event list, any order

        Returns:
            Number of jobs armed
        """
        self._events = sorted(self._aware_only(events), key=lambda e: e.start)
        self.cancel_all()

        settings = self.settings_provider()
        now = self.clock()
        planned = plan(
            self._events,
            settings.offsets,
            settings.preview_enabled and self.on_preview is not None,
            settings.preview_lead_seconds,
            now,
        )

        for job in planned:
            try:
                self._arm(job, now)
            except SchedulingFailure as e:
                logger.warning(f"Skipping {job.kind.value} for event {job.event.id}: {e}")
            except Exception as e:
                logger.error(f"Failed to arm {job.kind.value} for event {job.event.id}: {e}")

        logger.info(f"Scheduled {len(self._jobs)} reminder jobs for {len(self._events)} events")
        return len(self._jobs)

    @staticmethod
    def _aware_only(events: list[CalendarEvent]) -> list[CalendarEvent]:
        aware = []
        for event in events:
            start = getattr(event, "start", None)
            if start is None or start.utcoffset() is None:
                logger.error(f"Dropping event {getattr(event, 'id', '?')}: start time is not timezone-aware")
                continue
            aware.append(event)
        return aware

    def _arm(self, job: PlannedJob, now: datetime) -> ScheduledJob:
        """Arm one timer. Raises SchedulingFailure if it cannot be armed."""
        if job.fire_at <= now:
            raise SchedulingFailure(f"fire time {job.fire_at.isoformat()} already passed")
        if job.key in self._jobs:
            raise SchedulingFailure(f"job {job.key} already armed")

        job_id = f"{job.kind.value}:{job.event.id}:{job.offset_minutes}:{uuid.uuid4().hex[:8]}"
        job_kwargs = {}
        if self.misfire_grace_time is not None:
            job_kwargs["misfire_grace_time"] = self.misfire_grace_time

        self.scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=job.fire_at),
            args=[job.key, job_id],
            id=job_id,
            name=f"{job.kind.value}:{job.event.title[:30]}",
            replace_existing=True,
            **job_kwargs
        )

        scheduled = ScheduledJob(planned=job, job_id=job_id)
        self._jobs[job.key] = scheduled
        logger.debug(
            f"Scheduled {job.kind.value}: {job.event.title} at {job.fire_at.isoformat()} "
            f"({job.offset_minutes} min before)"
        )
        return scheduled

    async def _fire(self, key: JobKey, job_id: str) -> None:
        """Timer callback. Delivers once, then the job is gone."""
        scheduled = self._jobs.get(key)
        if scheduled is None or scheduled.job_id != job_id:
            # Cancelled (or replaced) after APScheduler dispatched it
            logger.debug(f"Ignoring stale job {job_id}")
            return

        del self._jobs[key]
        event = scheduled.planned.event

        try:
            if key.kind is JobKind.REMINDER:
                logger.info(f"Triggering reminder for: {event.title} ({key.offset_minutes} min before)")
                await invoke(self.on_reminder, event, key.offset_minutes, False)
            else:
                logger.info(f"Triggering preview for: {event.title} ({key.offset_minutes} min before)")
                await invoke(self.on_preview, event, key.offset_minutes)
        except Exception as e:
            logger.error(f"{key.kind.value.capitalize()} callback failed for event {event.id}: {e}")

    def cancel_all(self) -> int:
        """Cancel every live reminder/preview timer.

        Returns:
            Number of jobs cancelled
        """
        cancelled = 0
        for scheduled in self._jobs.values():
            try:
                self.scheduler.remove_job(scheduled.job_id)
            except JobLookupError:
                # Already dispatched; _fire will see it is gone from the map
                pass
            cancelled += 1
        self._jobs.clear()
        return cancelled

    def get_next_reminder(self) -> Optional[CalendarEvent]:
        """Earliest event starting strictly after now, or None."""
        now = self.clock()
        next_event = None

        for event in self._events:
            if event.start > now and (next_event is None or event.start < next_event.start):
                next_event = event

        return next_event
