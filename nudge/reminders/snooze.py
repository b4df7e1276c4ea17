"""Snooze - re-arm a reminder for an event after the user dismisses it."""

import uuid
from datetime import timedelta
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from ..callbacks import Clock, ReminderCallback, invoke, utc_now
from ..calendar.events import CalendarEvent
from ..errors import InvalidSnoozeRequest
from .types import SnoozeJob


class SnoozeManager:
    """At most one pending snooze per event; a new snooze replaces the old one.

    Snoozes live outside the main job set, so ``JobScheduler.update_events``
    never touches them.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        on_reminder: ReminderCallback,
        clock: Clock = utc_now,
        misfire_grace_time: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self.on_reminder = on_reminder
        self.clock = clock
        self.misfire_grace_time = misfire_grace_time
        self._snoozes: dict[str, SnoozeJob] = {}

    @property
    def pending(self) -> dict[str, SnoozeJob]:
        """Snapshot of outstanding snoozes by event id."""
        return dict(self._snoozes)

    def snooze(self, event: Optional[CalendarEvent], minutes: int) -> bool:
        """Fire the reminder for ``event`` again in ``minutes``.

        Returns:
            True once the timer is armed, False if the request was invalid
            or the timer could not be armed (no side effect in that case)
        """
        try:
            self._validate(event, minutes)
        except InvalidSnoozeRequest as e:
            logger.warning(f"Rejected snooze: {e}")
            return False

        previous = self._snoozes.get(event.id)

        fire_at = self.clock() + timedelta(minutes=minutes)
        job_id = f"snooze:{event.id}:{uuid.uuid4().hex[:8]}"
        job_kwargs = {}
        if self.misfire_grace_time is not None:
            job_kwargs["misfire_grace_time"] = self.misfire_grace_time

        try:
            self.scheduler.add_job(
                self._fire,
                trigger=DateTrigger(run_date=fire_at),
                args=[event.id, job_id],
                id=job_id,
                name=f"snooze:{event.title[:30]}",
                replace_existing=True,
                **job_kwargs
            )
        except Exception as e:
            logger.error(f"Failed to arm snooze for event {event.id}: {e}")
            return False

        # New timer is live; only now drop the one it replaces
        if previous is not None:
            self._remove_job(previous.job_id)

        self._snoozes[event.id] = SnoozeJob(event=event, minutes=minutes, fire_at=fire_at, job_id=job_id)
        logger.info(f"Snoozed {event.title} for {minutes} min (until {fire_at.isoformat()})")
        return True

    @staticmethod
    def _validate(event: Optional[CalendarEvent], minutes) -> None:
        if event is None:
            raise InvalidSnoozeRequest("no event given")
        if not getattr(event, "id", None):
            raise InvalidSnoozeRequest("event has no id")
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise InvalidSnoozeRequest(f"invalid duration {minutes!r}")

    async def _fire(self, event_id: str, job_id: str) -> None:
        snooze = self._snoozes.get(event_id)
        if snooze is None or snooze.job_id != job_id:
            logger.debug(f"Ignoring stale snooze {job_id}")
            return

        del self._snoozes[event_id]
        logger.info(f"Triggering snoozed reminder for: {snooze.event.title}")

        try:
            # Snoozed firings always report offset 0 ("now")
            await invoke(self.on_reminder, snooze.event, 0, True)
        except Exception as e:
            logger.error(f"Snooze callback failed for event {event_id}: {e}")

    def cancel(self, event_id: str) -> bool:
        """Cancel the outstanding snooze for an event, if any."""
        snooze = self._snoozes.pop(event_id, None)
        if snooze is None:
            return False

        self._remove_job(snooze.job_id)
        logger.debug(f"Cancelled snooze for event {event_id}")
        return True

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass

    def cancel_all(self) -> int:
        """Cancel every outstanding snooze."""
        event_ids = list(self._snoozes)
        for event_id in event_ids:
            self.cancel(event_id)
        return len(event_ids)
