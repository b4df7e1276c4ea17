"""Reminder engine - the surface the host application talks to.

Owns one JobScheduler, one SnoozeManager and one SyncRetryController that
share an APScheduler instance, plus the "pause reminders" window.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from logger import logger
from . import config
from .callbacks import Clock, PreviewCallback, ReminderCallback, invoke, utc_now
from .calendar.events import CalendarEvent
from .reminders.scheduler import JobScheduler
from .reminders.snooze import SnoozeManager
from .settings import ReminderSettings, load_settings
from .sync import FailureCallback, Fetch, SyncRetryController, SyncResult, SyncState


class ReminderEngine:
    """Meeting reminder engine.

    Usage:
        engine = ReminderEngine(scheduler, on_reminder=show_alert,
                                fetch=source.fetch)
        scheduler.start()
        engine.start_sync(interval_minutes=5)
        await engine.sync_now()
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        on_reminder: ReminderCallback,
        on_preview: Optional[PreviewCallback] = None,
        fetch: Optional[Fetch] = None,
        on_sync_failure: Optional[FailureCallback] = None,
        settings_provider: Callable[[], ReminderSettings] = load_settings,
        clock: Clock = utc_now,
        max_retries: int = config.MAX_RETRIES,
        base_delay_ms: int = config.BASE_DELAY_MS,
        misfire_grace_time: Optional[int] = None,
    ):
        """Initialize engine.

        Args:
            scheduler: APScheduler instance owning every timer
            on_reminder: Called as on_reminder(event, offset_minutes, snoozed)
            on_preview: Called as on_preview(event, offset_minutes)
            fetch: Coroutine returning the full event list; required for syncing
            on_sync_failure: Called as on_sync_failure(error, kind, terminal)
            settings_provider: Returns current reminder settings
            clock: Returns the current timezone-aware time
            max_retries: Sync attempts per cycle
            base_delay_ms: First sync retry delay
            misfire_grace_time: Seconds a reminder timer may run late
        """
        self.scheduler = scheduler
        self.clock = clock
        self._on_reminder = on_reminder
        self._on_preview = on_preview
        self._paused_until: Optional[datetime] = None

        self.jobs = JobScheduler(
            scheduler,
            settings_provider=settings_provider,
            on_reminder=self._deliver_reminder,
            on_preview=self._deliver_preview if on_preview else None,
            clock=clock,
            misfire_grace_time=misfire_grace_time,
        )
        self.snoozes = SnoozeManager(
            scheduler,
            on_reminder=self._deliver_reminder,
            clock=clock,
            misfire_grace_time=misfire_grace_time,
        )
        self.sync = None
        if fetch is not None:
            self.sync = SyncRetryController(
                scheduler,
                fetch=fetch,
                on_events=self.update_events,
                on_failure=on_sync_failure,
                max_retries=max_retries,
                base_delay_ms=base_delay_ms,
                clock=clock,
            )

    # ------------------------------------------------------------------
    # Events

    def update_events(self, events: list[CalendarEvent]) -> int:
        """Replace the event list and re-arm every reminder."""
        return self.jobs.update_events(events)

    def get_next_reminder(self) -> Optional[CalendarEvent]:
        return self.jobs.get_next_reminder()

    def get_upcoming_events(self, limit: int = 10) -> list[CalendarEvent]:
        """Events that have not started yet, soonest first."""
        now = self.clock()
        return [e for e in self.jobs.events if e.start > now][:limit]

    def snooze(self, event: Optional[CalendarEvent], minutes: int = config.DEFAULT_SNOOZE_MINUTES) -> bool:
        return self.snoozes.snooze(event, minutes)

    def cancel_all(self) -> None:
        """Cancel every reminder, preview and snooze timer."""
        jobs = self.jobs.cancel_all()
        snoozes = self.snoozes.cancel_all()
        logger.info(f"Cancelled {jobs} reminder jobs and {snoozes} snoozes")

    # ------------------------------------------------------------------
    # Pause window

    @property
    def paused_until(self) -> Optional[datetime]:
        return self._paused_until

    def is_paused(self) -> bool:
        return self._paused_until is not None and self._paused_until > self.clock()

    def pause(self, minutes: int) -> datetime:
        """Suppress reminder delivery for the next ``minutes``.

        Timers keep running; alerts that fire inside the window are dropped.
        """
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValueError(f"Pause duration must be a positive number of minutes, got {minutes!r}")
        self._paused_until = self.clock() + timedelta(minutes=minutes)
        logger.info(f"Reminders paused until {self._paused_until.isoformat()}")
        return self._paused_until

    def resume(self) -> None:
        self._paused_until = None
        logger.info("Reminders resumed")

    async def _deliver_reminder(self, event: CalendarEvent, offset_minutes: int, snoozed: bool) -> None:
        if self.is_paused():
            logger.info(f"Reminders paused, skipping alert for {event.title}")
            return
        await invoke(self._on_reminder, event, offset_minutes, snoozed)

    async def _deliver_preview(self, event: CalendarEvent, offset_minutes: int) -> None:
        if self.is_paused():
            logger.info(f"Reminders paused, skipping preview for {event.title}")
            return
        await invoke(self._on_preview, event, offset_minutes)

    # ------------------------------------------------------------------
    # Sync

    def _require_sync(self) -> SyncRetryController:
        if self.sync is None:
            raise RuntimeError("ReminderEngine was created without a fetch function")
        return self.sync

    async def sync_now(self) -> SyncResult:
        """Fetch events now, superseding any pending retry."""
        return await self._require_sync().sync_now()

    def start_sync(self, interval_minutes: int = config.DEFAULT_SYNC_INTERVAL_MINUTES) -> None:
        self._require_sync().start(interval_minutes)

    def get_sync_status(self) -> SyncState:
        """Snapshot of the last sync (defaults if syncing is not set up)."""
        if self.sync is None:
            return SyncState()
        return self.sync.get_sync_status()

    def shutdown(self) -> None:
        """Stop syncing and cancel every timer."""
        if self.sync is not None:
            self.sync.stop()
        self.cancel_all()
