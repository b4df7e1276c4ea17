"""Sync retry controller for calendar fetches.

Wraps the fetch-and-reschedule cycle in a bounded exponential backoff.

States:
- IDLE: Nothing running, no retry pending
- SYNCING: A fetch-and-reschedule attempt is running
- RETRY_PENDING: A transient failure armed one deferred retry

Transitions:
- IDLE → SYNCING: sync_now(), periodic sync tick, or deferred retry firing
- SYNCING → IDLE: Success, auth failure, or transient failure with retries exhausted
- SYNCING → RETRY_PENDING: Transient failure with retries left
- RETRY_PENDING → SYNCING: Retry timer fires, or sync_now() supersedes it

A failed sync never touches reminder jobs armed by an earlier success.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from logger import logger
from utils import sanitize_for_log
from . import config
from .callbacks import Clock, invoke, utc_now
from .calendar.events import CalendarEvent
from .errors import AuthError

Fetch = Callable[[], Awaitable[list[CalendarEvent]]]

# on_events(events) - reschedule with the fresh list
EventsCallback = Callable[[list[CalendarEvent]], object]

# on_failure(error_message, kind, terminal)
FailureCallback = Callable[[str, "FailureKind", bool], object]


class SyncPhase(Enum):
    """Sync controller states."""
    IDLE = "idle"
    SYNCING = "syncing"
    RETRY_PENDING = "retry_pending"


class FailureKind(str, Enum):
    """How a failed sync is treated."""
    AUTH = "auth"            # Credentials invalid/expired - never retried
    TRANSIENT = "transient"  # Retried with backoff


@dataclass
class SyncState:
    """Status of the most recent sync cycle."""
    last_sync_time: Optional[datetime] = None   # Last successful sync
    last_sync_success: bool = False
    attempt: int = 0
    last_error: Optional[str] = None
    last_attempt_time: Optional[datetime] = None
    phase: SyncPhase = SyncPhase.IDLE

    def to_dict(self) -> dict:
        return {
            "last_sync_time": self.last_sync_time.isoformat() if self.last_sync_time else None,
            "last_sync_success": self.last_sync_success,
            "attempt": self.attempt,
            "last_error": self.last_error,
            "last_attempt_time": self.last_attempt_time.isoformat() if self.last_attempt_time else None,
            "phase": self.phase.value,
        }


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one attempt."""
    ok: bool
    event_count: int = 0
    kind: Optional[FailureKind] = None
    error: Optional[str] = None
    retry_in_ms: Optional[int] = None
    skipped: bool = False


def classify_error(error: BaseException) -> FailureKind:
    """Auth errors are terminal; everything else is worth retrying."""
    if isinstance(error, AuthError):
        return FailureKind.AUTH
    return FailureKind.TRANSIENT


class SyncRetryController:
    """Runs sync cycles and retries transient failures with backoff.

    Usage:
        controller = SyncRetryController(scheduler, fetch=source.fetch,
                                         on_events=job_scheduler.update_events)
        controller.start(interval_minutes=5)
        await controller.sync_now()
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        fetch: Fetch,
        on_events: EventsCallback,
        on_failure: Optional[FailureCallback] = None,
        max_retries: int = config.MAX_RETRIES,
        base_delay_ms: int = config.BASE_DELAY_MS,
        clock: Clock = utc_now,
        name: str = "calendar",
    ):
        """Initialize controller.

        Args:
            scheduler: APScheduler instance for the retry and periodic jobs
            fetch: Coroutine returning the full event list, or raising
            on_events: Receives the fetched events (reschedules reminders)
            on_failure: Called as on_failure(error, kind, terminal) when a
                failure is surfaced to the user
            max_retries: Total attempts per cycle, including the first
            base_delay_ms: First retry delay; doubles each attempt
            clock: Returns the current timezone-aware time
            name: Name for logging and job ids
        """
        self.scheduler = scheduler
        self.fetch = fetch
        self.on_events = on_events
        self.on_failure = on_failure
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.clock = clock
        self.name = name

        self.sync_job_id = f"{config.SYNC_JOB_ID}:{name}"
        self.retry_job_id = f"{config.SYNC_RETRY_JOB_ID}:{name}"

        self._state = SyncState()
        self._in_flight = False
        self._retry_pending = False
        self._retry_token = 0

    @property
    def phase(self) -> SyncPhase:
        return self._state.phase

    @property
    def retry_pending(self) -> bool:
        return self._retry_pending

    def get_sync_status(self) -> SyncState:
        """Read-only snapshot of the sync state."""
        return replace(self._state)

    def retry_delay_ms(self, attempt: int) -> int:
        """Backoff delay before the retry that follows ``attempt``."""
        return self.base_delay_ms * (2 ** attempt)

    # ------------------------------------------------------------------
    # Driving

    async def sync_now(self) -> SyncResult:
        """Start a fresh sync cycle at attempt 0.

        A pending retry is cancelled first, so a manual sync supersedes it
        rather than running alongside it.
        """
        if self._in_flight:
            logger.info(f"Sync [{self.name}]: already in progress, skipping")
            return SyncResult(ok=False, skipped=True)

        if self._cancel_retry():
            logger.info(f"Sync [{self.name}]: manual sync superseded pending retry")

        self._state.attempt = 0
        return await self._attempt()

    async def _retry(self, token: int) -> None:
        """Deferred retry timer callback."""
        if not self._retry_pending or token != self._retry_token:
            logger.debug(f"Sync [{self.name}]: ignoring superseded retry")
            return
        self._retry_pending = False
        await self._attempt()

    async def _attempt(self) -> SyncResult:
        self._in_flight = True
        self._state.phase = SyncPhase.SYNCING
        self._state.last_attempt_time = self.clock()
        logger.info(f"Sync [{self.name}]: attempt {self._state.attempt + 1}/{self.max_retries}")

        try:
            result = await self._run_cycle()
            return await self._apply(result)
        finally:
            self._in_flight = False

    async def _run_cycle(self) -> SyncResult:
        """Fetch and reschedule. Never raises - failures become results."""
        try:
            events = await self.fetch()
            await invoke(self.on_events, events)
        except Exception as e:
            return SyncResult(
                ok=False,
                kind=classify_error(e),
                error=sanitize_for_log(e) or type(e).__name__,
            )
        return SyncResult(ok=True, event_count=len(events))

    async def _apply(self, result: SyncResult) -> SyncResult:
        """Advance the state machine from an attempt's result."""
        state = self._state

        if result.ok:
            self._state = SyncState(
                last_sync_time=self.clock(),
                last_sync_success=True,
                attempt=0,
                last_error=None,
                last_attempt_time=state.last_attempt_time,
                phase=SyncPhase.IDLE,
            )
            logger.info(f"Sync [{self.name}]: synced {result.event_count} events")
            return result

        state.last_sync_success = False
        state.last_error = result.error

        if result.kind is FailureKind.AUTH:
            logger.error(f"Sync [{self.name}]: auth failure, not retrying: {result.error}")
            return await self._terminal(result)

        if state.attempt < self.max_retries - 1:
            delay_ms = self.retry_delay_ms(state.attempt)
            if self._schedule_retry(delay_ms):
                state.attempt += 1
                state.phase = SyncPhase.RETRY_PENDING
                logger.warning(
                    f"Sync [{self.name}]: transient failure ({result.error}), "
                    f"retrying in {delay_ms}ms (attempt {state.attempt + 1}/{self.max_retries})"
                )
                return replace(result, retry_in_ms=delay_ms)

        logger.error(
            f"Sync [{self.name}]: giving up after {state.attempt + 1} attempts: {result.error}"
        )
        return await self._terminal(result)

    async def _terminal(self, result: SyncResult) -> SyncResult:
        self._state.phase = SyncPhase.IDLE
        try:
            await invoke(self.on_failure, result.error, result.kind, True)
        except Exception as e:
            logger.error(f"Sync [{self.name}]: failure callback raised: {e}")
        return result

    def _schedule_retry(self, delay_ms: int) -> bool:
        """Arm the single deferred retry. False if it could not be armed."""
        self._cancel_retry()
        run_at = self.clock() + timedelta(milliseconds=delay_ms)
        self._retry_token += 1
        try:
            self.scheduler.add_job(
                self._retry,
                trigger=DateTrigger(run_date=run_at),
                args=[self._retry_token],
                id=self.retry_job_id,
                name=f"Retry {self.name} sync",
                replace_existing=True,
            )
        except Exception as e:
            logger.error(f"Sync [{self.name}]: failed to arm retry: {e}")
            return False
        self._retry_pending = True
        return True

    def _cancel_retry(self) -> bool:
        """Remove the retry timer. Returns True if a retry was pending."""
        was_pending = self._retry_pending
        self._retry_pending = False
        try:
            self.scheduler.remove_job(self.retry_job_id)
        except JobLookupError:
            pass
        if self._state.phase is SyncPhase.RETRY_PENDING:
            self._state.phase = SyncPhase.IDLE
        return was_pending

    # ------------------------------------------------------------------
    # Periodic sync

    def start(self, interval_minutes: int = config.DEFAULT_SYNC_INTERVAL_MINUTES) -> None:
        """Register (or re-register) the periodic sync job."""
        self.scheduler.add_job(
            self.sync_now,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=self.sync_job_id,
            name=f"Sync {self.name} events",
            replace_existing=True,
        )
        logger.info(f"Started {self.name} sync (every {interval_minutes} min)")

    def stop(self) -> None:
        """Remove the periodic job and any pending retry."""
        self._cancel_retry()
        try:
            self.scheduler.remove_job(self.sync_job_id)
        except JobLookupError:
            pass
