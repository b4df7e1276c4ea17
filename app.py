"""Meeting Nudge - main entry point.

Runs the reminder engine on an asyncio loop: syncs Google Calendar on an
interval and delivers reminders through the log. Window/tray presentation
hooks in by replacing the notify_* callbacks.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import (
    CALENDAR_IDS,
    LOOKAHEAD_DAYS,
    MISFIRE_GRACE_SECONDS,
    SYNC_BASE_DELAY_MS,
    SYNC_INTERVAL_MINUTES,
    SYNC_MAX_RETRIES,
)
from logger import logger
from nudge import CalendarEvent, ReminderEngine
from nudge.calendar.google import GoogleCalendarSource
from nudge.calendar.google_auth import is_configured
from nudge.notify import format_preview, format_reminder, format_sync_failure
from nudge.settings import sanitize_sync_interval


def notify_reminder(event: CalendarEvent, offset_minutes: int, snoozed: bool) -> None:
    logger.info(format_reminder(event, offset_minutes, snoozed))


def notify_preview(event: CalendarEvent, offset_minutes: int) -> None:
    logger.info(format_preview(event, offset_minutes))


def notify_sync_failure(error: str, kind, terminal: bool) -> None:
    logger.warning(format_sync_failure(error, kind))


def build_engine(scheduler: AsyncIOScheduler) -> ReminderEngine:
    """Wire the Google source and log-based notifications into an engine."""
    source = GoogleCalendarSource(calendar_ids=CALENDAR_IDS, lookahead_days=LOOKAHEAD_DAYS)
    return ReminderEngine(
        scheduler,
        on_reminder=notify_reminder,
        on_preview=notify_preview,
        fetch=source.fetch,
        on_sync_failure=notify_sync_failure,
        max_retries=SYNC_MAX_RETRIES,
        base_delay_ms=SYNC_BASE_DELAY_MS,
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )


async def main() -> None:
    if not is_configured():
        logger.warning(
            "Google Calendar is not configured (GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, "
            "GOOGLE_REFRESH_TOKEN); syncs will fail until it is"
        )

    scheduler = AsyncIOScheduler()
    engine = build_engine(scheduler)

    scheduler.start()
    engine.start_sync(sanitize_sync_interval(SYNC_INTERVAL_MINUTES))
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")

    # Initial sync
    await engine.sync_now()
    logger.info(f"Sync status: {engine.get_sync_status().to_dict()}")

    next_event = engine.get_next_reminder()
    if next_event:
        logger.info(f"Next meeting: {next_event.title} at {next_event.start.isoformat()}")

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops don't support signal handlers
            pass

    try:
        await stop.wait()
    finally:
        engine.shutdown()
        scheduler.shutdown(wait=False)
        logger.info("Meeting Nudge stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
