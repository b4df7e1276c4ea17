"""Notification text for reminders, previews and sync failures."""

from .calendar.events import CalendarEvent


def format_reminder(event: CalendarEvent, offset_minutes: int, snoozed: bool = False) -> str:
    """One-line reminder text."""
    if offset_minutes <= 0:
        headline = f"⏰ {event.title} - starting now"
    elif offset_minutes == 1:
        headline = f"⏰ {event.title} - starts in 1 minute"
    else:
        headline = f"⏰ {event.title} - starts in {offset_minutes} minutes"

    if snoozed:
        headline += " (snoozed)"

    link = event.conference_link
    if link:
        headline += f"\n{link.icon} Join {link.name}: {link.url}"
    elif event.location:
        headline += f"\n📍 {event.location}"

    return headline


def format_preview(event: CalendarEvent, offset_minutes: int) -> str:
    """Heads-up shown shortly before the full reminder."""
    return f"🔔 Coming up: {event.title} ({offset_minutes} min reminder next)"


def format_sync_failure(error: str, kind: str) -> str:
    if kind == "auth":
        return "⚠️ Calendar disconnected - please reconnect in Settings to keep receiving reminders."
    return f"⚠️ Calendar sync failed: {error}"
