"""Callback signatures and invocation helpers.

Host callbacks may be plain functions or coroutine functions. Everything is
invoked from timer coroutines on the event loop.
"""

import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from .calendar.events import CalendarEvent

# on_reminder(event, offset_minutes, snoozed)
ReminderCallback = Callable[[CalendarEvent, int, bool], Union[None, Awaitable[None]]]

# on_preview(event, offset_minutes)
PreviewCallback = Callable[[CalendarEvent, int], Union[None, Awaitable[None]]]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware now in UTC."""
    return datetime.now(timezone.utc)


async def invoke(callback: Optional[Callable[..., Any]], *args) -> Any:
    """Call a sync or async callback and return its result."""
    if callback is None:
        return None
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
