"""Calendar event records shared by every component."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ConferenceLink:
    """A video-call link found on an event."""
    url: str
    name: str
    icon: str = "📹"


@dataclass(frozen=True)
class CalendarEvent:
    """A single calendar occurrence.

    Produced by an event source and never mutated afterwards. The scheduling
    core only reads ``id`` and ``start``; ``start``/``end`` must be
    timezone-aware.
    """
    id: str
    title: str
    start: datetime
    end: Optional[datetime] = None
    location: str = ""
    description: str = ""
    source: str = "google"
    calendar_id: Optional[str] = None
    calendar_name: Optional[str] = None
    all_day: bool = False
    conference_links: tuple[ConferenceLink, ...] = field(default_factory=tuple)

    @property
    def conference_link(self) -> Optional[ConferenceLink]:
        """Primary conference link (first found), if any."""
        return self.conference_links[0] if self.conference_links else None
