"""Global configuration for Meeting Nudge."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Google Calendar - refresh token obtained out of band (consent flow not handled here)
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN")

# Comma-separated calendar IDs to watch
CALENDAR_IDS = [c.strip() for c in os.getenv("CALENDAR_IDS", "primary").split(",") if c.strip()]

# How far ahead to fetch events
LOOKAHEAD_DAYS = int(os.getenv("LOOKAHEAD_DAYS", "7"))

# Timezone applied to all-day events and naive timestamps
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "UTC")

# Reminders (raw values - sanitized by nudge.settings)
REMINDER_OFFSETS = os.getenv("REMINDER_OFFSETS", "10,5,1")
PREVIEW_ENABLED = os.getenv("PREVIEW_ENABLED", "1").lower() not in ("0", "false", "no")
PREVIEW_LEAD_SECONDS = os.getenv("PREVIEW_LEAD_SECONDS", "30")
DEFAULT_SNOOZE_MINUTES = int(os.getenv("DEFAULT_SNOOZE_MINUTES", "5"))

# Sync
SYNC_INTERVAL_MINUTES = os.getenv("SYNC_INTERVAL_MINUTES", "5")
SYNC_MAX_RETRIES = int(os.getenv("SYNC_MAX_RETRIES", "3"))
SYNC_BASE_DELAY_MS = int(os.getenv("SYNC_BASE_DELAY_MS", "5000"))

# Allow a timer to fire this late if the loop was busy or the machine slept
MISFIRE_GRACE_SECONDS = int(os.getenv("MISFIRE_GRACE_SECONDS", "60"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "meeting-nudge" / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
