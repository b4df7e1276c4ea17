"""Reminder engine defaults and limits."""

# Reminder offsets (minutes before start)
DEFAULT_REMINDER_OFFSETS = (10, 5, 1)
MAX_OFFSET_MINUTES = 120

# Preview fires this long before its reminder
DEFAULT_PREVIEW_LEAD_SECONDS = 30

# Snooze
DEFAULT_SNOOZE_MINUTES = 5

# Sync interval bounds
DEFAULT_SYNC_INTERVAL_MINUTES = 5
MAX_SYNC_INTERVAL_MINUTES = 60

# Retry settings
MAX_RETRIES = 3
BASE_DELAY_MS = 5000

# APScheduler job IDs owned by the sync controller
SYNC_JOB_ID = "calendar_sync"
SYNC_RETRY_JOB_ID = "calendar_sync_retry"

# Fetch window
DEFAULT_LOOKAHEAD_DAYS = 7
MAX_RESULTS_PER_CALENDAR = 100
