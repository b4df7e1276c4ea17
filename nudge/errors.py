"""Error taxonomy for the reminder engine."""


class NudgeError(Exception):
    """Base class for all reminder engine errors."""


class ConfigError(NudgeError, ValueError):
    """A configuration value is invalid or out of range."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class SchedulingFailure(NudgeError):
    """A timer could not be armed for a single job."""


class FetchError(NudgeError):
    """Fetching events from the calendar source failed."""


class AuthError(FetchError):
    """Credentials are missing, invalid or expired. Never retried."""


class TransientFetchError(FetchError):
    """A fetch failure worth retrying (network, quota, 5xx)."""


class InvalidSnoozeRequest(NudgeError):
    """Snooze requested for a missing event, an event without an id, or a bad duration."""
