"""Reminder settings and their validation.

Invalid values are dropped with a warning; they never stop the engine.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

import config as app_config
from logger import logger
from . import config
from .errors import ConfigError


def _parse_int(field_name: str, value) -> int:
    """Parse an int from an int, integral float or digit string."""
    if isinstance(value, bool):
        raise ConfigError(field_name, value, "not a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(field_name, value, "not a whole number")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ConfigError(field_name, value, "not a number") from None
    raise ConfigError(field_name, value, "not a number")


def validate_offset(value) -> int:
    """Validate a single reminder offset in minutes.

    Raises:
        ConfigError: If the value is not an integer in (0, MAX_OFFSET_MINUTES]
    """
    minutes = _parse_int("reminder offset", value)
    if minutes <= 0 or minutes > config.MAX_OFFSET_MINUTES:
        raise ConfigError(
            "reminder offset", value,
            f"must be between 1 and {config.MAX_OFFSET_MINUTES} minutes"
        )
    return minutes


def sanitize_offsets(values: Union[str, Iterable, None]) -> frozenset[int]:
    """Validate and deduplicate reminder offsets.

    Accepts an iterable or a comma-separated string. Offending values are
    logged and dropped; if nothing valid remains the defaults are used.
    """
    if values is None:
        values = []
    elif isinstance(values, str):
        values = [v for v in values.split(",") if v.strip()]

    offsets = set()
    for value in values:
        try:
            offsets.add(validate_offset(value))
        except ConfigError as e:
            logger.warning(f"Dropping reminder offset: {e}")

    if not offsets:
        logger.warning(f"No valid reminder offsets, using defaults {config.DEFAULT_REMINDER_OFFSETS}")
        return frozenset(config.DEFAULT_REMINDER_OFFSETS)

    return frozenset(offsets)


def validate_sync_interval(value) -> int:
    """Validate the sync interval in minutes, (0, MAX_SYNC_INTERVAL_MINUTES]."""
    minutes = _parse_int("sync interval", value)
    if minutes <= 0 or minutes > config.MAX_SYNC_INTERVAL_MINUTES:
        raise ConfigError(
            "sync interval", value,
            f"must be between 1 and {config.MAX_SYNC_INTERVAL_MINUTES} minutes"
        )
    return minutes


def sanitize_sync_interval(value, default: int = config.DEFAULT_SYNC_INTERVAL_MINUTES) -> int:
    """Sync interval, falling back to the default when invalid."""
    try:
        return validate_sync_interval(value)
    except ConfigError as e:
        logger.warning(f"{e} - using {default} minutes")
        return default


def sanitize_preview_lead(value, default: int = config.DEFAULT_PREVIEW_LEAD_SECONDS) -> int:
    """Preview lead time in seconds; must be positive."""
    try:
        seconds = _parse_int("preview lead", value)
    except ConfigError as e:
        logger.warning(f"{e} - using {default} seconds")
        return default
    if seconds <= 0:
        logger.warning(f"Invalid preview lead {value!r} - using {default} seconds")
        return default
    return seconds


@dataclass(frozen=True)
class ReminderSettings:
    """Settings read by the planner on every reschedule."""
    offsets: frozenset[int] = field(default_factory=lambda: frozenset(config.DEFAULT_REMINDER_OFFSETS))
    preview_enabled: bool = False
    preview_lead_seconds: int = config.DEFAULT_PREVIEW_LEAD_SECONDS

    @property
    def offsets_descending(self) -> list[int]:
        """Offsets in display order (largest lead time first)."""
        return sorted(self.offsets, reverse=True)

    @classmethod
    def from_raw(
        cls,
        offsets=None,
        preview_enabled: bool = False,
        preview_lead_seconds=config.DEFAULT_PREVIEW_LEAD_SECONDS,
    ) -> "ReminderSettings":
        """Build settings from unvalidated values (env, settings UI)."""
        return cls(
            offsets=sanitize_offsets(offsets),
            preview_enabled=bool(preview_enabled),
            preview_lead_seconds=sanitize_preview_lead(preview_lead_seconds),
        )


def load_settings(overrides: Optional[dict] = None) -> ReminderSettings:
    """Load reminder settings from the environment-backed config module.

    Args:
        overrides: Optional raw values (keys: offsets, preview_enabled,
            preview_lead_seconds) taking precedence over the environment
    """
    overrides = overrides or {}
    return ReminderSettings.from_raw(
        offsets=overrides.get("offsets", app_config.REMINDER_OFFSETS),
        preview_enabled=overrides.get("preview_enabled", app_config.PREVIEW_ENABLED),
        preview_lead_seconds=overrides.get("preview_lead_seconds", app_config.PREVIEW_LEAD_SECONDS),
    )
