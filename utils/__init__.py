"""Utility modules for Meeting Nudge."""

from .log_sanitizer import sanitize_log, sanitize_for_log

__all__ = ["sanitize_log", "sanitize_for_log"]
