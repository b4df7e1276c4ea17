"""Logging for Meeting Nudge.

One named logger shared by every module. Each record passes through the
log sanitizer before any handler sees it, so tokens from Google errors and
passcodes in meeting links never reach the log file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from config import LOG_DIR, LOG_LEVEL
from utils.log_sanitizer import sanitize_log

LOGGER_NAME = "meeting_nudge"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


class SanitizingFilter(logging.Filter):
    """Rewrites each record's message with credentials redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        record.msg = sanitize_log(message)
        record.args = None
        return True


def setup_logging(log_dir: Path = LOG_DIR, level: str = LOG_LEVEL) -> logging.Logger:
    """Configure the shared logger: a dated file under log_dir, plus the console when interactive."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level, logging.INFO))

    # Re-running setup must not stack handlers
    logger.handlers.clear()
    logger.filters.clear()
    logger.addFilter(SanitizingFilter())

    log_file = log_dir / f"nudge-{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    # Tray builds run without a console
    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()
