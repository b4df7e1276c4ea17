"""Log sanitizer - removes credentials from log messages and sync status.

Google API errors can echo request URLs and tokens; meeting links can carry
passcodes. None of that should end up in log files.
"""

import re
from typing import Union

# Patterns to detect and redact sensitive data
SENSITIVE_PATTERNS = [
    # Email addresses (attendees, calendar IDs)
    (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', '[EMAIL]'),

    # OAuth query parameters
    (r'(access_token|refresh_token|client_secret|code)=[^&\s"\']+', r'\1=[REDACTED]'),

    # Meeting passcodes embedded in join URLs
    (r'([?&](?:pwd|passcode|password)=)[^&\s"\']+', r'\1[REDACTED]'),

    # API keys, tokens, secrets in key=value format
    (r'(password|secret|token|api_key|apikey|auth|bearer|credential)["\s:=]+[^\s,}"\']{8,}',
     r'\1=[REDACTED]'),

    # Bearer tokens
    (r'(Bearer|Basic)\s+[A-Za-z0-9\-_\.]+', r'\1 [REDACTED]'),

    # JWT tokens (three base64 segments separated by dots)
    (r'eyJ[A-Za-z0-9\-_]+\.eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+', '[JWT_TOKEN]'),

    # Google OAuth access tokens
    (r'ya29\.[A-Za-z0-9\-_]+', '[GOOGLE_TOKEN]'),

    # Google refresh tokens
    (r'\b1//[A-Za-z0-9\-_]{20,}', '[GOOGLE_TOKEN]'),
]

# Compiled patterns for efficiency
_COMPILED_PATTERNS = [(re.compile(p, re.IGNORECASE), r) for p, r in SENSITIVE_PATTERNS]


def sanitize_log(text: str) -> str:
    """Remove sensitive data from text for safe logging.

    Args:
        text: The text to sanitize

    Returns:
        Sanitized text with sensitive data replaced by placeholders
    """
    if not text:
        return text

    result = text
    for pattern, replacement in _COMPILED_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def sanitize_for_log(value: Union[str, bytes, BaseException, None], max_length: int = 200) -> str:
    """Sanitize and truncate a value for logging.

    Args:
        value: The value to sanitize (string, bytes or exception)
        max_length: Maximum length of returned string

    Returns:
        Sanitized, truncated string safe for logging
    """
    if value is None:
        return "<None>"

    if isinstance(value, bytes):
        text = value.decode('utf-8', errors='replace')
    else:
        text = str(value)

    # Sanitize first
    sanitized = sanitize_log(text)

    # Truncate if needed
    if len(sanitized) > max_length:
        return sanitized[:max_length] + f"... [{len(text)} chars total]"

    return sanitized
