"""
Sanitization utilities for article-pdf.

This module provides functions for turning user-controlled text into safe
filenames and for redacting sensitive values before they are logged.
"""

import re
import unicodedata
from typing import Any, Dict

# Characters that are never allowed in generated filenames
FILENAME_SPECIAL_CHARS = re.compile(
    r"[?\[\]/\\=<>:;,'\"&$#*()|~`!{}%+‘’«»“”\x00-\x1f]"
)
FILENAME_WHITESPACE = re.compile(r"[\s-]+")
MAX_FILENAME_LENGTH = 200

SENSITIVE_KEYS = {
    "password", "token", "nonce", "secret", "api_key", "authorization",
}


def sanitize_file_name(filename: str, *, default: str = "document") -> str:
    """
    Sanitize a title or filename for use on the filesystem.

    Special characters are removed, runs of whitespace and dashes collapse to
    a single dash, and leading/trailing dots, dashes and underscores are
    trimmed. Letters outside ASCII are kept.

    Args:
        filename: Raw title or filename.
        default: Fallback when nothing usable remains.

    Returns:
        Sanitized filename.

    Examples:
        >>> sanitize_file_name("Hello World")
        "Hello-World"
        >>> sanitize_file_name("../../etc/passwd")
        "etcpasswd"
    """
    if not filename:
        return default

    cleaned = unicodedata.normalize("NFC", str(filename))
    cleaned = FILENAME_SPECIAL_CHARS.sub("", cleaned)
    cleaned = FILENAME_WHITESPACE.sub("-", cleaned)
    cleaned = cleaned.strip(".-_")

    if len(cleaned) > MAX_FILENAME_LENGTH:
        cleaned = cleaned[:MAX_FILENAME_LENGTH].rstrip(".-_")

    return cleaned or default


def redact_values(values: Dict[str, Any], *, fields=None, mask: str = "[REDACTED]") -> Dict[str, Any]:
    """
    Redact sensitive keys from a mapping before logging it.

    Args:
        values: Mapping to redact.
        fields: Iterable of key fragments to treat as sensitive.
        mask: Replacement value.

    Returns:
        A new dict with sensitive values replaced.
    """
    if not values:
        return {}

    sensitive = {str(item).lower() for item in (fields or SENSITIVE_KEYS)}
    result: Dict[str, Any] = {}
    for key, value in values.items():
        key_lower = str(key).lower()
        if any(fragment in key_lower for fragment in sensitive):
            result[key] = mask
        elif isinstance(value, dict):
            result[key] = redact_values(value, fields=sensitive, mask=mask)
        else:
            result[key] = value
    return result
