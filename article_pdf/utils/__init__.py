"""
Utility helpers for article-pdf.
"""

from .request import get_client_ip, resolve_request_user
from .sanitization import redact_values, sanitize_file_name

__all__ = [
    "get_client_ip",
    "resolve_request_user",
    "redact_values",
    "sanitize_file_name",
]
