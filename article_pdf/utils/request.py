"""
Request utilities for article-pdf.

This module provides helpers for resolving the acting user and client address
from incoming requests.
"""

from typing import Any

from django.contrib.auth.models import AnonymousUser
from django.http import HttpRequest


def resolve_request_user(request: HttpRequest) -> Any:
    """
    Resolve the acting user from the request session.

    Args:
        request: The Django request.

    Returns:
        The authenticated user or an ``AnonymousUser``.
    """
    user = getattr(request, "user", None)
    if user is None:
        return AnonymousUser()
    return user


def get_client_ip(request: HttpRequest) -> str:
    """Extract client IP from request headers."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.META.get("HTTP_X_REAL_IP")
    if real_ip:
        return real_ip
    return request.META.get("REMOTE_ADDR", "unknown")
