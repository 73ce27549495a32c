"""
Action-scoped authenticity tokens.

A token is a short-lived signed JWT bound to a named action and to the user
it was issued for. The generate endpoints accept a request only when the
token it carries verifies for the same action and the same acting user.
Anonymous visitors are bound to user id 0.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

import jwt
from django.conf import settings
from django.utils import timezone

from .config import _token_settings

logger = logging.getLogger(__name__)

ANONYMOUS_USER_ID = 0


def _actor_id(actor: Optional[Any]) -> int:
    if actor is not None and getattr(actor, "is_authenticated", False):
        return int(actor.pk)
    return ANONYMOUS_USER_ID


def _signing_key(token_settings: dict[str, Any]) -> str:
    return str(token_settings.get("secret") or settings.SECRET_KEY)


def default_action() -> str:
    """Return the action name the generate endpoints verify tokens against."""
    return str(_token_settings().get("action"))


def create_token(action: Optional[str] = None, actor: Optional[Any] = None) -> str:
    """
    Issue a token for ``action`` on behalf of ``actor``.

    Args:
        action: Action scope name. Defaults to the configured generate action.
        actor: Django user (may be anonymous/None).

    Returns:
        Encoded token string.
    """
    token_settings = _token_settings()
    now = timezone.now()
    payload = {
        "act": action or default_action(),
        "uid": _actor_id(actor),
        "iat": now,
        "exp": now + timedelta(seconds=int(token_settings.get("lifetime_seconds", 86400))),
    }
    return jwt.encode(
        payload,
        _signing_key(token_settings),
        algorithm=str(token_settings.get("algorithm", "HS256")),
    )


def verify_token(
    token: Optional[str], action: Optional[str] = None, actor: Optional[Any] = None
) -> bool:
    """
    Check that ``token`` was issued for ``action`` and ``actor`` and is unexpired.

    Args:
        token: Raw token string from the request.
        action: Action scope name. Defaults to the configured generate action.
        actor: Django user (may be anonymous/None).

    Returns:
        True when the token is valid for this action and actor.
    """
    if not token or not isinstance(token, str):
        return False

    token_settings = _token_settings()
    try:
        payload = jwt.decode(
            token.strip(),
            _signing_key(token_settings),
            algorithms=[str(token_settings.get("algorithm", "HS256"))],
            options={"require": ["exp", "act", "uid"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token for action %s", action or default_action())
        return False
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected invalid token: %s", exc)
        return False

    if payload.get("act") != (action or default_action()):
        return False
    return payload.get("uid") == _actor_id(actor)
