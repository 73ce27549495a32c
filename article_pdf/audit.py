"""
Audit events and error capture for article-pdf.

Every gate decision and every render is emitted as a structured JSON record
on the ``article_pdf.audit`` logger. Sensitive context keys (tokens, nonces)
are redacted before the record is written. Render failures can additionally
be captured in Sentry.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpRequest

from .config import _audit_settings, _observability_settings
from .utils.request import get_client_ip
from .utils.sanitization import redact_values

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Specific event types."""

    TOKEN_INVALID = "auth.token.invalid"
    REQUEST_INVALID = "request.validation.failed"
    CONTENT_NOT_FOUND = "content.not_found"
    CONTENT_UNAVAILABLE = "authz.content.unavailable"
    PDF_GENERATED = "data.export"
    PDF_FAILED = "system.render.failed"
    DEPENDENCY_MISSING = "system.dependency.missing"


class Severity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Outcome(str, Enum):
    """Result of the action."""

    SUCCESS = "success"
    FAILURE = "failure"
    DENIED = "denied"
    ERROR = "error"


DEFAULT_SEVERITY: dict[EventType, Severity] = {
    EventType.TOKEN_INVALID: Severity.WARNING,
    EventType.REQUEST_INVALID: Severity.INFO,
    EventType.CONTENT_NOT_FOUND: Severity.INFO,
    EventType.CONTENT_UNAVAILABLE: Severity.WARNING,
    EventType.PDF_GENERATED: Severity.INFO,
    EventType.PDF_FAILED: Severity.ERROR,
    EventType.DEPENDENCY_MISSING: Severity.CRITICAL,
}

LOG_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.CRITICAL: logging.CRITICAL,
}


@dataclass
class AuditEvent:
    """One audit record for a PDF generation request."""

    event_type: EventType
    outcome: Outcome = Outcome.SUCCESS
    severity: Severity = Severity.INFO

    user_id: Optional[int] = None
    username: Optional[str] = None
    client_ip: str = "unknown"
    request_path: str = ""
    request_method: str = ""

    resource_id: Optional[str] = None
    action: str = ""
    context: dict = field(default_factory=dict)
    error_message: Optional[str] = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["event_type"] = self.event_type.value
        data["outcome"] = self.outcome.value
        data["severity"] = self.severity.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


def _actor_fields(actor: Any) -> dict[str, Any]:
    if actor is None or not getattr(actor, "is_authenticated", False):
        return {"user_id": None, "username": None}
    get_username = getattr(actor, "get_username", None)
    return {
        "user_id": getattr(actor, "pk", None),
        "username": get_username() if callable(get_username) else None,
    }


def emit_event(
    event_type: EventType,
    *,
    request: Optional[HttpRequest] = None,
    actor: Any = None,
    outcome: Outcome = Outcome.SUCCESS,
    severity: Optional[Severity] = None,
    action: str = "",
    resource_id: Optional[Any] = None,
    context: Optional[dict] = None,
    error: Optional[str] = None,
) -> Optional[AuditEvent]:
    """
    Build an audit event and write it to the audit logger.

    Args:
        event_type: The type of event
        request: Django request (client address and path are read from it)
        actor: Acting user; defaults to ``request.user``
        outcome: Result of the action
        severity: Override the default severity
        action: Human-readable action description
        resource_id: Identifier of the content item
        context: Additional context data (will be redacted)
        error: Error message if applicable

    Returns:
        The emitted event, or None when auditing is disabled.
    """
    audit_settings = _audit_settings()
    if not audit_settings.get("enable", True):
        return None

    if actor is None and request is not None:
        actor = getattr(request, "user", None)

    event = AuditEvent(
        event_type=event_type,
        outcome=outcome,
        severity=severity or DEFAULT_SEVERITY.get(event_type, Severity.INFO),
        resource_id=str(resource_id) if resource_id is not None else None,
        action=action,
        context=redact_values(
            context or {}, fields=audit_settings.get("redaction_fields") or None
        ),
        error_message=error,
        **_actor_fields(actor),
    )
    if request is not None:
        event.client_ip = get_client_ip(request)
        event.request_path = request.path
        event.request_method = request.method or ""

    audit_logger = logging.getLogger(str(audit_settings.get("logger") or "article_pdf.audit"))
    message = json.dumps(event.to_dict(), cls=DjangoJSONEncoder, ensure_ascii=False)
    audit_logger.log(LOG_LEVELS.get(event.severity, logging.INFO), message)
    return event


def capture_exception(exc: BaseException, **tags: Any) -> None:
    """Report ``exc`` to Sentry when the integration is enabled."""
    if not _observability_settings().get("enable_sentry_integration"):
        return
    try:
        import sentry_sdk
    except ImportError as import_exc:
        logger.warning("Sentry SDK unavailable: %s", import_exc)
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            scope.set_tag(f"article_pdf.{key}", value)
        sentry_sdk.capture_exception(exc)
