"""
Access and request gate for PDF generation.

The gate turns an untrusted generation request into a rendered artifact or a
structured rejection. Its checks run in a fixed order and the first failure
short-circuits; the renderer is only reached once every check has passed.

    1. authenticity token valid for the action and actor
    2. post identifier is a positive integer
    3. the identifier resolves to a content item
    4. the item is published and publicly viewable

No exception raised by a check or by the renderer escapes ``handle()``.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from django.contrib.auth.models import AnonymousUser
from django.http import HttpRequest
from django.utils.translation import gettext as _

from .audit import EventType, emit_event
from .audit import Outcome as AuditOutcome
from .config import SiteConfig, _expose_errors
from .content import ContentItem, ContentRepository, get_content_repository
from .errors import (
    ArticlePdfError,
    AvailabilityError,
    DependencyMissingError,
    NotFoundError,
    RenderError,
    SecurityError,
    ValidationError,
)
from .generator import PdfGenerator
from .rendering.sinks import OutputArtifact, Sink, storage_url
from .tokens import default_action, verify_token

logger = logging.getLogger(__name__)

POST_ID_PATTERN = re.compile(r"^\s*\d+\s*$")

REJECTION_EVENTS = {
    SecurityError: EventType.TOKEN_INVALID,
    ValidationError: EventType.REQUEST_INVALID,
    NotFoundError: EventType.CONTENT_NOT_FOUND,
    AvailabilityError: EventType.CONTENT_UNAVAILABLE,
    DependencyMissingError: EventType.DEPENDENCY_MISSING,
    RenderError: EventType.PDF_FAILED,
}


def parse_post_id(raw: Any) -> Optional[int]:
    """
    Parse a post identifier.

    Returns:
        The identifier as a positive int, or None when it is missing,
        non-numeric or not positive.
    """
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if not isinstance(raw, str) or not POST_ID_PATTERN.match(raw):
        return None
    value = int(raw)
    return value if value > 0 else None


@dataclass
class GenerationRequest:
    """One inbound generate request."""

    post_id: Any
    token: Optional[str]
    actor: Any = field(default_factory=AnonymousUser)
    action: Optional[str] = None

    def __post_init__(self) -> None:
        if self.actor is None:
            self.actor = AnonymousUser()
        if not self.action:
            self.action = default_action()


@dataclass
class Outcome:
    """Result of one gate decision."""

    success: bool
    message: str
    locator: Optional[str] = None
    error: Optional[ArticlePdfError] = None
    artifact: Optional[OutputArtifact] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return self.error.status_code if self.error else 500

    def to_payload(self) -> dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "data": {"pdf_url": self.locator, "message": self.message},
            }
        return {
            "success": False,
            "data": {"message": self.message, "code": self.code},
        }

    @classmethod
    def failure(cls, error: ArticlePdfError, message: Optional[str] = None) -> "Outcome":
        return cls(success=False, message=str(message or error.message), error=error)


class ArticlePdfGate:
    """
    Validate generation requests and hand authorized items to the renderer.

    Args:
        repository: Content repository. Defaults to the configured one.
        generator_factory: Callable receiving a SiteConfig and returning a
            renderer. Defaults to ``PdfGenerator``.
        sink: Sink the renderer emits to.
    """

    def __init__(
        self,
        repository: Optional[ContentRepository] = None,
        generator_factory: Optional[Callable[[SiteConfig], Any]] = None,
        sink: Sink = Sink.FILE,
    ):
        self._repository = repository
        self.generator_factory = generator_factory or PdfGenerator
        self.sink = Sink(sink)

    @property
    def repository(self) -> ContentRepository:
        if self._repository is None:
            self._repository = get_content_repository()
        return self._repository

    def handle(
        self, request: GenerationRequest, *, http_request: Optional[HttpRequest] = None
    ) -> Outcome:
        """
        Run every check, render on success and return the outcome.

        Args:
            request: The generation request.
            http_request: Originating HTTP request, used for the site URL and
                for audit records.
        """
        try:
            item = self.authorize(request)
        except ArticlePdfError as exc:
            return self._reject(request, exc, http_request)
        except Exception as exc:
            logger.exception("Lookup failed for post %s: %s", request.post_id, exc)
            return self._reject(request, RenderError(), http_request)
        return self._render(request, item, http_request)

    def handle_public(
        self, request: GenerationRequest, *, http_request: Optional[HttpRequest] = None
    ) -> Outcome:
        """Entry point for anonymous visitors; same checks as ``handle``."""
        return self.handle(request, http_request=http_request)

    def authorize(self, request: GenerationRequest) -> ContentItem:
        """
        Resolve the requested item.

        Raises:
            SecurityError, ValidationError, NotFoundError, AvailabilityError
        """
        if not verify_token(request.token, request.action, request.actor):
            raise SecurityError()

        post_id = parse_post_id(request.post_id)
        if post_id is None:
            raise ValidationError()

        item = self.repository.get(post_id)
        if item is None:
            raise NotFoundError()

        if not item.is_available:
            raise AvailabilityError()
        return item

    def _render(
        self,
        request: GenerationRequest,
        item: ContentItem,
        http_request: Optional[HttpRequest],
    ) -> Outcome:
        site = SiteConfig.from_settings(http_request)
        try:
            generator = self.generator_factory(site)
            result = generator.generate(item, sink=self.sink)
        except DependencyMissingError as exc:
            message = exc.message if _expose_errors() else str(exc.default_message)
            return self._reject(request, exc, http_request, message=message)
        except Exception as exc:
            logger.exception("Renderer failed for post %s: %s", item.id, exc)
            return self._reject(request, RenderError(str(exc)), http_request)

        if not result.ok:
            return self._reject(request, result.error or RenderError(), http_request)

        artifact = result.artifact
        locator = storage_url(artifact.path, site.url) if artifact.path else None
        outcome = Outcome(
            success=True,
            message=_("PDF generated successfully."),
            locator=locator,
            artifact=artifact,
        )
        logger.info("PDF generated for post %s: %s", item.id, locator or artifact.filename)
        emit_event(
            EventType.PDF_GENERATED,
            request=http_request,
            actor=request.actor,
            outcome=AuditOutcome.SUCCESS,
            action="Article PDF generation",
            resource_id=item.id,
            context={
                "sink": self.sink.name,
                "pdf_url": locator,
                "page_count": artifact.page_count,
            },
        )
        return outcome

    def _reject(
        self,
        request: GenerationRequest,
        error: ArticlePdfError,
        http_request: Optional[HttpRequest],
        *,
        message: Optional[str] = None,
    ) -> Outcome:
        outcome = Outcome.failure(error, message)
        log = logger.error if error.status_code >= 500 else logger.warning
        log("PDF request for post %r rejected (%s): %s", request.post_id, error.code, error.message)
        emit_event(
            REJECTION_EVENTS.get(type(error), EventType.PDF_FAILED),
            request=http_request,
            actor=request.actor,
            outcome=AuditOutcome.ERROR if error.status_code >= 500 else AuditOutcome.DENIED,
            action="Article PDF generation",
            resource_id=request.post_id,
            context={"code": error.code, "nonce": request.token},
            error=error.message,
        )
        return outcome
