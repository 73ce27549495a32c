"""
HTTP transport for article PDF generation.

``AjaxActionView`` is the asynchronous endpoint the client button posts to.
It dispatches on the ``action`` field to a registered handler pair: one for
authenticated users and one for anonymous visitors. ``ArticlePdfView``
serves a generated document directly, inline or as a download.

The action-scoped token carried in ``nonce`` is the request-forgery check for
these routes, so Django's CSRF middleware is exempted on them.
"""

import logging
from typing import Any, Callable, Optional

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.utils.translation import gettext as _
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .gate import ArticlePdfGate, GenerationRequest
from .rendering.sinks import Sink
from .utils.request import resolve_request_user

logger = logging.getLogger(__name__)

ActionHandler = Callable[[HttpRequest], HttpResponse]

GENERATE_ACTION = "generate_pdf"

_AJAX_ACTIONS: dict[str, tuple[Optional[ActionHandler], Optional[ActionHandler]]] = {}


def register_ajax_action(
    action: str,
    handler: Optional[ActionHandler],
    public_handler: Optional[ActionHandler] = None,
) -> None:
    """
    Register handlers for an AJAX action.

    Args:
        action: Value of the ``action`` request field.
        handler: Handler for authenticated users.
        public_handler: Handler for anonymous visitors. Anonymous requests
            for an action without one are rejected as unknown.
    """
    _AJAX_ACTIONS[action] = (handler, public_handler)


def get_ajax_handler(action: str, *, authenticated: bool) -> Optional[ActionHandler]:
    handlers = _AJAX_ACTIONS.get(action)
    if not handlers:
        return None
    return handlers[0] if authenticated else handlers[1]


def _read_field(request: HttpRequest, *names: str) -> Optional[str]:
    source = request.POST if request.method == "POST" else request.GET
    for name in names:
        value = source.get(name)
        if value is not None:
            return value
    return None


def build_generation_request(request: HttpRequest, post_id: Any = None) -> GenerationRequest:
    """Build a GenerationRequest from the request fields and session user."""
    return GenerationRequest(
        post_id=post_id if post_id is not None else _read_field(request, "post_id"),
        token=_read_field(request, "nonce", "token"),
        actor=resolve_request_user(request),
    )


def generate_pdf(request: HttpRequest) -> JsonResponse:
    """Generate the PDF for an authenticated user."""
    outcome = ArticlePdfGate().handle(build_generation_request(request), http_request=request)
    return JsonResponse(outcome.to_payload(), status=outcome.status_code)


def generate_pdf_public(request: HttpRequest) -> JsonResponse:
    """Generate the PDF for an anonymous visitor."""
    outcome = ArticlePdfGate().handle_public(
        build_generation_request(request), http_request=request
    )
    return JsonResponse(outcome.to_payload(), status=outcome.status_code)


register_ajax_action(GENERATE_ACTION, generate_pdf, generate_pdf_public)


@method_decorator(csrf_exempt, name="dispatch")
class AjaxActionView(View):
    """Dispatch AJAX actions posted by the client button."""

    http_method_names = ["post"]

    def post(self, request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        action = str(request.POST.get("action") or "")
        user = resolve_request_user(request)
        handler = get_ajax_handler(action, authenticated=bool(user.is_authenticated))
        if handler is None:
            logger.warning("Unknown AJAX action %r", action)
            return JsonResponse(
                {
                    "success": False,
                    "data": {"message": _("Unknown action."), "code": "unknown_action"},
                },
                status=400,
            )
        return handler(request)


@method_decorator(csrf_exempt, name="dispatch")
class ArticlePdfView(View):
    """
    Serve an article PDF directly.

    Query parameters:
        nonce: Authenticity token.
        download: "1" to force a download instead of inline display.
    """

    http_method_names = ["get"]

    def get(self, request: HttpRequest, post_id: str, *args: Any, **kwargs: Any) -> HttpResponse:
        sink = Sink.DOWNLOAD if self._wants_download(request) else Sink.INLINE
        gate = ArticlePdfGate(sink=sink)
        generation_request = build_generation_request(request, post_id=post_id)
        if generation_request.actor.is_authenticated:
            outcome = gate.handle(generation_request, http_request=request)
        else:
            outcome = gate.handle_public(generation_request, http_request=request)

        if not outcome.success or outcome.artifact is None:
            return JsonResponse(outcome.to_payload(), status=outcome.status_code)
        return outcome.artifact.as_response()

    def _wants_download(self, request: HttpRequest) -> bool:
        value = request.GET.get("download")
        return value is not None and str(value).strip().lower() in {"1", "true", "yes", "on"}
