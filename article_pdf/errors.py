"""
Error taxonomy and error collection for article-pdf.

Gate-level errors (security, validation, lookup, availability) short-circuit a
request before any rendering happens. Renderer-level errors are recorded in an
``ErrorCollector`` and returned to the caller instead of being raised.
"""

from typing import Any, Iterator, Optional

from django.utils.translation import gettext_lazy as _


class ArticlePdfError(Exception):
    """Base exception for all article-pdf errors."""

    code = "article_pdf_error"
    default_message = _("PDF generation failed.")
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        self.message = str(message or self.default_message)
        super().__init__(self.message)


class SecurityError(ArticlePdfError):
    """Raised when the authenticity token is missing or invalid."""

    code = "security_check_failed"
    default_message = _("Security check failed.")
    status_code = 403


class ValidationError(ArticlePdfError):
    """Raised when the post identifier is missing or malformed."""

    code = "invalid_post_id"
    default_message = _("Invalid post ID.")
    status_code = 400


class NotFoundError(ArticlePdfError):
    """Raised when the post identifier does not resolve to a content item."""

    code = "post_not_found"
    default_message = _("Post not found.")
    status_code = 404


class AvailabilityError(ArticlePdfError):
    """Raised when the content item is not published or not publicly viewable."""

    code = "post_unavailable"
    default_message = _("This post is not available for PDF generation.")
    status_code = 403


class DependencyMissingError(ArticlePdfError):
    """
    Raised when the paginated-document engine cannot be loaded.

    This is fatal and non-retryable; it is never recorded as a RenderError.
    """

    code = "dependency_missing"
    default_message = _("The PDF rendering engine is not available.")
    status_code = 503


class RenderError(ArticlePdfError):
    """Any failure while composing or emitting a document."""

    code = "pdf_generation_error"
    default_message = _("Failed to generate the PDF.")
    status_code = 500


class ErrorCollector:
    """
    Accumulates error codes and messages for one renderer instance.

    Usage:
        errors = ErrorCollector()
        errors.add("pdf_generation_error", "Disk full")
        if errors.has_errors():
            print(errors.get_message())
    """

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}
        self._data: dict[str, Any] = {}

    def add(self, code: str, message: str, data: Any = None) -> None:
        self._errors.setdefault(code, []).append(str(message))
        if data is not None:
            self._data[code] = data

    @property
    def codes(self) -> list[str]:
        return list(self._errors)

    def get_message(self, code: Optional[str] = None) -> str:
        """Return the first message for ``code`` (or for the first code)."""
        messages = self.messages(code)
        return messages[0] if messages else ""

    def messages(self, code: Optional[str] = None) -> list[str]:
        if code is None:
            return [message for group in self._errors.values() for message in group]
        return list(self._errors.get(code, []))

    def get_data(self, code: str) -> Any:
        return self._data.get(code)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def to_dict(self) -> dict[str, list[str]]:
        return {code: list(messages) for code, messages in self._errors.items()}

    def __bool__(self) -> bool:
        return self.has_errors()

    def __iter__(self) -> Iterator[tuple[str, list[str]]]:
        return iter(self.to_dict().items())

    def __len__(self) -> int:
        return len(self._errors)

    def __repr__(self) -> str:
        return f"ErrorCollector({self.to_dict()!r})"
