"""
Content items, the content repository and the content transform hook.

The library never owns content. A repository returns a read-only
``ContentItem`` snapshot for an identifier; the default repository reads a
configured Django model. Registered content filters transform the raw body
before it is rendered.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from .config import _content_settings

logger = logging.getLogger(__name__)


class ContentStatus(str, Enum):
    """Publication status of a content item."""

    DRAFT = "draft"
    PUBLISHED = "published"
    PRIVATE = "private"
    OTHER = "other"


@dataclass(frozen=True)
class ContentItem:
    """Snapshot of one article read at generation time."""

    id: int
    title: str
    body: str
    author: str
    published_at: Optional[datetime]
    status: ContentStatus
    is_public: bool

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED

    @property
    def is_available(self) -> bool:
        """Published and publicly viewable."""
        return self.is_published and self.is_public


class ContentRepository(Protocol):
    def get(self, item_id: int) -> Optional[ContentItem]:
        ...


def map_status(raw_status: Any, status_map: Optional[dict[str, str]] = None) -> ContentStatus:
    """
    Map a repository-specific status value onto ``ContentStatus``.

    Unknown values map to ``ContentStatus.OTHER``.
    """
    if isinstance(raw_status, ContentStatus):
        return raw_status
    mapping = status_map if status_map is not None else _content_settings()["status_map"]
    key = str(raw_status or "").strip().lower()
    try:
        return ContentStatus(mapping.get(key, key))
    except ValueError:
        return ContentStatus.OTHER


def author_display_name(author: Any) -> str:
    """Resolve a display name from a user object or a plain value."""
    if author is None:
        return ""
    get_full_name = getattr(author, "get_full_name", None)
    if callable(get_full_name):
        full_name = (get_full_name() or "").strip()
        if full_name:
            return full_name
    get_username = getattr(author, "get_username", None)
    if callable(get_username):
        return str(get_username())
    return str(author)


class ModelContentRepository:
    """
    Content repository backed by a Django model.

    Attributes:
        model: Django model class holding the content.
        fields: Mapping of ContentItem attribute -> model attribute.
        visibility_field: Optional boolean model attribute gating public access.
        status_map: Mapping of raw status values -> ContentStatus values.
    """

    def __init__(
        self,
        model: Any = None,
        *,
        fields: Optional[dict[str, str]] = None,
        visibility_field: Optional[str] = None,
        status_map: Optional[dict[str, str]] = None,
    ):
        content_settings = _content_settings()
        model = model or content_settings.get("model")
        if not model:
            raise ImproperlyConfigured(
                'ARTICLE_PDF["content"]["model"] must name the content model '
                '(e.g. "blog.Post") or a custom repository must be configured.'
            )
        self.model = apps.get_model(model) if isinstance(model, str) else model
        self.fields = {**content_settings["fields"], **(fields or {})}
        self.visibility_field = visibility_field or content_settings.get("visibility_field")
        self.status_map = status_map or content_settings["status_map"]

    def get(self, item_id: int) -> Optional[ContentItem]:
        try:
            instance = self.model._default_manager.get(pk=item_id)
        except self.model.DoesNotExist:
            return None
        return self.to_item(instance)

    def to_item(self, instance: Any) -> ContentItem:
        status = map_status(self._value(instance, "status"), self.status_map)
        is_public = status == ContentStatus.PUBLISHED
        if self.visibility_field:
            is_public = is_public and bool(getattr(instance, self.visibility_field, False))
        return ContentItem(
            id=int(instance.pk),
            title=str(self._value(instance, "title") or ""),
            body=str(self._value(instance, "body") or ""),
            author=author_display_name(self._value(instance, "author")),
            published_at=self._value(instance, "published_at"),
            status=status,
            is_public=is_public,
        )

    def _value(self, instance: Any, key: str) -> Any:
        attribute = self.fields.get(key)
        if not attribute:
            return None
        value = getattr(instance, attribute, None)
        return value() if callable(value) else value


def get_content_repository() -> ContentRepository:
    """
    Build the configured content repository.

    ``ARTICLE_PDF["content"]["repository"]`` may name a repository class by
    dotted path; otherwise the model repository is used.
    """
    repository = _content_settings().get("repository")
    if repository:
        repository_cls = import_string(repository) if isinstance(repository, str) else repository
        return repository_cls()
    return ModelContentRepository()


# ---------------------------------------------------------------------------
# Content transform hook
# ---------------------------------------------------------------------------

ContentFilter = Callable[[str, ContentItem], str]

_CONTENT_FILTERS: list[ContentFilter] = []


def register_content_filter(func: ContentFilter) -> ContentFilter:
    """
    Register a body transform applied before rendering.

    Can be used as a decorator. Filters run in registration order.
    """
    if func not in _CONTENT_FILTERS:
        _CONTENT_FILTERS.append(func)
    return func


def unregister_content_filter(func: ContentFilter) -> None:
    if func in _CONTENT_FILTERS:
        _CONTENT_FILTERS.remove(func)


def get_content_filters() -> list[ContentFilter]:
    """Return registered filters followed by those configured in settings."""
    configured: list[ContentFilter] = []
    for entry in _content_settings().get("filters") or []:
        configured.append(import_string(entry) if isinstance(entry, str) else entry)
    return [*_CONTENT_FILTERS, *configured]


def apply_content_filters(body: str, item: ContentItem) -> str:
    for content_filter in get_content_filters():
        body = content_filter(body, item)
    return body
