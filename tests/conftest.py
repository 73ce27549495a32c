"""
Shared fixtures for article-pdf tests.
"""

from datetime import datetime, timezone as dt_timezone

import pytest

from article_pdf.config import SiteConfig
from article_pdf.content import ContentItem, ContentStatus
from article_pdf.rendering.engine import PdfEngine


class RecordingEngine(PdfEngine):
    """Engine that returns its composed HTML instead of laying it out."""

    name = "recording"

    def output(self, *, base_url=None, url_fetcher=None):
        self.base_url = base_url
        self.page_count = max(len(self.pages), 1)
        return b"%PDF-1.7\n" + self.build_html().encode("utf-8")


@pytest.fixture
def site():
    return SiteConfig(name="Example Site", url="https://example.org")


@pytest.fixture
def recording_engine():
    created = []

    class _Engine(RecordingEngine):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    _Engine.created = created
    return _Engine


@pytest.fixture
def article():
    return ContentItem(
        id=42,
        title="Hello World",
        body='<p>First paragraph.</p><img src="/a/b.png" alt="diagram">',
        author="Ada Lovelace",
        published_at=datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc),
        status=ContentStatus.PUBLISHED,
        is_public=True,
    )


@pytest.fixture
def storage_root(settings, tmp_path):
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings["storage"] = {"root": str(tmp_path), "url": "/media/"}
    settings.ARTICLE_PDF = article_pdf_settings
    return tmp_path


@pytest.fixture
def author(django_user_model):
    return django_user_model.objects.create_user(
        username="ada", password="pass12345", first_name="Ada", last_name="Lovelace"
    )


@pytest.fixture
def make_post(author):
    from test_app.models import Post

    def _make_post(**kwargs):
        values = {
            "title": "Hello World",
            "body": "<p>Body text.</p>",
            "author": author,
            "published_at": datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc),
            "status": "publish",
            "is_public": True,
        }
        values.update(kwargs)
        return Post.objects.create(**values)

    return _make_post
