"""
Unit tests for the allowlisting URL fetcher.
"""

import pytest

from article_pdf import config
from article_pdf.defaults import LIBRARY_DEFAULTS

pytestmark = pytest.mark.unit


@pytest.fixture
def fetched(monkeypatch):
    calls = []

    def fake_fetcher(url, *args, **kwargs):
        calls.append(url)
        return {"string": b"", "mime_type": "image/png"}

    monkeypatch.setattr(config, "default_url_fetcher", fake_fetcher)
    return calls


@pytest.fixture
def library_url_fetcher(settings):
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings.pop("url_fetcher", None)
    settings.ARTICLE_PDF = article_pdf_settings


def test_remote_fetch_is_blocked_by_default(library_url_fetcher, fetched):
    assert LIBRARY_DEFAULTS["url_fetcher"]["allow_remote"] is False
    fetcher = config.build_safe_url_fetcher("https://example.org")

    with pytest.raises(ValueError, match="blocked"):
        fetcher("http://169.254.169.254/latest/meta-data/")
    with pytest.raises(ValueError, match="blocked"):
        fetcher("https://other.example.com/image.png")
    assert fetched == []


def test_site_host_is_allowed(library_url_fetcher, fetched):
    fetcher = config.build_safe_url_fetcher("https://example.org")

    fetcher("https://example.org/media/uploads/photo.png")
    fetcher("/media/uploads/logo.png")

    assert fetched == [
        "https://example.org/media/uploads/photo.png",
        "https://example.org/media/uploads/logo.png",
    ]


def test_configured_hosts_and_remote_switch(settings, fetched):
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings["url_fetcher"] = {"hosts": ["cdn.example.net"]}
    settings.ARTICLE_PDF = article_pdf_settings

    config.build_safe_url_fetcher("https://example.org")("https://cdn.example.net/a.png")
    assert fetched == ["https://cdn.example.net/a.png"]

    article_pdf_settings["url_fetcher"] = {"allow_remote": True}
    settings.ARTICLE_PDF = dict(article_pdf_settings)
    config.build_safe_url_fetcher("https://example.org")("https://anywhere.test/b.png")
    assert fetched[-1] == "https://anywhere.test/b.png"


def test_disallowed_scheme_is_blocked(library_url_fetcher, fetched):
    fetcher = config.build_safe_url_fetcher("https://example.org")

    with pytest.raises(ValueError, match="scheme"):
        fetcher("ftp://example.org/file.png")


def test_fetcher_is_disabled_without_weasyprint(monkeypatch):
    monkeypatch.setattr(config, "default_url_fetcher", None)
    assert config.build_safe_url_fetcher("https://example.org") is None
