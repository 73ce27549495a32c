"""
Default configuration for the article-pdf library.

Every setting the library consumes lives here. Projects override any subset
through the ``ARTICLE_PDF`` dict in their Django settings; each top-level
section is shallow-merged over the defaults below.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "1.0.0"
LIBRARY_NAME = "article-pdf"


LIBRARY_DEFAULTS: dict[str, Any] = {
    # Site-level metadata feeding RenderOptions defaults. ``url`` may be set
    # to "request" to use the absolute root URL of the incoming request.
    "site": {
        "name": None,
        "url": None,
    },
    # Overrides applied on top of the site-derived RenderOptions defaults.
    "render_options": {},
    "engine": "weasyprint",
    "content": {
        "repository": None,
        "model": None,
        "fields": {
            "title": "title",
            "body": "body",
            "author": "author",
            "published_at": "published_at",
            "status": "status",
        },
        "visibility_field": None,
        "status_map": {
            "publish": "published",
            "published": "published",
            "draft": "draft",
            "private": "private",
        },
        "filters": [],
    },
    "storage": {
        "root": None,
        "url": None,
        "subdir": "uploads/pdfs",
        "timestamp_filenames": False,
        "timestamp_format": "%d-%m-%Y_%H-%M-%S",
    },
    "tokens": {
        "action": "article_pdf_generate",
        "lifetime_seconds": 86400,
        "algorithm": "HS256",
        "secret": None,
    },
    "url_fetcher": {
        "schemes": ["file", "data", "http", "https"],
        "hosts": [],
        "allow_remote": False,
        "file_roots": [],
    },
    "audit": {
        "enable": True,
        "logger": "article_pdf.audit",
        "redaction_fields": ["nonce", "token", "secret", "password"],
    },
    "observability": {
        "enable_sentry_integration": False,
    },
    "date_format": "F j, Y",
    "expose_errors": None,
}
