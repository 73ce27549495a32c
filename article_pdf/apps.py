"""
Django app configuration for article-pdf.
"""

import logging

from django.apps import AppConfig as BaseAppConfig

logger = logging.getLogger(__name__)


class ArticlePdfConfig(BaseAppConfig):
    """Django app configuration for article-pdf."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "article_pdf"
    verbose_name = "Article PDF"
    label = "article_pdf"

    def ready(self):
        """Report a missing rendering engine once at startup."""
        from .config import _engine_name
        from .rendering.engine import engine_available

        engine_name = _engine_name()
        if not engine_available(engine_name):
            logger.error(
                "Article PDF: the '%s' rendering engine is not available. "
                "PDF generation requests will fail until it is installed "
                "(pip install weasyprint).",
                engine_name,
            )
