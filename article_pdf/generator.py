"""
Document renderer.

``PdfGenerator`` turns one ``ContentItem`` into a PDF. It owns a fresh engine
for every ``generate()`` call, configures it from ``RenderOptions``, composes
the article HTML (title, byline, filtered body with absolute image URLs) and
emits the document to the requested sink.

Failures while composing or emitting are recorded in the generator's
``ErrorCollector`` and returned as ``RenderResult.error``; they never escape
``generate()``. A missing engine library is the one fatal exception and is
raised as ``DependencyMissingError``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from django.utils import timezone

from .audit import capture_exception
from .config import SiteConfig, _date_format, _engine_name, _storage_settings, build_safe_url_fetcher
from .content import ContentItem, apply_content_filters
from .errors import DependencyMissingError, ErrorCollector, RenderError
from .rendering.engine import (
    FooterDecoration,
    HeaderDecoration,
    PdfEngine,
    css_font_family,
    get_pdf_engine,
)
from .rendering.html import (
    absolutize_image_urls,
    byline_block,
    format_publish_date,
    title_block,
    wrap_body,
)
from .rendering.options import RenderOptions
from .rendering.sinks import (
    OutputArtifact,
    Sink,
    default_output_path,
    document_filename,
    write_file,
)

logger = logging.getLogger(__name__)

PAGE_MARGIN = 15
PAGE_BREAK_MARGIN = 15
FOOTER_OFFSET = 15
FOOTER_TEMPLATE = "{footer_text} | Page {page}/{pages}"

ENGINE_INIT_ERROR = "engine_init_error"


def local_now() -> datetime:
    """Current time in the active time zone; naive when USE_TZ is off."""
    now = timezone.now()
    return timezone.localtime(now) if timezone.is_aware(now) else now


class RenderState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PAGE_ADDED = "page_added"
    CONTENT_WRITTEN = "content_written"
    EMITTED = "emitted"


@dataclass
class RenderResult:
    artifact: Optional[OutputArtifact] = None
    error: Optional[RenderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.artifact is not None


class PdfGenerator:
    """
    Render content items to PDF.

    Args:
        site: Site snapshot feeding the option defaults. Resolved from
            settings when omitted.
        options: RenderOptions overrides.
        engine: Engine name or PdfEngine subclass. Defaults to the
            configured engine.
    """

    def __init__(
        self,
        site: Optional[SiteConfig] = None,
        options: Optional[Mapping[str, Any]] = None,
        *,
        engine: Union[str, type[PdfEngine], None] = None,
    ):
        self.site = site if site is not None else SiteConfig.from_settings()
        self.options = RenderOptions(self.site, options)
        self.engine_source = engine or _engine_name()
        self.engine: Optional[PdfEngine] = None
        self.state = RenderState.UNINITIALIZED
        self._errors = ErrorCollector()

    def set_options(self, overrides: Mapping[str, Any]) -> None:
        self.options.update(overrides)

    # Engine setup ---------------------------------------------------------

    def _build_engine(self) -> PdfEngine:
        page_setup = {
            "orientation": self.options["page_orientation"],
            "unit": self.options["unit"],
            "page_format": self.options["page_format"],
            "unicode": self.options["unicode"],
            "encoding": self.options["encoding"],
        }
        if isinstance(self.engine_source, str):
            return get_pdf_engine(self.engine_source, **page_setup)
        return self.engine_source(**page_setup)

    def footer_text(self, engine: PdfEngine) -> str:
        return FOOTER_TEMPLATE.format(
            footer_text=self.options["footer_text"],
            page=engine.alias_num_page(),
            pages=engine.alias_nb_pages(),
        )

    def init_engine(self) -> bool:
        """
        Build and configure a fresh engine.

        Returns:
            True when the engine is ready. Failures other than a missing
            engine library are recorded under ``engine_init_error``.

        Raises:
            DependencyMissingError: If the engine library cannot be loaded.
        """
        self.engine = None
        self.state = RenderState.UNINITIALIZED
        options = self.options
        try:
            engine = self._build_engine()
            engine.set_metadata(
                creator=options["creator"],
                author=options["author"],
                title=options["title"],
                subject=options["subject"],
                keywords=options["keywords"],
            )
            engine.set_header(
                HeaderDecoration(title=options["header_title"], logo=options["header_logo"])
            )
            engine.set_print_header(False)
            engine.set_print_footer(True)
            engine.set_footer(FooterDecoration(text=self.footer_text, offset=FOOTER_OFFSET))
            engine.set_font(options["font"], size=options["font_size"])
            engine.set_margins(PAGE_MARGIN, PAGE_MARGIN, PAGE_MARGIN)
            engine.set_auto_page_break(True, PAGE_BREAK_MARGIN)
        except DependencyMissingError:
            logger.error("PDF engine '%s' is not available", self.engine_source)
            raise
        except Exception as exc:
            logger.exception("PDF engine initialisation failed: %s", exc)
            self._errors.add(ENGINE_INIT_ERROR, str(exc))
            return False

        self.engine = engine
        self.state = RenderState.INITIALIZED
        return True

    # Composition ----------------------------------------------------------

    def prepare_content(self, body: str) -> str:
        """Absolutize relative image sources and wrap the body in the font container."""
        content = absolutize_image_urls(body, self.site.url)
        return wrap_body(
            content, css_font_family(self.options["font"]), self.options["font_size"]
        )

    def compose_html(self, item: ContentItem) -> str:
        body = apply_content_filters(item.body, item)
        published_on = format_publish_date(item.published_at, _date_format())
        return "".join(
            [
                title_block(item.title),
                byline_block(published_on, item.author),
                self.prepare_content(body),
            ]
        )

    # Generation -----------------------------------------------------------

    def generate(
        self,
        item: ContentItem,
        *,
        sink: Sink = Sink.INLINE,
        path: Union[str, Path, None] = None,
        timestamp: Optional[datetime] = None,
    ) -> RenderResult:
        """
        Render ``item`` and emit it to ``sink``.

        Args:
            item: Content snapshot to render.
            sink: Output destination.
            path: Target file for the File sink. Defaults to the storage path
                derived from the title.
            timestamp: Suffix for the default File sink name. When omitted,
                the current time is used if ``storage.timestamp_filenames``
                is enabled.

        Returns:
            RenderResult with either the artifact or the RenderError.

        Raises:
            DependencyMissingError: If the engine library cannot be loaded.
        """
        sink = Sink(sink)
        if not self.init_engine():
            error = RenderError(self._errors.get_message(ENGINE_INIT_ERROR))
            return RenderResult(error=error)

        try:
            self.engine.set_title(item.title)
            self.engine.add_page()
            self.state = RenderState.PAGE_ADDED
            html_content = self.compose_html(item)
            self.engine.write_html(html_content)
            self.state = RenderState.CONTENT_WRITTEN
            artifact = self._emit(item, sink, path, timestamp)
        except DependencyMissingError:
            raise
        except Exception as exc:
            logger.exception("PDF generation failed for post %s: %s", item.id, exc)
            error = RenderError(str(exc))
            self._errors.add(error.code, error.message)
            capture_exception(exc, post_id=item.id, sink=sink.value)
            return RenderResult(error=error)

        self.state = RenderState.EMITTED
        logger.info(
            "Generated PDF for post %s (%s pages, sink %s)",
            item.id,
            artifact.page_count,
            sink.name,
        )
        return RenderResult(artifact=artifact)

    def _emit(
        self,
        item: ContentItem,
        sink: Sink,
        path: Union[str, Path, None],
        timestamp: Optional[datetime],
    ) -> OutputArtifact:
        base_url = self.site.url or None
        pdf_bytes = self.engine.output(
            base_url=base_url, url_fetcher=build_safe_url_fetcher(base_url)
        )
        page_count = self.engine.page_count

        if sink == Sink.FILE:
            if path:
                target = Path(path)
            else:
                target = default_output_path(item.title, timestamp or self._default_timestamp())
            write_file(target, pdf_bytes)
            return OutputArtifact(
                sink=sink,
                filename=target.name,
                pdf_bytes=pdf_bytes,
                path=target,
                page_count=page_count,
            )

        return OutputArtifact(
            sink=sink,
            filename=document_filename(item.title),
            pdf_bytes=pdf_bytes,
            page_count=page_count,
        )

    def _default_timestamp(self) -> Optional[datetime]:
        if not _storage_settings().get("timestamp_filenames"):
            return None
        return local_now()

    # Inspection -----------------------------------------------------------

    def get_errors(self) -> ErrorCollector:
        return self._errors

    def has_errors(self) -> bool:
        return self._errors.has_errors()
