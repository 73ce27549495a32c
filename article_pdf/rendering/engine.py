"""
Paginated-document engines.

An engine owns one document-building session: page setup, metadata, base
font, margins, the written HTML blocks of each page, and the header/footer
decorations. ``WeasyPrintEngine`` lays the document out with WeasyPrint.

Header and footer text may contain the page aliases returned by
``alias_num_page()`` and ``alias_nb_pages()``. They are resolved by the
layout engine once pagination is complete, through CSS page counters.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from django.utils.html import escape

from ..errors import DependencyMissingError
from .html import css_content

logger = logging.getLogger(__name__)

# Optional WeasyPrint import
try:
    from weasyprint import HTML

    WEASYPRINT_AVAILABLE = True
except (ImportError, OSError):
    HTML = None
    WEASYPRINT_AVAILABLE = False


PAGE_ALIAS = "{page}"
PAGES_ALIAS = "{pages}"
ALIAS_COUNTERS = {
    PAGE_ALIAS: "counter(page)",
    PAGES_ALIAS: "counter(pages)",
}

# Core PDF font names mapped to CSS font stacks
FONT_FAMILIES = {
    "dejavusans": '"DejaVu Sans", sans-serif',
    "dejavuserif": '"DejaVu Serif", serif',
    "helvetica": "Helvetica, Arial, sans-serif",
    "times": '"Times New Roman", Times, serif',
    "courier": '"Courier New", Courier, monospace',
}

FONT_STYLES = {
    "": ("normal", "normal"),
    "B": ("normal", "bold"),
    "I": ("italic", "normal"),
    "BI": ("italic", "bold"),
}


def css_font_family(font: str) -> str:
    return FONT_FAMILIES.get(str(font).lower(), f'"{font}", sans-serif')


def _length(value: float, unit: str) -> str:
    return f"{value:g}{unit}"


@dataclass
class FooterDecoration:
    """
    Footer drawn on every page at output time.

    Attributes:
        text: Footer text, or a callable receiving the engine and returning
            it. The text may reference the engine's page aliases.
        font: Core font name.
        style: "" (regular), "B", "I" or "BI".
        font_size: Size in points.
        offset: Distance of the footer line from the bottom edge, in engine units.
        align: CSS text alignment.
    """

    text: Union[str, Callable[["PdfEngine"], str]]
    font: str = "helvetica"
    style: str = "I"
    font_size: float = 8
    offset: float = 15
    align: str = "center"

    def render_text(self, engine: "PdfEngine") -> str:
        return self.text(engine) if callable(self.text) else str(self.text)

    def css(self, engine: "PdfEngine") -> str:
        font_style, font_weight = FONT_STYLES.get(self.style.upper(), FONT_STYLES[""])
        padding = max(engine.margins["bottom"] - self.offset, 0)
        content = css_content(self.render_text(engine), ALIAS_COUNTERS)
        return (
            "@page { @bottom-center { "
            f"content: {content}; "
            f"font-family: {css_font_family(self.font)}; "
            f"font-style: {font_style}; font-weight: {font_weight}; "
            f"font-size: {self.font_size:g}pt; "
            f"text-align: {self.align}; vertical-align: top; "
            f"padding-top: {_length(padding, engine.unit)}; "
            "} }"
        )


@dataclass
class HeaderDecoration:
    """Built-in header: the document header title and optional logo."""

    title: str = ""
    logo: str = ""
    font: str = "helvetica"
    font_size: float = 10

    def css(self, engine: "PdfEngine") -> str:
        chunks = [
            "@page { @top-center { "
            f"content: {css_content(self.title, {})}; "
            f"font-family: {css_font_family(self.font)}; "
            f"font-size: {self.font_size:g}pt; "
            "vertical-align: bottom; border-bottom: 0.3pt solid #999999; "
            "} }"
        ]
        if self.logo:
            chunks.append(
                "@page { @top-left { "
                f'content: url("{self.logo}"); vertical-align: bottom; '
                "} }"
            )
        return "\n".join(chunks)


class PdfEngine:
    """
    Engine interface and shared document-session state.

    Subclasses implement ``output()``.
    """

    name = "base"

    def __init__(
        self,
        orientation: str = "P",
        unit: str = "mm",
        page_format: Any = "A4",
        unicode: bool = True,
        encoding: str = "UTF-8",
    ):
        self.orientation = "landscape" if str(orientation).upper() == "L" else "portrait"
        self.unit = unit
        self.page_format = page_format
        self.unicode = unicode
        self.encoding = encoding
        self.metadata: dict[str, str] = {}
        self.print_header = True
        self.print_footer = True
        self.header: Optional[HeaderDecoration] = HeaderDecoration()
        self.footer: Optional[FooterDecoration] = None
        self.font_family = "helvetica"
        self.font_style = ""
        self.font_size: float = 12
        self.margins = {"left": 10.0, "top": 10.0, "right": 10.0, "bottom": 10.0}
        self.auto_page_break = True
        self.pages: list[list[str]] = []
        self.page_count = 0

    # Document setup -------------------------------------------------------

    def set_metadata(
        self,
        *,
        creator: Optional[str] = None,
        author: Optional[str] = None,
        title: Optional[str] = None,
        subject: Optional[str] = None,
        keywords: Optional[str] = None,
    ) -> None:
        values = {
            "creator": creator,
            "author": author,
            "title": title,
            "subject": subject,
            "keywords": keywords,
        }
        for key, value in values.items():
            if value is not None:
                self.metadata[key] = str(value)

    def set_title(self, title: str) -> None:
        self.set_metadata(title=title)

    def set_print_header(self, enabled: bool) -> None:
        self.print_header = bool(enabled)

    def set_print_footer(self, enabled: bool) -> None:
        self.print_footer = bool(enabled)

    def set_header(self, decoration: Optional[HeaderDecoration]) -> None:
        self.header = decoration

    def set_footer(self, decoration: Optional[FooterDecoration]) -> None:
        self.footer = decoration

    def set_font(self, family: str, style: str = "", size: Optional[float] = None) -> None:
        self.font_family = family
        self.font_style = style
        if size is not None:
            self.font_size = float(size)

    def set_margins(self, left: float, top: float, right: Optional[float] = None) -> None:
        self.margins["left"] = float(left)
        self.margins["top"] = float(top)
        self.margins["right"] = float(left if right is None else right)

    def set_auto_page_break(self, auto: bool, margin: float = 0) -> None:
        """
        Reserve ``margin`` units at the bottom of every page.

        Raises:
            ValueError: If ``auto`` is false; overflowing content always
                continues on a new page.
        """
        if not auto:
            raise ValueError(f"{self.name} engine always breaks overflowing content onto new pages")
        self.auto_page_break = True
        self.margins["bottom"] = float(margin)

    def alias_num_page(self) -> str:
        """Placeholder for the current page number, resolved at output time."""
        return PAGE_ALIAS

    def alias_nb_pages(self) -> str:
        """Placeholder for the total page count, resolved at output time."""
        return PAGES_ALIAS

    # Content --------------------------------------------------------------

    def add_page(self) -> None:
        self.pages.append([])

    def write_html(self, html_content: str) -> None:
        if not self.pages:
            self.add_page()
        self.pages[-1].append(html_content)

    # Output ---------------------------------------------------------------

    def page_size_css(self) -> str:
        if isinstance(self.page_format, (tuple, list)):
            width, height = self.page_format
            return f"{_length(width, self.unit)} {_length(height, self.unit)}"
        return f"{self.page_format} {self.orientation}"

    def build_css(self) -> str:
        margins = " ".join(
            _length(self.margins[side], self.unit)
            for side in ("top", "right", "bottom", "left")
        )
        font_style, font_weight = FONT_STYLES.get(self.font_style.upper(), FONT_STYLES[""])
        chunks = [
            f"@page {{ size: {self.page_size_css()}; margin: {margins}; }}",
            "body {"
            " margin: 0;"
            f" font-family: {css_font_family(self.font_family)};"
            f" font-style: {font_style}; font-weight: {font_weight};"
            f" font-size: {self.font_size:g}pt;"
            " }",
            ".pdf-page + .pdf-page { break-before: page; }",
            "img { max-width: 100%; }",
        ]
        if self.print_header and self.header:
            chunks.append(self.header.css(self))
        if self.print_footer and self.footer:
            chunks.append(self.footer.css(self))
        return "\n".join(chunks)

    def build_html(self) -> str:
        """Assemble the complete HTML document for the current session."""
        meta = [f"<meta charset='{escape(self.encoding)}'>"]
        if self.metadata.get("title"):
            meta.append(f"<title>{escape(self.metadata['title'])}</title>")
        meta_names = {
            "author": "author",
            "subject": "description",
            "keywords": "keywords",
            "creator": "generator",
        }
        for key, meta_name in meta_names.items():
            if self.metadata.get(key):
                meta.append(
                    f'<meta name="{meta_name}" content="{escape(self.metadata[key])}">'
                )
        pages = "".join(
            f'<section class="pdf-page">{"".join(blocks)}</section>'
            for blocks in self.pages
        )
        return (
            "<html><head>"
            f"{''.join(meta)}"
            f"<style>{self.build_css()}</style>"
            f"</head><body>{pages}</body></html>"
        )

    def output(self, *, base_url: Optional[str] = None, url_fetcher: Optional[Callable] = None) -> bytes:
        raise NotImplementedError


class WeasyPrintEngine(PdfEngine):
    """Engine laying documents out with WeasyPrint."""

    name = "weasyprint"

    def __init__(self, *args: Any, **kwargs: Any):
        if not WEASYPRINT_AVAILABLE or not HTML:
            raise DependencyMissingError(
                "WeasyPrint is not installed. Install it with: pip install weasyprint"
            )
        super().__init__(*args, **kwargs)

    def output(self, *, base_url: Optional[str] = None, url_fetcher: Optional[Callable] = None) -> bytes:
        html_kwargs: dict[str, Any] = {"string": self.build_html(), "base_url": base_url}
        if url_fetcher is not None:
            html_kwargs["url_fetcher"] = url_fetcher
        document = HTML(**html_kwargs).render()
        self.page_count = len(document.pages)
        pdf_bytes = document.write_pdf()
        logger.debug("WeasyPrint laid out %s pages (%s bytes)", self.page_count, len(pdf_bytes))
        return pdf_bytes


# ---------------------------------------------------------------------------
# Engine registry
# ---------------------------------------------------------------------------

_ENGINE_REGISTRY: dict[str, type[PdfEngine]] = {}


def register_pdf_engine(name: str, engine_cls: type[PdfEngine]) -> None:
    """
    Register a PDF engine class.

    Args:
        name: Name to register the engine under.
        engine_cls: PdfEngine subclass.
    """
    _ENGINE_REGISTRY[name.lower()] = engine_cls


def get_pdf_engine(name: Optional[str] = None, **page_setup: Any) -> PdfEngine:
    """
    Instantiate a registered engine.

    Args:
        name: Engine name. Defaults to "weasyprint".
        **page_setup: orientation, unit, page_format, unicode, encoding.

    Returns:
        A fresh PdfEngine instance.

    Raises:
        DependencyMissingError: If the requested engine is not available.
    """
    engine_name = (name or "weasyprint").lower()
    engine_cls = _ENGINE_REGISTRY.get(engine_name)
    if engine_cls is None:
        raise DependencyMissingError(f"PDF engine '{engine_name}' is not available")
    return engine_cls(**page_setup)


def engine_available(name: Optional[str] = None) -> bool:
    return (name or "weasyprint").lower() in _ENGINE_REGISTRY


# Register default engines
if WEASYPRINT_AVAILABLE:
    register_pdf_engine("weasyprint", WeasyPrintEngine)
