"""
Rendering subpackage for article PDFs.

This package provides the paginated-document engines, HTML composition
helpers, render options and output sinks.
"""

from .engine import (
    WEASYPRINT_AVAILABLE,
    FooterDecoration,
    HeaderDecoration,
    PdfEngine,
    WeasyPrintEngine,
    engine_available,
    get_pdf_engine,
    register_pdf_engine,
)
from .html import (
    absolutize_image_urls,
    byline_block,
    css_content,
    title_block,
)
from .options import RenderOptions, default_render_options
from .sinks import (
    OutputArtifact,
    Sink,
    default_output_path,
    document_filename,
    storage_url,
    write_file,
)

__all__ = [
    "WEASYPRINT_AVAILABLE",
    "FooterDecoration",
    "HeaderDecoration",
    "PdfEngine",
    "WeasyPrintEngine",
    "engine_available",
    "get_pdf_engine",
    "register_pdf_engine",
    "absolutize_image_urls",
    "byline_block",
    "css_content",
    "title_block",
    "RenderOptions",
    "default_render_options",
    "OutputArtifact",
    "Sink",
    "default_output_path",
    "document_filename",
    "storage_url",
    "write_file",
]
