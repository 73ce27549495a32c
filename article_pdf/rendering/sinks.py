"""
Output sinks for generated documents.

A sink decides where the bytes of a finished document go: a forced browser
download, a file under the storage area, a plain byte string, or an inline
browser response.
"""

import logging
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from django.conf import settings
from django.http import HttpResponse

from ..config import _storage_settings
from ..utils.sanitization import sanitize_file_name
from .html import absolute_site_url, is_absolute_url

logger = logging.getLogger(__name__)


class Sink(str, Enum):
    DOWNLOAD = "D"
    FILE = "F"
    STRING = "S"
    INLINE = "I"


@dataclass
class OutputArtifact:
    """
    Result of one successful emission.

    Attributes:
        sink: Sink the document was emitted to.
        filename: Client-facing file name (sanitized title + ".pdf").
        pdf_bytes: Document bytes.
        path: Written file for the File sink, otherwise None.
        page_count: Number of laid out pages.
    """

    sink: Sink
    filename: str
    pdf_bytes: bytes
    path: Optional[Path] = None
    page_count: int = 0
    content_type: str = "application/pdf"

    @property
    def disposition(self) -> str:
        return "attachment" if self.sink == Sink.DOWNLOAD else "inline"

    def as_response(self) -> HttpResponse:
        response = HttpResponse(self.pdf_bytes, content_type=self.content_type)
        response["Content-Disposition"] = f'{self.disposition}; filename="{self.filename}"'
        response["Content-Length"] = str(len(self.pdf_bytes))
        return response


def document_filename(title: str) -> str:
    return f"{sanitize_file_name(title)}.pdf"


def storage_root() -> Path:
    """Root of the storage area: ``storage.root``, else MEDIA_ROOT, else a temp dir."""
    root = _storage_settings().get("root")
    if root:
        return Path(str(root))
    if getattr(settings, "MEDIA_ROOT", None):
        return Path(settings.MEDIA_ROOT)
    return Path(tempfile.gettempdir()) / "article_pdf"


def output_dir() -> Path:
    return storage_root() / str(_storage_settings().get("subdir") or "uploads/pdfs")


def default_output_path(title: str, timestamp: Optional[datetime] = None) -> Path:
    """
    Compute ``{storage root}/uploads/pdfs/{sanitized title}[_{timestamp}].pdf``.

    Args:
        title: Document title.
        timestamp: When given, appended to the file name using
            ``storage.timestamp_format``.
    """
    name = sanitize_file_name(title)
    if timestamp is not None:
        name = f"{name}_{timestamp.strftime(_storage_settings()['timestamp_format'])}"
    return output_dir() / f"{name}.pdf"


def write_file(path: Union[str, Path], pdf_bytes: bytes) -> Path:
    """Write ``pdf_bytes`` to ``path``, creating parent directories as needed."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(target, "wb") as handle:
            handle.write(pdf_bytes)
    except OSError:
        target.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s bytes to %s", len(pdf_bytes), target)
    return target


def storage_url(path: Union[str, Path], site_url: str = "") -> str:
    """
    Public URL of a file written under the storage root.

    Relative storage URLs are rooted at ``site_url`` when it is given. Paths
    outside the storage root are returned as POSIX paths.
    """
    target = Path(path)
    try:
        relative = target.resolve().relative_to(storage_root().resolve())
    except ValueError:
        return target.as_posix()

    base_url = str(_storage_settings().get("url") or getattr(settings, "MEDIA_URL", "") or "/")
    url = f"{base_url.rstrip('/')}/{relative.as_posix()}"
    if site_url and not is_absolute_url(url):
        url = absolute_site_url(site_url, url)
    return url
