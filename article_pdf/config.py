"""
Configuration and settings helpers for article-pdf.

This module reads the ``ARTICLE_PDF`` setting, merges it over the library
defaults and resolves the site-level snapshot that feeds RenderOptions.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Optional
from urllib.parse import unquote, urljoin, urlparse

from django.apps import apps
from django.conf import settings
from django.http import HttpRequest

from .defaults import LIBRARY_DEFAULTS

logger = logging.getLogger(__name__)

# Optional WeasyPrint URL fetcher
try:
    from weasyprint.urls import default_url_fetcher
except (ImportError, OSError):
    default_url_fetcher = None


# ---------------------------------------------------------------------------
# Settings accessor functions
# ---------------------------------------------------------------------------


def _merge_dict(defaults: dict[str, Any], overrides: Any) -> dict[str, Any]:
    """Shallow-merge dict settings with safe fallbacks."""
    merged = dict(defaults)
    if isinstance(overrides, dict):
        merged.update(overrides)
    return merged


def _article_pdf_settings() -> dict[str, Any]:
    """Safely read the project-level overrides from settings."""
    return getattr(settings, "ARTICLE_PDF", None) or {}


def _article_pdf_dict(key: str) -> dict[str, Any]:
    return _merge_dict(LIBRARY_DEFAULTS[key], _article_pdf_settings().get(key))


def _article_pdf_value(key: str) -> Any:
    return _article_pdf_settings().get(key, LIBRARY_DEFAULTS.get(key))


def _site_settings() -> dict[str, Any]:
    return _article_pdf_dict("site")


def _render_option_overrides() -> dict[str, Any]:
    return _article_pdf_dict("render_options")


def _content_settings() -> dict[str, Any]:
    content = _article_pdf_dict("content")
    content["fields"] = _merge_dict(
        LIBRARY_DEFAULTS["content"]["fields"],
        _article_pdf_settings().get("content", {}).get("fields"),
    )
    return content


def _storage_settings() -> dict[str, Any]:
    return _article_pdf_dict("storage")


def _token_settings() -> dict[str, Any]:
    return _article_pdf_dict("tokens")


def _url_fetcher_allowlist() -> dict[str, Any]:
    return _article_pdf_dict("url_fetcher")


def _audit_settings() -> dict[str, Any]:
    return _article_pdf_dict("audit")


def _observability_settings() -> dict[str, Any]:
    return _article_pdf_dict("observability")


def _engine_name() -> str:
    return str(_article_pdf_value("engine") or "weasyprint")


def _date_format() -> str:
    return str(_article_pdf_value("date_format") or "F j, Y")


def _expose_errors() -> bool:
    value = _article_pdf_value("expose_errors")
    if value is None:
        return bool(settings.DEBUG)
    return bool(value)


# ---------------------------------------------------------------------------
# Site snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SiteConfig:
    """Site-level metadata injected into the document renderer."""

    name: str = ""
    url: str = ""

    @classmethod
    def from_settings(cls, request: Optional[HttpRequest] = None) -> "SiteConfig":
        """
        Resolve the site snapshot from settings.

        Falls back to ``django.contrib.sites`` when it is installed. A ``url``
        of ``"request"`` uses the absolute root URL of ``request``.
        """
        site_settings = _site_settings()
        name = site_settings.get("name")
        url = site_settings.get("url")

        if url == "request":
            url = request.build_absolute_uri("/") if request is not None else None

        if (not name or not url) and apps.is_installed("django.contrib.sites"):
            current = _current_contrib_site(request)
            if current is not None:
                name = name or current.name
                url = url or f"https://{current.domain}"

        return cls(name=str(name or ""), url=str(url or "").rstrip("/"))


def _current_contrib_site(request: Optional[HttpRequest]):
    from django.contrib.sites.shortcuts import get_current_site

    try:
        return get_current_site(request)
    except Exception as exc:
        logger.debug("Could not resolve the current site: %s", exc)
        return None


# ---------------------------------------------------------------------------
# File roots and URL fetcher helpers
# ---------------------------------------------------------------------------


def _default_file_roots() -> list[Path]:
    roots: list[Path] = []
    candidates = [
        getattr(settings, "STATIC_ROOT", None),
        getattr(settings, "MEDIA_ROOT", None),
    ]
    base_dir = getattr(settings, "BASE_DIR", None)
    if base_dir:
        base_path = Path(base_dir)
        candidates.extend([base_path / "static", base_path / "media"])
    for candidate in candidates:
        if not candidate:
            continue
        try:
            roots.append(Path(candidate))
        except TypeError:
            continue
    return roots


def _resolve_file_roots(allowlist: dict[str, Any]) -> list[Path]:
    roots: list[Path] = []
    for entry in allowlist.get("file_roots") or []:
        try:
            roots.append(Path(entry))
        except TypeError:
            continue
    return roots or _default_file_roots()


def _path_within_roots(path: Path, roots: Iterable[Path]) -> bool:
    try:
        resolved = path.resolve()
    except OSError:
        return False
    for root in roots:
        try:
            resolved.relative_to(root.resolve())
            return True
        except (OSError, ValueError):
            continue
    return False


def _file_path_from_url(url: str) -> Optional[Path]:
    parsed = urlparse(url)
    if parsed.scheme not in ("", "file"):
        return None
    return Path(unquote(parsed.path or url))


def build_safe_url_fetcher(base_url: Optional[str]) -> Optional[Callable]:
    """
    Build a WeasyPrint URL fetcher that enforces the configured allowlist.

    The host of an http(s) ``base_url`` is always allowed so site images keep
    loading. Blocked URLs raise ``ValueError``; WeasyPrint reports those as
    warnings and leaves the resource out of the document.
    """
    if not default_url_fetcher:
        return None

    allowlist = _url_fetcher_allowlist()
    allowed_schemes = {str(item).lower() for item in allowlist.get("schemes") or []}
    allow_remote = bool(allowlist.get("allow_remote", False))
    allowed_hosts = {
        str(item).lower() for item in allowlist.get("hosts") or [] if str(item)
    }
    file_roots = _resolve_file_roots(allowlist)
    base_parsed = urlparse(str(base_url)) if base_url else None
    base_is_http = bool(base_parsed and base_parsed.scheme in ("http", "https"))
    if base_is_http and base_parsed.hostname:
        allowed_hosts.add(base_parsed.hostname.lower())

    def safe_fetcher(url: str, *args: Any, **kwargs: Any) -> dict[str, Any]:
        resolved_url = url
        if not urlparse(url).scheme and base_is_http:
            resolved_url = urljoin(str(base_url), url)
        parsed = urlparse(resolved_url)
        scheme = (parsed.scheme or "file").lower()

        if scheme not in allowed_schemes:
            raise ValueError(f"Blocked URL scheme: {scheme}")

        if scheme in ("http", "https"):
            host = (parsed.hostname or "").lower()
            if not allow_remote and host not in allowed_hosts:
                raise ValueError("Remote URL fetch blocked by allowlist")
        elif scheme == "file":
            file_path = _file_path_from_url(resolved_url)
            if file_path and file_roots and not _path_within_roots(file_path, file_roots):
                raise ValueError("File URL fetch blocked by allowlist")

        return default_url_fetcher(resolved_url, *args, **kwargs)

    return safe_fetcher
