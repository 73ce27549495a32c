"""
HTML composition utilities for article PDFs.

This module builds the HTML fragment written into the document (title block,
byline, body) and prepares article bodies for the engine by rewriting
relative image sources into absolute URLs.
"""

import re
from datetime import datetime
from typing import Any, Optional

from django.utils import dateformat, timezone
from django.utils.html import escape
from django.utils.translation import gettext as _

IMG_SRC_PATTERN = re.compile(
    r"<img([^>]+)src=([\"'])([^\"']+)([\"'])([^>]*)>", re.IGNORECASE
)
URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

TITLE_STYLE = "text-align: center;"
BYLINE_STYLE = "margin-bottom: 20px; font-style: italic; text-align: center;"


def is_absolute_url(url: str) -> bool:
    """True for URLs carrying a scheme (``https:``, ``data:``) or protocol-relative ones."""
    return bool(URL_SCHEME_PATTERN.match(url)) or url.startswith("//")


def absolute_site_url(site_url: str, path: str) -> str:
    """Root ``path`` at ``site_url``; a missing leading slash is added."""
    return f"{site_url.rstrip('/')}/{path.lstrip('/')}"


def absolutize_image_urls(content: str, site_url: str) -> str:
    """
    Rewrite relative ``<img src>`` values to absolute URLs under ``site_url``.

    Absolute sources are left unchanged, as is every other piece of markup.

    Args:
        content: HTML body.
        site_url: Base URL of the site.

    Returns:
        HTML with absolute image sources.
    """
    if not site_url:
        return content

    def replace(match: re.Match) -> str:
        before, open_quote, src, close_quote, after = match.groups()
        if not is_absolute_url(src):
            src = absolute_site_url(site_url, src)
        return f"<img{before}src={open_quote}{src}{close_quote}{after}>"

    return IMG_SRC_PATTERN.sub(replace, content)


def wrap_body(content: str, font: str, font_size: Any) -> str:
    return (
        f'<div style="font-family: {escape(font)}; font-size: {escape(font_size)}pt;">'
        f"{content}</div>"
    )


def format_publish_date(value: Optional[datetime], date_format: str) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime) and timezone.is_aware(value):
        value = timezone.localtime(value)
    return dateformat.format(value, date_format)


def title_block(title: str) -> str:
    return f'<h1 style="{TITLE_STYLE}">{escape(title)}</h1>'


def byline_block(published_on: str, author: str) -> str:
    text = _("Published on %(date)s by %(author)s") % {
        "date": escape(published_on),
        "author": escape(author),
    }
    return f'<div style="{BYLINE_STYLE}">{text}</div>'


def _css_escape(value: str) -> str:
    """
    Escape a string for safe inclusion in a CSS ``content`` string.

    Escapes backslashes, quotes, newlines, and other control characters
    that could break out of CSS string context.
    """
    result = []
    for char in value:
        if char == "\\":
            result.append("\\\\")
        elif char == '"':
            result.append('\\"')
        elif char == "'":
            result.append("\\'")
        elif char == "\n":
            result.append("\\A ")
        elif char in "{}<>":
            result.append(f"\\{ord(char):X} ")
        elif ord(char) < 32 or ord(char) == 127:
            result.append(f"\\{ord(char):X} ")
        else:
            result.append(char)
    return "".join(result)


def css_content(text: str, aliases: dict[str, str]) -> str:
    """
    Convert footer/header text into a CSS ``content`` value.

    Occurrences of alias tokens (e.g. ``{page}``) become the mapped CSS
    expressions (e.g. ``counter(page)``); everything else is quoted.
    """
    if not aliases:
        return f'"{_css_escape(text)}"' if text else '""'
    pattern = "(" + "|".join(re.escape(alias) for alias in aliases) + ")"
    parts: list[str] = []
    for token in re.split(pattern, text):
        if token in aliases:
            parts.append(aliases[token])
        elif token:
            parts.append(f'"{_css_escape(token)}"')
    return " ".join(parts) if parts else '""'
