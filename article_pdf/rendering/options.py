"""
Render options for document generation.

Defaults are derived from the injected site snapshot, then the project's
``ARTICLE_PDF["render_options"]`` overrides, then per-call overrides. A key
that is not overridden always falls back to its default.
"""

from collections.abc import Mapping
from typing import Any, Iterator, Optional

from ..config import SiteConfig, _render_option_overrides

DEFAULT_CREATOR = "Article PDF"
ORIENTATIONS = {"P": "portrait", "L": "landscape"}
UNITS = ("mm", "cm", "in", "pt", "px")


def default_render_options(site: SiteConfig) -> dict[str, Any]:
    return {
        "title": site.name,
        "author": site.name,
        "creator": DEFAULT_CREATOR,
        "subject": "",
        "keywords": "",
        "page_orientation": "P",
        "unit": "mm",
        "page_format": "A4",
        "unicode": True,
        "encoding": "UTF-8",
        "font": "dejavusans",
        "font_size": 10,
        "header_logo": "",
        "header_title": site.name,
        "footer_text": site.url,
    }


class RenderOptions(Mapping):
    """Named document settings with site-derived defaults."""

    def __init__(self, site: SiteConfig, overrides: Optional[Mapping[str, Any]] = None):
        self._defaults = default_render_options(site)
        self._values = dict(self._defaults)
        self.update(_render_option_overrides())
        if overrides:
            self.update(overrides)

    def update(self, overrides: Mapping[str, Any]) -> None:
        """
        Apply overrides. ``None`` values are ignored.

        Raises:
            KeyError: If an override names an unknown option.
            ValueError: If orientation or unit is not supported.
        """
        for key, value in overrides.items():
            if key not in self._defaults:
                raise KeyError(f"Unknown render option: {key}")
            if value is None:
                continue
            self._values[key] = value
        self._validate()

    def _validate(self) -> None:
        orientation = str(self._values["page_orientation"]).upper()
        if orientation not in ORIENTATIONS:
            raise ValueError(f"Unsupported page orientation: {orientation}")
        self._values["page_orientation"] = orientation
        if self._values["unit"] not in UNITS:
            raise ValueError(f"Unsupported unit: {self._values['unit']}")

    @property
    def orientation_name(self) -> str:
        return ORIENTATIONS[self._values["page_orientation"]]

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RenderOptions({self._values!r})"
