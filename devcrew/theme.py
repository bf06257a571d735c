"""Centralized color constants and icons for console rendering."""

import os
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Palette:
    """Color palette used by the rich renderers."""

    ACCENT: str
    BORDER: str
    DIM: str
    TEXT: str
    SUCCESS: str
    WARN: str
    ERROR: str
    INFO: str


_PALETTES: Dict[str, Palette] = {
    "dark": Palette(
        ACCENT="#7FA6D9", BORDER="#30363D", DIM="#6E7681", TEXT="#E6EDF3",
        SUCCESS="#57DB9C", WARN="#E3B341", ERROR="#F85149", INFO="#58A6FF",
    ),
    "light": Palette(
        ACCENT="#0969DA", BORDER="#D0D7DE", DIM="#57606A", TEXT="#24292F",
        SUCCESS="#1A7F37", WARN="#9A6700", ERROR="#CF222E", INFO="#0969DA",
    ),
    # Empty styles: rich renders markup-free text.
    "no_color": Palette(
        ACCENT="", BORDER="", DIM="", TEXT="",
        SUCCESS="", WARN="", ERROR="", INFO="",
    ),
}

_current: Optional[Palette] = None


def get_theme() -> Palette:
    """Return the active palette, honoring NO_COLOR on first use."""
    global _current
    if _current is None:
        _current = _PALETTES["no_color" if os.environ.get("NO_COLOR") else "dark"]
    return _current


def set_theme(name: str) -> bool:
    """Activate a palette by name. Returns False for unknown names."""
    global _current
    if os.environ.get("NO_COLOR"):
        _current = _PALETTES["no_color"]
        return True
    palette = _PALETTES.get(name.lower())
    if palette is None:
        return False
    _current = palette
    return True


# ── Icons with ASCII fallback ──

_USE_UNICODE = True

_ICON_MAP = {
    "✓": "[OK]",
    "✗": "[X]",
    "▸": ">",
    "●": "*",
    "⊙": "@",
    "–": "-",
    "↳": "->",
    "!": "!",
}


def set_use_unicode(enabled: bool):
    """Set whether to use Unicode icons (True) or ASCII fallback (False)."""
    global _USE_UNICODE
    _USE_UNICODE = enabled


def get_icon(unicode_icon: str) -> str:
    if _USE_UNICODE:
        return unicode_icon
    return _ICON_MAP.get(unicode_icon, unicode_icon)
