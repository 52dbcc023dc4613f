"""Hex colour helpers for card display colours."""

from __future__ import annotations

import re

DEFAULT_COLOR_HEX = "#007AFF"

_HEX_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


def parse_hex_color(text: str) -> tuple[int, int, int] | None:
    """Parse ``#RRGGBB`` (``#`` optional) into an RGB tuple.

    Returns None if the text is not a 6-digit hex colour.
    """
    cleaned = text.strip().replace("#", "")
    if not _HEX_RE.match(cleaned):
        return None
    value = int(cleaned, 16)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def to_hex(rgb: tuple[int, int, int]) -> str:
    r, g, b = rgb
    return f"#{r:02X}{g:02X}{b:02X}"


def normalize_hex_color(text: str) -> str | None:
    """Return the colour as upper-case ``#RRGGBB``, or None if invalid."""
    rgb = parse_hex_color(text)
    return to_hex(rgb) if rgb is not None else None


def is_light(rgb: tuple[int, int, int]) -> bool:
    """True if the colour's relative luminance is above 0.5."""
    r, g, b = (c / 255.0 for c in rgb)
    luminance = 0.2126 * r + 0.7152 * g + 0.0722 * b
    return luminance > 0.5


def text_color(color_hex: str) -> str:
    """Pick black or white text for a card drawn in ``color_hex``."""
    rgb = parse_hex_color(color_hex)
    if rgb is None:
        rgb = parse_hex_color(DEFAULT_COLOR_HEX)
    return "#000000" if is_light(rgb) else "#FFFFFF"
