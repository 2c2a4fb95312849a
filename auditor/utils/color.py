"""Colour parsing and WCAG contrast utilities."""

from __future__ import annotations

import re

RGB = tuple[int, int, int]

HEX_COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_CSS_CHANNELS = re.compile(r"\d+(?:\.\d+)?")


def is_hex_color(value: str) -> bool:
    """Check for a ``#rgb`` or ``#rrggbb`` string."""
    return bool(HEX_COLOR_PATTERN.match(value))


def normalize_hex(value: str) -> str:
    """Lower-case a hex colour and expand the 3-digit form.

    >>> normalize_hex("#FFF")
    '#ffffff'

    Raises:
        ValueError: If the value is not a hex colour.
    """
    if not is_hex_color(value):
        raise ValueError(f"Invalid hex color: {value}")
    digits = value[1:].lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def hex_to_rgb(value: str) -> RGB:
    digits = normalize_hex(value)[1:]
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def parse_css_rgb(value: str | None) -> RGB | None:
    """Parse a computed ``rgb(...)``/``rgba(...)`` string into channels.

    Alpha is ignored. Returns None for anything with fewer than three channels.
    """
    if not value:
        return None
    channels = _CSS_CHANNELS.findall(value)
    if len(channels) < 3:
        return None
    r, g, b = (min(255, int(float(c))) for c in channels[:3])
    return (r, g, b)


def rgb_to_hex(rgb: RGB) -> str:
    return "#" + "".join(f"{c:02x}" for c in rgb)


def _linearize(channel: int) -> float:
    v = channel / 255
    return v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: RGB) -> float:
    """WCAG relative luminance of an sRGB colour."""
    r, g, b = (_linearize(c) for c in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(first: RGB, second: RGB) -> float:
    """WCAG contrast ratio between two colours, in the range [1, 21]."""
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)
