"""Utilities package."""

from auditor.utils.color import (
    contrast_ratio,
    hex_to_rgb,
    is_hex_color,
    normalize_hex,
    parse_css_rgb,
    relative_luminance,
    rgb_to_hex,
)
from auditor.utils.url import validate_scan_url

__all__ = [
    # Colour utilities
    "contrast_ratio",
    "hex_to_rgb",
    "is_hex_color",
    "normalize_hex",
    "parse_css_rgb",
    "relative_luminance",
    "rgb_to_hex",
    # URL utilities
    "validate_scan_url",
]
