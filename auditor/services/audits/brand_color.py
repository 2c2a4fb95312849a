"""Brand colour contrast and usage audit.

Computed colours are collected inside the page; contrast math runs here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from playwright.async_api import Page

from auditor.core.logging import get_logger
from auditor.services.audits.base import AuditKind, AuditOptions, BaseAudit
from auditor.utils.color import contrast_ratio, normalize_hex, parse_css_rgb, rgb_to_hex

logger = get_logger(__name__)

__all__ = ["BrandColorAudit", "analyze_brand_colors"]

INTERACTIVE_MIN_CONTRAST = 3.0
TEXT_MIN_CONTRAST = 4.5

# Returns computed colours of every visible element that uses a brand colour
_COLLECT_SAMPLES_JS = """(brandColors) => {
    const toHex = (rgb) => {
        const parts = rgb ? rgb.match(/\\d+/g) : null;
        if (!parts || parts.length < 3) return null;
        return '#' + parts.slice(0, 3)
            .map((x) => ('0' + parseInt(x, 10).toString(16)).slice(-2))
            .join('');
    };
    const isInteractive = (el) =>
        ['A', 'BUTTON', 'INPUT', 'SELECT', 'TEXTAREA'].includes(el.tagName) ||
        el.tabIndex >= 0 ||
        el.hasAttribute('onclick') ||
        el.getAttribute('role') === 'button';
    const brands = new Set(brandColors);
    const samples = [];
    for (const el of document.querySelectorAll('*')) {
        try {
            const rect = el.getBoundingClientRect();
            if (rect.width <= 0 || rect.height <= 0) continue;
            const style = window.getComputedStyle(el);
            if (!brands.has(toHex(style.color)) && !brands.has(toHex(style.backgroundColor))) {
                continue;
            }
            samples.push({
                tag: el.tagName.toLowerCase(),
                id: el.id || '',
                classes: Array.from(el.classList),
                color: style.color,
                background: style.backgroundColor,
                interactive: isInteractive(el),
            });
        } catch (e) {
            // detached or cross-origin element
        }
    }
    return samples;
}"""


def _brand_list(brand_colors: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for color in brand_colors:
        seen.setdefault(normalize_hex(color), None)
    return list(seen)


def _describe(sample: dict[str, Any]) -> tuple[str, str]:
    tag = sample.get("tag") or "element"
    classes = sample.get("classes") or []
    element = tag + ("." + ".".join(classes) if classes else "")
    selector = tag + (f"#{sample['id']}" if sample.get("id") else "")
    return element, selector


def analyze_brand_colors(
    samples: Sequence[dict[str, Any]], brand_colors: Iterable[str]
) -> list[dict[str, Any]]:
    """Find contrast and ambiguous-usage issues for the given brand colours.

    Args:
        samples: Element colour samples ({tag, id, classes, color, background, interactive})
        brand_colors: Brand colours as hex strings

    Returns:
        List of issues; ``type`` is ``contrast`` or ``usage``.
    """
    brands = _brand_list(brand_colors)
    usage: dict[str, set[bool]] = {brand: set() for brand in brands}
    issues: list[dict[str, Any]] = []

    for sample in samples:
        fg = parse_css_rgb(sample.get("color"))
        bg = parse_css_rgb(sample.get("background"))
        if fg is None or bg is None:
            continue

        fg_hex, bg_hex = rgb_to_hex(fg), rgb_to_hex(bg)
        matched = [brand for brand in brands if brand in (fg_hex, bg_hex)]
        if not matched:
            continue

        interactive = bool(sample.get("interactive"))
        for brand in matched:
            usage[brand].add(interactive)

        ratio = contrast_ratio(fg, bg)
        required = INTERACTIVE_MIN_CONTRAST if interactive else TEXT_MIN_CONTRAST
        if ratio < required:
            rounded = round(ratio, 2)
            element, selector = _describe(sample)
            issues.append(
                {
                    "type": "contrast",
                    "element": element,
                    "selector": selector,
                    "color": fg_hex,
                    "background": bg_hex,
                    "contrast": rounded,
                    "required": required,
                    "message": (
                        f"Low contrast ({rounded}:1) for brand color. "
                        f"Requires {required}:1 minimum."
                    ),
                    "isInteractive": interactive,
                }
            )

    for brand in brands:
        if usage[brand] == {True, False}:
            issues.append(
                {
                    "type": "usage",
                    "brand": brand,
                    "message": (
                        f"Brand color {brand} used for both interactive and non-interactive "
                        "elements. Consider using different shades or additional visual cues."
                    ),
                }
            )

    return issues


class BrandColorAudit(BaseAudit):
    """Contrast and affordance checks for a site's brand palette."""

    kind = AuditKind.BRAND_COLOR_CONTRAST

    def should_skip(self, options: AuditOptions) -> str | None:
        if not options.brand_colors:
            return "no brand colors requested"
        return None

    async def run(self, page: Page, options: AuditOptions) -> dict[str, Any]:
        brands = _brand_list(options.brand_colors)
        samples = await page.evaluate(_COLLECT_SAMPLES_JS, brands)
        issues = analyze_brand_colors(samples or [], brands)

        logger.info(
            "brand_color_audit_completed",
            brand_colors=len(brands),
            elements_checked=len(samples or []),
            issues=len(issues),
        )
        return {"issues": issues, "brandColors": brands, "elementsChecked": len(samples or [])}
