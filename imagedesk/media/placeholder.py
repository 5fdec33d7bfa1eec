"""Category placeholders for missing or broken images.

A placeholder is a pure function of its category: a self-contained SVG
(grid background, double ring, category icon, label, brand). Nothing is
fetched, so rendering a placeholder cannot fail.
"""

import base64
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from xml.sax.saxutils import escape

from imagedesk.media.config import get_media_settings
from imagedesk.media.models import Category

media_settings = get_media_settings()


@dataclass(frozen=True)
class PlaceholderStyle:
    bg: str
    accent: str
    text: str
    icon: str  # SVG fragment drawn around (0, 0); {accent} is substituted
    label: str


_ICON_TRIANGLE = (
    '<polygon points="0,-40 30,20 -30,20" fill="none" stroke="{accent}" stroke-width="3"/>'
    '<circle cx="0" cy="0" r="10" fill="{accent}"/>'
)
_ICON_CALENDAR = (
    '<rect x="-30" y="-30" width="60" height="60" fill="none" stroke="{accent}" stroke-width="3" rx="5" ry="5"/>'
    '<path d="M -20 -5 L -5 10 L 10 -15 L 25 0" stroke="{accent}" stroke-width="3" fill="none"/>'
)
_ICON_SQUAD = (
    '<circle cx="-20" cy="-10" r="12" fill="{accent}" opacity="0.8"/>'
    '<circle cx="0" cy="-20" r="12" fill="{accent}" opacity="0.9"/>'
    '<circle cx="20" cy="-10" r="12" fill="{accent}" opacity="0.8"/>'
    '<circle cx="-25" cy="15" r="12" fill="{accent}" opacity="0.7"/>'
    '<circle cx="0" cy="20" r="12" fill="{accent}" opacity="0.8"/>'
    '<circle cx="25" cy="15" r="12" fill="{accent}" opacity="0.7"/>'
)
_ICON_RINGS = (
    '<circle cx="-20" cy="0" r="20" fill="none" stroke="{accent}" stroke-width="3"/>'
    '<circle cx="20" cy="0" r="20" fill="none" stroke="{accent}" stroke-width="3"/>'
)
_ICON_GLOBE = (
    '<path d="M 0 -30 A 30 30 0 1 0 0 30 A 30 30 0 1 0 0 -30" fill="none" stroke="{accent}" stroke-width="3"/>'
    '<circle cx="0" cy="0" r="10" fill="{accent}"/>'
)
_ICON_PERSON = (
    '<circle cx="0" cy="-15" r="15" fill="none" stroke="{accent}" stroke-width="3"/>'
    '<path d="M -30 30 Q -30 5 0 5 Q 30 5 30 30" fill="none" stroke="{accent}" stroke-width="3"/>'
)
_ICON_GAMEPAD = (
    '<rect x="-40" y="-20" width="80" height="40" fill="none" stroke="{accent}" stroke-width="3" rx="18" ry="18"/>'
    '<path d="M -25 0 L -11 0 M -18 -7 L -18 7" stroke="{accent}" stroke-width="3"/>'
    '<circle cx="15" cy="-4" r="4" fill="{accent}"/>'
    '<circle cx="25" cy="4" r="4" fill="{accent}"/>'
)

_BG = "#1A0033"
_TEXT = "#FFFFFF"

PLACEHOLDER_STYLES: dict[Category, PlaceholderStyle] = {
    Category.NEWS: PlaceholderStyle(_BG, "#00FFFF", _TEXT, _ICON_TRIANGLE, "NEWS"),
    Category.EVENT: PlaceholderStyle(_BG, "#00FF00", _TEXT, _ICON_CALENDAR, "EVENT"),
    Category.TEAM: PlaceholderStyle(_BG, "#8A2BE2", _TEXT, _ICON_SQUAD, "TEAM"),
    Category.PARTNERSHIP: PlaceholderStyle(_BG, "#FF00FF", _TEXT, _ICON_RINGS, "PARTNERSHIP"),
    Category.COMMUNITY: PlaceholderStyle(_BG, "#FF1493", _TEXT, _ICON_GLOBE, "COMMUNITY"),
    Category.MEMBER: PlaceholderStyle(_BG, "#FF00FF", _TEXT, _ICON_PERSON, "MEMBER"),
    Category.GAME: PlaceholderStyle(_BG, "#FFFF00", _TEXT, _ICON_GAMEPAD, "GAME"),
}


def get_placeholder_style(category: "Category | str") -> PlaceholderStyle:
    """Style for a category (legacy names such as 'announcement' accepted)."""
    return PLACEHOLDER_STYLES[Category.parse(category)]


@lru_cache(maxsize=64)
def _render_svg(category: Category, brand: str) -> str:
    style = PLACEHOLDER_STYLES[category]
    accent = style.accent
    # Pattern ids carry the category so several placeholders can share a page
    small_id = f"smallGrid-{category.value}"
    grid_id = f"grid-{category.value}"
    icon = style.icon.format(accent=accent)
    return (
        '<svg width="100%" height="100%" viewBox="0 0 800 400" '
        'xmlns="http://www.w3.org/2000/svg" preserveAspectRatio="xMidYMid meet">'
        "<defs>"
        f'<pattern id="{small_id}" width="20" height="20" patternUnits="userSpaceOnUse">'
        f'<path d="M 20 0 L 0 0 0 20" fill="none" stroke="{accent}" stroke-width="0.5" stroke-opacity="0.2"/>'
        "</pattern>"
        f'<pattern id="{grid_id}" width="100" height="100" patternUnits="userSpaceOnUse">'
        f'<rect width="100" height="100" fill="url(#{small_id})"/>'
        f'<path d="M 100 0 L 0 0 0 100" fill="none" stroke="{accent}" stroke-width="1" stroke-opacity="0.2"/>'
        "</pattern>"
        "</defs>"
        f'<rect width="100%" height="100%" fill="{style.bg}"/>'
        f'<rect width="100%" height="100%" fill="url(#{grid_id})"/>'
        '<g transform="translate(400, 200)">'
        f'<circle r="80" fill="{style.bg}" stroke="{accent}" stroke-width="2" opacity="0.9"/>'
        f'<circle r="70" fill="none" stroke="{accent}" stroke-width="2" opacity="0.7"/>'
        f"<g>{icon}</g>"
        "</g>"
        '<text x="50%" y="75%" font-size="24" font-family="monospace" font-weight="bold" '
        f'fill="{style.text}" text-anchor="middle" dominant-baseline="middle">{style.label}</text>'
        '<text x="50%" y="85%" font-size="32" font-family="monospace" font-weight="bold" '
        f'fill="{accent}" text-anchor="middle" dominant-baseline="middle">{escape(brand)}</text>'
        "</svg>"
    )


def render_placeholder_svg(category: "Category | str", brand: Optional[str] = None) -> str:
    """SVG markup for a category placeholder. Deterministic per (category, brand)."""
    return _render_svg(Category.parse(category), brand or media_settings.MEDIA_BRAND_TEXT)


def placeholder_data_url(category: "Category | str", brand: Optional[str] = None) -> str:
    """Placeholder as a data: URL usable directly as an image source."""
    svg = render_placeholder_svg(category, brand)
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
