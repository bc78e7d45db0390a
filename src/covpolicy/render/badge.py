"""Shields-style SVG badge for the overall coverage percentage."""

from __future__ import annotations

from enum import StrEnum
from html import escape

CHAR_WIDTH = 7
PADDING = 10

# (lower bound, color), checked in order
_COLORS = ((90.0, "#4c1"), (75.0, "#97ca00"), (60.0, "#dfb317"))
_LOW_COLOR = "#e05d44"


class BadgeStyle(StrEnum):
    FLAT = "flat"
    FLAT_SQUARE = "flat-square"


def badge_color(percent: float) -> str:
    for bound, color in _COLORS:
        if percent >= bound:
            return color
    return _LOW_COLOR


def percent_text(percent: float) -> str:
    if percent == int(percent):
        return f"{percent:.0f}%"
    return f"{percent:.1f}%"


def format_badge(percent: float, *, label: str = "coverage", style: BadgeStyle = BadgeStyle.FLAT) -> str:
    """Return an SVG badge reading ``<label> | <percent>``."""
    value = percent_text(percent)
    label_width = len(label) * CHAR_WIDTH + PADDING
    value_width = len(value) * CHAR_WIDTH + PADDING
    width = label_width + value_width
    rx = 0 if style is BadgeStyle.FLAT_SQUARE else 3
    # text is drawn at scale(.1), so positions and lengths are in tenths
    label_x = label_width * 5
    value_x = (label_width + value_width // 2) * 10
    label_len = len(label) * CHAR_WIDTH * 10
    value_len = len(value) * CHAR_WIDTH * 10
    text = escape(label)
    color = badge_color(percent)
    return f"""\
<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" role="img" aria-label="{text}: {value}">
  <title>{text}: {value}</title>
  <linearGradient id="s" x2="0" y2="100%">
    <stop offset="0" stop-color="#bbb" stop-opacity=".1"/>
    <stop offset="1" stop-opacity=".1"/>
  </linearGradient>
  <clipPath id="r">
    <rect width="{width}" height="20" rx="{rx}" fill="#fff"/>
  </clipPath>
  <g clip-path="url(#r)">
    <rect width="{label_width}" height="20" fill="#555"/>
    <rect x="{label_width}" width="{value_width}" height="20" fill="{color}"/>
    <rect width="{width}" height="20" fill="url(#s)"/>
  </g>
  <g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,DejaVu Sans,sans-serif" font-size="110">
    <text aria-hidden="true" x="{label_x}" y="150" fill="#010101" fill-opacity=".3" transform="scale(.1)" textLength="{label_len}">{text}</text>
    <text x="{label_x}" y="140" transform="scale(.1)" textLength="{label_len}">{text}</text>
    <text aria-hidden="true" x="{value_x}" y="150" fill="#010101" fill-opacity=".3" transform="scale(.1)" textLength="{value_len}">{value}</text>
    <text x="{value_x}" y="140" transform="scale(.1)" textLength="{value_len}">{value}</text>
  </g>
</svg>"""


__all__ = ["BadgeStyle", "badge_color", "format_badge", "percent_text"]
