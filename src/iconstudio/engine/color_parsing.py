"""Color token parsing and normalization.

Converts any color token found in vector markup into either an RGB triple, a
non-color marker (``none`` / ``transparent`` / ``currentColor`` /
``inherit``) or ``None`` when the token is not understood.

Supported inputs:
 - ``#rgb`` and ``#rrggbb`` hex (case-insensitive)
 - ``rgb()`` / ``rgba()``: first three numeric groups, percent channels
   scaled to 0-255, alpha ignored
 - ``hsl()`` / ``hsla()``: hue in degrees, saturation / lightness percent,
   alpha ignored
 - a fixed table of named colors

Normalization never raises: unparseable tokens come back unchanged so they
can round-trip through scanning and replacement as opaque strings.

Public API:
 - parse_color(token) -> (r,g,b) | Marker | None
 - normalize_color(token) -> str
 - is_marker(token) -> bool
 - rgb_to_hex(r, g, b) / hex_to_rgb(value)
 - round_half_up(x) -> int
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Dict, Optional, Tuple, Union

__all__ = [
    "RGB",
    "Marker",
    "NAMED_COLORS",
    "parse_color",
    "normalize_color",
    "is_marker",
    "rgb_to_hex",
    "hex_to_rgb",
    "hsl_to_rgb",
    "round_half_up",
]

RGB = Tuple[int, int, int]


class Marker(str, Enum):
    """Non-color paint keywords; excluded from all numeric operations."""

    NONE = "none"
    TRANSPARENT = "transparent"
    CURRENT_COLOR = "currentColor"
    INHERIT = "inherit"


_MARKERS: Dict[str, Marker] = {m.value.lower(): m for m in Marker}

NAMED_COLORS: Dict[str, str] = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "aqua": "#00ffff",
    "magenta": "#ff00ff",
    "fuchsia": "#ff00ff",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#c0c0c0",
    "maroon": "#800000",
    "olive": "#808000",
    "lime": "#00ff00",
    "teal": "#008080",
    "navy": "#000080",
    "purple": "#800080",
    "orange": "#ffa500",
    "pink": "#ffc0cb",
    "brown": "#a52a2a",
    "gold": "#ffd700",
    "indigo": "#4b0082",
    "violet": "#ee82ee",
    "coral": "#ff7f50",
    "crimson": "#dc143c",
    "tomato": "#ff6347",
    "salmon": "#fa8072",
    "khaki": "#f0e68c",
    "turquoise": "#40e0d0",
    "tan": "#d2b48c",
    "beige": "#f5f5dc",
    "ivory": "#fffff0",
    "lavender": "#e6e6fa",
}

_HEX_PATTERN = re.compile(r"#(?:[0-9a-f]{6}|[0-9a-f]{3})", re.IGNORECASE)
_FUNC_PATTERN = re.compile(r"(rgba?|hsla?)\s*\((.*)\)", re.IGNORECASE | re.DOTALL)
_NUMBER_PATTERN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?(%?)", re.IGNORECASE)


def round_half_up(value: float) -> int:
    """Round like the browser (``Math.round``), not banker's rounding."""
    return int(math.floor(value + 0.5))


def _clamp_byte(v: float) -> int:
    return round_half_up(max(0.0, min(255.0, v)))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Format channels as lowercase ``#rrggbb``; values are clamped and rounded."""
    return f"#{_clamp_byte(r):02x}{_clamp_byte(g):02x}{_clamp_byte(b):02x}"


def hex_to_rgb(value: str) -> Optional[RGB]:
    """Parse ``#rgb`` / ``#rrggbb``; returns None for anything else."""
    v = value.strip()
    if not _HEX_PATTERN.fullmatch(v):
        return None
    digits = v[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert HSL (degrees, 0-1, 0-1) to an RGB triple."""
    h = (h % 360) / 360.0
    s = max(0.0, min(1.0, s))
    l = max(0.0, min(1.0, l))
    if s == 0:
        v = _clamp_byte(l * 255)
        return v, v, v

    def _hue_to_channel(p: float, q: float, t: float) -> float:
        if t < 0:
            t += 1
        if t > 1:
            t -= 1
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (
        _clamp_byte(_hue_to_channel(p, q, h + 1 / 3) * 255),
        _clamp_byte(_hue_to_channel(p, q, h) * 255),
        _clamp_byte(_hue_to_channel(p, q, h - 1 / 3) * 255),
    )


def _parse_function(name: str, body: str) -> Optional[RGB]:
    matches = list(_NUMBER_PATTERN.finditer(body))[:3]
    if len(matches) < 3:
        return None
    try:
        values = [float(m.group(0).rstrip("%")) for m in matches]
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in values):
        return None
    percent = [m.group(1) == "%" for m in matches]
    if name.startswith("rgb"):
        channels = [v * 255 / 100 if is_pct else v for v, is_pct in zip(values, percent)]
        return _clamp_byte(channels[0]), _clamp_byte(channels[1]), _clamp_byte(channels[2])
    h, s, l = values
    return hsl_to_rgb(h, s / 100.0, l / 100.0)


def parse_color(token: str) -> Union[RGB, Marker, None]:
    """Parse a color token.

    Returns an ``(r, g, b)`` tuple for colors, a :class:`Marker` for paint
    keywords, and ``None`` when the token is not a supported color.
    """
    if not isinstance(token, str):
        return None
    t = token.strip()
    if not t:
        return None
    lower = t.lower()
    marker = _MARKERS.get(lower)
    if marker is not None:
        return marker
    if t.startswith("#"):
        return hex_to_rgb(t)
    named = NAMED_COLORS.get(lower)
    if named is not None:
        return hex_to_rgb(named)
    match = _FUNC_PATTERN.fullmatch(t)
    if match:
        return _parse_function(match.group(1).lower(), match.group(2))
    return None


def normalize_color(token: str) -> str:
    """Return the canonical spelling of a color token.

    Colors become lowercase ``#rrggbb``; markers their canonical keyword
    (``currentColor`` keeps its camel case). Anything else is returned
    unchanged apart from surrounding whitespace.
    """
    parsed = parse_color(token)
    if parsed is None:
        return token.strip() if isinstance(token, str) else token
    if isinstance(parsed, Marker):
        return parsed.value
    return rgb_to_hex(*parsed)


def is_marker(token: str) -> bool:
    return isinstance(parse_color(token), Marker)
