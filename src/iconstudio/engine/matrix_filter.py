"""CSS filter emulation (hue-rotate -> saturate -> brightness).

Reproduces the browser's ``filter: hue-rotate() saturate() brightness()``
pipeline with the luminance preserving 3x3 matrices from the Filter Effects
module (0.213 / 0.715 / 0.072 weights). Channels are kept as floats through
every stage and only clamped to [0, 255] and rounded half-up at the end, so
offline recoloring matches what the live preview renders.

Both the preview path and the commit path of the editor go through this
module; there is no second approximation to drift from.

Batch recoloring stacks all parseable colors into one ``(n, 3)`` array and
applies the combined matrix in a single numpy product.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from domain.models import FilterSettings
from iconstudio.engine.color_parsing import RGB, Marker, parse_color, rgb_to_hex

__all__ = [
    "hue_rotate_matrix",
    "saturate_matrix",
    "filter_matrix",
    "apply_filter_rgb",
    "apply_filter",
    "filter_colors",
]

_LUMA_R = 0.213
_LUMA_G = 0.715
_LUMA_B = 0.072


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    theta = math.radians(degrees)
    c = math.cos(theta)
    s = math.sin(theta)
    return np.array(
        [
            [_LUMA_R + c * 0.787 - s * 0.213, _LUMA_G - c * 0.715 - s * 0.715, _LUMA_B - c * 0.072 + s * 0.928],
            [_LUMA_R - c * 0.213 + s * 0.143, _LUMA_G + c * 0.285 + s * 0.140, _LUMA_B - c * 0.072 - s * 0.283],
            [_LUMA_R - c * 0.213 - s * 0.787, _LUMA_G - c * 0.715 + s * 0.715, _LUMA_B + c * 0.928 + s * 0.072],
        ],
        dtype=float,
    )


def saturate_matrix(percent: float) -> np.ndarray:
    s = percent / 100.0
    return np.array(
        [
            [_LUMA_R + 0.787 * s, _LUMA_G - 0.715 * s, _LUMA_B - 0.072 * s],
            [_LUMA_R - 0.213 * s, _LUMA_G + 0.285 * s, _LUMA_B - 0.072 * s],
            [_LUMA_R - 0.213 * s, _LUMA_G - 0.715 * s, _LUMA_B + 0.928 * s],
        ],
        dtype=float,
    )


def filter_matrix(settings: FilterSettings) -> np.ndarray:
    """Single 3x3 matrix equivalent to the whole pipeline (column vectors)."""
    brightness = settings.brightness / 100.0
    return brightness * (saturate_matrix(settings.saturation) @ hue_rotate_matrix(settings.hue))


def _finish(values: np.ndarray) -> np.ndarray:
    # Round half-up like Math.round, then clamp
    return np.clip(np.floor(values + 0.5), 0, 255).astype(int)


def apply_filter_rgb(rgb: Tuple[float, float, float], settings: FilterSettings) -> RGB:
    if settings.is_identity:
        out = _finish(np.asarray(rgb, dtype=float))
    else:
        out = _finish(filter_matrix(settings) @ np.asarray(rgb, dtype=float))
    return int(out[0]), int(out[1]), int(out[2])


def apply_filter(token: str, settings: FilterSettings) -> str:
    """Filter one color token; markers and unparseable tokens pass through."""
    parsed = parse_color(token)
    if parsed is None or isinstance(parsed, Marker):
        return token
    return rgb_to_hex(*apply_filter_rgb(parsed, settings))


def filter_colors(colors: Sequence[str], settings: FilterSettings) -> List[str]:
    """Return a list parallel to ``colors`` with every real color filtered."""
    result: List[str] = list(colors)
    positions: List[int] = []
    rows: List[RGB] = []
    for idx, token in enumerate(colors):
        parsed = parse_color(token)
        if parsed is None or isinstance(parsed, Marker):
            continue
        positions.append(idx)
        rows.append(parsed)
    if not rows:
        return result
    data = np.asarray(rows, dtype=float)
    if not settings.is_identity:
        data = data @ filter_matrix(settings).T
    out = _finish(data)
    for pos, (r, g, b) in zip(positions, out.tolist()):
        result[pos] = rgb_to_hex(r, g, b)
    return result
