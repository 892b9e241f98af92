"""Infer hue / saturation / brightness settings from a before/after color pair.

The editor knows the baseline palette and the palette currently on screen; the
filter sliders should reflect the transform that maps one onto the other. We
pick a single representative color (the most saturated one that is neither
near-black nor near-white, since hue is unstable there) and read the filter off
its HSL difference:

 - hue: difference of HSL hues, normalized into (-180, 180]
 - saturation: ratio of HSL saturations in percent
 - brightness: ratio of HSL lightness in percent

Ratios fall back to 100 when the original component is below the epsilon and
are clamped into the filter percent range. Degenerate input (empty lists,
length mismatch, unparseable representative) yields identity settings.

The result is exact only when every current color came from one global filter
that the HSL model can express; otherwise it is a heuristic.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from config.settings import (
    ESTIMATOR_EPSILON,
    ESTIMATOR_MAX_LIGHTNESS,
    ESTIMATOR_MIN_LIGHTNESS,
    FILTER_PERCENT_MAX,
    FILTER_PERCENT_MIN,
)
from domain.models import FilterSettings
from iconstudio.engine.color_parsing import Marker, parse_color, round_half_up

__all__ = ["rgb_to_hsl", "color_to_hsl", "representative_index", "estimate_filter"]

HSL = Tuple[float, float, float]


def rgb_to_hsl(r: float, g: float, b: float) -> HSL:
    """Standard sRGB -> HSL. Returns (hue degrees [0,360), s [0,1], l [0,1])."""
    rf, gf, bf = r / 255.0, g / 255.0, b / 255.0
    mx = max(rf, gf, bf)
    mn = min(rf, gf, bf)
    l = (mx + mn) / 2.0
    if mx == mn:
        return 0.0, 0.0, l
    d = mx - mn
    s = d / (2.0 - mx - mn) if l > 0.5 else d / (mx + mn)
    if mx == rf:
        h = (gf - bf) / d + (6.0 if gf < bf else 0.0)
    elif mx == gf:
        h = (bf - rf) / d + 2.0
    else:
        h = (rf - gf) / d + 4.0
    return h * 60.0, s, l


def color_to_hsl(token: str) -> Optional[HSL]:
    parsed = parse_color(token)
    if parsed is None or isinstance(parsed, Marker):
        return None
    return rgb_to_hsl(*parsed)


def representative_index(colors: Sequence[str]) -> int:
    """Index of the most saturated mid-lightness color; 0 when none qualifies."""
    best_index = 0
    best_saturation = 0.0
    for idx, token in enumerate(colors):
        hsl = color_to_hsl(token)
        if hsl is None:
            continue
        _, s, l = hsl
        if ESTIMATOR_MIN_LIGHTNESS < l < ESTIMATOR_MAX_LIGHTNESS and s > best_saturation:
            best_saturation = s
            best_index = idx
    return best_index


def _ratio(current: float, original: float) -> int:
    if original <= ESTIMATOR_EPSILON:
        return 100
    value = round_half_up(current / original * 100.0)
    return max(FILTER_PERCENT_MIN, min(FILTER_PERCENT_MAX, value))


def estimate_filter(original_colors: Sequence[str], current_colors: Sequence[str]) -> FilterSettings:
    if not original_colors or len(original_colors) != len(current_colors):
        return FilterSettings.identity()
    idx = representative_index(original_colors)
    original = color_to_hsl(original_colors[idx])
    current = color_to_hsl(current_colors[idx])
    if original is None or current is None:
        return FilterSettings.identity()

    hue_diff = current[0] - original[0]
    if hue_diff > 180:
        hue_diff -= 360
    elif hue_diff <= -180:
        hue_diff += 360

    return FilterSettings(
        hue=round_half_up(hue_diff),
        saturation=_ratio(current[1], original[1]),
        brightness=_ratio(current[2], original[2]),
    )
