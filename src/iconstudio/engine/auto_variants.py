"""Generated color variants (invert / darken / lighten / muted / grayscale).

Each kind is a per-color RGB transform applied to the icon's palette. Markers
(``currentColor`` etc.) and unparseable tokens are passed through untouched so
the result stays positionally aligned with its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from iconstudio.engine.color_parsing import Marker, parse_color, rgb_to_hex

__all__ = ["AutoVariantKind", "AutoVariant", "generate_auto_variant", "unique_variant_name"]

_DARKEN_AMOUNT = 0.3
_LIGHTEN_AMOUNT = 0.3
_MUTE_AMOUNT = 0.5

Channels = Tuple[float, float, float]


class AutoVariantKind(str, Enum):
    INVERT = "invert"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    MUTED = "muted"
    GRAYSCALE = "grayscale"


@dataclass(frozen=True)
class AutoVariant:
    name: str
    colors: List[str]


def _invert(r: float, g: float, b: float) -> Channels:
    return 255 - r, 255 - g, 255 - b


def _darken(r: float, g: float, b: float) -> Channels:
    k = 1 - _DARKEN_AMOUNT
    return r * k, g * k, b * k


def _lighten(r: float, g: float, b: float) -> Channels:
    a = _LIGHTEN_AMOUNT
    return r + (255 - r) * a, g + (255 - g) * a, b + (255 - b) * a


def _desaturate(amount: float) -> Callable[[float, float, float], Channels]:
    def _apply(r: float, g: float, b: float) -> Channels:
        gray = r * 0.299 + g * 0.587 + b * 0.114
        return r + (gray - r) * amount, g + (gray - g) * amount, b + (gray - b) * amount

    return _apply


_TRANSFORMS: Dict[AutoVariantKind, Tuple[str, Callable[[float, float, float], Channels]]] = {
    AutoVariantKind.INVERT: ("Inverted", _invert),
    AutoVariantKind.DARKEN: ("Dark", _darken),
    AutoVariantKind.LIGHTEN: ("Light", _lighten),
    AutoVariantKind.MUTED: ("Muted", _desaturate(_MUTE_AMOUNT)),
    AutoVariantKind.GRAYSCALE: ("Grayscale", _desaturate(1.0)),
}


def generate_auto_variant(colors: Sequence[str], kind: AutoVariantKind | str) -> AutoVariant:
    """Transform ``colors`` and suggest a variant name.

    Raises ValueError for an unknown kind.
    """
    name, transform = _TRANSFORMS[AutoVariantKind(kind)]
    out: List[str] = []
    for token in colors:
        parsed = parse_color(token)
        if parsed is None or isinstance(parsed, Marker):
            out.append(token)
            continue
        out.append(rgb_to_hex(*transform(*parsed)))
    return AutoVariant(name=name, colors=out)


def unique_variant_name(base: str, existing: Sequence[str]) -> str:
    """``base`` if free, else ``base 2``, ``base 3``, ..."""
    taken = set(existing)
    if base not in taken:
        return base
    n = 2
    while f"{base} {n}" in taken:
        n += 1
    return f"{base} {n}"
