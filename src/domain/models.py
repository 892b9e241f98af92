"""Domain models for the icon color engine."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from config.settings import FILTER_PERCENT_MAX, FILTER_PERCENT_MIN


class AttributeKind(str, Enum):
    FILL = "fill"
    STROKE = "stroke"
    STOP_COLOR = "stop-color"
    STYLE = "style"


@dataclass(slots=True)
class ColorEntry:
    """One scanned occurrence class: canonical color + attribute kind."""

    color: str
    kind: AttributeKind
    count: int = 1
    original: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "kind": self.kind.value,
            "count": self.count,
            "original": self.original,
        }


_CSS_FILTER_FN = re.compile(
    r"(hue-rotate|saturate|brightness)\(\s*(-?\d*\.?\d+)\s*(deg|%)?\s*\)", re.IGNORECASE
)
_CSS_FILTER_FIELDS: Dict[str, str] = {"hue-rotate": "hue", "saturate": "saturation", "brightness": "brightness"}


def _clamp_percent(value: int) -> int:
    return max(FILTER_PERCENT_MIN, min(FILTER_PERCENT_MAX, value))


@dataclass(frozen=True, slots=True)
class FilterSettings:
    hue: int = 0
    saturation: int = 100
    brightness: int = 100

    @classmethod
    def identity(cls) -> "FilterSettings":
        return cls()

    @property
    def is_identity(self) -> bool:
        return self.hue % 360 == 0 and self.saturation == 100 and self.brightness == 100

    @classmethod
    def coerce(cls, hue: Any = 0, saturation: Any = 100, brightness: Any = 100) -> "FilterSettings":
        """Build settings from loosely typed UI values.

        Slider values arrive as strings or floats. Saturation and brightness
        are clamped into [0, 200]; hue is kept as given (the matrix handles
        any angle). Values that cannot be read fall back to identity.
        """

        def _to_int(value: Any, default: int) -> int:
            try:
                return int(math.floor(float(value) + 0.5))
            except (TypeError, ValueError, OverflowError):
                return default

        return cls(
            hue=_to_int(hue, 0),
            saturation=_clamp_percent(_to_int(saturation, 100)),
            brightness=_clamp_percent(_to_int(brightness, 100)),
        )

    def to_css(self) -> str:
        return f"hue-rotate({self.hue}deg) saturate({self.saturation}%) brightness({self.brightness}%)"

    @classmethod
    def from_css(cls, text: str) -> "FilterSettings":
        """Parse an inline CSS ``filter`` value.

        Accepts both percent (``saturate(150%)``) and multiplier
        (``saturate(1.5)``) forms. Missing functions keep identity values.
        """
        values: Dict[str, Any] = {"hue": 0, "saturation": 100, "brightness": 100}
        for fn, raw, unit in _CSS_FILTER_FN.findall(text or ""):
            num = float(raw)
            key = _CSS_FILTER_FIELDS[fn.lower()]
            if key != "hue" and unit != "%":
                num *= 100
            values[key] = num
        return cls.coerce(values["hue"], values["saturation"], values["brightness"])

    def to_dict(self) -> Dict[str, int]:
        return {"hue": self.hue, "saturation": self.saturation, "brightness": self.brightness}


@dataclass(slots=True)
class Variant:
    name: str
    colors: List[str] = field(default_factory=list)
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "colors": list(self.colors)}
        if self.is_primary:
            data["is_primary"] = True
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Variant":
        return cls(
            name=str(raw.get("name", "")),
            colors=[str(c) for c in raw.get("colors", [])],
            is_primary=bool(raw.get("is_primary", False)),
        )


@dataclass(slots=True)
class IconColorProfile:
    """Persistent color model of one icon.

    ``baseline_colors`` is captured once on first observation; variant color
    lists are positionally aligned to it.
    """

    icon_name: str
    baseline_colors: List[str] = field(default_factory=list)
    color_mapping: Dict[str, str] = field(default_factory=dict)
    variants: List[Variant] = field(default_factory=list)
    default_variant: Optional[str] = None

    def find_variant(self, name: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline_colors": list(self.baseline_colors),
            "color_mapping": dict(self.color_mapping),
            "variants": [v.to_dict() for v in self.variants],
            "default_variant": self.default_variant,
        }

    @classmethod
    def from_dict(cls, icon_name: str, raw: Dict[str, Any]) -> "IconColorProfile":
        variants = [Variant.from_dict(v) for v in raw.get("variants", []) if isinstance(v, dict)]
        default = raw.get("default_variant")
        # A dangling pointer means "use baseline"
        if default is not None and not any(v.name == default for v in variants):
            default = None
        return cls(
            icon_name=icon_name,
            baseline_colors=[str(c) for c in raw.get("baseline_colors", [])],
            color_mapping={str(k): str(v) for k, v in (raw.get("color_mapping") or {}).items()},
            variants=variants,
            default_variant=default,
        )


class EditMode(str, Enum):
    BASELINE = "baseline"
    CUSTOM = "custom"
    APPLIED_VARIANT = "applied_variant"
    FILTER_PENDING = "filter_pending"


@dataclass(frozen=True, slots=True)
class EditState:
    """Provenance of the markup currently shown in an editor session."""

    mode: EditMode = EditMode.BASELINE
    variant_name: Optional[str] = None
    pending_filter: Optional[FilterSettings] = None

    @classmethod
    def baseline(cls) -> "EditState":
        return cls(EditMode.BASELINE)

    @classmethod
    def custom(cls) -> "EditState":
        return cls(EditMode.CUSTOM)

    @classmethod
    def applied(cls, name: str) -> "EditState":
        return cls(EditMode.APPLIED_VARIANT, variant_name=name)

    @classmethod
    def filter_pending(cls, settings: FilterSettings) -> "EditState":
        return cls(EditMode.FILTER_PENDING, pending_filter=settings)
