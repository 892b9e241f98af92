"""Pure color engine exports."""

from .color_parsing import Marker, normalize_color, parse_color  # noqa: F401
from .matrix_filter import apply_filter, filter_colors  # noqa: F401
from .filter_estimator import estimate_filter, representative_index  # noqa: F401
from .markup_scanner import (  # noqa: F401
    apply_color_mapping,
    editable_palette,
    extract_colors,
    extract_palette,
    replace_color,
)
from .auto_variants import AutoVariantKind, generate_auto_variant  # noqa: F401

__all__ = [
    "Marker",
    "normalize_color",
    "parse_color",
    "apply_filter",
    "filter_colors",
    "estimate_filter",
    "representative_index",
    "apply_color_mapping",
    "editable_palette",
    "extract_colors",
    "extract_palette",
    "replace_color",
    "AutoVariantKind",
    "generate_auto_variant",
]
