"""Editor session: one icon open in the interactive editor.

The host forwards every editor-surface message here. Each handler rewrites
the markup through the engine, updates the variant store, moves the session
through its explicit :class:`~domain.models.EditState` and returns an
:class:`EditResult` for re-render. Handlers also publish an
:class:`~iconstudio.services.event_bus.EngineEvent` on the session bus.

State transitions:

======================================  ==========================
handler                                 new state
======================================  ==========================
preview_color                           unchanged
preview_filter                          FilterPending(settings)
commit_color / apply_filter /           Custom
add_fill_color / add_root_color /
replace_current_color_keyword
save_variant / apply_variant /          AppliedVariant(name)
generate_auto_variant
apply_baseline                          Baseline
delete_variant (the applied one)        Custom
rename_variant (the applied one)        AppliedVariant(new name)
======================================  ==========================

Previews never touch the stored markup or the store. Invalid input (missing
colors, unknown variant index) returns the current result unchanged.

The session keeps the color shown for every baseline position (the aligned
palette). Restores and saved variants use it instead of the markup palette,
whose first-seen order shifts once a fill is added to an earlier element.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from domain.models import EditMode, EditState, FilterSettings
from iconstudio.engine.auto_variants import generate_auto_variant, unique_variant_name
from iconstudio.engine.color_parsing import Marker, normalize_color
from iconstudio.engine.filter_estimator import estimate_filter
from iconstudio.engine.markup_scanner import (
    add_fill_to_shapes,
    editable_palette,
    extract_colors,
    extract_palette,
    has_current_color,
    has_smil_animation,
    replace_color,
    set_root_fill,
)

from .event_bus import EngineEvent, EventBus
from .variant_store import VariantStore

__all__ = ["EditResult", "IconEditorSession"]

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    markup: str
    colors: List[str]
    state: EditState
    changed: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "svg": self.markup,
            "colors": list(self.colors),
            "state": self.state.mode.value,
            "variant": self.state.variant_name,
            "changed": self.changed,
        }
        if self.state.pending_filter is not None:
            data["filter"] = self.state.pending_filter.to_dict()
        data.update(self.extra)
        return data


class IconEditorSession:
    def __init__(
        self,
        icon_name: str,
        markup: str,
        store: VariantStore,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.icon_name = icon_name
        self._markup = markup
        self._store = store
        self._bus = bus or EventBus()
        self._state = EditState.baseline()
        self._applied_filter: Optional[FilterSettings] = None
        # Current color of each baseline position; colors added later are not part of it
        self._aligned: List[str] = []
        store.ensure_profile(icon_name, markup)
        self._sync_alignment(extract_palette(markup))
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], EditResult]] = {
            "previewColor": lambda m: self.preview_color(m.get("oldColor"), m.get("newColor")),
            "changeColor": lambda m: self.commit_color(
                m.get("oldColor"), m.get("newColor"), m.get("originalColor")
            ),
            "replaceCurrentColor": lambda m: self.replace_current_color_keyword(m.get("newColor")),
            "addFillColor": lambda m: self.add_fill_color(m.get("color")),
            "addColor": lambda m: self.add_root_color(m.get("color")),
            "previewFilters": lambda m: self.preview_filter(**_filter_args(m)),
            "applyFilters": lambda m: self.apply_filter(**_filter_args(m)),
            "saveVariant": lambda m: self.save_variant(m.get("name") or m.get("variantName")),
            "applyVariant": lambda m: self.apply_variant(m.get("index")),
            "applyDefaultVariant": lambda m: self.apply_baseline(),
            "generateAutoVariant": lambda m: self.generate_auto_variant(m.get("type")),
            "deleteVariant": lambda m: self.delete_variant(m.get("index")),
            "setDefaultVariant": lambda m: self.set_default_variant(m.get("variantName")),
            "editVariant": lambda m: self.rename_variant(m.get("index"), m.get("name")),
        }

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def markup(self) -> str:
        return self._markup

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def store(self) -> VariantStore:
        return self._store

    @property
    def baseline_colors(self) -> List[str]:
        profile = self._store.get_profile(self.icon_name)
        return list(profile.baseline_colors) if profile else []

    @property
    def aligned_colors(self) -> List[str]:
        """Color currently shown for each baseline position."""
        return list(self._aligned)

    def colors(self) -> List[str]:
        return editable_palette(self._markup)

    def describe(self) -> Dict[str, Any]:
        """Snapshot for the initial render of the editor."""
        return {
            "icon": self.icon_name,
            "svg": self._markup,
            "colors": self.colors(),
            "entries": [e.to_dict() for e in extract_colors(self._markup)],
            "baseline": self.baseline_colors,
            "variants": [v.to_dict() for v in self._store.get_saved_variants(self.icon_name)],
            "default_variant": self._store.get_default_variant(self.icon_name),
            "has_current_color": has_current_color(self._markup),
            "has_smil": has_smil_animation(self._markup),
            "state": self._state.mode.value,
            "filter": self.estimated_filter().to_dict(),
        }

    def estimated_filter(self) -> FilterSettings:
        """Slider values for the current markup.

        A pending (entered but uncommitted) filter wins. The last applied
        filter is returned as long as it still reproduces the aligned palette;
        otherwise the filter is inferred from the baseline and aligned
        palettes.
        """
        if self._state.mode is EditMode.FILTER_PENDING and self._state.pending_filter is not None:
            return self._state.pending_filter
        if self._applied_filter is not None:
            if self._store.filtered_colors(self.icon_name, self._applied_filter) == self._aligned:
                return self._applied_filter
        return estimate_filter(self.baseline_colors, self._aligned)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _result(self, markup: Optional[str] = None, *, changed: bool = True, **extra: Any) -> EditResult:
        shown = self._markup if markup is None else markup
        return EditResult(shown, editable_palette(shown), self._state, changed, dict(extra))

    def _unchanged(self, reason: str) -> EditResult:
        _log.debug("%s: %s", self.icon_name, reason)
        return self._result(changed=False)

    def _set_state(self, state: EditState) -> None:
        if state != self._state:
            previous = self._state
            self._state = state
            self._bus.publish(
                EngineEvent.STATE_CHANGED,
                {"icon": self.icon_name, "from": previous.mode.value, "to": state.mode.value},
            )

    def _commit_markup(self, markup: str, state: EditState) -> EditResult:
        previous_colors = self.colors()
        self._markup = markup
        self._set_state(state)
        result = self._result()
        self._bus.publish(EngineEvent.MARKUP_UPDATED, result.to_dict())
        if result.colors != previous_colors:
            self._bus.publish(EngineEvent.COLORS_UPDATED, {"icon": self.icon_name, "colors": list(result.colors)})
        return result

    def _sync_alignment(self, shown: Optional[List[str]] = None) -> None:
        # Positions past ``shown`` (or a baseline captured late) fall back to the baseline color
        source = self._aligned if shown is None else shown
        self._aligned = [source[i] if i < len(source) else color for i, color in enumerate(self.baseline_colors)]

    def _remap_aligned(self, old: str, new: str) -> None:
        key = normalize_color(old).lower()
        replacement = normalize_color(new)
        self._aligned = [replacement if normalize_color(c).lower() == key else c for c in self._aligned]

    def _variant_alignment(self, name: str) -> None:
        profile = self._store.get_profile(self.icon_name)
        variant = profile.find_variant(name) if profile else None
        self._sync_alignment(list(variant.colors) if variant else self.baseline_colors)

    def _baseline_for(self, color: str) -> str:
        # Map an on-screen color back to the baseline color at the same position
        key = normalize_color(color).lower()
        baseline = self.baseline_colors
        for idx, shown in enumerate(self._aligned):
            if normalize_color(shown).lower() == key:
                return baseline[idx]
        return normalize_color(color)

    # ------------------------------------------------------------------
    # Color handlers
    # ------------------------------------------------------------------
    def preview_color(self, old: Optional[str], new: Optional[str]) -> EditResult:
        if not old or not new:
            return self._unchanged("preview_color without colors")
        preview = replace_color(self._markup, old, new)
        result = self._result(preview)
        self._bus.publish(EngineEvent.PREVIEW_UPDATED, {"icon": self.icon_name, "svg": preview})
        return result

    def commit_color(self, old: Optional[str], new: Optional[str], original: Optional[str] = None) -> EditResult:
        if not old or not new:
            return self._unchanged("commit_color without colors")
        self._store.set_color_mapping(self.icon_name, original or self._baseline_for(old), new)
        self._remap_aligned(old, new)
        return self._commit_markup(replace_color(self._markup, old, new), EditState.custom())

    def replace_current_color_keyword(self, color: Optional[str]) -> EditResult:
        if not color:
            return self._unchanged("replace_current_color_keyword without color")
        updated = replace_color(self._markup, Marker.CURRENT_COLOR.value, color)
        self._remap_aligned(Marker.CURRENT_COLOR.value, color)
        return self._commit_markup(updated, EditState.custom())

    def add_fill_color(self, color: Optional[str]) -> EditResult:
        if not color:
            return self._unchanged("add_fill_color without color")
        result = self._commit_markup(add_fill_to_shapes(self._markup, color), EditState.custom())
        # An icon without any colors gets its baseline on first fill
        self._store.ensure_profile(self.icon_name, self._markup)
        self._sync_alignment()
        return result

    def add_root_color(self, color: Optional[str]) -> EditResult:
        if not color:
            return self._unchanged("add_root_color without color")
        result = self._commit_markup(set_root_fill(self._markup, color), EditState.custom())
        self._store.ensure_profile(self.icon_name, self._markup)
        self._sync_alignment()
        return result

    # ------------------------------------------------------------------
    # Filter handlers
    # ------------------------------------------------------------------
    def preview_filter(
        self, hue: Any = 0, saturation: Any = 100, brightness: Any = 100
    ) -> EditResult:
        settings = FilterSettings.coerce(hue, saturation, brightness)
        preview = self._store.apply_filter(self.icon_name, settings, self._markup, self._aligned)
        self._set_state(EditState.filter_pending(settings))
        result = self._result(preview)
        self._bus.publish(EngineEvent.FILTER_PREVIEWED, result.to_dict())
        return result

    def apply_filter(self, hue: Any = 0, saturation: Any = 100, brightness: Any = 100) -> EditResult:
        settings = FilterSettings.coerce(hue, saturation, brightness)
        baseline = self.baseline_colors
        if not baseline:
            return self._unchanged("apply_filter without baseline colors")
        targets = self._store.filtered_colors(self.icon_name, settings)
        for original, filtered in zip(baseline, targets):
            self._store.set_color_mapping(self.icon_name, original, filtered)
        updated = self._store.apply_filter(self.icon_name, settings, self._markup, self._aligned)
        self._sync_alignment(targets)
        self._applied_filter = settings
        return self._commit_markup(updated, EditState.custom())

    # ------------------------------------------------------------------
    # Variant handlers
    # ------------------------------------------------------------------
    def _publish_variants(self) -> None:
        self._bus.publish(
            EngineEvent.VARIANTS_CHANGED,
            {
                "icon": self.icon_name,
                "variants": [v.to_dict() for v in self._store.get_saved_variants(self.icon_name)],
                "default_variant": self._store.get_default_variant(self.icon_name),
            },
        )

    def save_variant(self, name: Optional[str]) -> EditResult:
        if not name:
            return self._unchanged("save_variant without name")
        self._store.save_variant(self.icon_name, name, self._aligned)
        self._set_state(EditState.applied(name))
        self._publish_variants()
        return self._result()

    def _variant_name_at(self, index: Any) -> Optional[str]:
        variants = self._store.get_saved_variants(self.icon_name)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(variants):
            return None
        return variants[index].name

    def apply_variant(self, index: Any) -> EditResult:
        name = self._variant_name_at(index)
        if name is None:
            return self._unchanged(f"apply_variant: no variant at {index!r}")
        updated = self._store.apply_variant(self.icon_name, name, self._markup, self._aligned)
        self._variant_alignment(name)
        return self._commit_markup(updated, EditState.applied(name))

    def apply_baseline(self) -> EditResult:
        updated = self._store.apply_baseline(self.icon_name, self._markup, self._aligned)
        self._sync_alignment(self.baseline_colors)
        return self._commit_markup(updated, EditState.baseline())

    def generate_auto_variant(self, kind: Optional[str]) -> EditResult:
        baseline = self.baseline_colors
        if not kind or not baseline:
            return self._unchanged("generate_auto_variant without kind or colors")
        try:
            generated = generate_auto_variant(baseline, kind)
        except ValueError:
            return self._unchanged(f"generate_auto_variant: unknown kind {kind!r}")
        existing = [v.name for v in self._store.get_saved_variants(self.icon_name)]
        name = unique_variant_name(generated.name, existing)
        self._store.save_variant(self.icon_name, name, generated.colors)
        self._publish_variants()
        updated = self._store.apply_variant(self.icon_name, name, self._markup, self._aligned)
        self._variant_alignment(name)
        return self._commit_markup(updated, EditState.applied(name))

    def delete_variant(self, index: Any) -> EditResult:
        name = self._variant_name_at(index)
        if name is None:
            return self._unchanged(f"delete_variant: no variant at {index!r}")
        had_default = self._store.get_default_variant(self.icon_name) == name
        self._store.delete_variant(self.icon_name, index)
        if self._state.variant_name == name:
            self._set_state(EditState.custom())
        if had_default:
            self._bus.publish(EngineEvent.DEFAULT_VARIANT_CHANGED, {"icon": self.icon_name, "default_variant": None})
        self._publish_variants()
        return self._result()

    def set_default_variant(self, name: Optional[str]) -> EditResult:
        if not self._store.set_default_variant(self.icon_name, name or None):
            return self._unchanged(f"set_default_variant: unknown variant {name!r}")
        self._bus.publish(
            EngineEvent.DEFAULT_VARIANT_CHANGED, {"icon": self.icon_name, "default_variant": name or None}
        )
        return self._result()

    def rename_variant(self, index: Any, new_name: Optional[str]) -> EditResult:
        old_name = self._variant_name_at(index)
        if old_name is None or not new_name:
            return self._unchanged(f"rename_variant: nothing to rename at {index!r}")
        if not self._store.rename_variant(self.icon_name, index, new_name):
            return self._unchanged(f"rename_variant: {new_name!r} rejected")
        if self._state.variant_name == old_name:
            self._set_state(EditState.applied(new_name))
        self._publish_variants()
        return self._result()

    # ------------------------------------------------------------------
    # Host entry points
    # ------------------------------------------------------------------
    def dispatch(self, message: Mapping[str, Any]) -> Optional[EditResult]:
        """Route an editor-surface command dict; unknown commands return None."""
        handler = self._handlers.get(str(message.get("command", "")))
        if handler is None:
            _log.debug("Ignoring unknown editor command %r", message.get("command"))
            return None
        return handler(message)

    def flush(self) -> bool:
        return self._store.flush()


def _filter_args(message: Mapping[str, Any]) -> Dict[str, Any]:
    raw = message.get("filters") or {}
    return {
        "hue": raw.get("hue", 0),
        "saturation": raw.get("saturation", 100),
        "brightness": raw.get("brightness", 100),
    }
