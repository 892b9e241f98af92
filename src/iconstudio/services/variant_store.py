"""Per-icon color profiles: baseline palette, named variants, default pointer.

Profiles are read once from the persistence collaborator on first use and kept
in memory. Mutations only mark the store dirty; nothing is written until the
caller invokes :meth:`VariantStore.flush`. Two sessions flushing the same file
resolve as last-flush-wins.

Variant colors are positional: ``variant.colors[i]`` recolors
``baseline_colors[i]``. Lists of different length only touch their shared
prefix.

Applying a variant is two-phase so it does not matter what the markup
currently shows:

 1. restore: the current palette, position by position, maps back onto the
    baseline palette. Editor sessions pass the palette they keep aligned to
    the baseline; without it the markup palette in first-seen order is used,
    which is only correct while no colors were added to the markup
 2. recolor: baseline colors map onto the variant colors

Both phases are simultaneous substitutions, so applying the same variant
twice gives the same markup as applying it once.

Unknown icons, missing variants and out-of-range indexes are no-ops logged at
DEBUG; the store never raises for them. I/O errors from ``flush`` propagate.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from domain.models import FilterSettings, IconColorProfile, Variant
from iconstudio.engine.color_parsing import normalize_color
from iconstudio.engine.markup_scanner import apply_color_mapping, extract_palette
from iconstudio.engine.matrix_filter import filter_colors

from .event_bus import EngineEvent, EventBus
from .profile_persistence import ProfileDocumentStore

__all__ = ["VariantStore"]

_log = logging.getLogger(__name__)


def _canonical(colors: Sequence[str]) -> List[str]:
    return [normalize_color(c) for c in colors]


def _positional_mapping(source: Sequence[str], target: Sequence[str]) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for old, new in zip(source, target):
        mapping.setdefault(old, new)
    return mapping


class VariantStore:
    """In-memory profile map with explicit flush."""

    def __init__(
        self,
        persistence: Optional[ProfileDocumentStore] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._persistence = persistence
        self._bus = bus
        self._profiles: Optional[Dict[str, IconColorProfile]] = None
        self._dirty = False

    # ------------------------------------------------------------------
    # Loading / persistence
    # ------------------------------------------------------------------
    @property
    def profiles(self) -> Dict[str, IconColorProfile]:
        if self._profiles is None:
            self._profiles = self._persistence.load() if self._persistence else {}
            _log.debug("Loaded %d icon profiles", len(self._profiles))
        return self._profiles

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    def _touch(self) -> None:
        self._dirty = True

    def flush(self) -> bool:
        """Write every profile through the persistence collaborator.

        Returns False when the store has no persistence attached.
        """
        if self._persistence is None:
            _log.debug("flush: no persistence configured")
            return False
        path = self._persistence.save(self.profiles)
        self._dirty = False
        if self._bus is not None:
            self._bus.publish(EngineEvent.PROFILES_FLUSHED, {"path": str(path), "icons": len(self.profiles)})
        return True

    def reload(self) -> None:
        """Drop in-memory state (including unsaved edits) and re-read on next use."""
        self._profiles = None
        self._dirty = False

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def icon_names(self) -> List[str]:
        return list(self.profiles)

    def get_profile(self, icon: str) -> Optional[IconColorProfile]:
        return self.profiles.get(icon)

    def _profile_or_log(self, icon: str, action: str) -> Optional[IconColorProfile]:
        profile = self.profiles.get(icon)
        if profile is None:
            _log.debug("%s: unknown icon %r", action, icon)
        return profile

    def _lazy_profile(self, icon: str) -> IconColorProfile:
        profile = self.profiles.get(icon)
        if profile is None:
            profile = IconColorProfile(icon_name=icon)
            self.profiles[icon] = profile
            self._touch()
        return profile

    def ensure_profile(self, icon: str, markup: str) -> IconColorProfile:
        """Return the icon's profile, capturing the baseline on first observation."""
        profile = self._lazy_profile(icon)
        if not profile.baseline_colors:
            palette = extract_palette(markup)
            if palette:
                profile.baseline_colors = palette
                self._touch()
                _log.debug("Captured baseline for %s: %s", icon, palette)
        return profile

    def reset_baseline(self, icon: str, markup: str) -> IconColorProfile:
        """Re-capture the baseline from ``markup``; committed mappings are dropped."""
        profile = self._lazy_profile(icon)
        profile.baseline_colors = extract_palette(markup)
        profile.color_mapping.clear()
        self._touch()
        return profile

    def remove_icon(self, icon: str) -> bool:
        if self.profiles.pop(icon, None) is None:
            _log.debug("remove_icon: unknown icon %r", icon)
            return False
        self._touch()
        return True

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------
    def get_saved_variants(self, icon: str) -> List[Variant]:
        profile = self.profiles.get(icon)
        if profile is None:
            return []
        return [Variant(v.name, list(v.colors), v.is_primary) for v in profile.variants]

    def get_default_variant(self, icon: str) -> Optional[str]:
        profile = self.profiles.get(icon)
        return profile.default_variant if profile else None

    def save_variant(self, icon: str, name: str, colors: Sequence[str]) -> Variant:
        """Insert or overwrite the variant called ``name``."""
        profile = self._lazy_profile(icon)
        existing = profile.find_variant(name)
        if existing is not None:
            existing.colors = _canonical(colors)
            variant = existing
        else:
            variant = Variant(name=name, colors=_canonical(colors))
            profile.variants.append(variant)
        self._touch()
        return variant

    def delete_variant(self, icon: str, index: int) -> Optional[Variant]:
        profile = self._profile_or_log(icon, "delete_variant")
        if profile is None:
            return None
        if not 0 <= index < len(profile.variants):
            _log.debug("delete_variant: index %s out of range for %s", index, icon)
            return None
        removed = profile.variants.pop(index)
        if profile.default_variant == removed.name:
            profile.default_variant = None
        self._touch()
        return removed

    def rename_variant(self, icon: str, index: int, new_name: str) -> bool:
        profile = self._profile_or_log(icon, "rename_variant")
        if profile is None:
            return False
        if not 0 <= index < len(profile.variants):
            _log.debug("rename_variant: index %s out of range for %s", index, icon)
            return False
        variant = profile.variants[index]
        if new_name == variant.name:
            return True
        if not new_name or profile.find_variant(new_name) is not None:
            _log.debug("rename_variant: name %r unavailable for %s", new_name, icon)
            return False
        if profile.default_variant == variant.name:
            profile.default_variant = new_name
        variant.name = new_name
        self._touch()
        return True

    def update_variant_colors(self, icon: str, index: int, colors: Sequence[str]) -> bool:
        profile = self._profile_or_log(icon, "update_variant_colors")
        if profile is None:
            return False
        if not 0 <= index < len(profile.variants):
            _log.debug("update_variant_colors: index %s out of range for %s", index, icon)
            return False
        profile.variants[index].colors = _canonical(colors)
        self._touch()
        return True

    def set_default_variant(self, icon: str, name: Optional[str]) -> bool:
        """Point the default at ``name``; ``None`` means baseline."""
        profile = self._profile_or_log(icon, "set_default_variant")
        if profile is None:
            return False
        if name is not None and profile.find_variant(name) is None:
            _log.debug("set_default_variant: no variant %r for %s", name, icon)
            return False
        if profile.default_variant != name:
            profile.default_variant = name
            self._touch()
        return True

    # ------------------------------------------------------------------
    # Committed color mapping
    # ------------------------------------------------------------------
    def get_color_mapping(self, icon: str) -> Dict[str, str]:
        profile = self.profiles.get(icon)
        return dict(profile.color_mapping) if profile else {}

    def set_color_mapping(self, icon: str, original: str, new: str) -> None:
        """Record ``original -> new``; mapping a color to itself removes the entry."""
        key = normalize_color(original)
        value = normalize_color(new)
        if key.lower() == value.lower():
            profile = self.profiles.get(icon)
            if profile is not None and profile.color_mapping.pop(key, None) is not None:
                self._touch()
            return
        self._lazy_profile(icon).color_mapping[key] = value
        self._touch()

    def clear_color_mappings(self, icon: str) -> None:
        profile = self.profiles.get(icon)
        if profile is not None and profile.color_mapping:
            profile.color_mapping.clear()
            self._touch()

    # ------------------------------------------------------------------
    # Markup transforms
    # ------------------------------------------------------------------
    def _restore(self, profile: IconColorProfile, markup: str, current: Optional[Sequence[str]] = None) -> str:
        palette = list(current) if current is not None else extract_palette(markup)
        return apply_color_mapping(markup, _positional_mapping(palette, profile.baseline_colors))

    def apply_baseline(self, icon: str, markup: str, current: Optional[Sequence[str]] = None) -> str:
        profile = self._profile_or_log(icon, "apply_baseline")
        if profile is None or not profile.baseline_colors:
            return markup
        return self._restore(profile, markup, current)

    def apply_variant(
        self, icon: str, name: str, markup: str, current: Optional[Sequence[str]] = None
    ) -> str:
        profile = self._profile_or_log(icon, "apply_variant")
        if profile is None:
            return markup
        variant = profile.find_variant(name)
        if variant is None:
            _log.debug("apply_variant: no variant %r for %s", name, icon)
            return markup
        restored = self._restore(profile, markup, current)
        return apply_color_mapping(restored, _positional_mapping(profile.baseline_colors, variant.colors))

    def filtered_colors(self, icon: str, settings: FilterSettings) -> List[str]:
        """Baseline colors run through the filter pipeline."""
        profile = self.profiles.get(icon)
        if profile is None:
            return []
        return filter_colors(profile.baseline_colors, settings)

    def apply_filter(
        self, icon: str, settings: FilterSettings, markup: str, current: Optional[Sequence[str]] = None
    ) -> str:
        """Recolor ``markup`` as baseline + filter.

        The filter is always computed from the baseline palette, never from
        whatever the markup currently shows, so it cannot be applied twice.
        """
        profile = self._profile_or_log(icon, "apply_filter")
        if profile is None or not profile.baseline_colors:
            return markup
        restored = self._restore(profile, markup, current)
        targets = filter_colors(profile.baseline_colors, settings)
        return apply_color_mapping(restored, _positional_mapping(profile.baseline_colors, targets))

    def render_final(self, icon: str, markup: str) -> str:
        """Final markup for export: default variant if set, else committed mapping."""
        profile = self.profiles.get(icon)
        if profile is None:
            return markup
        if profile.default_variant:
            return self.apply_variant(icon, profile.default_variant, markup)
        if profile.color_mapping:
            return apply_color_mapping(markup, profile.color_mapping)
        return markup
