"""Format-preserving color scanning and rewriting on raw SVG text.

The markup is never parsed into a tree: edits must leave whitespace, comments,
quoting and attribute order exactly as the author wrote them so hand-kept
sources stay diff friendly. Instead we locate *color slots*:

 - ``fill=``, ``stroke=`` and ``stop-color=`` attributes
 - ``fill:``, ``stroke:`` and ``stop-color:`` declarations inside ``style=``

Only attributes of start tags are considered. Comments and CDATA sections
are masked before scanning, so text content (``<title>fill="red"</title>``)
is never reported or rewritten.

Every slot carries its absolute offsets in the markup; rewrites substitute
just the color token and rebuild the string in one pass. That makes batch
mappings simultaneous (A->B together with B->A swaps correctly).

Public API:
 - extract_colors(svg) -> list[ColorEntry]
 - extract_palette(svg) / editable_palette(svg) -> list[str]
 - replace_color(svg, old, new, kind=None) -> str
 - apply_color_mapping(svg, mapping, kind=None) -> str
 - has_current_color(svg) / has_smil_animation(svg) -> bool
 - add_fill_to_shapes(svg, color) / set_root_fill(svg, color) -> str
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from domain.models import AttributeKind, ColorEntry
from iconstudio.engine.color_parsing import Marker, normalize_color

__all__ = [
    "ColorSlot",
    "iter_color_slots",
    "extract_colors",
    "extract_palette",
    "editable_palette",
    "replace_color",
    "apply_color_mapping",
    "has_current_color",
    "has_smil_animation",
    "add_fill_to_shapes",
    "set_root_fill",
]

_log = logging.getLogger(__name__)

_MASKED_SECTION = re.compile(r"<!--.*?-->|<!\[CDATA\[.*?\]\]>", re.DOTALL)
_START_TAG = re.compile(r"""<([A-Za-z][^\s/<>"']*)((?:[^<>"']|"[^"]*"|'[^']*')*)>""")
_ATTRIBUTE = re.compile(r"""([^\s=/<>"']+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")
_DECLARATION = re.compile(r"(?<![\w-])(fill|stroke|stop-color)(\s*:\s*)([^;!]*[^;!\s])", re.IGNORECASE)
_SMIL_TAG = re.compile(r"<animate(?:Transform|Motion)?\b", re.IGNORECASE)
_NEAR_BLACK = re.compile(r"#0[0-2][0-2][0-2][0-2][0-2]")

_ATTRIBUTE_KINDS: Dict[str, AttributeKind] = {
    "fill": AttributeKind.FILL,
    "stroke": AttributeKind.STROKE,
    "stop-color": AttributeKind.STOP_COLOR,
}
_SHAPE_TAGS = frozenset({"path", "circle", "rect", "ellipse", "polygon", "polyline"})
_DISCARDED = frozenset({Marker.NONE.value, Marker.TRANSPARENT.value})


@dataclass(frozen=True)
class ColorSlot:
    """One color token in the markup with its absolute [start, end) offsets."""

    kind: AttributeKind
    start: int
    end: int
    value: str


@dataclass(frozen=True)
class _Tag:
    name: str
    start: int
    end: int
    attrs_start: int
    attrs: Tuple[Tuple[str, int, int, str], ...]  # (lower name, value start, value end, value)


def _mask(svg: str) -> str:
    # Same length as the input so offsets stay valid
    return _MASKED_SECTION.sub(lambda m: " " * len(m.group(0)), svg)


def _iter_tags(svg: str) -> Iterator[_Tag]:
    masked = _mask(svg)
    for tag in _START_TAG.finditer(masked):
        base = tag.start(2)
        attrs = []
        for attr in _ATTRIBUTE.finditer(tag.group(2)):
            raw = attr.group(2)
            if raw is None:
                continue
            start = base + attr.start(2)
            end = base + attr.end(2)
            if raw[:1] in ("'", '"'):
                start += 1
                end -= 1
                raw = raw[1:-1]
            attrs.append((attr.group(1).lower(), start, end, raw))
        yield _Tag(tag.group(1), tag.start(), tag.end(), base, tuple(attrs))


def iter_color_slots(svg: str) -> Iterator[ColorSlot]:
    """Yield every color slot in document order."""
    for tag in _iter_tags(svg):
        for name, start, _end, raw in tag.attrs:
            if name == "style":
                for decl in _DECLARATION.finditer(raw):
                    yield ColorSlot(AttributeKind.STYLE, start + decl.start(3), start + decl.end(3), decl.group(3))
                continue
            kind = _ATTRIBUTE_KINDS.get(name)
            if kind is None:
                continue
            value = raw.strip()
            if not value:
                continue
            lead = len(raw) - len(raw.lstrip())
            yield ColorSlot(kind, start + lead, start + lead + len(value), value)


def _is_paint_server(value: str) -> bool:
    return value.lower().startswith("url(")


def extract_colors(svg: str) -> List[ColorEntry]:
    """Ordered, de-duplicated color inventory keyed by (color, kind)."""
    entries: Dict[Tuple[str, AttributeKind], ColorEntry] = {}
    for slot in iter_color_slots(svg):
        if _is_paint_server(slot.value):
            continue
        color = normalize_color(slot.value)
        if color in _DISCARDED:
            continue
        key = (color, slot.kind)
        entry = entries.get(key)
        if entry is None:
            entries[key] = ColorEntry(color=color, kind=slot.kind, count=1, original=slot.value)
        else:
            entry.count += 1
    return list(entries.values())


def extract_palette(svg: str) -> List[str]:
    """Unique canonical colors across all kinds in first-seen order."""
    seen: Dict[str, None] = {}
    for entry in extract_colors(svg):
        seen.setdefault(entry.color, None)
    return list(seen)


def has_smil_animation(svg: str) -> bool:
    return bool(_SMIL_TAG.search(_mask(svg)))


def editable_palette(svg: str) -> List[str]:
    """Palette shown to the user.

    Animated (SMIL) icons often carry black helper colors used only by the
    animation; those are hidden when at least one other color remains.
    """
    palette = extract_palette(svg)
    if len(palette) <= 1 or not has_smil_animation(svg):
        return palette
    primary = [
        c for c in palette if c == Marker.CURRENT_COLOR.value or not _NEAR_BLACK.fullmatch(c)
    ]
    return primary or palette


def has_current_color(svg: str) -> bool:
    return any(slot.value.lower() == "currentcolor" for slot in iter_color_slots(svg))


def _rewrite(svg: str, edits: List[Tuple[int, int, str]]) -> str:
    if not edits:
        return svg
    parts: List[str] = []
    cursor = 0
    for start, end, text in edits:
        parts.append(svg[cursor:start])
        parts.append(text)
        cursor = end
    parts.append(svg[cursor:])
    return "".join(parts)


def _matches_kind(slot: ColorSlot, kind: Optional[AttributeKind]) -> bool:
    return kind is None or slot.kind == AttributeKind(kind)


def replace_color(svg: str, old: str, new: str, kind: Optional[AttributeKind] = None) -> str:
    """Replace one color everywhere it occurs (optionally in one attribute class).

    A slot matches when its normalized value equals the normalized ``old``
    or its literal spelling equals ``old`` (both case-insensitive).
    """
    old_norm = normalize_color(old).lower()
    old_literal = old.strip().lower()
    replacement = new.strip()
    edits = []
    for slot in iter_color_slots(svg):
        if not _matches_kind(slot, kind):
            continue
        literal = slot.value.lower()
        if literal == old_literal or normalize_color(slot.value).lower() == old_norm:
            edits.append((slot.start, slot.end, replacement))
    if not edits:
        _log.debug("replace_color: %r not found", old)
    return _rewrite(svg, edits)


def apply_color_mapping(
    svg: str, mapping: Mapping[str, str], kind: Optional[AttributeKind] = None
) -> str:
    """Apply several old -> new substitutions simultaneously.

    Each slot is looked up once against the original markup, so chained or
    swapped mappings never feed into each other.
    """
    lookup: Dict[str, str] = {}
    for old, new in mapping.items():
        key = normalize_color(old).lower()
        if key != normalize_color(new).lower():
            lookup[key] = new.strip()
    if not lookup:
        return svg
    edits = []
    for slot in iter_color_slots(svg):
        if not _matches_kind(slot, kind):
            continue
        new = lookup.get(normalize_color(slot.value).lower())
        if new is None:
            new = lookup.get(slot.value.lower())
        if new is not None:
            edits.append((slot.start, slot.end, new))
    return _rewrite(svg, edits)


def _has_fill(tag: _Tag) -> bool:
    for name, _start, _end, raw in tag.attrs:
        if name == "fill":
            return True
        if name == "style" and any(d.group(1).lower() == "fill" for d in _DECLARATION.finditer(raw)):
            return True
    return False


def add_fill_to_shapes(svg: str, color: str) -> str:
    """Give every basic shape without a fill an explicit ``fill`` attribute."""
    edits = []
    for tag in _iter_tags(svg):
        if tag.name.lower() not in _SHAPE_TAGS or _has_fill(tag):
            continue
        edits.append((tag.attrs_start, tag.attrs_start, f' fill="{color}"'))
    return _rewrite(svg, edits)


def set_root_fill(svg: str, color: str) -> str:
    """Set ``fill`` on the root ``<svg>`` element, replacing an existing value."""
    for tag in _iter_tags(svg):
        if tag.name.lower() != "svg":
            continue
        for name, start, end, _raw in tag.attrs:
            if name == "fill":
                return _rewrite(svg, [(start, end, color)])
        return _rewrite(svg, [(tag.attrs_start, tag.attrs_start, f' fill="{color}"')])
    _log.debug("set_root_fill: no <svg> element")
    return svg
