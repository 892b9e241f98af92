from domain.models import AttributeKind
from iconstudio.engine.markup_scanner import (
    add_fill_to_shapes,
    apply_color_mapping,
    editable_palette,
    extract_colors,
    extract_palette,
    has_current_color,
    has_smil_animation,
    iter_color_slots,
    replace_color,
    set_root_fill,
)

MIXED_SVG = (
    '<svg viewBox="0 0 10 10">'
    '<path fill="#F00" d="M0 0"/>'
    "<circle fill='red' r=\"1\"/>"
    '<rect stroke="#00f" width="1"/>'
    '<g style="fill: #0f0; stroke:#F00 !important"/>'
    "</svg>"
)


def test_none_is_excluded_and_short_hex_normalized():
    entries = extract_colors('<svg fill="none"><path fill="#000"/></svg>')
    assert len(entries) == 1
    assert entries[0].color == "#000000"
    assert entries[0].kind == AttributeKind.FILL
    assert entries[0].original == "#000"


def test_entries_are_ordered_counted_and_split_by_kind():
    entries = extract_colors(MIXED_SVG)
    assert [(e.color, e.kind, e.count) for e in entries] == [
        ("#ff0000", AttributeKind.FILL, 2),
        ("#0000ff", AttributeKind.STROKE, 1),
        ("#00ff00", AttributeKind.STYLE, 1),
        ("#ff0000", AttributeKind.STYLE, 1),
    ]
    assert entries[0].original == "#F00"


def test_fill_and_stroke_of_same_color_are_distinct():
    entries = extract_colors('<path fill="#123456" stroke="#123456"/>')
    assert [(e.color, e.kind) for e in entries] == [
        ("#123456", AttributeKind.FILL),
        ("#123456", AttributeKind.STROKE),
    ]


def test_paint_servers_transparent_and_lookalike_attributes_are_ignored():
    svg = (
        '<svg><linearGradient id="g"><stop stop-color="#abcdef" offset="0"/></linearGradient>'
        '<path fill="url(#g)" stroke="transparent" data-fill="#111111" fill-opacity="0.5"/>'
        '<stop style="stop-color:#fedcba"/></svg>'
    )
    entries = extract_colors(svg)
    assert [(e.color, e.kind) for e in entries] == [
        ("#abcdef", AttributeKind.STOP_COLOR),
        ("#fedcba", AttributeKind.STYLE),
    ]


def test_comments_cdata_and_text_are_not_scanned():
    svg = (
        "<svg><title>fill=\"red\"</title>"
        '<!-- <path fill="#123456"/> -->'
        '<style><![CDATA[ <a fill="#654321"/> ]]></style>'
        '<path fill="#00ff00"/></svg>'
    )
    assert extract_palette(svg) == ["#00ff00"]
    rewritten = replace_color(svg, "#123456", "#000000")
    assert rewritten == svg


def test_opaque_tokens_are_kept_and_do_not_abort_scan():
    svg = '<svg><path fill="#zzz"/><path fill="var(--brand)"/><path fill="#ff0000"/></svg>'
    assert extract_palette(svg) == ["#zzz", "var(--brand)", "#ff0000"]
    out = replace_color(svg, "#ff0000", "#00ff00")
    assert out == '<svg><path fill="#zzz"/><path fill="var(--brand)"/><path fill="#00ff00"/></svg>'
    out = replace_color(svg, "var(--brand)", "#000000")
    assert 'fill="#000000"' in out


def test_replace_preserves_quoting_and_spacing():
    svg = "<path fill = ' #F00 ' d=\"M0\"/>"
    assert replace_color(svg, "#ff0000", "#00ff00") == "<path fill = ' #00ff00 ' d=\"M0\"/>"


def test_replace_matches_literal_case_insensitively():
    svg = '<path fill="RED"/><path fill="#ff0000"/>'
    assert replace_color(svg, "red", "#0000ff") == '<path fill="#0000ff"/><path fill="#0000ff"/>'


def test_replace_can_target_one_attribute_class():
    svg = '<path fill="#ff0000" stroke="#ff0000" style="fill:#ff0000"/>'
    out = replace_color(svg, "#ff0000", "#000000", AttributeKind.STROKE)
    assert out == '<path fill="#ff0000" stroke="#000000" style="fill:#ff0000"/>'
    out = replace_color(svg, "#ff0000", "#000000", "style")
    assert out == '<path fill="#ff0000" stroke="#ff0000" style="fill:#000000"/>'


def test_style_declaration_keeps_important_flag():
    out = replace_color(MIXED_SVG, "#ff0000", "#111111", AttributeKind.STYLE)
    assert "stroke:#111111 !important" in out
    assert '<path fill="#F00"' in out


def test_mapping_swaps_colors_in_one_pass():
    svg = '<path fill="#ff0000"/><path fill="#0000ff"/>'
    out = apply_color_mapping(svg, {"#ff0000": "#0000ff", "#00f": "#ff0000"})
    assert out == '<path fill="#0000ff"/><path fill="#ff0000"/>'


def test_mapping_ignores_identity_entries():
    svg = '<path fill="#F00"/>'
    assert apply_color_mapping(svg, {"#ff0000": "#F00"}) == svg


def test_replacing_first_entry_keeps_other_counts():
    before = extract_colors(MIXED_SVG)
    out = replace_color(MIXED_SVG, before[0].color, "#abcdef", before[0].kind)
    after = extract_colors(out)
    assert after[0].color == "#abcdef"
    assert after[0].count == before[0].count
    assert [(e.color, e.count) for e in after[1:]] == [(e.color, e.count) for e in before[1:]]


def test_palette_is_unique_across_kinds():
    assert extract_palette(MIXED_SVG) == ["#ff0000", "#0000ff", "#00ff00"]


def test_editable_palette_hides_smil_helper_blacks():
    animated = (
        '<svg><path fill="#ff0000"/><path fill="#010101">'
        '<animate attributeName="opacity" values="0;1"/></path></svg>'
    )
    assert has_smil_animation(animated)
    assert editable_palette(animated) == ["#ff0000"]
    static = animated.replace("<animate", "<desc").replace("/></path>", "></desc></path>")
    assert not has_smil_animation(static)
    assert editable_palette(static) == ["#ff0000", "#010101"]
    only_black = '<svg><path fill="#000"/><animateTransform type="rotate"/></svg>'
    assert editable_palette(only_black) == ["#000000"]


def test_current_color_detection():
    assert has_current_color('<path fill="currentcolor"/>')
    assert not has_current_color('<path fill="#000"/>')
    assert extract_palette('<path stroke="currentColor"/>') == ["currentColor"]


def test_add_fill_only_to_shapes_without_fill():
    svg = '<svg><path d="M0"/><circle fill="#000" r="1"/><rect style="fill:red"/><polygon/><g/></svg>'
    out = add_fill_to_shapes(svg, "#123456")
    assert out == (
        '<svg><path fill="#123456" d="M0"/><circle fill="#000" r="1"/>'
        '<rect style="fill:red"/><polygon fill="#123456"/><g/></svg>'
    )


def test_set_root_fill_inserts_or_replaces():
    assert set_root_fill('<svg viewBox="0 0 1 1"><path/></svg>', "#123456") == (
        '<svg fill="#123456" viewBox="0 0 1 1"><path/></svg>'
    )
    assert set_root_fill('<svg fill="none" x="1"><path fill="#000"/></svg>', "#123456") == (
        '<svg fill="#123456" x="1"><path fill="#000"/></svg>'
    )
    assert set_root_fill("<path/>", "#123456") == "<path/>"


def test_slots_report_absolute_offsets():
    svg = '<svg><path fill="#abc"/></svg>'
    (slot,) = list(iter_color_slots(svg))
    assert svg[slot.start : slot.end] == "#abc"


def test_overflowing_token_does_not_abort_scan_or_replace():
    svg = '<svg><path fill="rgb(1e999,0,0)"/><path fill="#ff0000"/></svg>'
    assert extract_palette(svg) == ["rgb(1e999,0,0)", "#ff0000"]
    out = replace_color(svg, "#ff0000", "#00ff00")
    assert out == '<svg><path fill="rgb(1e999,0,0)"/><path fill="#00ff00"/></svg>'
