import pytest

from domain.models import FilterSettings
from iconstudio.engine.markup_scanner import extract_palette
from iconstudio.services.event_bus import EngineEvent, EventBus
from iconstudio.services.profile_persistence import ProfileDocumentStore
from iconstudio.services.variant_store import VariantStore


def test_default_variant_reverts_when_deleted(memory_store):
    store = memory_store
    store.save_variant("home", "dark", ["#111111"])
    assert store.set_default_variant("home", "dark")
    assert store.get_default_variant("home") == "dark"
    removed = store.delete_variant("home", 0)
    assert removed is not None and removed.name == "dark"
    assert store.get_default_variant("home") is None


def test_save_variant_upserts_by_name(memory_store):
    memory_store.save_variant("home", "dark", ["#111"])
    memory_store.save_variant("home", "light", ["#eee"])
    memory_store.save_variant("home", "dark", ["#222"])
    variants = memory_store.get_saved_variants("home")
    assert [(v.name, v.colors) for v in variants] == [("dark", ["#222222"]), ("light", ["#eeeeee"])]


def test_unknown_icon_and_bad_index_are_noops(memory_store):
    assert memory_store.get_saved_variants("ghost") == []
    assert memory_store.get_default_variant("ghost") is None
    assert memory_store.delete_variant("ghost", 0) is None
    assert memory_store.apply_variant("ghost", "x", "<svg/>") == "<svg/>"
    memory_store.save_variant("home", "dark", ["#111111"])
    assert memory_store.delete_variant("home", 5) is None
    assert memory_store.delete_variant("home", -1) is None
    assert not memory_store.set_default_variant("home", "missing")
    assert not memory_store.rename_variant("home", 3, "x")
    assert not memory_store.update_variant_colors("home", 3, ["#000"])
    assert len(memory_store.get_saved_variants("home")) == 1


def test_baseline_captured_once(memory_store, two_tone_svg):
    profile = memory_store.ensure_profile("icon", two_tone_svg)
    assert profile.baseline_colors == ["#ff0000", "#0000ff"]
    memory_store.ensure_profile("icon", '<path fill="#123456"/>')
    assert memory_store.get_profile("icon").baseline_colors == ["#ff0000", "#0000ff"]
    memory_store.reset_baseline("icon", '<path fill="#123456"/>')
    assert memory_store.get_profile("icon").baseline_colors == ["#123456"]


def test_apply_variant_is_idempotent(memory_store, two_tone_svg):
    memory_store.ensure_profile("icon", two_tone_svg)
    memory_store.save_variant("icon", "night", ["#111111", "#222222"])
    once = memory_store.apply_variant("icon", "night", two_tone_svg)
    twice = memory_store.apply_variant("icon", "night", once)
    assert once == twice
    assert extract_palette(once) == ["#111111", "#222222"]
    assert "stroke='#222222'" in once


def test_apply_variant_restores_before_recoloring(memory_store, two_tone_svg):
    memory_store.ensure_profile("icon", two_tone_svg)
    memory_store.save_variant("icon", "night", ["#111111", "#222222"])
    memory_store.save_variant("icon", "day", ["#eeeeee"])
    night = memory_store.apply_variant("icon", "night", two_tone_svg)
    day = memory_store.apply_variant("icon", "day", night)
    # shorter variant only remaps the shared prefix
    assert extract_palette(day) == ["#eeeeee", "#0000ff"]
    assert memory_store.apply_baseline("icon", two_tone_svg) == two_tone_svg
    assert extract_palette(memory_store.apply_baseline("icon", day)) == ["#ff0000", "#0000ff"]


def test_apply_filter_always_starts_from_baseline(memory_store, two_tone_svg):
    memory_store.ensure_profile("icon", two_tone_svg)
    settings = FilterSettings(hue=180)
    once = memory_store.apply_filter("icon", settings, two_tone_svg)
    twice = memory_store.apply_filter("icon", settings, once)
    assert once == twice
    assert extract_palette(once)[0] == "#006d6d"
    assert memory_store.filtered_colors("icon", settings)[0] == "#006d6d"
    identity = memory_store.apply_filter("icon", FilterSettings(), once)
    assert extract_palette(identity) == ["#ff0000", "#0000ff"]


def test_color_mapping_identity_removes_entry(memory_store):
    memory_store.set_color_mapping("icon", "#F00", "#00ff00")
    assert memory_store.get_color_mapping("icon") == {"#ff0000": "#00ff00"}
    memory_store.set_color_mapping("icon", "#ff0000", "RED")
    assert memory_store.get_color_mapping("icon") == {}
    memory_store.set_color_mapping("icon", "#ff0000", "#0000ff")
    memory_store.clear_color_mappings("icon")
    assert memory_store.get_color_mapping("icon") == {}


def test_rename_follows_default_and_rejects_duplicates(memory_store):
    memory_store.save_variant("icon", "a", ["#111111"])
    memory_store.save_variant("icon", "b", ["#222222"])
    memory_store.set_default_variant("icon", "a")
    assert memory_store.rename_variant("icon", 0, "alpha")
    assert memory_store.get_default_variant("icon") == "alpha"
    assert not memory_store.rename_variant("icon", 0, "b")
    assert [v.name for v in memory_store.get_saved_variants("icon")] == ["alpha", "b"]


def test_update_variant_colors(memory_store):
    memory_store.save_variant("icon", "a", ["#111111"])
    assert memory_store.update_variant_colors("icon", 0, ["#ABC"])
    assert memory_store.get_saved_variants("icon")[0].colors == ["#aabbcc"]


def test_render_final_prefers_default_variant(memory_store, two_tone_svg):
    assert memory_store.render_final("icon", two_tone_svg) == two_tone_svg
    memory_store.ensure_profile("icon", two_tone_svg)
    memory_store.set_color_mapping("icon", "#ff0000", "#00ff00")
    mapped = memory_store.render_final("icon", two_tone_svg)
    assert extract_palette(mapped) == ["#00ff00", "#0000ff"]
    memory_store.save_variant("icon", "night", ["#111111", "#222222"])
    memory_store.set_default_variant("icon", "night")
    assert extract_palette(memory_store.render_final("icon", two_tone_svg)) == ["#111111", "#222222"]


def test_remove_icon(memory_store):
    memory_store.save_variant("icon", "a", ["#111111"])
    assert memory_store.remove_icon("icon")
    assert memory_store.get_profile("icon") is None
    assert not memory_store.remove_icon("icon")


def test_flush_persists_and_reloads(tmp_path, two_tone_svg):
    path = tmp_path / "variants.json"
    bus = EventBus()
    flushed = []
    bus.subscribe(EngineEvent.PROFILES_FLUSHED, lambda evt: flushed.append(evt.payload))
    store = VariantStore(ProfileDocumentStore(path), bus)
    store.ensure_profile("icon", two_tone_svg)
    store.save_variant("icon", "night", ["#111111", "#222222"])
    store.set_default_variant("icon", "night")
    assert store.has_unsaved_changes
    assert not path.exists()
    assert store.flush()
    assert not store.has_unsaved_changes
    assert flushed and flushed[0]["icons"] == 1

    reloaded = VariantStore(ProfileDocumentStore(path))
    assert reloaded.get_default_variant("icon") == "night"
    assert reloaded.get_profile("icon").baseline_colors == ["#ff0000", "#0000ff"]
    assert [v.colors for v in reloaded.get_saved_variants("icon")] == [["#111111", "#222222"]]


def test_last_flush_wins(tmp_path):
    path = tmp_path / "variants.json"
    first = VariantStore(ProfileDocumentStore(path))
    second = VariantStore(ProfileDocumentStore(path))
    first.save_variant("icon", "from-first", ["#111111"])
    second.save_variant("icon", "from-second", ["#222222"])
    first.flush()
    second.flush()
    names = [v.name for v in VariantStore(ProfileDocumentStore(path)).get_saved_variants("icon")]
    assert names == ["from-second"]


def test_flush_without_persistence(memory_store):
    memory_store.save_variant("icon", "a", ["#111111"])
    assert memory_store.flush() is False
    assert memory_store.has_unsaved_changes


def test_flush_io_errors_propagate(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    store = VariantStore(ProfileDocumentStore(blocker / "variants.json"))
    store.save_variant("icon", "a", ["#111111"])
    with pytest.raises(OSError):
        store.flush()


def test_reload_discards_unsaved_edits(tmp_path):
    path = tmp_path / "variants.json"
    store = VariantStore(ProfileDocumentStore(path))
    store.save_variant("icon", "a", ["#111111"])
    store.flush()
    store.save_variant("icon", "b", ["#222222"])
    store.reload()
    assert [v.name for v in store.get_saved_variants("icon")] == ["a"]
    assert not store.has_unsaved_changes
