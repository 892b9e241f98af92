import json
import logging

from domain.models import IconColorProfile, Variant
from iconstudio.services.profile_persistence import ProfileDocumentStore


def _profile():
    return IconColorProfile(
        icon_name="home",
        baseline_colors=["#ff0000", "#0000ff"],
        color_mapping={"#ff0000": "#00ff00"},
        variants=[Variant("dark", ["#111111", "#222222"], is_primary=True), Variant("light", ["#eeeeee"])],
        default_variant="dark",
    )


def test_missing_file_loads_empty(tmp_path):
    assert ProfileDocumentStore(tmp_path / "nope.json").load() == {}


def test_round_trip(tmp_path):
    store = ProfileDocumentStore(tmp_path / "sub" / "variants.json")
    written = store.save({"home": _profile()})
    assert written.exists()
    assert not written.with_suffix(".json.tmp").exists()
    loaded = store.load()
    assert loaded["home"] == _profile()
    doc = json.loads(written.read_text(encoding="utf-8"))
    assert doc["version"] == 1
    assert doc["icons"]["home"]["default_variant"] == "dark"


def test_corrupt_file_degrades_to_empty(tmp_path, caplog):
    path = tmp_path / "variants.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert ProfileDocumentStore(path).load() == {}
    assert any("unreadable" in r.getMessage() for r in caplog.records)


def test_incompatible_version_degrades_to_empty(tmp_path):
    path = tmp_path / "variants.json"
    path.write_text(json.dumps({"version": 99, "icons": {"home": {}}}), encoding="utf-8")
    assert ProfileDocumentStore(path).load() == {}


def test_dangling_default_and_malformed_entries(tmp_path):
    path = tmp_path / "variants.json"
    doc = {
        "version": 1,
        "icons": {
            "home": {"variants": [{"name": "a", "colors": ["#111111"]}], "default_variant": "gone"},
            "broken": "not a profile",
        },
    }
    path.write_text(json.dumps(doc), encoding="utf-8")
    loaded = ProfileDocumentStore(path).load()
    assert list(loaded) == ["home"]
    assert loaded["home"].default_variant is None
    assert loaded["home"].variants[0].name == "a"
