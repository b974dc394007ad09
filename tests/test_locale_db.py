"""
Tests for ornasync/locale_db.py

Covers:
    - Merging locale databases (the other side wins)
    - Loading a locale directory with its manual overlay
    - Coverage report of untranslated codex entities
    - Translated copies of a snapshot
"""

import json

import pytest

from ornasync.errors import SnapshotError
from ornasync.locale_db import LocaleDB, LocaleStrings, Translation


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def french():
    return LocaleStrings(
        locale="fr",
        items={"bronze-sword": Translation(name="Épée de bronze", description="Une épée simple.")},
        raids={"fafnir": Translation(name="Fafnir FR")},
        monsters={"slime": Translation(name="Gluant")},
        skills={"fireball": Translation(name="Boule de feu")},
        followers={"pup": Translation(name="Chiot")},
        statuses={"Burning": "Brûlure"},
        events={"Fallen Heroes": "Héros déchus"},
        spawns={"Kingdom Raid": "Raid de royaume"},
        families={"Slime": "Gluants"},
    )


class TestMerge:
    def test_other_wins(self):
        db = LocaleDB({"fr": LocaleStrings(locale="fr", statuses={"Burning": "Brulure", "Blind": "Aveugle"})})
        db.merge_with(LocaleDB({"fr": LocaleStrings(locale="fr", statuses={"Burning": "Brûlure"})}))
        assert db.get("fr").statuses == {"Burning": "Brûlure", "Blind": "Aveugle"}

    def test_new_locale_is_copied(self, french):
        other = LocaleDB({"fr": french})
        db = LocaleDB()
        db.merge_with(other)
        db.get("fr").statuses["Frozen"] = "Gelé"
        assert "Frozen" not in french.statuses

    def test_get_creates_empty_locale(self):
        db = LocaleDB()
        assert db.get("de").locale == "de"
        assert "de" in db


class TestLoadSave:
    def test_save_and_load(self, tmp_path, french):
        LocaleDB({"fr": french}).save(tmp_path / "i18n")
        assert (tmp_path / "i18n" / "fr.json").exists()
        assert LocaleDB.load(tmp_path / "i18n") == LocaleDB({"fr": french})

    def test_manual_overlay_wins(self, tmp_path, french):
        LocaleDB({"fr": french}).save(tmp_path / "i18n")
        manual = LocaleStrings(locale="fr", followers={"pup": Translation(name="Toutou")})
        LocaleDB({"fr": manual}).save(tmp_path / "i18n" / "manual")
        db = LocaleDB.load(tmp_path / "i18n")
        assert db.get("fr").followers["pup"].name == "Toutou"
        assert db.get("fr").skills["fireball"].name == "Boule de feu"

    def test_unreadable_file_skipped(self, tmp_path, french, caplog):
        LocaleDB({"fr": french}).save(tmp_path)
        (tmp_path / "de.json").write_text("{oops", encoding="utf-8")
        db = LocaleDB.load_directory(tmp_path)
        assert list(db.locales) == ["fr"]
        assert "de.json" in caplog.text

    def test_missing_directory_is_empty(self, tmp_path):
        assert len(LocaleDB.load(tmp_path / "nowhere")) == 0

    def test_malformed_document(self):
        with pytest.raises(SnapshotError, match="'fr'"):
            LocaleDB.from_documents({"fr": {"items": {"x": {"title": "y"}}}})

    def test_locale_taken_from_key(self, tmp_path):
        (tmp_path / "es.json").write_text(json.dumps({"statuses": {"Blind": "Ciego"}}), encoding="utf-8")
        assert LocaleDB.load_directory(tmp_path).get("es").locale == "es"


class TestMissing:
    def test_untranslated_slugs(self, orna_data, french):
        db = LocaleDB({"fr": french})
        assert db.missing(orna_data, "fr") == {"items": ["slime-gel"]}

    def test_unknown_locale_misses_everything(self, orna_data):
        missing = LocaleDB().missing(orna_data, "de")
        assert missing["items"] == ["bronze-sword", "slime-gel"]
        assert missing["skills"] == ["fireball"]
        assert "bosses" not in missing


class TestTranslated:
    def test_codex_entities(self, orna_data, french):
        result = LocaleDB({"fr": french}).translated(orna_data, "fr")
        sword = result.codex.find_item_by_slug("bronze-sword")
        assert sword.name == "Épée de bronze"
        assert sword.description == "Une épée simple."
        assert result.codex.find_item_by_slug("slime-gel").name == "Slime Gel"
        assert result.codex.raids[0].name == "Fafnir FR"
        assert result.codex.monsters[0].name == "Gluant"

    def test_guide_entities(self, orna_data, french):
        guide = LocaleDB({"fr": french}).translated(orna_data, "fr").guide
        assert guide.find_item_by_id(1).name == "Épée de bronze"
        assert guide.find_item_by_id(2).description == "Sticky."
        assert guide.find_monster_by_id(10).name == "Gluant"
        assert guide.find_monster_by_id(11).name == "Fafnir FR"
        assert guide.find_skill_by_id(20).name == "Boule de feu"
        assert guide.find_pet_by_id(30).name == "Chiot"

    def test_static_strings(self, orna_data, french):
        static = LocaleDB({"fr": french}).translated(orna_data, "fr").guide.static
        assert static.status_effects[0].name == "Brûlure"
        assert static.status_effects[1].name == "Frozen"
        assert static.monster_families[0].name == "Gluants"
        assert [s.name for s in static.spawns] == [
            "Raid de royaume", "World Raid", "Event: Héros déchus",
        ]

    def test_original_untouched(self, orna_data, french):
        LocaleDB({"fr": french}).translated(orna_data, "fr")
        assert orna_data.guide.find_item_by_id(1).name == "Bronze Sword"
        assert orna_data.codex.items[0].name == "Bronze Sword"
        assert orna_data.guide.static.status_effects[0].name == "Burning"
