"""
Tests for ornasync/matching/items.py

Covers:
    - A matched snapshot reports no mismatch
    - Missing / extra items, skip lists, creation in fix mode
    - Scalar, element, status effect and upgrade material checks
    - Dropped-by fixes written to the monsters
    - Ambiguous guide matches recorded as errors
"""

import pytest

from ornasync.errors import TransportError
from ornasync.matching.items import ItemMatcher, codex_item_to_admin
from ornasync.models.codex import (
    CodexItem,
    Element,
    EntityRef,
    ItemAbility,
    ItemStats,
    StatusRef,
)
from ornasync.models.guide import AdminItem, AdminSkill


def _codex_item(data, slug, **changes):
    """Replace the codex item *slug* with a modified copy."""
    items = data.codex.items
    for index, item in enumerate(items):
        if item.slug == slug:
            items[index] = item.model_copy(update=changes)
            return items[index]
    raise KeyError(slug)


# ---------------------------------------------------------------------------
# Missing entities
# ---------------------------------------------------------------------------

class TestListMissing:
    def test_matched_snapshot(self, orna_data, capsys):
        report = ItemMatcher(orna_data).perform()
        assert report.matched == 2
        assert report.mismatched == 0
        assert report.missing_on_guide == []
        assert report.not_on_codex == []
        assert capsys.readouterr().out == "Matching Items\n"

    def test_missing_on_guide(self, orna_data, capsys):
        orna_data.codex.items.append(CodexItem(slug="iron-sword", name="Iron Sword"))
        report = ItemMatcher(orna_data).perform()
        assert report.missing_on_guide == ["iron-sword"]
        out = capsys.readouterr().out
        assert "1 items missing on guide:" in out
        assert "https://playorna.com/codex/items/iron-sword" in out

    def test_skipped_codex_items(self, orna_data):
        orna_data.codex.items.append(CodexItem(slug="orna", name="Orna"))
        orna_data.codex.items.append(CodexItem(slug="soul-blade", name="Soul Blade"))
        assert ItemMatcher(orna_data).perform().missing_on_guide == []

    def test_not_on_codex(self, orna_data, capsys):
        orna_data.guide.items.append(AdminItem(id=3, name="Old Boot"))
        orna_data.guide.items.append(AdminItem(id=4, name="Mage's Ring"))
        orna_data.guide.items.append(
            AdminItem(id=5, name="Gone", codex_uri="/codex/items/gone/")
        )
        report = ItemMatcher(orna_data).perform()
        assert report.not_on_codex == ["Old Boot", "Gone"]
        assert "https://orna.guide/items?show=3" in capsys.readouterr().out

    def test_duplicated_codex_slug_is_not_a_match(self, orna_data):
        orna_data.codex.items.append(orna_data.codex.items[0].model_copy())
        report = ItemMatcher(orna_data).perform()
        assert report.not_on_codex == ["Bronze Sword"]

    def test_fix_creates_missing_items(self, orna_data, make_guide, capsys):
        orna_data.codex.items.append(CodexItem(
            slug="iron-sword",
            name="Iron Sword",
            icon="weapons/iron_sword.png",
            description="Iron.",
            tier=2,
            stats=ItemStats(attack=20, adornment_slots=2),
            causes=[StatusRef(name="Blind")],
        ))
        guide = make_guide(orna_data)
        report = ItemMatcher(orna_data, guide, fix=True).perform()

        assert guide.called("add_item") == [["Iron Sword"]]
        created = guide.records["item"][3]
        assert created.codex_uri == "/codex/items/iron-sword/"
        assert created.attack == 20
        assert created.base_adornment_slots == 2
        assert created.has_slots
        assert created.causes == [4]

        assert orna_data.guide.find_item_by_id(3).name == "Iron Sword"
        assert report.added == ["Iron Sword"]
        assert report.matched == 3
        assert "Added 1/1 items on the guide:" in capsys.readouterr().out

    def test_failed_add_is_recorded(self, orna_data, make_guide, capsys):
        orna_data.codex.items.append(CodexItem(slug="iron-sword", name="Iron Sword"))
        guide = make_guide(orna_data)
        guide.fail("add_item", TransportError("reset"))
        report = ItemMatcher(orna_data, guide, fix=True).perform()
        assert len(report.errors) == 1
        assert "while adding item Iron Sword" in report.errors[0]
        assert "Added 0/1 items on the guide:" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------

class TestCheckFields:
    def test_stat_mismatch_reported(self, orna_data, capsys):
        orna_data.guide.items[0].attack = 12
        report = ItemMatcher(orna_data).perform()
        out = capsys.readouterr().out
        assert "Bronze Sword" in out
        assert "codex= 10" in out
        assert "guide= 12" in out
        assert report.mismatched == 1
        assert report.matched == 1

    def test_stat_fixed(self, orna_data, make_guide):
        orna_data.guide.items[0].attack = 12
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert guide.records["item"][1].attack == 10
        assert orna_data.guide.find_item_by_id(1).attack == 10
        item_calls = [c for c in guide.calls if c[0].endswith("_item")]
        assert item_calls == [("retrieve_item", 1), ("save_item", 1), ("retrieve_item", 1)]

    def test_ignored_save_is_an_error(self, orna_data, make_guide, monkeypatch):
        orna_data.guide.items[0].attack = 3
        guide = make_guide(orna_data)
        monkeypatch.setattr(guide, "save_item", lambda item: None)
        report = ItemMatcher(orna_data, guide, fix=True).perform()
        assert len(report.errors) == 1
        assert "Write to Bronze Sword (#1) did not land: attack" in report.errors[0]
        assert orna_data.guide.find_item_by_id(1).attack == 3

    def test_fix_prints_before_and_after(self, orna_data, make_guide, capsys):
        orna_data.guide.items[0].attack = 12
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert "attack     : 12 -> 10" in capsys.readouterr().out

    def test_failed_save_recorded_and_loop_continues(self, orna_data, make_guide):
        orna_data.guide.items[0].attack = 12
        orna_data.guide.items[1].description = "Wrong."
        guide = make_guide(orna_data)
        guide.fail("save_item", TransportError("reset"))
        report = ItemMatcher(orna_data, guide, fix=True).perform()
        assert len(report.errors) == 1
        assert "while fixing attack of Bronze Sword (#1)" in report.errors[0]
        assert "while checking item Bronze Sword" in report.errors[0]
        assert guide.records["item"][2].description == "Sticky."

    def test_adornment_slots_fix_sets_flag(self, orna_data, make_guide):
        _codex_item(orna_data, "slime-gel", stats=ItemStats(adornment_slots=3))
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert guide.records["item"][2].base_adornment_slots == 3
        assert guide.records["item"][2].has_slots

    def test_element_mismatch(self, orna_data, make_guide, capsys):
        _codex_item(orna_data, "bronze-sword", stats=ItemStats(attack=10, element=Element.WATER))
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        out = capsys.readouterr().out
        assert "codex= 'Water'" in out
        assert "guide= 'Fire'" in out
        assert guide.records["item"][1].element == 2

    def test_weapon_element_inflicts_status(self, orna_data, capsys):
        orna_data.guide.items[0].causes = []
        report = ItemMatcher(orna_data).perform()
        assert "codex= ['Burning']" in capsys.readouterr().out
        assert report.mismatched == 1

    def test_non_weapon_element_inflicts_nothing(self, orna_data):
        orna_data.guide.items[0].type_ = 13
        orna_data.guide.items[0].causes = []
        assert ItemMatcher(orna_data).perform().mismatched == 0

    def test_status_lists_fixed(self, orna_data, make_guide):
        _codex_item(
            orna_data, "slime-gel",
            cures=[StatusRef(name="Poisoned")],
            immunities=[StatusRef(name="Frozen")],
        )
        orna_data.guide.items[1].cures = [4]
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        fixed = guide.records["item"][2]
        assert fixed.cures == [3]
        assert fixed.prevents == [2]

    def test_unknown_status_is_dropped(self, orna_data):
        _codex_item(orna_data, "slime-gel", cures=[StatusRef(name="Confused")])
        assert ItemMatcher(orna_data).perform().mismatched == 0

    def test_ability_compared_without_suffix(self, orna_data, make_guide):
        orna_data.guide.skills.append(
            AdminSkill(id=21, name="Bite [off-hand]", offhand=True)
        )
        orna_data.guide.items[1].ability = 21
        _codex_item(orna_data, "slime-gel", ability=ItemAbility(name="Bite"))
        assert ItemMatcher(orna_data).perform().mismatched == 0

    def test_ability_fix_looks_up_offhand_skill(self, orna_data, make_guide):
        orna_data.guide.skills.append(
            AdminSkill(id=21, name="Bite [off-hand]", offhand=True)
        )
        _codex_item(orna_data, "slime-gel", ability=ItemAbility(name="Bite"))
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert guide.records["item"][2].ability == 21

    def test_upgrade_materials(self, orna_data, capsys):
        orna_data.guide.items[0].materials = []
        ItemMatcher(orna_data).perform()
        assert "codex= ['Slime Gel']" in capsys.readouterr().out

    def test_dropped_by_fix_edits_monster(self, orna_data, make_guide, capsys):
        orna_data.guide.monsters[0].drops = [2]
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert "Suggest adding: ['Slime']" in capsys.readouterr().out
        assert sorted(guide.records["monster"][10].drops) == [1, 2]
        assert sorted(orna_data.guide.find_monster_by_id(10).drops) == [1, 2]

    def test_dropped_by_fix_removes(self, orna_data, make_guide):
        _codex_item(orna_data, "slime-gel", dropped_by=[])
        guide = make_guide(orna_data)
        ItemMatcher(orna_data, guide, fix=True).perform()
        assert guide.records["monster"][10].drops == [1]

    def test_ambiguous_guide_match(self, orna_data):
        orna_data.guide.items.append(
            AdminItem(id=5, name="Bronze Sword (old)", codex_uri="/codex/items/bronze-sword/")
        )
        report = ItemMatcher(orna_data).perform()
        assert report.matched == 1
        assert len(report.errors) == 1
        assert "2 guide item entries match 'bronze-sword'" in report.errors[0]
        assert "#1, #5" in report.errors[0]


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class TestCodexItemToAdmin:
    def test_conversion(self, orna_data):
        item = codex_item_to_admin(orna_data.codex.items[0], orna_data.guide)
        assert item.id == 0
        assert item.codex_uri == "/codex/items/bronze-sword/"
        assert item.element == 1
        assert item.attack == 10
        assert item.materials == [2]
        assert not item.has_slots

    def test_unknown_references_left_out(self, orna_data):
        codex_item = CodexItem(
            slug="odd",
            name="Odd",
            stats=ItemStats(element=Element.DRAGON),
            ability=ItemAbility(name="Nothing"),
            upgrade_materials=[EntityRef(name="X", uri="/codex/items/x/")],
        )
        item = codex_item_to_admin(codex_item, orna_data.guide)
        assert item.element is None
        assert item.ability is None
        assert item.materials == []
        assert item.description == "."


def test_fix_mode_needs_a_guide(orna_data):
    with pytest.raises(ValueError):
        ItemMatcher(orna_data, None, fix=True)
