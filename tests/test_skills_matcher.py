"""
Tests for ornasync/matching/skills.py
"""

from ornasync.matching.skills import SkillMatcher, codex_skill_to_admin
from ornasync.models.codex import CodexSkill, SkillStatusEffect, Tag
from ornasync.models.guide import AdminSkill, StaticEntry


def _edit_skill(data, slug, **changes):
    skills = data.codex.skills
    for index, skill in enumerate(skills):
        if skill.slug == slug:
            skills[index] = skill.model_copy(update=changes)
            return
    raise KeyError(slug)


class TestListMissing:
    def test_matched_snapshot(self, orna_data, capsys):
        report = SkillMatcher(orna_data).perform()
        assert report.matched == 1
        assert capsys.readouterr().out == "Matching Skills\n"

    def test_passive_skills_not_reported(self, orna_data):
        orna_data.guide.skills.append(AdminSkill(id=25, name="Regen", type=1))
        orna_data.guide.skills.append(AdminSkill(id=26, name="Slash", type=2))
        assert SkillMatcher(orna_data).perform().not_on_codex == ["Slash"]

    def test_duplicated_codex_slug_is_not_a_match(self, orna_data):
        orna_data.codex.skills.append(orna_data.codex.skills[0].model_copy())
        assert SkillMatcher(orna_data).perform().not_on_codex == ["Fireball"]

    def test_missing_skill_created(self, orna_data, make_guide, capsys):
        orna_data.codex.skills.append(CodexSkill(
            name="Bite",
            slug="BiteOffhand",
            description="Chomp.",
            tier=2,
            tags=[Tag.OFF_HAND_ABILITY],
        ))
        guide = make_guide(orna_data)
        report = SkillMatcher(orna_data, guide, fix=True).perform()

        created = guide.records["skill"][21]
        assert created.name == "Bite [off-hand]"
        assert created.offhand
        assert created.codex_uri == "/codex/spells/BiteOffhand/"
        assert report.added == ["Bite [off-hand]"]
        assert report.matched == 2
        out = capsys.readouterr().out
        assert "1 skills missing on guide:" in out
        assert "Added 1/1 skills on the guide:" in out


class TestCheckFields:
    def test_description_and_tier_fixed(self, orna_data, make_guide):
        _edit_skill(orna_data, "fireball", description="Burns.", tier=2)
        guide = make_guide(orna_data)
        report = SkillMatcher(orna_data, guide, fix=True).perform()
        fixed = guide.records["skill"][20]
        assert fixed.description == "Burns."
        assert fixed.tier == 2
        assert report.mismatched == 1

    def test_empty_codex_description_expects_dot(self, orna_data, capsys):
        _edit_skill(orna_data, "fireball", description="")
        SkillMatcher(orna_data).perform()
        assert "codex= ." in capsys.readouterr().out

    def test_bought_at_arcanist(self, orna_data, capsys):
        _edit_skill(orna_data, "fireball", tags=[Tag.FOUND_IN_ARCANISTS])
        SkillMatcher(orna_data).perform()
        out = capsys.readouterr().out
        assert "bought" in out
        assert "codex= True" in out

    def test_gives_fixed_through_rename_table(self, orna_data, make_guide):
        orna_data.guide.static.status_effects.append(
            StaticEntry(id=9, name="Dark Sigil [temp]")
        )
        _edit_skill(orna_data, "fireball", gives=[SkillStatusEffect(effect="Dark Sigil")])
        guide = make_guide(orna_data)
        SkillMatcher(orna_data, guide, fix=True).perform()
        assert guide.records["skill"][20].gives == [9]

    def test_causes_mismatch(self, orna_data, capsys):
        orna_data.guide.skills[0].causes = [1, 2]
        SkillMatcher(orna_data).perform()
        out = capsys.readouterr().out
        assert "codex= ['Burning']" in out
        assert "guide= ['Burning', 'Frozen']" in out

    def test_known_bad_gives_skipped(self, orna_data):
        orna_data.codex.skills.append(CodexSkill(
            name="Defend",
            slug="CerusDefendPhys",
            description="Defends.",
            gives=[SkillStatusEffect(effect="Defending")],
        ))
        orna_data.guide.skills.append(AdminSkill(
            id=21, name="Defend", codex_uri="/codex/spells/CerusDefendPhys/",
            description="Defends.",
        ))
        assert SkillMatcher(orna_data).perform().mismatched == 0


class TestCodexSkillToAdmin:
    def test_zweihander_suffix(self, orna_data):
        skill = CodexSkill(name="Cleave", slug="ZweiCleave")
        admin = codex_skill_to_admin(skill, orna_data.guide.static)
        assert admin.name == "Cleave [zwei]"
        assert not admin.offhand

    def test_status_effects_resolved(self, orna_data):
        skill = CodexSkill(
            name="Frost",
            slug="frost",
            tags=[Tag.FOUND_IN_ARCANISTS],
            causes=[SkillStatusEffect(effect="Frozen"), SkillStatusEffect(effect="Nope")],
        )
        admin = codex_skill_to_admin(skill, orna_data.guide.static)
        assert admin.name == "Frost"
        assert admin.causes == [2]
        assert admin.bought
        assert admin.description == "."
