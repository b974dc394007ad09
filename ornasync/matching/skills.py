"""
ornasync/matching/skills.py -- Reconcile codex spells with guide skills.
"""

from __future__ import annotations

from ornasync.errors import LookupFailure
from ornasync.id_resolver import resolve_status_effects
from ornasync.matching.base import EntityMatcher
from ornasync.matching.checker import fix_vec_id_field, set_field
from ornasync.matching.settings import DEFAULT_SETTINGS, MatchSettings
from ornasync.models.codex import CodexSkill
from ornasync.models.guide import AdminSkill, Static


def codex_skill_to_admin(
    skill: CodexSkill,
    static: Static,
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> AdminSkill:
    """Build the guide record a missing codex skill should be created with.

    Off-hand abilities and Zweihander skills share their display name with
    another skill on the guide, so they get a bracketed suffix.
    """
    if skill.is_offhand():
        name = f"{skill.name} [off-hand]"
    elif skill.slug.startswith("Zwei"):
        name = f"{skill.name} [zwei]"
    else:
        name = skill.name
    context = f"new skill {skill.name}"
    return AdminSkill(
        codex_uri=skill.uri,
        name=name,
        tier=skill.tier,
        description=skill.description or ".",
        offhand=skill.is_offhand(),
        bought=skill.bought_at_arcanist(),
        causes=resolve_status_effects(
            static, [e.effect for e in skill.causes], settings
        ).downgrade(f"{context} causes"),
        gives=resolve_status_effects(
            static, [e.effect for e in skill.gives], settings
        ).downgrade(f"{context} gives"),
    )


class SkillMatcher(EntityMatcher):
    kind = "skills"
    title = "Skills"

    def _on_codex(self, skill: AdminSkill) -> bool:
        try:
            self.data.codex.find_skill_by_slug(skill.slug)
        except LookupFailure:
            return False
        return True

    def list_missing(self) -> None:
        guide = self.data.guide
        skip_types = {
            entry.id for entry in guide.static.skill_types
            if entry.name in self.settings.guide_skill_skip_types
        }
        missing_on_guide = [
            skill for skill in self.data.codex.skills
            if not guide.skills_with_slug(skill.slug)
        ]
        not_on_codex = [
            skill for skill in guide.skills
            if skill.type_ not in skip_types and not self._on_codex(skill)
        ]

        if missing_on_guide:
            print(f"{len(missing_on_guide)} skills missing on guide:")
            for skill in missing_on_guide:
                print(
                    f"\t- {skill.name:20} "
                    f"({self.settings.codex_url}/codex/spells/{skill.slug}/)"
                )
        if not_on_codex:
            print(f"{len(not_on_codex)} skills not on codex:")
            for skill in not_on_codex:
                print(f"\t- {skill.name:20} ({self.settings.guide_url}/skills?show={skill.id})")

        self.report.missing_on_guide = [skill.slug for skill in missing_on_guide]
        self.report.not_on_codex = [skill.name for skill in not_on_codex]

        if self.fix and missing_on_guide:
            self.create_missing(
                "skill", missing_on_guide,
                lambda skill: codex_skill_to_admin(skill, guide.static, self.settings),
            )

    def check_fields(self) -> None:
        for codex_skill in self.data.codex.skills:
            self.guarded(f"skill {codex_skill.name}", self._check_skill, codex_skill)

    def _check_skill(self, codex_skill: CodexSkill) -> bool | None:
        guide = self.data.guide
        static = guide.static
        admin = self.locate(
            "guide skill", codex_skill.slug, guide.skills_with_slug(codex_skill.slug)
        )
        if admin is None:
            return None
        check = self.checker(admin, "skill")
        label = f"{admin.name} (#{admin.id})"

        def status_name(status_id):
            return static.name_of("status_effects", status_id)

        check.check(
            "description", admin.description, codex_skill.description or ".",
            set_field("description"),
        )
        check.check("tier", admin.tier, codex_skill.tier, set_field("tier"))
        check.check("bought", admin.bought, codex_skill.bought_at_arcanist(), set_field("bought"))

        fields = [("causes", codex_skill.causes)]
        # The codex lists untranslatable effects for these two.
        if codex_skill.slug not in self.settings.skill_gives_skip_slugs:
            fields.append(("gives", codex_skill.gives))
        for attr, effects in fields:
            current = sorted(getattr(admin, attr))
            expected = sorted(
                resolve_status_effects(
                    static, [e.effect for e in effects], self.settings
                ).downgrade(f"{label} {attr}")
            )
            check.check_list(
                attr, current, expected,
                lambda skill, ids, attr=attr, current=current: fix_vec_id_field(
                    skill, attr, current, ids, status_name
                ),
                status_name,
            )

        return check.all_matched
