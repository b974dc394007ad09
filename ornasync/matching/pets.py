"""
ornasync/matching/pets.py -- Reconcile codex followers with guide pets.
"""

from __future__ import annotations

from ornasync.errors import LookupFailure
from ornasync.id_resolver import resolve_skills_by_uri
from ornasync.matching.base import EntityMatcher
from ornasync.matching.checker import fix_vec_id_field, set_field
from ornasync.models.codex import CodexFollower
from ornasync.models.guide import AdminPet


class PetMatcher(EntityMatcher):
    kind = "pets"
    title = "Pets"

    def _on_codex(self, pet: AdminPet) -> bool:
        try:
            self.data.codex.find_follower_by_slug(pet.slug)
        except LookupFailure:
            return False
        return True

    def list_missing(self) -> None:
        guide = self.data.guide
        missing_on_guide = [
            follower for follower in self.data.codex.followers
            if not guide.pets_with_slug(follower.slug)
        ]
        not_on_codex = [pet for pet in guide.pets if not self._on_codex(pet)]

        if missing_on_guide:
            print("Followers missing on guide:")
            for follower in missing_on_guide:
                print(
                    f"\t- {follower.name} "
                    f"({self.settings.codex_url}/codex/followers/{follower.slug})"
                )
        if not_on_codex:
            print("Pets not on codex:")
            for pet in not_on_codex:
                print(f"\t- {pet.name} ({self.settings.guide_url}/pets?show={pet.id})")

        self.report.missing_on_guide = [f.slug for f in missing_on_guide]
        self.report.not_on_codex = [pet.name for pet in not_on_codex]

    def check_fields(self) -> None:
        for follower in self.data.codex.followers:
            self.guarded(f"follower {follower.name}", self._check_pet, follower)

    def _check_pet(self, follower: CodexFollower) -> bool | None:
        guide = self.data.guide
        pet = self.locate("guide pet", follower.slug, guide.pets_with_slug(follower.slug))
        if pet is None:
            return None
        check = self.checker(pet, "pet")

        def skill_name(skill_id):
            return guide.name_of("skills", skill_id)

        check.check("name", pet.name, follower.name, set_field("name"))
        check.check("image_name", pet.image_name, follower.icon, set_field("image_name"))
        check.check(
            "description", pet.description, follower.description or ".",
            set_field("description"),
        )
        check.check("tier", pet.tier, follower.tier, set_field("tier"))

        # Guide-only skills (no codex page) are left alone.
        current = []
        for skill_id in pet.skills:
            skill = guide.find_skill_by_id(skill_id)
            if skill is None:
                raise LookupFailure("guide skill", skill_id)
            if skill.codex_uri:
                current.append(skill_id)
        current.sort()
        expected = sorted(
            resolve_skills_by_uri(guide, follower.abilities, "follower abilities").downgrade(
                f"{pet.name} (#{pet.id})"
            )
        )
        check.check_list(
            "abilities", current, expected,
            lambda entity, ids: fix_vec_id_field(entity, "skills", current, ids, skill_name),
            skill_name,
        )

        return check.all_matched
