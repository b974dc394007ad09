"""
ornasync/matching/monsters.py -- Reconcile codex monsters, bosses and raids.

The guide keeps all three in one table and tells them apart through the
``boss`` flag and the raid spawns; the codex keeps them in three sections.
Matching is done within a kind, by slug.
"""

from __future__ import annotations

import logging

from ornasync.errors import LookupFailure
from ornasync.id_resolver import resolve_events, resolve_skills_by_uri
from ornasync.matching.base import EntityMatcher
from ornasync.matching.checker import fix_option_field, fix_vec_id_field, set_field
from ornasync.models.codex import CodexGenericMonster
from ornasync.models.guide import AdminMonster
from ornasync.utils import retry_once

logger = logging.getLogger(__name__)

_RAID_SPAWNS = ("Kingdom Raid", "World Raid")


class MonsterMatcher(EntityMatcher):
    kind = "monsters"
    title = "Monsters"

    # ------------------------------------------------------------------
    # 1. Missing entities
    # ------------------------------------------------------------------

    def _on_codex(self, monster: AdminMonster) -> bool:
        try:
            self.data.codex.find_generic_monster_by_uri(monster.codex_uri)
        except LookupFailure:
            return False
        return True

    def list_missing(self) -> None:
        guide = self.data.guide
        spawns = guide.static.spawns
        missing_on_guide = [
            monster for monster in self.data.codex.iter_all_monsters()
            if not guide.monsters_with_slug(monster.kind.value, monster.slug)
        ]
        not_on_codex = [m for m in guide.monsters if not self._on_codex(m)]

        if missing_on_guide:
            print("Monsters missing on guide:")
            for monster in missing_on_guide:
                print(
                    f"\t- [{monster.kind.label:^7}] {monster.name:20} "
                    f"({self.settings.codex_url}/codex/{monster.kind.value}/{monster.slug})"
                )
        if not_on_codex:
            print("Monsters not on codex:")
            for monster in not_on_codex:
                label = {"monsters": "Monster", "bosses": "Boss", "raids": "Raid"}[
                    monster.kind(spawns)
                ]
                print(
                    f"\t-[{label:^7}] {monster.name:20} "
                    f"({self.settings.guide_url}/monsters?show={monster.id})"
                )

        self.report.missing_on_guide = [m.uri for m in missing_on_guide]
        self.report.not_on_codex = [m.name for m in not_on_codex]

    # ------------------------------------------------------------------
    # 2. Fields
    # ------------------------------------------------------------------

    def check_fields(self) -> None:
        for codex_monster in self.data.codex.iter_all_monsters():
            self.guarded(
                f"{codex_monster.kind.label.lower()} {codex_monster.name}",
                self._check_monster,
                codex_monster,
            )

    def _expected_events(self, admin: AdminMonster, codex_monster: CodexGenericMonster) -> list[int]:
        names = list(codex_monster.events)
        if "Kerberos" in admin.name:
            names.append(self.settings.kerberos_event)

        static = self.data.guide.static
        known = {spawn.event_name for spawn in static.iter_events()}
        unknown = sorted({name for name in names if name not in known})
        if unknown and self.fix:
            for name in unknown:
                print(f"Adding event spawn 'Past Event: {name}'")
                self.guide.add_spawn(f"Past Event: {name}")
            static.spawns = retry_once(lambda: self.guide.list_static("spawns"), "spawns list")
            self.report.added.extend(f"Past Event: {name}" for name in unknown)

        resolution = resolve_events(static, names)
        return sorted(set(resolution.downgrade(f"{admin.name} (#{admin.id}) events")))

    def _check_monster(self, codex_monster: CodexGenericMonster) -> bool | None:
        guide = self.data.guide
        static = guide.static
        admin = self.locate(
            f"guide {codex_monster.kind.value}",
            codex_monster.slug,
            guide.monsters_with_slug(codex_monster.kind.value, codex_monster.slug),
        )
        if admin is None:
            return None
        check = self.checker(admin, "monster")

        def spawn_name(spawn_id):
            return static.name_of("spawns", spawn_id)

        def skill_name(skill_id):
            return guide.name_of("skills", skill_id)

        check.check("image_name", admin.image_name, codex_monster.icon, set_field("image_name"))

        # Events
        admin_events = sorted(admin.event_ids(static.spawns))
        codex_events = self._expected_events(admin, codex_monster)
        check.check_list(
            "events", admin_events, codex_events,
            lambda monster, ids: fix_vec_id_field(
                monster, "spawns", admin_events, ids, spawn_name
            ),
            spawn_name,
        )

        # Family
        admin_family = None
        if admin.family is not None:
            entry = static.find_by_id("monster_families", admin.family)
            admin_family = entry.name if entry is not None else f"#{admin.family}"
        check.check_debug(
            "family", admin_family, codex_monster.family or None,
            lambda monster, name: fix_option_field(
                monster, "family", name,
                lambda n: static.get_by_name("monster_families", n).id,
            ),
        )

        # Tags
        admin_tags = admin.raid_spawns(static.spawns)
        codex_tags = codex_monster.tags_as_guide_spawns()
        if admin.name in self.settings.world_raid_names:
            codex_tags.append("World Raid")
        codex_tags = sorted(set(codex_tags))
        check.check_debug("tags", admin_tags, codex_tags, self._fix_tags)

        # Abilities
        admin_abilities = []
        for skill_id in admin.skills:
            skill = guide.find_skill_by_id(skill_id)
            if skill is None:
                raise LookupFailure("guide skill", skill_id)
            if skill.codex_uri:
                admin_abilities.append(skill_id)
        admin_abilities.sort()
        codex_abilities = sorted(
            resolve_skills_by_uri(guide, codex_monster.abilities, "monster abilities").downgrade(
                f"{admin.name} (#{admin.id})"
            )
        )
        check.check_list(
            "abilities", admin_abilities, codex_abilities,
            lambda monster, ids: fix_vec_id_field(
                monster, "skills", admin_abilities, ids, skill_name
            ),
            skill_name,
        )

        return check.all_matched

    def _fix_tags(self, monster: AdminMonster, tags: list[str]) -> None:
        """Replace the raid spawns of *monster* with those named in *tags*."""
        spawns = self.data.guide.static.spawns
        names = {spawn.id: spawn.name for spawn in spawns}
        monster.spawns = [
            spawn_id for spawn_id in monster.spawns
            if spawn_id in names and names[spawn_id] not in _RAID_SPAWNS
        ]
        for tag in tags:
            spawn = next((s for s in spawns if s.name == tag), None)
            if spawn is not None and spawn.id not in monster.spawns:
                monster.spawns.append(spawn.id)
