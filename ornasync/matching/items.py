"""
ornasync/matching/items.py -- Reconcile codex items with guide items.

Usage:
    from ornasync.matching.items import ItemMatcher

    report = ItemMatcher(data, guide, fix=True).perform()
"""

from __future__ import annotations

import logging

from ornasync.data_store import GuideData
from ornasync.errors import LookupFailure
from ornasync.id_resolver import (
    resolve_items_by_uri,
    resolve_monsters_by_uri,
    resolve_status_effects,
)
from ornasync.matching.base import EntityMatcher
from ornasync.matching.checker import (
    fix_option_field,
    fix_vec_field,
    fix_vec_id_field,
    set_field,
)
from ornasync.matching.settings import DEFAULT_SETTINGS, MatchSettings
from ornasync.models.codex import CodexItem
from ornasync.models.guide import AdminItem
from ornasync.utils import retry_once, sanitize_guide_name

logger = logging.getLogger(__name__)

_STATS = (
    "attack", "magic", "hp", "mana", "defense", "resistance",
    "ward", "dexterity", "crit", "foresight",
)


def find_offhand_skill_id(guide: GuideData, ability_name: str) -> int:
    """Id of the single off-hand guide skill called *ability_name*."""
    matches = guide.offhand_skills_named(ability_name)
    if len(matches) != 1:
        raise LookupFailure("off-hand skill", ability_name, len(matches))
    return matches[0].id


def codex_item_to_admin(
    item: CodexItem,
    guide: GuideData,
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> AdminItem:
    """Build the guide record a missing codex item should be created with.

    Unknown status effects, elements, abilities and upgrade materials are
    left out with a warning rather than failing the conversion.
    """
    static = guide.static
    context = f"new item {item.name}"

    element_id = None
    if item.element is not None:
        entry = static.find_by_name("elements", item.element.value)
        if entry is None:
            logger.warning("Unknown element %s for %s", item.element.value, context)
        else:
            element_id = entry.id

    ability_id = None
    if item.ability is not None:
        matches = guide.offhand_skills_named(item.ability.name)
        if matches:
            ability_id = matches[0].id
        else:
            logger.warning("No off-hand skill %s for %s", item.ability.name, context)

    def statuses(refs, what):
        return resolve_status_effects(
            static, [ref.name for ref in refs], settings
        ).downgrade(f"{context} {what}")

    slots = item.stat("adornment_slots")
    return AdminItem(
        codex_uri=item.uri,
        name=item.name,
        tier=item.tier,
        image_name=item.icon,
        description=item.description or ".",
        hp=item.stat("hp"),
        mana=item.stat("mana"),
        attack=item.stat("attack"),
        magic=item.stat("magic"),
        defense=item.stat("defense"),
        resistance=item.stat("resistance"),
        dexterity=item.stat("dexterity"),
        ward=item.stat("ward"),
        crit=item.stat("crit"),
        foresight=item.stat("foresight"),
        base_adornment_slots=slots,
        has_slots=slots > 0,
        element=element_id,
        ability=ability_id,
        causes=statuses(item.causes, "causes"),
        cures=statuses(item.cures, "cures"),
        gives=statuses(item.gives, "gives"),
        prevents=statuses(item.immunities, "immunities"),
        materials=resolve_items_by_uri(guide, item.upgrade_materials).downgrade(context),
    )


class ItemMatcher(EntityMatcher):
    kind = "items"
    title = "Items"

    # ------------------------------------------------------------------
    # 1. Missing entities
    # ------------------------------------------------------------------

    def _on_codex(self, guide_item: AdminItem) -> bool:
        try:
            self.data.codex.find_item_by_slug(guide_item.slug)
        except LookupFailure:
            return False
        return True

    def list_missing(self) -> None:
        codex, guide = self.data.codex, self.data.guide
        missing_on_guide = [
            item for item in codex.items
            if not self.settings.skip_codex_item(item.name, item.slug)
            and not guide.items_with_slug(item.slug)
        ]
        not_on_codex = [
            item for item in guide.items
            if item.name not in self.settings.guide_item_skip_names
            and not self._on_codex(item)
        ]

        if missing_on_guide:
            print(f"{len(missing_on_guide)} items missing on guide:")
            for item in missing_on_guide:
                print(f"\t- {item.name:20} ({self.settings.codex_url}/codex/items/{item.slug})")
        if not_on_codex:
            print(f"{len(not_on_codex)} items not on codex:")
            for item in not_on_codex:
                print(f"\t- {item.name:20} ({self.settings.guide_url}/items?show={item.id})")

        self.report.missing_on_guide = [item.slug for item in missing_on_guide]
        self.report.not_on_codex = [item.name for item in not_on_codex]

        if self.fix and missing_on_guide:
            self.create_missing(
                "item", missing_on_guide,
                lambda item: codex_item_to_admin(item, self.data.guide, self.settings),
            )

    # ------------------------------------------------------------------
    # 2. Fields
    # ------------------------------------------------------------------

    def check_fields(self) -> None:
        for codex_item in sorted(self.data.codex.items, key=lambda item: item.slug):
            self.guarded(f"item {codex_item.name}", self._check_item, codex_item)

    def _weapon_type_id(self) -> int | None:
        entry = self.data.guide.static.find_by_name("item_types", "Weapon")
        return entry.id if entry is not None else None

    def _status_ids(self, names) -> list[int]:
        static = self.data.guide.static
        return [static.get_by_name("status_effects", name).id for name in names]

    def _check_item(self, codex_item: CodexItem) -> bool | None:
        guide = self.data.guide
        static = guide.static
        guide_item = self.locate(
            "guide item", codex_item.slug, guide.items_with_slug(codex_item.slug)
        )
        if guide_item is None:
            return None
        check = self.checker(guide_item, "item")
        label = f"{guide_item.name} (#{guide_item.id})"

        def status_name(status_id):
            return static.name_of("status_effects", status_id)

        check.check("icon", guide_item.image_name, codex_item.icon, set_field("image_name"))
        check.check(
            "description", guide_item.description, codex_item.description,
            set_field("description"),
        )
        for stat in _STATS:
            check.check(stat, getattr(guide_item, stat), codex_item.stat(stat), set_field(stat))

        def fix_slots(item, slots):
            item.base_adornment_slots = slots
            item.has_slots = slots != 0

        check.check(
            "adorn slots", guide_item.base_adornment_slots,
            codex_item.stat("adornment_slots"), fix_slots,
        )

        # Element
        guide_element = None
        if guide_item.element is not None:
            entry = static.find_by_id("elements", guide_item.element)
            if entry is None:
                raise LookupFailure("element", guide_item.element)
            guide_element = entry.name
        codex_element = codex_item.element.value if codex_item.element is not None else None
        check.check_debug(
            "element", guide_element, codex_element,
            lambda item, name: fix_option_field(
                item, "element", name, lambda n: static.get_by_name("elements", n).id
            ),
        )

        # Ability
        guide_ability = None
        if guide_item.ability is not None:
            skill = guide.find_skill_by_id(guide_item.ability)
            if skill is not None:
                guide_ability = sanitize_guide_name(skill.name)
        codex_ability = codex_item.ability.name if codex_item.ability is not None else None
        check.check_debug(
            "ability", guide_ability, codex_ability,
            lambda item, name: fix_option_field(
                item, "ability", name, lambda n: find_offhand_skill_id(guide, n)
            ),
        )

        # Status effects
        codex_causes = resolve_status_effects(
            static, [cause.name for cause in codex_item.causes], self.settings
        ).downgrade(f"{label} causes")
        weapon_type = self._weapon_type_id()
        if weapon_type is not None and guide_item.type_ == weapon_type:
            element = codex_element
            codex_causes += self._status_ids(self.settings.weapon_element_statuses(element))
        codex_causes += self._status_ids(
            self.settings.item_extra_causes.get(guide_item.name, ())
        )
        status_fields = (
            ("causes", "causes", sorted(set(codex_causes))),
            ("cures", "cures", self._resolved_statuses(codex_item.cures, f"{label} cures")),
            ("gives", "gives", self._resolved_statuses(codex_item.gives, f"{label} gives")),
            (
                "immunities", "prevents",
                self._resolved_statuses(codex_item.immunities, f"{label} immunities"),
            ),
        )
        for field, attr, expected in status_fields:
            current = sorted(getattr(guide_item, attr))
            check.check_list(
                field, current, expected,
                lambda item, ids, attr=attr, current=current: fix_vec_id_field(
                    item, attr, current, ids, status_name
                ),
                status_name,
            )

        # Dropped by
        def monster_name(monster_id):
            return guide.name_of("monsters", monster_id)

        guide_dropped_by = sorted(
            monster.id for monster in guide.monsters
            if guide_item.id in monster.drops and monster.codex_uri
        )
        codex_dropped_by = sorted(
            resolve_monsters_by_uri(guide, codex_item.dropped_by).downgrade(f"{label} dropped_by")
        )
        check.check_list(
            "dropped_by", guide_dropped_by, codex_dropped_by,
            lambda item, ids: fix_vec_field(
                item, guide_dropped_by, ids,
                lambda _, to_remove: self._edit_drops(guide_item.id, to_remove, add=False),
                lambda _, to_add: self._edit_drops(guide_item.id, to_add, add=True),
                monster_name,
            ),
            monster_name,
        )

        # Upgrade materials
        def item_name(item_id):
            return guide.name_of("items", item_id)

        guide_materials = sorted(guide_item.materials)
        codex_materials = sorted(
            resolve_items_by_uri(guide, codex_item.upgrade_materials).downgrade(
                f"{label} upgrade materials"
            )
        )
        check.check_list(
            "upgrade materials", guide_materials, codex_materials,
            lambda item, ids: fix_vec_id_field(
                item, "materials", guide_materials, ids, item_name
            ),
            item_name,
        )

        return check.all_matched

    def _resolved_statuses(self, refs, context: str) -> list[int]:
        return sorted(
            resolve_status_effects(
                self.data.guide.static, [ref.name for ref in refs], self.settings
            ).downgrade(context)
        )

    def _edit_drops(self, item_id: int, monster_ids: list[int], add: bool) -> None:
        """Add or remove *item_id* from the drops of each guide monster."""
        for monster_id in monster_ids:
            what = f"monster #{monster_id}"
            monster = retry_once(lambda: self.guide.retrieve_monster(monster_id), what)
            # The snapshot may have been stale; only touch monsters that need it.
            if add == (item_id in monster.drops):
                continue
            if add:
                monster.drops.append(item_id)
            else:
                monster.drops = [drop for drop in monster.drops if drop != item_id]
            self.guide.save_monster(monster)
            self.data.guide.replace(
                retry_once(lambda: self.guide.retrieve_monster(monster_id), what)
            )
