"""
ornasync/models/guide.py -- Records mirrored from the admin guide.

Guide records are mutable: the matchers' fixers edit them field by field
before saving them back.  Each is keyed by the integer ``id`` the guide
assigned on creation and points back at the codex through ``codex_uri``
(empty when the entity has not been matched yet).  Fields holding other
guide entities (drops, skills, spawns, status effects...) hold guide ids.

The admin forms name the entity type field ``type``; the records expose it
as ``type_`` and serialise it under its form name.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from ornasync.errors import LookupFailure
from ornasync.utils import slug_from_uri

RAID_SPAWN_NAMES = ("Kingdom Raid", "World Raid", "World Raid year-round")


class GuideRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ---------------------------------------------------------------------------
# Static resources
# ---------------------------------------------------------------------------

class StaticEntry(GuideRecord):
    """An ``(id, name)`` pair from one of the guide's enumeration tables."""

    id: int
    name: str


class Spawn(StaticEntry):
    @property
    def event_name(self) -> str:
        """The event name without its ``Event:`` / ``Past Event:`` prefix.

        Returns an empty string for spawns that are not events.
        """
        for prefix in ("Event: ", "Past Event: "):
            if self.name.startswith(prefix):
                return self.name[len(prefix):]
        return ""

    @property
    def is_event(self) -> bool:
        return self.name.startswith("Event:") or self.name.startswith("Past Event:")


class Static(GuideRecord):
    """All enumeration tables of the guide."""

    spawns: list[Spawn] = Field(default_factory=list)
    item_categories: list[StaticEntry] = Field(default_factory=list)
    item_types: list[StaticEntry] = Field(default_factory=list)
    monster_families: list[StaticEntry] = Field(default_factory=list)
    status_effects: list[StaticEntry] = Field(default_factory=list)
    elements: list[StaticEntry] = Field(default_factory=list)
    equipped_bys: list[StaticEntry] = Field(default_factory=list)
    skill_types: list[StaticEntry] = Field(default_factory=list)

    RESOURCES: ClassVar[tuple[str, ...]] = (
        "spawns", "item_categories", "item_types", "monster_families",
        "status_effects", "elements", "equipped_bys", "skill_types",
    )

    def table(self, resource: str) -> list[StaticEntry]:
        if resource not in self.RESOURCES:
            raise KeyError(f"Unknown static resource '{resource}'")
        return getattr(self, resource)

    def find_by_id(self, resource: str, entry_id: int) -> StaticEntry | None:
        return next((e for e in self.table(resource) if e.id == entry_id), None)

    def find_by_name(self, resource: str, name: str) -> StaticEntry | None:
        return next((e for e in self.table(resource) if e.name == name), None)

    def get_by_name(self, resource: str, name: str) -> StaticEntry:
        """Return the entry called *name*, raising ``LookupFailure`` if absent."""
        entry = self.find_by_name(resource, name)
        if entry is None:
            raise LookupFailure(resource, name)
        return entry

    def name_of(self, resource: str, entry_id: int) -> str:
        entry = self.find_by_id(resource, entry_id)
        return entry.name if entry is not None else f"#{entry_id}"

    def iter_events(self):
        return (spawn for spawn in self.spawns if spawn.is_event)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class GuideEntity(GuideRecord):
    """Fields shared by every guide entity."""

    id: int = 0
    codex_uri: str = ""
    name: str = ""
    tier: int = 0

    CODEX_KIND: ClassVar[str] = ""

    @property
    def slug(self) -> str:
        """Slug of the codex counterpart, or ``""`` when unmatched."""
        return slug_from_uri(self.codex_uri, self.CODEX_KIND or None)


class AdminItem(GuideEntity):
    CODEX_KIND: ClassVar[str] = "items"

    type_: int = Field(13, alias="type")
    image_name: str = ""
    description: str = ""
    notes: str = ""
    hp: int = 0
    hp_affected_by_quality: bool = False
    mana: int = 0
    mana_affected_by_quality: bool = False
    attack: int = 0
    attack_affected_by_quality: bool = True
    magic: int = 0
    magic_affected_by_quality: bool = True
    defense: int = 0
    defense_affected_by_quality: bool = True
    resistance: int = 0
    resistance_affected_by_quality: bool = True
    dexterity: int = 0
    dexterity_affected_by_quality: bool = False
    ward: int = 0
    ward_affected_by_quality: bool = True
    crit: int = 0
    crit_affected_by_quality: bool = False
    foresight: int = 0
    view_distance: int = 0
    follower_stats: int = 0
    follower_act: int = 0
    status_infliction: int = 0
    status_protection: int = 0
    mana_saver: int = 0
    potion_effectiveness: int = 0
    has_slots: bool = False
    base_adornment_slots: int = 0
    rarity: str = "NO"
    element: int | None = None
    equipped_by: list[int] = Field(default_factory=list)
    two_handed: bool = False
    orn_bonus: float = 0.0
    gold_bonus: float = 0.0
    drop_bonus: float = 0.0
    spawn_bonus: float = 0.0
    exp_bonus: float = 0.0
    boss: bool = False
    arena: bool = False
    category: int | None = None
    causes: list[int] = Field(default_factory=list)
    cures: list[int] = Field(default_factory=list)
    gives: list[int] = Field(default_factory=list)
    prevents: list[int] = Field(default_factory=list)
    materials: list[int] = Field(default_factory=list)
    price: int = 0
    ability: int | None = None


class AdminMonster(GuideEntity):
    family: int | None = None
    image_name: str = ""
    boss: bool = False
    hp: int = 0
    level: int = 0
    notes: str = ""
    spawns: list[int] = Field(default_factory=list)
    weak_to: list[int] = Field(default_factory=list)
    resistant_to: list[int] = Field(default_factory=list)
    immune_to: list[int] = Field(default_factory=list)
    immune_to_status: list[int] = Field(default_factory=list)
    vulnerable_to_status: list[int] = Field(default_factory=list)
    drops: list[int] = Field(default_factory=list)
    skills: list[int] = Field(default_factory=list)

    @property
    def slug(self) -> str:
        # Monsters, bosses and raids share the guide table.
        return slug_from_uri(self.codex_uri)

    def _spawn_names(self, spawns: list[Spawn]) -> list[str]:
        by_id = {spawn.id: spawn.name for spawn in spawns}
        return [by_id[spawn_id] for spawn_id in self.spawns if spawn_id in by_id]

    def is_regular_monster(self) -> bool:
        return not self.boss

    def is_raid(self, spawns: list[Spawn]) -> bool:
        return self.boss and any(
            name in RAID_SPAWN_NAMES for name in self._spawn_names(spawns)
        )

    def kind(self, spawns: list[Spawn]) -> str:
        """Return ``"monsters"``, ``"bosses"`` or ``"raids"``."""
        if self.is_regular_monster():
            return "monsters"
        return "raids" if self.is_raid(spawns) else "bosses"

    def event_ids(self, spawns: list[Spawn]) -> list[int]:
        """Ids of the ``Event:`` / ``Past Event:`` spawns of the monster."""
        by_id = {spawn.id: spawn for spawn in spawns}
        return [
            spawn_id for spawn_id in self.spawns
            if spawn_id in by_id and by_id[spawn_id].is_event
        ]

    def raid_spawns(self, spawns: list[Spawn]) -> list[str]:
        """Sorted ``"Kingdom Raid"`` / ``"World Raid"`` spawn names."""
        return sorted(
            name for name in self._spawn_names(spawns)
            if name in ("Kingdom Raid", "World Raid")
        )


class AdminSkill(GuideEntity):
    CODEX_KIND: ClassVar[str] = "spells"

    type_: int = Field(0, alias="type")
    is_magic: bool = False
    mana_cost: int = 0
    description: str = ""
    element: int | None = None
    offhand: bool = False
    cost: int = 0
    bought: bool = False
    skill_power: float = 0.0
    strikes: int = 0
    modifier_min: float = 0.0
    modifier_max: float = 0.0
    extra: str = ""
    buffed_by: list[int] = Field(default_factory=list)
    causes: list[int] = Field(default_factory=list)
    cures: list[int] = Field(default_factory=list)
    gives: list[int] = Field(default_factory=list)


class CostType(str, Enum):
    ORN = "orn"
    GOLD = "gold"


class AdminPet(GuideEntity):
    CODEX_KIND: ClassVar[str] = "followers"

    image_name: str = ""
    description: str = ""
    attack: int = 0
    heal: int = 0
    buff: int = 0
    debuff: int = 0
    spell: int = 0
    protect: int = 0
    cost: int = 0
    cost_type: CostType = CostType.ORN
    limited: bool = False
    limited_details: str = ""
    skills: list[int] = Field(default_factory=list)


class GuideListEntry(GuideRecord):
    """One row of an admin changelist page."""

    id: int
    name: str
