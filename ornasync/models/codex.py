"""
ornasync/models/codex.py -- Records scraped from the public codex.

Codex records are immutable once built: a fetch replaces them wholesale
and the locale overlay produces translated copies with ``model_copy``.
Each record is addressed by the ``slug`` taken from its codex URI.

The three monster-like records (regular monsters, bosses and raids) are
exposed to the matchers through :class:`CodexGenericMonster`, a closed
tagged union with a single accessor set.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ornasync.utils import codex_uri


class Tag(str, Enum):
    """Check-marked tags shown on codex pages."""

    FOUND_IN_CHESTS = "FoundInChests"
    FOUND_IN_SHOPS = "FoundInShops"
    WORLD_RAID = "WorldRaid"
    KINGDOM_RAID = "KingdomRaid"
    OFF_HAND_ABILITY = "OffHandAbility"
    FOUND_IN_ARCANISTS = "FoundInArcanists"
    OTHER_REALMS_RAID = "OtherRealmsRaid"
    FOUND_IN_ARENA = "FoundInArena"


class Element(str, Enum):
    FIRE = "Fire"
    WATER = "Water"
    EARTHEN = "Earthen"
    LIGHTNING = "Lightning"
    HOLY = "Holy"
    DARK = "Dark"
    ARCANE = "Arcane"
    DRAGON = "Dragon"
    PHYSICAL = "Physical"


class CodexRecord(BaseModel):
    """Base of every codex record: frozen, unknown keys rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class ItemStats(CodexRecord):
    attack: int | None = None
    magic: int | None = None
    hp: int | None = None
    mana: int | None = None
    defense: int | None = None
    resistance: int | None = None
    ward: int | None = None
    dexterity: int | None = None
    crit: int | None = None
    foresight: int | None = None
    adornment_slots: int | None = None
    element: Element | None = None


class ItemAbility(CodexRecord):
    name: str
    description: str = ""


class EntityRef(CodexRecord):
    """A link from one codex page to another codex entity."""

    name: str
    uri: str
    icon: str = ""


class StatusRef(CodexRecord):
    """A status effect named on an item page (cause, cure or immunity)."""

    name: str
    icon: str = ""


class StatusGive(CodexRecord):
    name: str
    chance: int = 0
    icon: str = ""


class CodexItem(CodexRecord):
    slug: str
    name: str
    icon: str = ""
    description: str = ""
    tier: int = 0
    tags: list[Tag] = Field(default_factory=list)
    stats: ItemStats | None = None
    ability: ItemAbility | None = None
    causes: list[StatusRef] = Field(default_factory=list)
    cures: list[StatusRef] = Field(default_factory=list)
    gives: list[StatusGive] = Field(default_factory=list)
    immunities: list[StatusRef] = Field(default_factory=list)
    dropped_by: list[EntityRef] = Field(default_factory=list)
    upgrade_materials: list[EntityRef] = Field(default_factory=list)

    @property
    def uri(self) -> str:
        return codex_uri("items", self.slug)

    def stat(self, name: str) -> int:
        """Return the named stat, or 0 when the item has no such stat."""
        if self.stats is None:
            return 0
        value = getattr(self.stats, name)
        return value if value is not None else 0

    @property
    def element(self) -> Element | None:
        return self.stats.element if self.stats is not None else None


# ---------------------------------------------------------------------------
# Monsters, bosses, raids
# ---------------------------------------------------------------------------

class CodexMonster(CodexRecord):
    slug: str
    name: str
    icon: str = ""
    events: list[str] = Field(default_factory=list)
    family: str = ""
    rarity: str = ""
    tier: int = 0
    tags: list[Tag] = Field(default_factory=list)
    abilities: list[EntityRef] = Field(default_factory=list)
    drops: list[EntityRef] = Field(default_factory=list)


class CodexBoss(CodexMonster):
    pass


class CodexRaid(CodexRecord):
    slug: str
    name: str
    description: str = ""
    icon: str = ""
    events: list[str] = Field(default_factory=list)
    tier: int = 0
    tags: list[Tag] = Field(default_factory=list)
    abilities: list[EntityRef] = Field(default_factory=list)
    drops: list[EntityRef] = Field(default_factory=list)


class MonsterKind(str, Enum):
    """The codex section a monster-like record lives in."""

    MONSTER = "monsters"
    BOSS = "bosses"
    RAID = "raids"

    @property
    def label(self) -> str:
        return {"monsters": "Monster", "bosses": "Boss", "raids": "Raid"}[self.value]


_RAID_TAG_SPAWNS = {
    Tag.WORLD_RAID: "World Raid",
    Tag.KINGDOM_RAID: "Kingdom Raid",
}


@dataclass(frozen=True)
class CodexGenericMonster:
    """A regular monster, a boss or a raid, behind one accessor set."""

    kind: MonsterKind
    entity: CodexMonster | CodexBoss | CodexRaid

    @property
    def slug(self) -> str:
        return self.entity.slug

    @property
    def uri(self) -> str:
        return codex_uri(self.kind.value, self.entity.slug)

    @property
    def name(self) -> str:
        return self.entity.name

    @property
    def icon(self) -> str:
        return self.entity.icon

    @property
    def events(self) -> list[str]:
        return self.entity.events

    @property
    def family(self) -> str | None:
        """Family name; raids have none."""
        if self.kind is MonsterKind.RAID:
            return None
        return self.entity.family

    @property
    def rarity(self) -> str | None:
        if self.kind is MonsterKind.RAID:
            return None
        return self.entity.rarity

    @property
    def tier(self) -> int:
        return self.entity.tier

    @property
    def tags(self) -> list[Tag]:
        """Raid tags.  Regular monsters and bosses carry none."""
        if self.kind is MonsterKind.RAID:
            return self.entity.tags
        return []

    def tags_as_guide_spawns(self) -> list[str]:
        """Map raid tags to the guide spawn names that represent them."""
        return sorted(
            _RAID_TAG_SPAWNS[tag] for tag in self.tags if tag in _RAID_TAG_SPAWNS
        )

    @property
    def abilities(self) -> list[EntityRef]:
        return self.entity.abilities

    @property
    def drops(self) -> list[EntityRef]:
        return self.entity.drops


# ---------------------------------------------------------------------------
# Skills and followers
# ---------------------------------------------------------------------------

class SkillStatusEffect(CodexRecord):
    effect: str
    chance: int = 0


class CodexSkill(CodexRecord):
    name: str
    slug: str
    icon: str = ""
    description: str = ""
    tier: int = 0
    tags: list[Tag] = Field(default_factory=list)
    causes: list[SkillStatusEffect] = Field(default_factory=list)
    gives: list[SkillStatusEffect] = Field(default_factory=list)

    @property
    def uri(self) -> str:
        return codex_uri("spells", self.slug)

    def is_offhand(self) -> bool:
        return Tag.OFF_HAND_ABILITY in self.tags

    def bought_at_arcanist(self) -> bool:
        return Tag.FOUND_IN_ARCANISTS in self.tags


class CodexFollower(CodexRecord):
    name: str
    slug: str
    icon: str = ""
    description: str = ""
    events: list[str] = Field(default_factory=list)
    rarity: str = ""
    tier: int = 0
    abilities: list[EntityRef] = Field(default_factory=list)

    @property
    def uri(self) -> str:
        return codex_uri("followers", self.slug)


class CodexListEntry(CodexRecord):
    """One row of a codex listing page."""

    slug: str
    tier: int = 0
    uri: str
