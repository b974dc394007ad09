"""
ornasync/models/ -- Pydantic v2 records for codex and guide entities.

Submodules:
    codex   Immutable records scraped from the public codex, plus the
            CodexGenericMonster union over monsters, bosses and raids.
    guide   Mutable records mirrored from the admin guide and its static
            enumeration tables.
"""

from ornasync.models.codex import (
    CodexBoss,
    CodexFollower,
    CodexGenericMonster,
    CodexItem,
    CodexListEntry,
    CodexMonster,
    CodexRaid,
    CodexSkill,
    Element,
    EntityRef,
    ItemAbility,
    ItemStats,
    MonsterKind,
    SkillStatusEffect,
    StatusGive,
    StatusRef,
    Tag,
)
from ornasync.models.guide import (
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    CostType,
    GuideListEntry,
    Spawn,
    Static,
    StaticEntry,
)

__all__ = [
    "AdminItem", "AdminMonster", "AdminPet", "AdminSkill", "CostType",
    "CodexBoss", "CodexFollower", "CodexGenericMonster", "CodexItem",
    "CodexListEntry", "CodexMonster", "CodexRaid", "CodexSkill", "Element",
    "EntityRef", "GuideListEntry", "ItemAbility", "ItemStats", "MonsterKind",
    "SkillStatusEffect", "Spawn", "Static", "StaticEntry", "StatusGive",
    "StatusRef", "Tag",
]
