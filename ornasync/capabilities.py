"""
ornasync/capabilities.py -- What the engine needs from the outside world.

The matchers never talk HTTP themselves.  They are handed an object
satisfying :class:`AdminGuide` (the live guide in production, an in-memory
fake in tests) and read codex records either from a snapshot or from an
object satisfying :class:`Codex`.

Static resource names accepted by ``list_static`` are those of
:attr:`ornasync.models.guide.Static.RESOURCES`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ornasync.errors import LookupFailure
from ornasync.models.codex import CodexListEntry
from ornasync.models.guide import (
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    GuideListEntry,
    Static,
    StaticEntry,
)


@runtime_checkable
class AdminGuide(Protocol):
    """Read/write access to the admin guide."""

    def retrieve_item(self, item_id: int) -> AdminItem: ...
    def save_item(self, item: AdminItem) -> None: ...
    def add_item(self, item: AdminItem) -> None: ...
    def list_items(self) -> list[GuideListEntry]: ...

    def retrieve_monster(self, monster_id: int) -> AdminMonster: ...
    def save_monster(self, monster: AdminMonster) -> None: ...
    def add_monster(self, monster: AdminMonster) -> None: ...
    def list_monsters(self) -> list[GuideListEntry]: ...

    def retrieve_skill(self, skill_id: int) -> AdminSkill: ...
    def save_skill(self, skill: AdminSkill) -> None: ...
    def add_skill(self, skill: AdminSkill) -> None: ...
    def list_skills(self) -> list[GuideListEntry]: ...

    def retrieve_pet(self, pet_id: int) -> AdminPet: ...
    def save_pet(self, pet: AdminPet) -> None: ...
    def add_pet(self, pet: AdminPet) -> None: ...
    def list_pets(self) -> list[GuideListEntry]: ...

    def list_static(self, resource: str) -> list[StaticEntry]: ...
    def retrieve_static_resources(self) -> Static: ...
    def add_spawn(self, name: str) -> None: ...
    def add_status_effect(self, name: str) -> None: ...


@runtime_checkable
class Codex(Protocol):
    """Read-only access to the public codex.

    *kind* is one of ``items``, ``monsters``, ``bosses``, ``raids``,
    ``spells`` or ``followers``.
    """

    def list(self, kind: str) -> list[CodexListEntry]: ...
    def fetch(self, kind: str, slug: str): ...


class SnapshotCodex:
    """A :class:`Codex` served from an already loaded ``CodexData``."""

    _TABLES = {
        "items": "items",
        "monsters": "monsters",
        "bosses": "bosses",
        "raids": "raids",
        "spells": "skills",
        "followers": "followers",
    }

    def __init__(self, codex_data):
        self._data = codex_data

    def _table(self, kind: str) -> list:
        if kind not in self._TABLES:
            raise LookupFailure("codex kind", kind)
        return getattr(self._data, self._TABLES[kind])

    def list(self, kind: str) -> list[CodexListEntry]:
        return [
            CodexListEntry(slug=entry.slug, tier=entry.tier, uri=f"/codex/{kind}/{entry.slug}/")
            for entry in self._table(kind)
        ]

    def fetch(self, kind: str, slug: str):
        matches = [entry for entry in self._table(kind) if entry.slug == slug]
        if len(matches) != 1:
            raise LookupFailure(f"codex {kind}", slug, len(matches))
        return matches[0]
