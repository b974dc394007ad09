"""
ornasync/data_store.py -- Entity store for codex and guide snapshots.

Holds the in-memory view of both catalogues and the lookups the matchers
need: codex entities by slug or URI, guide entities by id or by the slug of
their ``codex_uri``.  Snapshots are a directory of JSON documents, one per
entity table:

    codex_items.json  codex_raids.json  codex_monsters.json
    codex_bosses.json codex_skills.json codex_followers.json
    guide_items.json  guide_monsters.json  guide_skills.json  guide_pets.json
    guide_spawns.json guide_elements.json  guide_item_types.json ...

The same document mapping is what the backup archives store, so
:meth:`OrnaData.to_documents` / :meth:`OrnaData.from_documents` are the
single serialisation point for both.

Usage:
    from ornasync.data_store import OrnaData

    data = OrnaData.load("/path/to/output")
    item = data.codex.find_item_by_slug("bronze-sword")
    matches = data.guide.items_with_slug("bronze-sword")
    data.save("/path/to/output")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, TypeAdapter, ValidationError

from ornasync.errors import LookupFailure, SnapshotError
from ornasync.models.codex import (
    CodexBoss,
    CodexFollower,
    CodexGenericMonster,
    CodexItem,
    CodexMonster,
    CodexRaid,
    CodexSkill,
    MonsterKind,
)
from ornasync.models.guide import (
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    Spawn,
    Static,
    StaticEntry,
)
from ornasync.utils import (
    kind_from_uri,
    normalize_uri,
    safe_write_json,
    sanitize_guide_name,
    slug_from_uri,
)

logger = logging.getLogger(__name__)

# (document name, attribute, record type)
CODEX_TABLES = (
    ("codex_items", "items", CodexItem),
    ("codex_raids", "raids", CodexRaid),
    ("codex_monsters", "monsters", CodexMonster),
    ("codex_bosses", "bosses", CodexBoss),
    ("codex_skills", "skills", CodexSkill),
    ("codex_followers", "followers", CodexFollower),
)

GUIDE_TABLES = (
    ("guide_items", "items", AdminItem),
    ("guide_monsters", "monsters", AdminMonster),
    ("guide_skills", "skills", AdminSkill),
    ("guide_pets", "pets", AdminPet),
)

STATIC_TABLES = (
    ("guide_spawns", "spawns", Spawn),
    ("guide_elements", "elements", StaticEntry),
    ("guide_item_types", "item_types", StaticEntry),
    ("guide_equipped_bys", "equipped_bys", StaticEntry),
    ("guide_status_effects", "status_effects", StaticEntry),
    ("guide_item_categories", "item_categories", StaticEntry),
    ("guide_monster_families", "monster_families", StaticEntry),
    ("guide_skill_types", "skill_types", StaticEntry),
)

DOCUMENT_NAMES = tuple(
    name for name, _, _ in CODEX_TABLES + GUIDE_TABLES + STATIC_TABLES
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dump_list(records: list[BaseModel]) -> list[dict]:
    return [record.model_dump(mode="json", by_alias=True) for record in records]


def _load_list(name: str, record_type: type[BaseModel], raw) -> list:
    """Validate the raw JSON list of document *name* into records."""
    if raw is None:
        return []
    try:
        return TypeAdapter(list[record_type]).validate_python(raw)
    except ValidationError as exc:
        raise SnapshotError(
            f"Snapshot document '{name}' does not match the {record_type.__name__} "
            f"record layout: {exc.error_count()} error(s)"
        ) from exc


def _exactly_one(kind: str, key: str, matches: list):
    if len(matches) != 1:
        raise LookupFailure(kind, key, len(matches))
    return matches[0]


# ---------------------------------------------------------------------------
# Codex
# ---------------------------------------------------------------------------

@dataclass
class CodexData:
    """All codex tables.  Each list is replaced wholesale on refresh."""

    items: list[CodexItem] = field(default_factory=list)
    raids: list[CodexRaid] = field(default_factory=list)
    monsters: list[CodexMonster] = field(default_factory=list)
    bosses: list[CodexBoss] = field(default_factory=list)
    skills: list[CodexSkill] = field(default_factory=list)
    followers: list[CodexFollower] = field(default_factory=list)

    def find_item_by_slug(self, slug: str) -> CodexItem:
        return _exactly_one("codex item", slug, [i for i in self.items if i.slug == slug])

    def find_skill_by_slug(self, slug: str) -> CodexSkill:
        return _exactly_one("codex skill", slug, [s for s in self.skills if s.slug == slug])

    def find_follower_by_slug(self, slug: str) -> CodexFollower:
        return _exactly_one(
            "codex follower", slug, [f for f in self.followers if f.slug == slug]
        )

    def iter_all_monsters(self) -> Iterator[CodexGenericMonster]:
        """Yield regular monsters, then bosses, then raids."""
        for monster in self.monsters:
            yield CodexGenericMonster(MonsterKind.MONSTER, monster)
        for boss in self.bosses:
            yield CodexGenericMonster(MonsterKind.BOSS, boss)
        for raid in self.raids:
            yield CodexGenericMonster(MonsterKind.RAID, raid)

    def find_generic_monster_by_uri(self, uri: str) -> CodexGenericMonster:
        """Resolve a ``/codex/{monsters|bosses|raids}/{slug}/`` URI."""
        kind = kind_from_uri(uri)
        slug = slug_from_uri(uri)
        if kind not in ("monsters", "bosses", "raids") or not slug:
            raise LookupFailure("codex monster", uri)
        matches = [
            monster for monster in self.iter_all_monsters()
            if monster.kind.value == kind and monster.slug == slug
        ]
        return _exactly_one("codex monster", uri, matches)

    def counts(self) -> dict[str, int]:
        return {attr: len(getattr(self, attr)) for _, attr, _ in CODEX_TABLES}


# ---------------------------------------------------------------------------
# Guide
# ---------------------------------------------------------------------------

@dataclass
class GuideData:
    """All admin-guide tables plus the static enumerations."""

    items: list[AdminItem] = field(default_factory=list)
    monsters: list[AdminMonster] = field(default_factory=list)
    skills: list[AdminSkill] = field(default_factory=list)
    pets: list[AdminPet] = field(default_factory=list)
    static: Static = field(default_factory=Static)

    # ------------------------------------------------------------------
    # 1. By id
    # ------------------------------------------------------------------

    def find_item_by_id(self, item_id: int) -> AdminItem | None:
        return next((i for i in self.items if i.id == item_id), None)

    def find_monster_by_id(self, monster_id: int) -> AdminMonster | None:
        return next((m for m in self.monsters if m.id == monster_id), None)

    def find_skill_by_id(self, skill_id: int) -> AdminSkill | None:
        return next((s for s in self.skills if s.id == skill_id), None)

    def find_pet_by_id(self, pet_id: int) -> AdminPet | None:
        return next((p for p in self.pets if p.id == pet_id), None)

    # ------------------------------------------------------------------
    # 2. By codex slug / uri
    # ------------------------------------------------------------------

    def items_with_slug(self, slug: str) -> list[AdminItem]:
        return [i for i in self.items if i.codex_uri and i.slug == slug]

    def skills_with_slug(self, slug: str) -> list[AdminSkill]:
        return [s for s in self.skills if s.codex_uri and s.slug == slug]

    def pets_with_slug(self, slug: str) -> list[AdminPet]:
        return [p for p in self.pets if p.codex_uri and p.slug == slug]

    def monsters_with_slug(self, kind: str, slug: str) -> list[AdminMonster]:
        """Guide monsters of *kind* (monsters/bosses/raids) linked to *slug*."""
        spawns = self.static.spawns
        return [
            m for m in self.monsters
            if m.codex_uri and m.kind(spawns) == kind and m.slug == slug
        ]

    def monsters_with_uri(self, uri: str) -> list[AdminMonster]:
        """Guide monsters whose ``codex_uri`` is exactly *uri*."""
        target = normalize_uri(uri)
        return [m for m in self.monsters if target and normalize_uri(m.codex_uri) == target]

    def items_with_uri(self, uri: str) -> list[AdminItem]:
        target = normalize_uri(uri)
        return [i for i in self.items if target and normalize_uri(i.codex_uri) == target]

    def skills_with_uri(self, uri: str) -> list[AdminSkill]:
        target = normalize_uri(uri)
        return [s for s in self.skills if target and normalize_uri(s.codex_uri) == target]

    def offhand_skills_named(self, name: str) -> list[AdminSkill]:
        return [s for s in self.skills if s.offhand and sanitize_guide_name(s.name) == name]

    # ------------------------------------------------------------------
    # 3. Replacement after a confirmed fix
    # ------------------------------------------------------------------

    def replace(self, record) -> None:
        """Swap the in-memory copy of *record* (matched by id and type)."""
        table = self._table_for(record)
        for index, existing in enumerate(table):
            if existing.id == record.id:
                table[index] = record
                return
        table.append(record)

    def _table_for(self, record) -> list:
        if isinstance(record, AdminItem):
            return self.items
        if isinstance(record, AdminMonster):
            return self.monsters
        if isinstance(record, AdminSkill):
            return self.skills
        if isinstance(record, AdminPet):
            return self.pets
        raise TypeError(f"Not a guide entity: {type(record).__name__}")

    def name_of(self, table: str, entity_id: int) -> str:
        """Display name of guide entity *entity_id* in *table*, for reports."""
        entity = next((e for e in getattr(self, table) if e.id == entity_id), None)
        return entity.name if entity is not None else f"#{entity_id}"

    def counts(self) -> dict[str, int]:
        return {attr: len(getattr(self, attr)) for _, attr, _ in GUIDE_TABLES}


# ---------------------------------------------------------------------------
# Both
# ---------------------------------------------------------------------------

@dataclass
class OrnaData:
    """One codex snapshot and one guide snapshot, reconciled together."""

    codex: CodexData = field(default_factory=CodexData)
    guide: GuideData = field(default_factory=GuideData)

    # ------------------------------------------------------------------
    # 1. Document mapping
    # ------------------------------------------------------------------

    def to_documents(self) -> dict[str, list[dict]]:
        """Return ``{document name: JSON-ready list}`` for every table."""
        documents: dict[str, list[dict]] = {}
        for name, attr, _ in CODEX_TABLES:
            documents[name] = _dump_list(getattr(self.codex, attr))
        for name, attr, _ in GUIDE_TABLES:
            documents[name] = _dump_list(getattr(self.guide, attr))
        for name, attr, _ in STATIC_TABLES:
            documents[name] = _dump_list(getattr(self.guide.static, attr))
        return documents

    @classmethod
    def from_documents(cls, documents: dict) -> "OrnaData":
        """Build an OrnaData from a document mapping.

        Missing documents load as empty tables; malformed ones raise
        :class:`~ornasync.errors.SnapshotError`.
        """
        codex = CodexData(**{
            attr: _load_list(name, record_type, documents.get(name))
            for name, attr, record_type in CODEX_TABLES
        })
        static = Static(**{
            attr: _load_list(name, record_type, documents.get(name))
            for name, attr, record_type in STATIC_TABLES
        })
        guide = GuideData(
            static=static,
            **{
                attr: _load_list(name, record_type, documents.get(name))
                for name, attr, record_type in GUIDE_TABLES
            },
        )
        return cls(codex=codex, guide=guide)

    # ------------------------------------------------------------------
    # 2. Snapshot directory
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, directory) -> "OrnaData":
        """Load every ``<document>.json`` found in *directory*.

        Raises
        ------
        SnapshotError
            If a document exists but is not valid JSON or has the wrong shape.
        """
        root = Path(directory)
        documents = {}
        for name in DOCUMENT_NAMES:
            path = root / f"{name}.json"
            if not path.exists():
                logger.debug("Snapshot document %s not found; starting empty", path)
                continue
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    documents[name] = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                raise SnapshotError(f"Cannot read snapshot document {path}: {exc}") from exc
        return cls.from_documents(documents)

    def save(self, directory) -> None:
        """Write every table to ``<directory>/<document>.json`` atomically."""
        root = Path(directory)
        try:
            root.mkdir(parents=True, exist_ok=True)
            for name, payload in self.to_documents().items():
                safe_write_json(root / f"{name}.json", payload)
        except OSError as exc:
            raise SnapshotError(f"Cannot write snapshot to {root}: {exc}") from exc
        logger.info("Saved snapshot to %s", root)
