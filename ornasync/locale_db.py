"""
ornasync/locale_db.py -- Translation overlays for codex and guide data.

The codex is published in several languages.  Each locale's strings are
kept in one :class:`LocaleStrings` document keyed by codex slug (entities)
or by English string (statuses, events, spawns, families, rarities).  A
:class:`LocaleDB` gathers every locale.

On disk a locale database is a directory of ``{locale}.json`` files, plus
an optional ``manual/{locale}.json`` overlay of hand-written fixes that
take precedence over the fetched strings.

Usage:
    from ornasync.locale_db import LocaleDB

    db = LocaleDB.load(data_dir / "i18n")
    french = db.translated(data, "fr")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ornasync.data_store import OrnaData
from ornasync.errors import SnapshotError
from ornasync.utils import safe_write_json

logger = logging.getLogger(__name__)


class Translation(BaseModel):
    """Translated strings of one entity.  Absent strings stay in English."""

    model_config = ConfigDict(extra="forbid")

    name: str
    description: str | None = None


ENTITY_TABLES = ("items", "raids", "monsters", "bosses", "skills", "followers")
STRING_TABLES = ("statuses", "events", "spawns", "families", "rarities")


class LocaleStrings(BaseModel):
    """Every translated string of one locale."""

    model_config = ConfigDict(extra="forbid")

    locale: str = ""
    items: dict[str, Translation] = Field(default_factory=dict)
    raids: dict[str, Translation] = Field(default_factory=dict)
    monsters: dict[str, Translation] = Field(default_factory=dict)
    bosses: dict[str, Translation] = Field(default_factory=dict)
    skills: dict[str, Translation] = Field(default_factory=dict)
    followers: dict[str, Translation] = Field(default_factory=dict)
    statuses: dict[str, str] = Field(default_factory=dict)
    events: dict[str, str] = Field(default_factory=dict)
    spawns: dict[str, str] = Field(default_factory=dict)
    families: dict[str, str] = Field(default_factory=dict)
    rarities: dict[str, str] = Field(default_factory=dict)

    def merge_with(self, other: "LocaleStrings") -> None:
        """Fold *other* into ``self``; on duplicate keys *other* wins."""
        for table in ENTITY_TABLES + STRING_TABLES:
            getattr(self, table).update(getattr(other, table))

    def entity(self, table: str, slug: str) -> Translation | None:
        return getattr(self, table).get(slug)

    def string(self, table: str, english: str) -> str:
        """Translated *english*, or *english* itself when untranslated."""
        return getattr(self, table).get(english, english)


class LocaleDB:
    """All locales, keyed by locale name (``fr``, ``de``, ``pt-br``...)."""

    def __init__(self, locales: dict[str, LocaleStrings] | None = None):
        self.locales: dict[str, LocaleStrings] = dict(locales or {})

    def __eq__(self, other) -> bool:
        return isinstance(other, LocaleDB) and self.locales == other.locales

    def __contains__(self, locale: str) -> bool:
        return locale in self.locales

    def __len__(self) -> int:
        return len(self.locales)

    def get(self, locale: str) -> LocaleStrings:
        """Strings of *locale*, created empty if unknown."""
        if locale not in self.locales:
            self.locales[locale] = LocaleStrings(locale=locale)
        return self.locales[locale]

    def merge_with(self, other: "LocaleDB") -> None:
        """Fold *other* into ``self`` locale by locale; *other* wins."""
        for locale, strings in other.locales.items():
            if locale in self.locales:
                self.locales[locale].merge_with(strings)
            else:
                self.locales[locale] = strings.model_copy(deep=True)

    # ------------------------------------------------------------------
    # 1. Serialisation
    # ------------------------------------------------------------------

    def to_documents(self) -> dict[str, dict]:
        return {
            locale: strings.model_dump(mode="json")
            for locale, strings in sorted(self.locales.items())
        }

    @classmethod
    def from_documents(cls, documents: dict) -> "LocaleDB":
        """Build a database from ``{locale: raw document}``.

        Raises
        ------
        SnapshotError
            If a document does not have the LocaleStrings layout.
        """
        locales = {}
        for locale, raw in documents.items():
            try:
                strings = LocaleStrings.model_validate(raw)
            except ValidationError as exc:
                raise SnapshotError(
                    f"Locale document '{locale}' is malformed: {exc.error_count()} error(s)"
                ) from exc
            locales[locale] = strings.model_copy(update={"locale": locale})
        return cls(locales)

    @classmethod
    def load_directory(cls, directory) -> "LocaleDB":
        """Read every ``*.json`` file of *directory* (not recursive).

        Unreadable files are logged and skipped; a missing directory is an
        empty database.
        """
        root = Path(directory)
        documents = {}
        if not root.is_dir():
            return cls()
        for path in sorted(root.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    documents[path.stem] = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable locale file %s: %s", path, exc)
        return cls.from_documents(documents)

    @classmethod
    def load(cls, directory) -> "LocaleDB":
        """Load ``directory/*.json`` with ``directory/manual/*.json`` on top."""
        db = cls.load_directory(directory)
        db.merge_with(cls.load_directory(Path(directory) / "manual"))
        return db

    def save(self, directory) -> None:
        root = Path(directory)
        try:
            root.mkdir(parents=True, exist_ok=True)
            for locale, document in self.to_documents().items():
                safe_write_json(root / f"{locale}.json", document)
        except OSError as exc:
            raise SnapshotError(f"Cannot write locales to {root}: {exc}") from exc

    # ------------------------------------------------------------------
    # 2. Coverage and translation
    # ------------------------------------------------------------------

    def missing(self, data: OrnaData, locale: str) -> dict[str, list[str]]:
        """Codex slugs per table that *locale* has no translation for."""
        strings = self.locales.get(locale) or LocaleStrings(locale=locale)
        missing = {}
        for table in ENTITY_TABLES:
            slugs = [
                entity.slug for entity in getattr(data.codex, table)
                if strings.entity(table, entity.slug) is None
            ]
            if slugs:
                missing[table] = sorted(slugs)
        return missing

    def translated(self, data: OrnaData, locale: str) -> OrnaData:
        """Return a deep copy of *data* with *locale*'s strings applied.

        Codex entities are matched by slug; guide entities through the slug
        of their ``codex_uri``.  Untranslated strings stay in English and
        *data* itself is left untouched.
        """
        strings = self.locales.get(locale) or LocaleStrings(locale=locale)
        result = OrnaData.from_documents(data.to_documents())
        codex, guide = result.codex, result.guide

        def apply(record, translation):
            if translation is None:
                return record
            update = {"name": translation.name}
            if translation.description is not None and hasattr(record, "description"):
                update["description"] = translation.description
            return record.model_copy(update=update)

        for table in ENTITY_TABLES:
            setattr(codex, table, [
                apply(entity, strings.entity(table, entity.slug))
                for entity in getattr(codex, table)
            ])

        for item in guide.items:
            translation = strings.entity("items", item.slug)
            if translation is not None:
                item.name = translation.name
                item.description = translation.description or item.description
        for skill in guide.skills:
            translation = strings.entity("skills", skill.slug)
            if translation is not None:
                skill.name = translation.name
                skill.description = translation.description or skill.description
        for pet in guide.pets:
            translation = strings.entity("followers", pet.slug)
            if translation is not None:
                pet.name = translation.name
                pet.description = translation.description or pet.description
        spawns = guide.static.spawns
        for monster in guide.monsters:
            translation = strings.entity(monster.kind(spawns), monster.slug)
            if translation is not None:
                monster.name = translation.name

        static = guide.static
        static.status_effects = [
            entry.model_copy(update={"name": strings.string("statuses", entry.name)})
            for entry in static.status_effects
        ]
        static.monster_families = [
            entry.model_copy(update={"name": strings.string("families", entry.name)})
            for entry in static.monster_families
        ]
        static.spawns = [
            spawn.model_copy(update={"name": _translate_spawn(strings, spawn.name)})
            for spawn in static.spawns
        ]
        return result


def _translate_spawn(strings: LocaleStrings, name: str) -> str:
    for prefix in ("Event: ", "Past Event: "):
        if name.startswith(prefix):
            return prefix + strings.string("events", name[len(prefix):])
    return strings.string("spawns", name)
