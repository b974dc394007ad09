"""
ornasync/backup_merger.py -- Fold many snapshot archives into one.

Entities come and go from both the codex and the guide, and a single
snapshot only shows what was live when it was taken.  Folding every
archive oldest to newest keeps the most recent version of each entity
ever seen: codex entities keyed by slug, guide entities and static
entries keyed by id, locale strings keyed by locale then key.

A hand-written *backup changes* file can then drop entities that are known
to be gone for good and replace codex entities whose archived version is
known to be wrong.  Its layout::

    {
      "removal": {
        "codex": {"skills": [slug], "raids": [slug], "monsters": [slug], "items": [slug]},
        "guide": {"items": [id]}
      },
      "override": {
        "codex": {"items": [CodexItem], "monsters": [...], "raids": [...],
                  "skills": [...], "followers": [...]}
      }
    }

Usage:
    from ornasync.backup_merger import BackupMerger, BackupChanges

    merger = BackupMerger()
    for path in oldest_to_newest:
        merger.merge_with(*manager.load_backup(path))
    data, locales = merger.result(BackupChanges.load("changes.json"))
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import jsonschema
from pydantic import TypeAdapter, ValidationError

from ornasync.data_store import CODEX_TABLES, GUIDE_TABLES, STATIC_TABLES, OrnaData
from ornasync.errors import SnapshotError
from ornasync.locale_db import LocaleDB
from ornasync.models.codex import CodexFollower, CodexItem, CodexMonster, CodexRaid, CodexSkill

logger = logging.getLogger(__name__)

# Boss slugs retired by the codex; older archives still carry them.
RETIRED_BOSS_SLUGS = frozenset({"immortal-lord"})

_SLUG_LIST = {"type": "array", "items": {"type": "string"}}
_RECORD_LIST = {"type": "array", "items": {"type": "object", "required": ["slug"]}}

BACKUP_CHANGES_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "removal": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "codex": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "skills": _SLUG_LIST,
                        "raids": _SLUG_LIST,
                        "monsters": _SLUG_LIST,
                        "items": _SLUG_LIST,
                    },
                },
                "guide": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "items": {"type": "array", "items": {"type": "integer"}},
                    },
                },
            },
        },
        "override": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "codex": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "items": _RECORD_LIST,
                        "monsters": _RECORD_LIST,
                        "raids": _RECORD_LIST,
                        "skills": _RECORD_LIST,
                        "followers": _RECORD_LIST,
                    },
                },
            },
        },
    },
}

OVERRIDE_TYPES = {
    "items": CodexItem,
    "monsters": CodexMonster,
    "raids": CodexRaid,
    "skills": CodexSkill,
    "followers": CodexFollower,
}


def _humanize_error(error) -> str:
    path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "(root)"
    return f"Issue at '{path}': {error.message}"


# ---------------------------------------------------------------------------
# BackupChanges
# ---------------------------------------------------------------------------

class BackupChanges:
    """Removals and overrides applied to a merged snapshot."""

    def __init__(self, document: dict | None = None):
        document = document or {}
        errors = list(jsonschema.Draft202012Validator(BACKUP_CHANGES_SCHEMA).iter_errors(document))
        if errors:
            lines = "\n".join(f"  {i}. {_humanize_error(err)}" for i, err in enumerate(errors, 1))
            raise SnapshotError(f"The backup changes have some issues:\n{lines}")

        removal = document.get("removal", {})
        self.codex_removals: dict[str, set[str]] = {
            table: set(slugs) for table, slugs in removal.get("codex", {}).items()
        }
        self.guide_item_removals: set[int] = set(removal.get("guide", {}).get("items", []))

        self.codex_overrides: dict[str, list] = {}
        for table, records in document.get("override", {}).get("codex", {}).items():
            try:
                self.codex_overrides[table] = TypeAdapter(
                    list[OVERRIDE_TYPES[table]]
                ).validate_python(records)
            except ValidationError as exc:
                raise SnapshotError(
                    f"Override of codex {table} is malformed: {exc.error_count()} error(s)"
                ) from exc

    @classmethod
    def load(cls, path) -> "BackupChanges":
        """Read and validate a changes file.

        Raises
        ------
        SnapshotError
            If the file cannot be read or does not have the expected layout.
        """
        try:
            with open(Path(path), "r", encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"Cannot read backup changes {path}: {exc}") from exc
        return cls(document)

    def apply_to(self, data: OrnaData) -> None:
        """Apply removals, then overrides, to *data* in place.

        An override only replaces an entity that is present; it never adds
        one.
        """
        codex = data.codex
        for table, slugs in self.codex_removals.items():
            setattr(codex, table, [e for e in getattr(codex, table) if e.slug not in slugs])
        if self.guide_item_removals:
            data.guide.items = [
                item for item in data.guide.items if item.id not in self.guide_item_removals
            ]

        for table, records in self.codex_overrides.items():
            by_slug = {record.slug: record for record in records}
            setattr(codex, table, [
                by_slug.get(entity.slug, entity) for entity in getattr(codex, table)
            ])


# ---------------------------------------------------------------------------
# BackupMerger
# ---------------------------------------------------------------------------

class BackupMerger:
    """Accumulates snapshots; later ones overwrite earlier ones key by key."""

    def __init__(self):
        self._codex: dict[str, dict[str, object]] = {attr: {} for _, attr, _ in CODEX_TABLES}
        self._guide: dict[str, dict[int, object]] = {attr: {} for _, attr, _ in GUIDE_TABLES}
        self._static: dict[str, dict[int, object]] = {attr: {} for _, attr, _ in STATIC_TABLES}
        self._locales = LocaleDB()
        self.merged = 0

    def merge_with(self, data: OrnaData, locales: LocaleDB | None = None) -> None:
        for attr, table in self._codex.items():
            for entity in getattr(data.codex, attr):
                if attr == "bosses" and entity.slug in RETIRED_BOSS_SLUGS:
                    continue
                table[entity.slug] = entity
        for attr, table in self._guide.items():
            for entity in getattr(data.guide, attr):
                table[entity.id] = entity
        for attr, table in self._static.items():
            for entry in data.guide.static.table(attr):
                table[entry.id] = entry
        if locales is not None:
            self._locales.merge_with(locales)
        self.merged += 1

    def result(self, changes: BackupChanges | None = None) -> tuple[OrnaData, LocaleDB]:
        """Return the merged snapshot (entities sorted by key) and locales."""
        data = OrnaData()
        for attr, table in self._codex.items():
            setattr(data.codex, attr, [table[slug] for slug in sorted(table)])
        for attr, table in self._guide.items():
            setattr(data.guide, attr, [table[key] for key in sorted(table)])
        for attr, table in self._static.items():
            setattr(data.guide.static, attr, [table[key] for key in sorted(table)])
        if changes is not None:
            changes.apply_to(data)
        logger.info("Merged %d snapshot(s)", self.merged)
        return data, self._locales


def merge_archives(manager, changes: BackupChanges | None = None) -> tuple[OrnaData, LocaleDB]:
    """Fold every archive of *manager* oldest to newest.

    Archives that fail to load are logged and skipped.
    """
    merger = BackupMerger()
    for backup in reversed(manager.list_backups()):
        try:
            data, locales = manager.load_backup(backup["path"])
        except SnapshotError as exc:
            logger.warning("Failed to load %s: %s", backup["path"], exc)
            continue
        merger.merge_with(data, locales)
    return merger.result(changes)
