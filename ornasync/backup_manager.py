"""
ornasync/backup_manager.py -- Snapshot archives.

A backup is a timestamped ZIP holding one full snapshot: every codex and
guide table as ``<document>.json`` plus the locale databases as
``i18n/{locale}.json`` and ``i18n/manual/{locale}.json``.  Merge archives
(see :mod:`ornasync.backup_merger`) use the same layout with a ``merge``
prefix.

Usage:
    from ornasync.backup_manager import BackupManager

    bm = BackupManager(backup_dir)
    meta = bm.create_backup(data, locales, label="before-fix")
    backups = bm.list_backups()            # newest first
    data, locales = bm.load_backup(backups[0]["path"])
    removed = bm.prune()
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tempfile
import zipfile
from datetime import datetime, timezone
from pathlib import Path

from ornasync.data_store import DOCUMENT_NAMES, OrnaData
from ornasync.errors import SnapshotError
from ornasync.locale_db import LocaleDB

logger = logging.getLogger(__name__)

MANIFEST = "manifest.json"
LOCALE_DIR = "i18n/"
MANUAL_LOCALE_DIR = "i18n/manual/"

# "-2", "-3"... added to archives created within the same second
_CLASH_COUNTER = re.compile(r"_\d{8}_\d{6}-(\d+)")


def _now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def _clash_index(filename: str) -> int:
    match = _CLASH_COUNTER.search(filename)
    return int(match.group(1)) if match else 1


# ---------------------------------------------------------------------------
# BackupManager
# ---------------------------------------------------------------------------

class BackupManager:
    """Creates, lists, loads and prunes snapshot archives.

    Parameters
    ----------
    backups_dir : str or Path
        Directory holding the archives.  Created if missing.
    prefix : str
        Archive filename prefix (``backup`` or ``merge``).
    """

    MANIFEST_VERSION = 1

    def __init__(self, backups_dir, prefix: str = "backup"):
        self.backups_dir = Path(backups_dir)
        self.prefix = prefix
        os.makedirs(str(self.backups_dir), exist_ok=True)

    # ------------------------------------------------------------------
    # 1. Creation
    # ------------------------------------------------------------------

    def _archive_name(self, now: datetime, label: str | None) -> str:
        stamp = now.strftime("%Y%m%d_%H%M%S")
        safe_label = ""
        if label:
            safe_label = label.strip().lower().replace(" ", "-")
            safe_label = "".join(c for c in safe_label if c.isalnum() or c in ("-", "_"))
        suffix = f"_{safe_label}" if safe_label else ""

        filename = f"{self.prefix}_{stamp}{suffix}.zip"
        counter = 2
        while (self.backups_dir / filename).exists():
            filename = f"{self.prefix}_{stamp}-{counter}{suffix}.zip"
            counter += 1
        return filename

    def create_backup(
        self,
        data: OrnaData,
        locales: LocaleDB | None = None,
        manual_locales: LocaleDB | None = None,
        label: str | None = None,
    ) -> dict:
        """Write *data* and its locales to a new archive.

        Parameters
        ----------
        data : OrnaData
            The snapshot to archive.
        locales, manual_locales : LocaleDB, optional
            Fetched and hand-written translations.
        label : str, optional
            Appended to the filename, lowercased and hyphenated.

        Returns
        -------
        dict
            Metadata: ``path``, ``filename``, ``size_bytes``, ``timestamp``,
            ``label`` and ``counts``.

        Raises
        ------
        RuntimeError
            If the archive cannot be written.
        """
        now = _now_utc()
        filename = self._archive_name(now, label)
        final_path = self.backups_dir / filename
        locales = locales or LocaleDB()
        manual_locales = manual_locales or LocaleDB()

        counts = {"codex": data.codex.counts(), "guide": data.guide.counts()}
        manifest = {
            "backup_version": self.MANIFEST_VERSION,
            "timestamp": now.isoformat(),
            "label": label or "",
            "counts": counts,
            "locales": sorted(locales.locales),
        }

        tmp_path = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                suffix=".zip", prefix=f"{self.prefix}_tmp_", dir=str(self.backups_dir)
            )
            os.close(fd)

            with zipfile.ZipFile(tmp_path, "w", zipfile.ZIP_DEFLATED) as zf:
                zf.writestr(MANIFEST, json.dumps(manifest, indent=2, ensure_ascii=False))
                for name, payload in data.to_documents().items():
                    zf.writestr(f"{name}.json", json.dumps(payload, ensure_ascii=False))
                for locale, document in locales.to_documents().items():
                    zf.writestr(f"{LOCALE_DIR}{locale}.json", json.dumps(document, ensure_ascii=False))
                for locale, document in manual_locales.to_documents().items():
                    zf.writestr(
                        f"{MANUAL_LOCALE_DIR}{locale}.json", json.dumps(document, ensure_ascii=False)
                    )

            shutil.move(tmp_path, str(final_path))

        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning("Could not remove temporary archive %s", tmp_path)
            raise RuntimeError(
                f"Could not create backup. There may be a disk space or "
                f"permissions issue. Technical detail: {exc}"
            ) from exc

        logger.info("Created %s", final_path)
        return {
            "path": str(final_path),
            "filename": filename,
            "size_bytes": os.path.getsize(str(final_path)),
            "timestamp": now.isoformat(),
            "label": label or "",
            "counts": counts,
        }

    # ------------------------------------------------------------------
    # 2. Listing and loading
    # ------------------------------------------------------------------

    def list_backups(self) -> list[dict]:
        """Return every archive of this manager, newest first."""
        backups: list[dict] = []
        if not self.backups_dir.exists():
            return backups

        for entry in os.scandir(str(self.backups_dir)):
            if (
                entry.is_file()
                and entry.name.startswith(f"{self.prefix}_")
                and entry.name.endswith(".zip")
                and not entry.name.startswith(f"{self.prefix}_tmp_")
            ):
                info = self._read_backup_metadata(entry.path)
                if info is not None:
                    backups.append(info)

        backups.sort(key=lambda b: (b.get("timestamp", ""), _clash_index(b["filename"])), reverse=True)
        return backups

    def load_backup(self, backup_path) -> tuple[OrnaData, LocaleDB]:
        """Read an archive back into a snapshot and a merged locale database.

        Manual locale strings are folded over the fetched ones.

        Raises
        ------
        FileNotFoundError
            If the archive does not exist.
        SnapshotError
            If it is not a readable archive or a document is malformed.
        """
        if not os.path.isfile(backup_path):
            raise FileNotFoundError(
                f"The backup file was not found at: {backup_path}\n"
                f"It may have been moved or deleted."
            )

        documents: dict = {}
        locale_documents: dict = {}
        manual_documents: dict = {}
        try:
            with zipfile.ZipFile(backup_path, "r") as zf:
                for member in zf.namelist():
                    if member == MANIFEST or not member.endswith(".json"):
                        continue
                    if member.startswith(MANUAL_LOCALE_DIR):
                        target, key = manual_documents, member[len(MANUAL_LOCALE_DIR):-5]
                    elif member.startswith(LOCALE_DIR):
                        target, key = locale_documents, member[len(LOCALE_DIR):-5]
                    else:
                        key = member[:-5]
                        if key not in DOCUMENT_NAMES:
                            logger.debug("Ignoring unknown archive member %s", member)
                            continue
                        target = documents
                    target[key] = json.loads(zf.read(member).decode("utf-8"))
        except (zipfile.BadZipFile, json.JSONDecodeError, OSError) as exc:
            raise SnapshotError(f"Cannot read archive {backup_path}: {exc}") from exc

        data = OrnaData.from_documents(documents)
        locales = LocaleDB.from_documents(locale_documents)
        locales.merge_with(LocaleDB.from_documents(manual_documents))
        return data, locales

    def latest(self) -> tuple[str, OrnaData, LocaleDB]:
        """Load the newest archive that can be loaded.

        Archives that fail to load are logged and skipped.

        Raises
        ------
        SnapshotError
            If no archive could be loaded.
        """
        for backup in self.list_backups():
            try:
                data, locales = self.load_backup(backup["path"])
            except SnapshotError as exc:
                logger.warning("Failed to load %s: %s", backup["path"], exc)
                continue
            return backup["path"], data, locales
        raise SnapshotError(f"No loadable {self.prefix} archive in {self.backups_dir}")

    def delete_backup(self, backup_path) -> None:
        if not os.path.isfile(backup_path):
            raise FileNotFoundError(
                f"The backup file was not found at: {backup_path}\n"
                f"It may have already been deleted."
            )
        try:
            os.remove(backup_path)
        except OSError as exc:
            raise RuntimeError(
                f"Could not delete the backup file. It may be in use by "
                f"another program. Technical detail: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # 3. Pruning
    # ------------------------------------------------------------------

    def prune(self) -> list[str]:
        """Delete archives holding the same data as the archive before them.

        Archives are compared oldest to newest on their entity documents
        and locales only; timestamps, labels and other manifest metadata do
        not matter.  Of two equal consecutive archives the newer one is
        removed.  Archives that fail to load are skipped.

        Returns
        -------
        list[str]
            Paths of the deleted archives.
        """
        loaded = []
        for backup in reversed(self.list_backups()):
            try:
                data, locales = self.load_backup(backup["path"])
            except SnapshotError as exc:
                logger.warning("Failed to load %s: %s", backup["path"], exc)
                continue
            loaded.append((backup["path"], data.to_documents(), locales.to_documents()))

        deleted: list[str] = []
        previous = None
        for path, documents, locale_documents in loaded:
            if previous is not None and previous == (documents, locale_documents):
                self.delete_backup(path)
                deleted.append(path)
                logger.info("Pruned duplicate archive %s", path)
                continue
            previous = (documents, locale_documents)
        return deleted

    # ------------------------------------------------------------------
    # 4. Internal helpers
    # ------------------------------------------------------------------

    def _read_manifest(self, backup_path: str) -> dict | None:
        """Read the manifest.json from inside an archive.

        Returns ``None`` if the manifest is missing or unreadable.
        """
        try:
            with zipfile.ZipFile(backup_path, "r") as zf:
                if MANIFEST in zf.namelist():
                    return json.loads(zf.read(MANIFEST).decode("utf-8"))
        except (zipfile.BadZipFile, json.JSONDecodeError, OSError):
            return None
        return None

    def _read_backup_metadata(self, backup_path: str) -> dict | None:
        """Build a metadata dict from the manifest and the filename.

        Returns ``None`` if the file is not a ZIP archive.
        """
        if not zipfile.is_zipfile(backup_path):
            return None

        filename = os.path.basename(backup_path)
        ts_from_name = ""
        label_from_name = ""
        parts = filename[: -len(".zip")].split("_", 3)
        if len(parts) >= 3:
            try:
                dt = datetime.strptime(
                    f"{parts[1]}_{parts[2]}", "%Y%m%d_%H%M%S"
                ).replace(tzinfo=timezone.utc)
                ts_from_name = dt.isoformat()
            except ValueError:
                pass
            if len(parts) >= 4:
                label_from_name = parts[3]

        manifest = self._read_manifest(backup_path) or {}
        return {
            "path": str(Path(backup_path).resolve()),
            "filename": filename,
            "size_bytes": os.path.getsize(backup_path),
            "timestamp": manifest.get("timestamp", ts_from_name),
            "label": manifest.get("label", label_from_name),
            "counts": manifest.get("counts", {}),
        }
