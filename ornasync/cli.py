"""
ornasync/cli.py -- Command line entry point.

Usage:
    ornasync match [--fix] [items|monsters|pets|skills|status_effects]
    ornasync merge match [--fix]
    ornasync backups create [--label LABEL]
    ornasync backups list
    ornasync backups merge [--changes FILE]
    ornasync backups prune
    ornasync json refresh guide [items|monsters|pets|skills|static ...]
    ornasync translation missing
    ornasync translation export LOCALE [--output DIR]

Settings come from ``ORNA_*`` environment variables (see
:mod:`ornasync.config`).  The exit status is 0 on success, 1 when a
reconciliation recorded errors, 2 on bad configuration or arguments.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from ornasync import __version__
from ornasync.backup_manager import BackupManager
from ornasync.backup_merger import BackupChanges, merge_archives
from ornasync.config import Config
from ornasync.data_store import OrnaData
from ornasync.errors import OrnaError
from ornasync.guide_client import OrnaAdminGuide
from ornasync.locale_db import LocaleDB
from ornasync.logging_config import setup_logging
from ornasync.matching.driver import KINDS, ReconciliationDriver
from ornasync.matching.settings import DEFAULT_SETTINGS
from ornasync.refresh import GUIDE_REFRESH_KINDS, refresh_guide

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _guide(config: Config) -> OrnaAdminGuide:
    return OrnaAdminGuide(
        config.GUIDE_URL,
        cookie=config.GUIDE_COOKIE,
        delay=config.REQUEST_DELAY,
        timeout=config.REQUEST_TIMEOUT,
        debug_urls=config.DEBUG_URLS,
    )


def _settings(config: Config):
    return dataclasses.replace(
        DEFAULT_SETTINGS, guide_url=config.GUIDE_URL, codex_url=config.CODEX_URL
    )


def _reconcile(config: Config, data: OrnaData, fix: bool, kinds) -> int:
    guide = _guide(config) if fix else None
    driver = ReconciliationDriver(data, guide, fix=fix, settings=_settings(config))
    report = driver.run(kinds)
    print(report.summary())
    for error in report.errors:
        print(f"error: {error}")
    return 0 if report.ok else 1


def _check_config(config: Config, need_guide: bool) -> bool:
    issues = config.validate(need_guide=need_guide)
    for issue in issues:
        logger.error(issue)
    return not issues


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_match(args, config: Config) -> int:
    if not _check_config(config, need_guide=args.fix):
        return 2
    data = OrnaData.load(config.DATA_DIR)
    kinds = [args.kind] if args.kind else None
    status = _reconcile(config, data, args.fix, kinds)
    if args.fix:
        data.save(config.DATA_DIR)
    return status


def cmd_merge_match(args, config: Config) -> int:
    if not _check_config(config, need_guide=args.fix):
        return 2
    path, data, _ = BackupManager(config.MERGE_DIR, prefix="merge").latest()
    print(f"Matching with merge archive {path}")
    return _reconcile(config, data, args.fix, None)


def cmd_backups_create(args, config: Config) -> int:
    data = OrnaData.load(config.DATA_DIR)
    locales = LocaleDB.load_directory(config.LOCALE_DIR)
    manual = LocaleDB.load_directory(config.LOCALE_DIR / "manual")
    meta = BackupManager(config.BACKUP_DIR).create_backup(data, locales, manual, label=args.label)
    print(f"Created {meta['path']} ({meta['size_bytes']} bytes)")
    return 0


def cmd_backups_list(args, config: Config) -> int:
    backups = BackupManager(config.BACKUP_DIR).list_backups()
    if not backups:
        print(f"No backups in {config.BACKUP_DIR}")
    for backup in backups:
        label = f"  [{backup['label']}]" if backup["label"] else ""
        print(f"{backup['timestamp']:32} {backup['filename']}{label}")
    return 0


def cmd_backups_merge(args, config: Config) -> int:
    changes = BackupChanges.load(args.changes) if args.changes else None
    data, locales = merge_archives(BackupManager(config.BACKUP_DIR), changes)
    meta = BackupManager(config.MERGE_DIR, prefix="merge").create_backup(data, locales)
    print(f"Created {meta['path']}")
    return 0


def cmd_backups_prune(args, config: Config) -> int:
    removed = BackupManager(config.BACKUP_DIR).prune()
    print(f"Removed {len(removed)} duplicate backup(s)")
    for path in removed:
        print(f"\t- {path}")
    return 0


def cmd_json_refresh_guide(args, config: Config) -> int:
    if not _check_config(config, need_guide=True):
        return 2
    data = OrnaData.load(config.DATA_DIR)
    counts = refresh_guide(
        data,
        _guide(config),
        args.kinds or None,
        workers=config.FETCH_WORKERS,
        delay=config.REQUEST_DELAY,
    )
    data.save(config.DATA_DIR)
    for kind, count in counts.items():
        print(f"{kind:10} {count}")
    return 0


def cmd_translation_missing(args, config: Config) -> int:
    data = OrnaData.load(config.DATA_DIR)
    db = LocaleDB.load(config.LOCALE_DIR)
    if not len(db):
        print(f"No locales in {config.LOCALE_DIR}")
    for locale in sorted(db.locales):
        missing = db.missing(data, locale)
        total = sum(len(slugs) for slugs in missing.values())
        print(f"{locale}: {total} missing")
        for table, slugs in missing.items():
            print(f"\t{table}: {', '.join(slugs)}")
    return 0


def cmd_translation_export(args, config: Config) -> int:
    data = OrnaData.load(config.DATA_DIR)
    db = LocaleDB.load(config.LOCALE_DIR)
    if args.locale not in db:
        logger.error("No strings for locale %r in %s", args.locale, config.LOCALE_DIR)
        return 2
    output = args.output or config.DATA_DIR.parent / "translated" / args.locale
    db.translated(data, args.locale).save(output)
    print(f"Exported {args.locale} snapshot to {output}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ornasync", description="Reconcile the Orna codex with orna.guide"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override ORNA_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    match = commands.add_parser("match", help="Compare the local snapshot with the codex")
    match.add_argument("--fix", action="store_true", help="Write corrections to the guide")
    match.add_argument("kind", nargs="?", choices=KINDS, help="Match a single kind")
    match.set_defaults(func=cmd_match)

    merge = commands.add_parser("merge", help="Work with merge archives")
    merge_commands = merge.add_subparsers(dest="merge_command", required=True)
    merge_match = merge_commands.add_parser("match", help="Match the newest merge archive")
    merge_match.add_argument("--fix", action="store_true", help="Write corrections to the guide")
    merge_match.set_defaults(func=cmd_merge_match)

    backups = commands.add_parser("backups", help="Manage snapshot archives")
    backup_commands = backups.add_subparsers(dest="backups_command", required=True)
    create = backup_commands.add_parser("create", help="Archive the current snapshot")
    create.add_argument("--label", default=None)
    create.set_defaults(func=cmd_backups_create)
    backup_commands.add_parser("list", help="List archives, newest first").set_defaults(
        func=cmd_backups_list
    )
    merge_backups = backup_commands.add_parser("merge", help="Fold every archive into one")
    merge_backups.add_argument("--changes", default=None, help="Backup changes JSON file")
    merge_backups.set_defaults(func=cmd_backups_merge)
    backup_commands.add_parser("prune", help="Delete duplicate archives").set_defaults(
        func=cmd_backups_prune
    )

    json_cmd = commands.add_parser("json", help="Manage the JSON snapshot")
    json_commands = json_cmd.add_subparsers(dest="json_command", required=True)
    refresh = json_commands.add_parser("refresh", help="Refresh snapshot tables")
    refresh_sources = refresh.add_subparsers(dest="source", required=True)
    refresh_guide_cmd = refresh_sources.add_parser("guide", help="Refresh from the guide")
    refresh_guide_cmd.add_argument(
        "kinds", nargs="*", metavar="kind", help=f"Any of {', '.join(GUIDE_REFRESH_KINDS)} (default: all)"
    )
    refresh_guide_cmd.set_defaults(func=cmd_json_refresh_guide)

    translation = commands.add_parser("translation", help="Manage translations")
    translation_commands = translation.add_subparsers(dest="translation_command", required=True)
    translation_commands.add_parser(
        "missing", help="List codex entities without a translation"
    ).set_defaults(func=cmd_translation_missing)
    export = translation_commands.add_parser("export", help="Export a translated snapshot")
    export.add_argument("locale")
    export.add_argument("--output", default=None)
    export.set_defaults(func=cmd_translation_export)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = Config()
    setup_logging(args.log_level or config.LOG_LEVEL)

    try:
        return args.func(args, config)
    except OrnaError as exc:
        logger.error("%s", exc)
        return 1
    except (OSError, RuntimeError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted; nothing was saved by the current command")
        return 130


if __name__ == "__main__":
    sys.exit(main())
