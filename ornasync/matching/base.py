"""
ornasync/matching/base.py -- Shared skeleton of the per-kind matchers.

Every matcher runs the same two phases:

    list_missing   report codex entities absent from the guide and guide
                   entities absent from the codex (and, in fix mode, create
                   the missing ones where the kind supports it)
    check_fields   for each codex entity located on the guide, compare its
                   fields through a Checker

A failure on one entity (lookup ambiguity, guide I/O) is logged, recorded
in the kind's report, and the loop moves on to the next entity.
"""

from __future__ import annotations

import logging
from typing import Callable

from ornasync.capabilities import AdminGuide
from ornasync.data_store import OrnaData
from ornasync.errors import LookupFailure, OrnaError
from ornasync.matching.checker import Checker
from ornasync.matching.report import KindReport
from ornasync.matching.settings import DEFAULT_SETTINGS, MatchSettings
from ornasync.utils import retry_once

logger = logging.getLogger(__name__)


class EntityMatcher:
    """Base class of the item, monster, skill, pet and status effect matchers.

    Parameters
    ----------
    data : OrnaData
        Snapshot to reconcile.  Confirmed fixes are written back into it.
    guide : AdminGuide or None
        Live guide.  Required when *fix* is true.
    fix : bool
        Whether to push corrections to the guide.
    settings : MatchSettings
        Rename and skip tables.
    """

    kind = ""
    title = ""

    def __init__(
        self,
        data: OrnaData,
        guide: AdminGuide | None = None,
        fix: bool = False,
        settings: MatchSettings = DEFAULT_SETTINGS,
    ):
        if fix and guide is None:
            raise ValueError("Fix mode needs a guide to write to")
        self.data = data
        self.guide = guide
        self.fix = fix
        self.settings = settings
        self.report = KindReport(self.kind)

    def perform(self) -> KindReport:
        print(f"Matching {self.title}")
        try:
            self.list_missing()
        except OrnaError as exc:
            self._record(exc.add_context(f"while listing missing {self.kind}"))
        self.check_fields()
        logger.info("%s", self.report.summary())
        return self.report

    def list_missing(self) -> None:
        raise NotImplementedError

    def check_fields(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    @staticmethod
    def locate(kind: str, key: str, matches: list):
        """Return the single match, ``None`` for no match.

        Raises
        ------
        LookupFailure
            If more than one guide entity matches *key*.
        """
        if not matches:
            return None
        if len(matches) > 1:
            ids = ", ".join(f"#{m.id}" for m in matches)
            raise LookupFailure(kind, key, len(matches)).add_context(f"candidates: {ids}")
        return matches[0]

    def guarded(self, label: str, check: Callable[..., bool | None], *args) -> None:
        """Run one entity's check, turning engine errors into report entries.

        *check* is called with *args* and returns ``True`` when every field
        matched, ``False`` on any mismatch and ``None`` when the entity was
        not found on the guide.
        """
        try:
            outcome = check(*args)
        except OrnaError as exc:
            self._record(exc.add_context(f"while checking {label}"))
            return
        if outcome is None:
            return
        if outcome:
            self.report.matched += 1
        else:
            self.report.mismatched += 1

    def checker(self, entity, noun: str) -> Checker:
        """Build a Checker for *entity* using the guide's ``retrieve_/save_<noun>``."""
        return Checker(
            entity.name,
            entity.id,
            self.fix,
            getattr(self.guide, f"retrieve_{noun}", None),
            getattr(self.guide, f"save_{noun}", None),
            on_fixed=self.data.guide.replace,
        )

    def create_missing(self, noun: str, missing: list, build: Callable) -> None:
        """Add *missing* codex entities to the guide and load the new records.

        The guide assigns ids on creation, so the listing is re-read and every
        id absent from the snapshot is retrieved and appended to it.  Adds are
        never retried.
        """
        plural = f"{noun}s"
        table = getattr(self.data.guide, plural)
        for entity in missing:
            try:
                getattr(self.guide, f"add_{noun}")(build(entity))
            except OrnaError as exc:
                self._record(exc.add_context(f"while adding {noun} {entity.name}"))

        known = {record.id for record in table}
        listing = retry_once(getattr(self.guide, f"list_{plural}"), f"{plural} list")
        retrieve = getattr(self.guide, f"retrieve_{noun}")
        created = []
        for entry in listing:
            if entry.id in known:
                continue
            try:
                created.append(retry_once(lambda: retrieve(entry.id), f"{noun} #{entry.id}"))
            except OrnaError as exc:
                print(
                    f"Failed to retrieve {noun} #{entry.id} "
                    f"({self.settings.guide_url}/{plural}?show={entry.id}): {exc}"
                )
                self._record(exc)

        print(f"Added {len(created)}/{len(missing)} {plural} on the guide:")
        for record in created:
            print(f"\t- {record.name:20} ({self.settings.guide_url}/{plural}?show={record.id})")
        table.extend(created)
        self.report.added.extend(record.name for record in created)

    def _record(self, exc: OrnaError) -> None:
        logger.error("%s: %s", self.kind, exc)
        self.report.errors.append(str(exc))
