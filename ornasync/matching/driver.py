"""
ornasync/matching/driver.py -- Run the matchers over one snapshot.

Usage:
    from ornasync.matching.driver import ReconciliationDriver

    driver = ReconciliationDriver(data, guide, fix=False)
    report = driver.run()            # every kind
    report = driver.run(["skills"])  # a single kind
    if not report.ok:
        ...
"""

from __future__ import annotations

import logging

from ornasync.capabilities import AdminGuide
from ornasync.data_store import OrnaData
from ornasync.matching.items import ItemMatcher
from ornasync.matching.monsters import MonsterMatcher
from ornasync.matching.pets import PetMatcher
from ornasync.matching.report import ReconciliationReport
from ornasync.matching.settings import DEFAULT_SETTINGS, MatchSettings
from ornasync.matching.skills import SkillMatcher
from ornasync.matching.status_effects import StatusEffectMatcher

logger = logging.getLogger(__name__)

# Execution order.  Status effects come first so the other matchers can
# resolve effects created in the same run; items precede monsters, skills
# and pets because later fixers look up ids the earlier ones may have added.
MATCHERS = {
    "status_effects": StatusEffectMatcher,
    "items": ItemMatcher,
    "monsters": MonsterMatcher,
    "skills": SkillMatcher,
    "pets": PetMatcher,
}

KINDS = tuple(MATCHERS)
DEFAULT_KINDS = ("items", "monsters", "skills", "pets")


class ReconciliationDriver:
    """Owns one snapshot for the duration of a reconciliation run.

    Parameters
    ----------
    data : OrnaData
        The snapshot.  Matchers update it in place as fixes are confirmed.
    guide : AdminGuide or None
        Live guide; only required in fix mode.
    fix : bool
        Whether mismatches are written back.
    settings : MatchSettings, optional
        Matching tables shared by every matcher.
    """

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

    def run(self, kinds=None) -> ReconciliationReport:
        """Run the matchers for *kinds* (default: items, monsters, skills, pets).

        Kinds always run in the fixed order of :data:`MATCHERS`, whatever
        the order they are given in.

        Raises
        ------
        ValueError
            If an unknown kind is requested.
        """
        selected = set(kinds) if kinds else set(DEFAULT_KINDS)
        unknown = selected - set(MATCHERS)
        if unknown:
            raise ValueError(
                f"Unknown kind(s) {', '.join(sorted(unknown))}; "
                f"expected one of {', '.join(KINDS)}"
            )

        report = ReconciliationReport()
        for kind, matcher_cls in MATCHERS.items():
            if kind not in selected:
                continue
            logger.info("Matching %s (fix=%s)", kind, self.fix)
            matcher = matcher_cls(self.data, self.guide, self.fix, self.settings)
            report.add(matcher.perform())
        if not report.ok:
            logger.error("Reconciliation finished with %d error(s)", len(report.errors))
        return report
