"""
ornasync/matching/status_effects.py -- Reconcile the status effect table.

Status effects have no codex page of their own.  The set the codex knows
about is gathered from every item (causes, cures, immunities, gives) and
every skill (causes, gives), translated to guide names and compared with
the guide's static status effect list by name.
"""

from __future__ import annotations

import logging

from ornasync.errors import OrnaError
from ornasync.matching.base import EntityMatcher
from ornasync.utils import retry_once

logger = logging.getLogger(__name__)


class StatusEffectMatcher(EntityMatcher):
    kind = "status_effects"
    title = "Status effects"

    def codex_status_effects(self) -> list[str]:
        """Sorted, unique guide names of every status effect the codex uses."""
        names = set()
        for item in self.data.codex.items:
            names.update(ref.name for ref in item.causes)
            names.update(ref.name for ref in item.cures)
            names.update(ref.name for ref in item.immunities)
            names.update(ref.name for ref in item.gives)
        for skill in self.data.codex.skills:
            names.update(effect.effect for effect in skill.causes)
            names.update(effect.effect for effect in skill.gives)
        return sorted({self.settings.guide_status_name(name) for name in names})

    def list_missing(self) -> None:
        static = self.data.guide.static
        codex_names = self.codex_status_effects()
        guide_names = {effect.name for effect in static.status_effects}
        missing_on_guide = [name for name in codex_names if name not in guide_names]
        not_on_codex = [
            effect for effect in static.status_effects if effect.name not in codex_names
        ]

        if missing_on_guide:
            print(f"{len(missing_on_guide)} status effects missing on guide:")
            for name in missing_on_guide:
                print(f"\t- {name}")
        if not_on_codex:
            print(f"{len(not_on_codex)} status effects not on codex:")
            for effect in not_on_codex:
                print(f"\t- {effect.name}")

        self.report.missing_on_guide = missing_on_guide
        self.report.not_on_codex = [effect.name for effect in not_on_codex]
        self.report.matched = len(codex_names) - len(missing_on_guide)

        if self.fix and missing_on_guide:
            for name in missing_on_guide:
                try:
                    self.guide.add_status_effect(name)
                except OrnaError as exc:
                    self._record(exc.add_context(f"while adding status effect {name}"))
                    continue
                self.report.added.append(name)
            static.status_effects = retry_once(
                lambda: self.guide.list_static("status_effects"), "status effects list"
            )
            logger.info("Guide now has %d status effects", len(static.status_effects))

    def check_fields(self) -> None:
        # Status effects only carry a name; presence is all there is to check.
        return None
