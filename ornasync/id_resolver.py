"""
ornasync/id_resolver.py -- Translate codex references into guide ids.

Codex pages reference other entities by URI (drops, abilities, upgrade
materials) or by display name (events, status effects).  The guide stores
those references as ids.  Each ``resolve_*`` function maps a list of
references to ids in input order and returns a :class:`Resolution` holding
both the ids that resolved and the references that did not; the caller
decides whether a partial result is acceptable.

A reference resolves only when exactly one guide entity matches it.  Zero
or several matches both count as a failure.

Usage:
    from ornasync.id_resolver import resolve_skills_by_uri

    resolution = resolve_skills_by_uri(data.guide, monster.abilities)
    expected = resolution.downgrade(f"{monster.name} abilities")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ornasync.data_store import GuideData
from ornasync.errors import PartialConversion
from ornasync.matching.settings import DEFAULT_SETTINGS, MatchSettings
from ornasync.models.codex import EntityRef
from ornasync.models.guide import Static

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Outcome of resolving a list of references.

    Attributes
    ----------
    what : str
        What was resolved, e.g. ``"monster abilities"``.
    ids : list[int]
        Guide ids of the references that resolved, in input order.
    failures : list[str]
        The references that did not resolve, in input order.
    """

    what: str
    ids: list[int] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures

    def downgrade(self, context: str = "") -> list[int]:
        """Accept a partial result, logging what was dropped."""
        if self.failures:
            logger.warning(
                "Partial %s conversion%s: dropped %s",
                self.what,
                f" for {context}" if context else "",
                ", ".join(self.failures),
            )
        return self.ids

    def strict(self) -> list[int]:
        """Return the ids, or raise ``PartialConversion`` if any failed."""
        if self.failures:
            raise PartialConversion(self.what, list(self.ids), list(self.failures))
        return self.ids


def _resolve(what: str, keys: Iterable[str], lookup: Callable[[str], list[int]]) -> Resolution:
    resolution = Resolution(what)
    for key in keys:
        matches = lookup(key)
        if len(matches) == 1:
            resolution.ids.append(matches[0])
        elif matches:
            resolution.failures.append(f"{key} (ambiguous: {len(matches)} matches)")
        else:
            resolution.failures.append(key)
    return resolution


# ---------------------------------------------------------------------------
# By URI
# ---------------------------------------------------------------------------

def resolve_monsters_by_uri(guide: GuideData, refs: list[EntityRef]) -> Resolution:
    """Resolve an item's ``dropped_by`` list to guide monster ids."""
    return _resolve(
        "item dropped_by",
        (ref.uri for ref in refs),
        lambda uri: [m.id for m in guide.monsters_with_uri(uri)],
    )


def resolve_items_by_uri(guide: GuideData, refs: list[EntityRef]) -> Resolution:
    """Resolve an item's ``upgrade_materials`` list to guide item ids."""
    return _resolve(
        "item upgrade materials",
        (ref.uri for ref in refs),
        lambda uri: [i.id for i in guide.items_with_uri(uri)],
    )


def resolve_skills_by_uri(
    guide: GuideData, refs: list[EntityRef], what: str = "abilities"
) -> Resolution:
    """Resolve monster or follower abilities to guide skill ids."""
    return _resolve(
        what,
        (ref.uri for ref in refs),
        lambda uri: [s.id for s in guide.skills_with_uri(uri)],
    )


# ---------------------------------------------------------------------------
# By name
# ---------------------------------------------------------------------------

def resolve_events(static: Static, names: list[str]) -> Resolution:
    """Resolve event names to the ids of the matching event spawns."""
    return _resolve(
        "events",
        names,
        lambda name: [s.id for s in static.iter_events() if s.event_name == name],
    )


def resolve_status_effects(
    static: Static,
    codex_names: Iterable[str],
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> Resolution:
    """Resolve codex status effect names to guide status effect ids.

    Names go through the rename table first.  Failures are reported under
    their guide name.
    """
    return _resolve(
        "status effects",
        (settings.guide_status_name(name) for name in codex_names),
        lambda name: [e.id for e in static.status_effects if e.name == name],
    )
