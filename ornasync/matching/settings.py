"""
ornasync/matching/settings.py -- Lookup tables used by the matchers.

Everything here is a fixed fact about how the codex and the guide name
things: the status effect rename table, the entities deliberately absent on
one side, the statuses an element inflicts.  They are bundled in a frozen
:class:`MatchSettings` that the driver hands to every matcher, so a test can
build a variant with :func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Codex status effects stored on the guide under a " [temp]" suffix.
_TEMP_SUFFIXED = (
    "Bloodshift",
    "Darkblight",
    "Dark Immune",
    "Dark Sigil",
    "Dragon Sigil",
    "Drakeblight",
    "Earthblight",
    "Earth Immune",
    "Earth Sigil",
    "Fireblight",
    "Fire Immune",
    "Fire Sigil",
    "Foresight ↑",
    "Foresight ↓",
    "Holyblight",
    "Holy Immune",
    "Holy Sigil",
    "Lightningblight",
    "Lightning Immune",
    "Lightning Sigil",
    "Lyon's Mark",
    "Target ↑",
    "Target ↑↑",
    "Target ↓",
    "Target ↓↓",
    "Tree of Demise",
    "Tree of Life",
    "Waterblight",
    "Water Immune",
    "Water Sigil",
    "Windblight",
    "Windswept",
)

_STATUS_RENAMES = {name: f"{name} [temp]" for name in _TEMP_SUFFIXED}
_STATUS_RENAMES.update({
    "Brynhild": "Call of Brynhild",
    "Dumbr": "Call of Dumbr",
    "Idun": "Call of Idun",
    "Jord": "Call of Jord",
    "Skadi": "Call of Skadi",
    "Defending": "Defending [Magical]",
})

_ELEMENT_STATUSES = {
    "Fire": ("Burning",),
    "Water": ("Frozen",),
    "Earthen": ("Rot",),
    "Lightning": ("Paralyzed",),
    "Holy": ("Blind",),
    "Dark": ("Asleep",),
    "Arcane": ("Burning", "Frozen", "Rot", "Paralyzed"),
    "Dragon": ("Blight",),
}


@dataclass(frozen=True)
class MatchSettings:
    """Immutable configuration of the matching engine."""

    status_renames: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(_STATUS_RENAMES))
    )
    element_statuses: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(_ELEMENT_STATUSES))
    )
    # Items the guide intentionally does not carry.
    item_skip_names: frozenset[str] = frozenset({"Orna"})
    item_skip_slugs: frozenset[str] = frozenset({
        "balins-left-b2db2fdb",
        "blinders",
        "naggeneens-song",
        "ravens-feathers",
        "soul-blade",
        "steadfast-charm",
        "super-exp-potion",
    })
    # Guide items with no codex page.
    guide_item_skip_names: frozenset[str] = frozenset({"Mage's Ring"})
    # Guide skill types with no codex page.
    guide_skill_skip_types: frozenset[str] = frozenset({"Passive"})
    # Skills whose codex "gives" list is known to be wrong.
    skill_gives_skip_slugs: frozenset[str] = frozenset({
        "CerusDefendPhys",
        "CerusDefendMag",
    })
    # Items inflicting statuses the codex does not list.
    item_extra_causes: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({"Swansong": ("Blind",)})
    )
    # Raids the codex does not tag as world raids.
    world_raid_names: frozenset[str] = frozenset({"Yggdrasil", "Arisen Yggdrasil"})
    kerberos_event: str = "Rise of Kerberos"
    guide_url: str = "https://orna.guide"
    codex_url: str = "https://playorna.com"

    def guide_status_name(self, codex_name: str) -> str:
        """Translate a codex status effect name to its guide name."""
        return self.status_renames.get(codex_name, codex_name)

    def weapon_element_statuses(self, element: str | None) -> tuple[str, ...]:
        """Statuses a weapon of *element* inflicts (empty for none/Physical)."""
        if element is None:
            return ()
        return self.element_statuses.get(element, ())

    def skip_codex_item(self, name: str, slug: str) -> bool:
        return name in self.item_skip_names or slug in self.item_skip_slugs


DEFAULT_SETTINGS = MatchSettings()
