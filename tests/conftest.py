"""
Shared pytest fixtures for the orna-guide-sync test suite.

Provides:
    - project_root: path to the real project root
    - orna_data: a small, fully reconciled codex + guide snapshot
    - make_guide: builds an in-memory AdminGuide seeded from a snapshot
    - FakeGuide: the in-memory AdminGuide itself (records every call)
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure ornasync/ is importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Add project root to sys.path so that `from ornasync.xxx import ...` works.
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ornasync.data_store import CodexData, GuideData, OrnaData  # noqa: E402
from ornasync.errors import ResponseError  # noqa: E402
from ornasync.models.codex import (  # noqa: E402
    CodexFollower,
    CodexItem,
    CodexMonster,
    CodexRaid,
    CodexSkill,
    Element,
    EntityRef,
    ItemStats,
    SkillStatusEffect,
    Tag,
)
from ornasync.models.guide import (  # noqa: E402
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    GuideListEntry,
    Spawn,
    Static,
    StaticEntry,
)


# ---------------------------------------------------------------------------
# In-memory guide
# ---------------------------------------------------------------------------

_NOUN_TABLES = {"item": "items", "monster": "monsters", "skill": "skills", "pet": "pets"}


class FakeGuide:
    """An AdminGuide kept in memory.

    Records are stored as deep copies, so a matcher only sees the effect of
    a fix by reading it back, exactly as with the live guide.  ``calls``
    lists every ``(method, argument)`` pair in order.  ``fail(method, exc)``
    queues an exception for the next call of *method*.
    """

    def __init__(self, data=None):
        self.records = {noun: {} for noun in _NOUN_TABLES}
        self.static = Static()
        self.calls = []
        self.failures = {}
        if data is not None:
            for noun, attr in _NOUN_TABLES.items():
                for record in getattr(data.guide, attr):
                    self.records[noun][record.id] = record.model_copy(deep=True)
            self.static = data.guide.static.model_copy(deep=True)

    def fail(self, method, *errors):
        self.failures.setdefault(method, []).extend(errors)

    def called(self, method):
        return [args for name, *args in self.calls if name == method]

    def _call(self, method, *args):
        self.calls.append((method, *args))
        pending = self.failures.get(method)
        if pending:
            raise pending.pop(0)

    # Generic operations -------------------------------------------------

    def _retrieve(self, noun, entity_id):
        self._call(f"retrieve_{noun}", entity_id)
        record = self.records[noun].get(entity_id)
        if record is None:
            raise ResponseError("GET", f"/admin/{noun}s/{noun}/{entity_id}/change/", 404)
        return record.model_copy(deep=True)

    def _save(self, noun, record):
        self._call(f"save_{noun}", record.id)
        self.records[noun][record.id] = record.model_copy(deep=True)

    def _add(self, noun, record):
        self._call(f"add_{noun}", record.name)
        new_id = max(self.records[noun], default=0) + 1
        self.records[noun][new_id] = record.model_copy(update={"id": new_id}, deep=True)

    def _list(self, noun):
        self._call(f"list_{noun}s")
        return [
            GuideListEntry(id=record.id, name=record.name)
            for _, record in sorted(self.records[noun].items())
        ]

    # AdminGuide ---------------------------------------------------------

    def retrieve_item(self, item_id):
        return self._retrieve("item", item_id)

    def save_item(self, item):
        self._save("item", item)

    def add_item(self, item):
        self._add("item", item)

    def list_items(self):
        return self._list("item")

    def retrieve_monster(self, monster_id):
        return self._retrieve("monster", monster_id)

    def save_monster(self, monster):
        self._save("monster", monster)

    def add_monster(self, monster):
        self._add("monster", monster)

    def list_monsters(self):
        return self._list("monster")

    def retrieve_skill(self, skill_id):
        return self._retrieve("skill", skill_id)

    def save_skill(self, skill):
        self._save("skill", skill)

    def add_skill(self, skill):
        self._add("skill", skill)

    def list_skills(self):
        return self._list("skill")

    def retrieve_pet(self, pet_id):
        return self._retrieve("pet", pet_id)

    def save_pet(self, pet):
        self._save("pet", pet)

    def add_pet(self, pet):
        self._add("pet", pet)

    def list_pets(self):
        return self._list("pet")

    def list_static(self, resource):
        self._call("list_static", resource)
        return [entry.model_copy() for entry in self.static.table(resource)]

    def retrieve_static_resources(self):
        self._call("retrieve_static_resources")
        return self.static.model_copy(deep=True)

    def add_spawn(self, name):
        self._call("add_spawn", name)
        new_id = max((s.id for s in self.static.spawns), default=0) + 1
        self.static.spawns.append(Spawn(id=new_id, name=name))

    def add_status_effect(self, name):
        self._call("add_status_effect", name)
        new_id = max((e.id for e in self.static.status_effects), default=0) + 1
        self.static.status_effects.append(StaticEntry(id=new_id, name=name))


# ---------------------------------------------------------------------------
# Sample snapshot
# ---------------------------------------------------------------------------

def _ref(name, kind, slug):
    return EntityRef(name=name, uri=f"/codex/{kind}/{slug}/")


def _static():
    return Static(
        spawns=[
            Spawn(id=1, name="Kingdom Raid"),
            Spawn(id=2, name="World Raid"),
            Spawn(id=3, name="Event: Fallen Heroes"),
        ],
        item_types=[StaticEntry(id=1, name="Weapon"), StaticEntry(id=13, name="Material")],
        elements=[StaticEntry(id=1, name="Fire"), StaticEntry(id=2, name="Water")],
        status_effects=[
            StaticEntry(id=1, name="Burning"),
            StaticEntry(id=2, name="Frozen"),
            StaticEntry(id=3, name="Poisoned"),
            StaticEntry(id=4, name="Blind"),
        ],
        monster_families=[StaticEntry(id=1, name="Slime"), StaticEntry(id=2, name="Dragon")],
        skill_types=[StaticEntry(id=1, name="Passive"), StaticEntry(id=2, name="Attack")],
    )


def _codex():
    fireball = _ref("Fireball", "spells", "fireball")
    slime = _ref("Slime", "monsters", "slime")
    return CodexData(
        items=[
            CodexItem(
                slug="bronze-sword",
                name="Bronze Sword",
                icon="weapons/bronze_sword.png",
                description="A simple sword.",
                tier=1,
                stats=ItemStats(attack=10, element=Element.FIRE),
                dropped_by=[slime],
                upgrade_materials=[_ref("Slime Gel", "items", "slime-gel")],
            ),
            CodexItem(
                slug="slime-gel",
                name="Slime Gel",
                icon="materials/slime_gel.png",
                description="Sticky.",
                tier=1,
                dropped_by=[slime],
            ),
        ],
        monsters=[
            CodexMonster(
                slug="slime",
                name="Slime",
                icon="monsters/slime.png",
                family="Slime",
                tier=1,
                abilities=[fireball],
                drops=[
                    _ref("Bronze Sword", "items", "bronze-sword"),
                    _ref("Slime Gel", "items", "slime-gel"),
                ],
            ),
        ],
        raids=[
            CodexRaid(
                slug="fafnir",
                name="Fafnir",
                icon="raids/fafnir.png",
                tier=9,
                tags=[Tag.KINGDOM_RAID],
            ),
        ],
        skills=[
            CodexSkill(
                name="Fireball",
                slug="fireball",
                icon="skills/fireball.png",
                description="Hurls a ball of fire.",
                tier=1,
                causes=[SkillStatusEffect(effect="Burning", chance=50)],
            ),
        ],
        followers=[
            CodexFollower(
                name="Pup",
                slug="pup",
                icon="followers/pup.png",
                description="A loyal pup.",
                tier=1,
                abilities=[fireball],
            ),
        ],
    )


def _guide():
    return GuideData(
        items=[
            AdminItem(
                id=1,
                codex_uri="/codex/items/bronze-sword/",
                name="Bronze Sword",
                tier=1,
                type=1,
                image_name="weapons/bronze_sword.png",
                description="A simple sword.",
                attack=10,
                element=1,
                causes=[1],
                materials=[2],
            ),
            AdminItem(
                id=2,
                codex_uri="/codex/items/slime-gel/",
                name="Slime Gel",
                tier=1,
                type=13,
                image_name="materials/slime_gel.png",
                description="Sticky.",
            ),
        ],
        monsters=[
            AdminMonster(
                id=10,
                codex_uri="/codex/monsters/slime/",
                name="Slime",
                tier=1,
                family=1,
                image_name="monsters/slime.png",
                drops=[1, 2],
                skills=[20],
            ),
            AdminMonster(
                id=11,
                codex_uri="/codex/raids/fafnir/",
                name="Fafnir",
                tier=9,
                boss=True,
                image_name="raids/fafnir.png",
                spawns=[1],
            ),
        ],
        skills=[
            AdminSkill(
                id=20,
                codex_uri="/codex/spells/fireball/",
                name="Fireball",
                tier=1,
                type=2,
                description="Hurls a ball of fire.",
                causes=[1],
            ),
        ],
        pets=[
            AdminPet(
                id=30,
                codex_uri="/codex/followers/pup/",
                name="Pup",
                tier=1,
                image_name="followers/pup.png",
                description="A loyal pup.",
                skills=[20],
            ),
        ],
        static=_static(),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root():
    """Return the absolute path to the real project root directory."""
    return str(PROJECT_ROOT)


@pytest.fixture
def orna_data():
    """Return a snapshot in which every codex entity matches its guide entity.

    Codex: Bronze Sword (fire weapon), Slime Gel, Slime, Fafnir (kingdom
    raid), Fireball, Pup.  Guide ids: items 1-2, monsters 10-11, skill 20,
    pet 30.
    """
    return OrnaData(codex=_codex(), guide=_guide())


@pytest.fixture
def make_guide():
    """Return a factory building a FakeGuide seeded from a snapshot.

    Build the guide after editing the snapshot so both start out equal.
    """
    return FakeGuide
