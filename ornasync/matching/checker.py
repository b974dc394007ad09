"""
ornasync/matching/checker.py -- Field comparison, reporting and fixing.

A :class:`Checker` is bound to one guide entity.  Each ``check_*`` call
compares one field of the guide entity with the value expected from the
codex, prints a line when they differ and, in fix mode, runs the fix
protocol:

    1. re-fetch the entity from the guide by id (retried once),
    2. apply the field's fixer to the fresh copy,
    3. save it (never retried),
    4. re-fetch it (retried once) and compare it with what was written;
       fields that did not take raise :class:`~ornasync.errors.UnconfirmedWrite`,
       otherwise the changed fields are printed as ``before -> after`` and
       the confirmed copy goes to ``on_fixed`` so the in-memory snapshot
       follows.

The list fixers (:func:`fix_vec_field`, :func:`fix_vec_id_field`) work by
adding and removing elements instead of overwriting the list, so guide-only
entries the codex cannot represent survive unless explicitly removed.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from ornasync.diff import diff_sorted_slices
from ornasync.errors import OrnaError, UnconfirmedWrite
from ornasync.utils import retry_once

logger = logging.getLogger(__name__)


def _fmt(value) -> str:
    return str(value) if value is not None else "None"


def _comparable(record) -> dict:
    """Field values of *record*, with list fields in sorted order.

    The guide returns multi-select values in its own option order, so lists
    are compared as sorted lists.
    """
    return {
        name: sorted(value) if isinstance(value, list) else value
        for name, value in record.model_dump().items()
    }


# ---------------------------------------------------------------------------
# List / option fixers
# ---------------------------------------------------------------------------

def fix_option_field(entity, attr: str, expected, convert: Callable[[Any], Any]) -> None:
    """Set optional field *attr* to ``convert(expected)``, or ``None``."""
    setattr(entity, attr, convert(expected) if expected is not None else None)


def fix_vec_field(
    entity,
    current: Sequence,
    expected: Sequence,
    remove: Callable[[Any, list], None],
    add: Callable[[Any, list], None],
    describe: Callable[[Any], Any] = lambda value: value,
) -> None:
    """Bring list *current* to *expected* through *remove* and *add*.

    Both sequences must be sorted.  The suggested changes are printed before
    they are applied; removals run before additions.
    """
    to_add, to_remove = diff_sorted_slices(expected, current)
    if to_add:
        print(f"Suggest adding: {[describe(value) for value in to_add]}")
    if to_remove:
        print(f"Suggest removing: {[describe(value) for value in to_remove]}")
    if to_remove:
        remove(entity, to_remove)
    if to_add:
        add(entity, to_add)


def fix_vec_id_field(
    entity,
    attr: str,
    current_ids: Sequence[int],
    expected_ids: Sequence[int],
    describe: Callable[[int], Any] = lambda value: value,
) -> None:
    """Add and remove guide ids on the list field *attr* of *entity*."""

    def remove(target, to_remove: list[int]) -> None:
        setattr(target, attr, [i for i in getattr(target, attr) if i not in to_remove])

    def add(target, to_add: list[int]) -> None:
        getattr(target, attr).extend(to_add)

    fix_vec_field(entity, current_ids, expected_ids, remove, add, describe)


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------

class Checker:
    """Compare, report and fix the fields of one guide entity.

    Parameters
    ----------
    entity_name : str
        Name printed in mismatch lines.
    entity_id : int
        Guide id of the entity, used to re-fetch it before fixing.
    fix : bool
        Whether mismatches are written back to the guide.
    retrieve : callable
        ``retrieve(id) -> entity`` against the live guide.
    save : callable
        ``save(entity)`` against the live guide.
    on_fixed : callable, optional
        Receives the confirmed entity after a successful fix.
    """

    def __init__(
        self,
        entity_name: str,
        entity_id: int,
        fix: bool,
        retrieve: Callable[[int], Any] | None,
        save: Callable[[Any], None] | None,
        on_fixed: Callable[[Any], None] | None = None,
    ):
        self.entity_name = entity_name
        self.entity_id = entity_id
        self.fix = fix
        self.retrieve = retrieve
        self.save = save
        self.on_fixed = on_fixed
        self.mismatches: list[str] = []

    @property
    def all_matched(self) -> bool:
        return not self.mismatches

    # ------------------------------------------------------------------
    # 1. Checks
    # ------------------------------------------------------------------

    def check(self, field: str, guide_value, codex_value, fixer) -> bool:
        """Compare two scalar values; print them on one line if different."""
        if guide_value == codex_value:
            return True
        print(
            f"{self.entity_name:30}:{field:11}: "
            f"codex= {_fmt(codex_value):<20} guide= {_fmt(guide_value):<20}"
        )
        self._mismatch(field, fixer, codex_value)
        return False

    def check_list(
        self,
        field: str,
        guide_values: Sequence,
        codex_values: Sequence,
        fixer,
        describe: Callable[[Any], Any] = lambda value: value,
    ) -> bool:
        """Compare two lists; print both (through *describe*) if different."""
        if list(guide_values) == list(codex_values):
            return True
        print(f"{self.entity_name:30}:{field:11}:")
        print(f"codex= {[describe(value) for value in codex_values]}")
        print(f"guide= {[describe(value) for value in guide_values]}")
        self._mismatch(field, fixer, codex_values)
        return False

    def check_debug(self, field: str, guide_value, codex_value, fixer) -> bool:
        """Compare optional values, printing their ``repr`` on separate lines."""
        if guide_value == codex_value:
            return True
        print(f"{self.entity_name:30}:{field:11}:")
        print(f"codex= {codex_value!r}")
        print(f"guide= {guide_value!r}")
        self._mismatch(field, fixer, codex_value)
        return False

    # ------------------------------------------------------------------
    # 2. Fix protocol
    # ------------------------------------------------------------------

    def _mismatch(self, field: str, fixer, codex_value) -> None:
        self.mismatches.append(field)
        if not self.fix:
            return
        try:
            self._apply(fixer, codex_value)
        except OrnaError as exc:
            raise exc.add_context(
                f"while fixing {field} of {self.entity_name} (#{self.entity_id})"
            )

    def _apply(self, fixer, codex_value) -> None:
        what = f"{self.entity_name} (#{self.entity_id})"
        entity = retry_once(lambda: self.retrieve(self.entity_id), what)
        before = _comparable(entity)
        fixer(entity, codex_value)
        written = _comparable(entity)
        self.save(entity)
        confirmed = retry_once(lambda: self.retrieve(self.entity_id), what)
        after = _comparable(confirmed)
        changed = [name for name in written if written[name] != before.get(name)]
        unconfirmed = [name for name in changed if after.get(name) != written[name]]
        if unconfirmed:
            raise UnconfirmedWrite(what, unconfirmed)
        for name in changed:
            print(f"{self.entity_name:30}:{name:11}: {before[name]!r} -> {after[name]!r}")
        logger.info("Fixed %s", what)
        if self.on_fixed is not None:
            self.on_fixed(confirmed)


def set_field(attr: str) -> Callable[[Any, Any], None]:
    """Fixer overwriting scalar field *attr* with the codex value."""

    def fixer(entity, value) -> None:
        setattr(entity, attr, value)

    return fixer
