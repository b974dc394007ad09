"""
ornasync/diff.py -- Order-independent comparison of sorted collections.

The basis of every "what must be added / removed on the guide" decision:
ability lists, drop lists, status effect lists and spawn lists are sorted
and fed to :func:`diff_sorted_slices`.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def diff_sorted_slices(a: Sequence[T], b: Sequence[T]) -> tuple[list[T], list[T]]:
    """Return the elements only in *a* and the elements only in *b*.

    Both inputs must already be sorted.  A single linear merge pass walks
    them side by side; equal elements are consumed from both sides and
    appear in neither output, so duplicates are matched one for one.

    Parameters
    ----------
    a, b : sequence
        Sorted sequences of mutually comparable elements.

    Returns
    -------
    tuple[list, list]
        ``(only_in_a, only_in_b)``, each in sorted order.

    Examples
    --------
    >>> diff_sorted_slices([1, 2, 4], [2, 3, 4])
    ([1], [3])
    """
    only_a: list[T] = []
    only_b: list[T] = []
    i = j = 0
    while i < len(a) and j < len(b):
        if a[i] < b[j]:
            only_a.append(a[i])
            i += 1
        elif b[j] < a[i]:
            only_b.append(b[j])
            j += 1
        else:
            i += 1
            j += 1
    only_a.extend(a[i:])
    only_b.extend(b[j:])
    return only_a, only_b
