"""
ornasync/refresh.py -- Rebuild snapshot tables from the live guide or codex.

Listing a kind is one (paginated) request; its entities then have to be
fetched one change page at a time.  With no request delay configured the
fetches run on a bounded thread pool; with a delay they run strictly one
after another, sleeping in between.  A ``threading.Event`` can be set from
another thread to stop between two entities.

Usage:
    from ornasync.refresh import refresh_guide

    cancel = threading.Event()
    refresh_guide(data, guide, ["items", "static"], workers=4, cancel=cancel)
    data.save(output_dir)
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, TypeVar

from ornasync.capabilities import AdminGuide, Codex
from ornasync.data_store import OrnaData
from ornasync.errors import OrnaError
from ornasync.utils import retry_once

logger = logging.getLogger(__name__)

T = TypeVar("T")

# kind -> (list method, retrieve method, GuideData attribute)
GUIDE_KINDS = {
    "items": ("list_items", "retrieve_item", "items"),
    "monsters": ("list_monsters", "retrieve_monster", "monsters"),
    "skills": ("list_skills", "retrieve_skill", "skills"),
    "pets": ("list_pets", "retrieve_pet", "pets"),
}
GUIDE_REFRESH_KINDS = tuple(GUIDE_KINDS) + ("static",)

# codex kind -> CodexData attribute
CODEX_KINDS = {
    "items": "items",
    "monsters": "monsters",
    "bosses": "bosses",
    "raids": "raids",
    "spells": "skills",
    "followers": "followers",
}


class RefreshCancelled(OrnaError):
    """The refresh was stopped through its cancellation event."""


def fetch_all(
    keys: Iterable,
    fetch: Callable[..., T],
    *,
    workers: int = 4,
    delay: float = 0.0,
    cancel: threading.Event | None = None,
    what: str = "entity",
) -> list[T]:
    """Fetch one record per key, preserving the order of *keys*.

    Each fetch is a read and is retried once.  The first failure that
    survives its retry propagates and abandons the remaining keys.

    Parameters
    ----------
    keys : iterable
        Ids or slugs to fetch.
    fetch : callable
        ``fetch(key) -> record``.
    workers : int
        Thread pool size when *delay* is 0.
    delay : float
        Seconds to sleep between two fetches.  Any positive value forces
        sequential fetching.
    cancel : threading.Event, optional
        Checked between entities.

    Raises
    ------
    RefreshCancelled
        If *cancel* was set before every key was fetched.
    """
    keys = list(keys)
    cancel = cancel or threading.Event()

    def fetch_one(key):
        if cancel.is_set():
            raise RefreshCancelled(f"Refresh of {what} cancelled")
        return retry_once(lambda: fetch(key), f"{what} {key}")

    if delay > 0 or workers <= 1:
        results = []
        for index, key in enumerate(keys):
            if index and delay > 0:
                time.sleep(delay)
            results.append(fetch_one(key))
        return results

    results: dict[int, T] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(fetch_one, key): index for index, key in enumerate(keys)}
        try:
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except BaseException:
            cancel.set()
            for future in futures:
                future.cancel()
            raise
    return [results[index] for index in range(len(keys))]


def refresh_guide(
    data: OrnaData,
    guide: AdminGuide,
    kinds=None,
    *,
    workers: int = 4,
    delay: float = 0.0,
    cancel: threading.Event | None = None,
) -> dict[str, int]:
    """Replace guide tables of *data* with what the live guide holds.

    Parameters
    ----------
    kinds : iterable of str, optional
        Any of ``items``, ``monsters``, ``skills``, ``pets``, ``static``.
        Defaults to all of them.

    Returns
    -------
    dict
        Number of records fetched per kind.
    """
    selected = list(kinds) if kinds else list(GUIDE_REFRESH_KINDS)
    unknown = set(selected) - set(GUIDE_REFRESH_KINDS)
    if unknown:
        raise ValueError(f"Unknown guide kind(s): {', '.join(sorted(unknown))}")

    counts = {}
    if "static" in selected:
        data.guide.static = retry_once(guide.retrieve_static_resources, "static resources")
        counts["static"] = sum(
            len(data.guide.static.table(resource)) for resource in data.guide.static.RESOURCES
        )
        logger.info("Refreshed %d static resource entries", counts["static"])

    for kind, (list_method, retrieve_method, attr) in GUIDE_KINDS.items():
        if kind not in selected:
            continue
        entries = retry_once(getattr(guide, list_method), f"{kind} list")
        logger.info("Fetching %d guide %s", len(entries), kind)
        records = fetch_all(
            [entry.id for entry in entries],
            getattr(guide, retrieve_method),
            workers=workers,
            delay=delay,
            cancel=cancel,
            what=f"guide {kind}",
        )
        setattr(data.guide, attr, records)
        counts[kind] = len(records)
    return counts


def refresh_codex(
    data: OrnaData,
    codex: Codex,
    kinds=None,
    *,
    workers: int = 4,
    delay: float = 0.0,
    cancel: threading.Event | None = None,
) -> dict[str, int]:
    """Replace codex tables of *data* from a :class:`~ornasync.capabilities.Codex`."""
    selected = list(kinds) if kinds else list(CODEX_KINDS)
    unknown = set(selected) - set(CODEX_KINDS)
    if unknown:
        raise ValueError(f"Unknown codex kind(s): {', '.join(sorted(unknown))}")

    counts = {}
    for kind in selected:
        entries = retry_once(lambda: codex.list(kind), f"codex {kind} list")
        logger.info("Fetching %d codex %s", len(entries), kind)
        records = fetch_all(
            [entry.slug for entry in entries],
            lambda slug, kind=kind: codex.fetch(kind, slug),
            workers=workers,
            delay=delay,
            cancel=cancel,
            what=f"codex {kind}",
        )
        setattr(data.codex, CODEX_KINDS[kind], records)
        counts[kind] = len(records)
    return counts
