"""
Shared utility functions for the orna-guide-sync reconciliation engine.

Consolidates the helpers every layer needs: atomic JSON snapshot I/O,
the single-retry combinator used around idempotent guide reads, and the
small name helpers that bridge codex and guide naming conventions.

All JSON writes use atomic temp-file-then-os.replace() so that a crash
mid-refresh never leaves a truncated snapshot behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Callable, TypeVar

from ornasync.errors import OrnaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# JSON I/O (atomic writes)
# ---------------------------------------------------------------------------

def safe_write_json(path, data, *, indent=2):
    """Atomically write *data* as JSON to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the target JSON file.
    data
        JSON-serialisable object to write.
    indent : int, optional
        JSON indentation level (default 2).
    """
    path = str(path)
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ---------------------------------------------------------------------------
# Retry combinator
# ---------------------------------------------------------------------------

def retry(operation: Callable[[], T], *, attempts: int = 2, what: str = "") -> T:
    """Run *operation*, re-running it on failure up to *attempts* times total.

    Only meant for idempotent reads against the guide.  The retry is
    immediate (no backoff).  The last exception propagates unchanged.

    Parameters
    ----------
    operation : callable
        Zero-argument callable performing the read.
    attempts : int
        Total number of tries (default 2, i.e. one retry).
    what : str, optional
        Short description used in the log line emitted on retry.

    Returns
    -------
    object
        Whatever *operation* returns.
    """
    for _ in range(attempts - 1):
        try:
            return operation()
        except OrnaError as exc:
            logger.warning("Retrying %s after failure: %s", what or "guide read", exc)
    return operation()


def retry_once(operation: Callable[[], T], what: str = "") -> T:
    """Run *operation* and retry it exactly once if it raises."""
    return retry(operation, attempts=2, what=what)


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------

def sanitize_guide_name(name: str) -> str:
    """Strip a trailing ``[...]`` qualifier from a guide entity name.

    ``"Bite [off-hand]"`` becomes ``"Bite"``.  Names without a bracket are
    returned unchanged.
    """
    pos = name.find("[")
    if pos > 0:
        return name[:pos - 1]
    return name


def slug_from_uri(uri: str, kind: str | None = None) -> str:
    """Return the slug of a codex URI of the form ``/codex/{kind}/{slug}/``.

    Returns an empty string for an empty or malformed URI, or when *kind*
    is given and the URI points at a different kind.
    """
    parts = [part for part in uri.split("/") if part]
    if len(parts) != 3 or parts[0] != "codex":
        return ""
    if kind is not None and parts[1] != kind:
        return ""
    return parts[2]


def kind_from_uri(uri: str) -> str:
    """Return the kind segment of a codex URI, or an empty string."""
    parts = [part for part in uri.split("/") if part]
    if len(parts) != 3 or parts[0] != "codex":
        return ""
    return parts[1]


def codex_uri(kind: str, slug: str) -> str:
    """Build the canonical codex URI for an entity."""
    return f"/codex/{kind}/{slug}/"


def normalize_uri(uri: str) -> str:
    """Return the canonical form of a codex URI, or ``""`` if malformed."""
    kind = kind_from_uri(uri)
    slug = slug_from_uri(uri)
    if not kind or not slug:
        return ""
    return codex_uri(kind, slug)
