"""
ornasync/errors.py -- Error taxonomy for the reconciliation engine.

Every error raised by the engine derives from :class:`OrnaError` and carries
a context stack.  Callers that catch and re-raise add a line of context
(``"while fixing Bronze Sword (#12)"``) instead of wrapping the error in a
new one, so the final message reads from the innermost failure outwards.

Families:

    TransportError      network-level failure talking to the guide or codex
    ResponseError       the remote answered with an unexpected status code
    FormError           the guide's change form did not match the record
        MissingField / ExtraField / InvalidField / GuidePostFormError
    HTMLParsingError    an admin page did not have the expected structure
    LookupFailure       a required cross-reference resolved to 0 or >1 entities
    PartialConversion   some references of a list did not resolve
    SnapshotError       a snapshot/backup document could not be read or written
"""

from __future__ import annotations


class OrnaError(Exception):
    """Base class of every engine error, carrying a context stack."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.context: list[str] = []

    def add_context(self, line: str) -> "OrnaError":
        """Append a line of context and return ``self`` for re-raising."""
        self.context.append(line)
        return self

    def __str__(self) -> str:
        text = self.message
        for line in self.context:
            text = f"{text}\n  {line}"
        return text


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class TransportError(OrnaError):
    """The HTTP request itself failed (DNS, connection reset, timeout...)."""


class ResponseError(OrnaError):
    """The remote answered with a status code we did not expect."""

    def __init__(self, method: str, url: str, status: int, body: str = ""):
        super().__init__(f"{method} {url} returned HTTP {status}")
        self.method = method
        self.url = url
        self.status = status
        self.body = body


# ---------------------------------------------------------------------------
# Guide forms
# ---------------------------------------------------------------------------

class FormError(OrnaError):
    """A guide change form could not be converted to or from a record."""


class MissingField(FormError):
    def __init__(self, entity: str, field: str):
        super().__init__(f"Missing field '{field}' in {entity} form")
        self.entity = entity
        self.field = field


class ExtraField(FormError):
    def __init__(self, entity: str, field: str, value: str = ""):
        super().__init__(f"Unexpected field '{field}' (value {value!r}) in {entity} form")
        self.entity = entity
        self.field = field
        self.value = value


class InvalidField(FormError):
    def __init__(self, entity: str, field: str, value: str, reason: str = ""):
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid value {value!r} for field '{field}' in {entity} form{detail}")
        self.entity = entity
        self.field = field
        self.value = value


class GuidePostFormError(FormError):
    """The guide rejected a POSTed form and listed per-field errors."""

    def __init__(self, url: str, message: str, errors: list[str] | None = None):
        details = "".join(f"\n    {error}" for error in errors or [])
        super().__init__(f"Guide rejected form at {url}: {message}{details}")
        self.url = url
        self.errors = errors or []


class UnconfirmedWrite(FormError):
    """A save was accepted but reading the entity back shows it unchanged."""

    def __init__(self, what: str, fields: list[str]):
        super().__init__(f"Write to {what} did not land: {', '.join(fields)} still differ")
        self.what = what
        self.fields = fields


class HTMLParsingError(OrnaError):
    """An admin page did not contain what the parser expected."""


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class LookupFailure(OrnaError):
    """A cross-reference resolved to zero or more than one entity."""

    def __init__(self, kind: str, key, count: int = 0):
        if count == 0:
            message = f"No {kind} matches '{key}'"
        else:
            message = f"{count} {kind} entries match '{key}', expected exactly one"
        super().__init__(message)
        self.kind = kind
        self.key = key
        self.count = count

    @property
    def ambiguous(self) -> bool:
        return self.count > 1


class PartialConversion(OrnaError):
    """Some references of a list resolved, others did not.

    Raised only by :meth:`ornasync.id_resolver.Resolution.strict`; the
    resolver itself returns a result object so callers choose whether to
    keep the resolved subset.
    """

    def __init__(self, what: str, successes: list[int], failures: list[str]):
        super().__init__(
            f"Partial {what} conversion: {len(failures)} unresolved ({', '.join(failures)})"
        )
        self.what = what
        self.successes = successes
        self.failures = failures


class SnapshotError(OrnaError):
    """A snapshot or backup document could not be loaded or saved."""
