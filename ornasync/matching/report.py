"""
ornasync/matching/report.py -- Outcome of a reconciliation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KindReport:
    """Counters and errors for one entity kind."""

    kind: str
    matched: int = 0
    mismatched: int = 0
    missing_on_guide: list[str] = field(default_factory=list)
    not_on_codex: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return self.matched + self.mismatched

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        text = (
            f"{self.kind}: {self.checked} checked, {self.matched} matched, "
            f"{self.mismatched} mismatched, {len(self.missing_on_guide)} missing on guide, "
            f"{len(self.not_on_codex)} not on codex"
        )
        if self.added:
            text += f", {len(self.added)} added"
        if self.errors:
            text += f", {len(self.errors)} error(s)"
        return text


@dataclass
class ReconciliationReport:
    """Per-kind reports of one driver run, in execution order."""

    kinds: dict[str, KindReport] = field(default_factory=dict)

    def add(self, report: KindReport) -> None:
        self.kinds[report.kind] = report

    @property
    def ok(self) -> bool:
        """True when no kind recorded a hard error."""
        return all(report.ok for report in self.kinds.values())

    @property
    def errors(self) -> list[str]:
        return [error for report in self.kinds.values() for error in report.errors]

    def summary(self) -> str:
        return "\n".join(report.summary() for report in self.kinds.values())
