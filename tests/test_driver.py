"""
Tests for ornasync/matching/driver.py and ornasync/matching/report.py
"""

import pytest

from ornasync.errors import TransportError
from ornasync.matching.driver import DEFAULT_KINDS, KINDS, ReconciliationDriver
from ornasync.matching.report import KindReport, ReconciliationReport
from ornasync.models.codex import SkillStatusEffect
from ornasync.models.guide import AdminItem


class TestReconciliationDriver:
    def test_default_run(self, orna_data, capsys):
        report = ReconciliationDriver(orna_data).run()
        assert list(report.kinds) == list(DEFAULT_KINDS)
        assert report.ok
        assert [r.matched for r in report.kinds.values()] == [2, 2, 1, 1]
        out = capsys.readouterr().out
        assert out.index("Matching Items") < out.index("Matching Monsters")
        assert out.index("Matching Skills") < out.index("Matching Pets")

    def test_kinds_run_in_fixed_order(self, orna_data):
        report = ReconciliationDriver(orna_data).run(["pets", "status_effects", "items"])
        assert list(report.kinds) == ["status_effects", "items", "pets"]

    def test_unknown_kind(self, orna_data):
        with pytest.raises(ValueError, match="spells"):
            ReconciliationDriver(orna_data).run(["spells"])

    def test_fix_needs_guide(self, orna_data):
        with pytest.raises(ValueError):
            ReconciliationDriver(orna_data, None, fix=True)

    def test_kinds_constant(self):
        assert KINDS == ("status_effects", "items", "monsters", "skills", "pets")

    def test_status_effect_created_before_skills_resolve_it(self, orna_data, make_guide):
        orna_data.codex.skills[0] = orna_data.codex.skills[0].model_copy(
            update={"gives": [SkillStatusEffect(effect="Dark Sigil")]}
        )
        guide = make_guide(orna_data)
        report = ReconciliationDriver(orna_data, guide, fix=True).run(
            ["skills", "status_effects"]
        )
        assert report.ok
        assert guide.records["skill"][20].gives == [5]

    def test_error_in_one_kind_does_not_stop_others(self, orna_data, make_guide):
        orna_data.guide.items.append(
            AdminItem(id=5, name="Copy", codex_uri="/codex/items/bronze-sword/")
        )
        orna_data.guide.pets[0].description = "Old."
        guide = make_guide(orna_data)
        report = ReconciliationDriver(orna_data, guide, fix=True).run()
        assert not report.ok
        assert len(report.errors) == 1
        assert guide.records["pet"][30].description == "A loyal pup."

    def test_guide_failure_reported(self, orna_data, make_guide):
        orna_data.guide.pets[0].description = "Old."
        guide = make_guide(orna_data)
        guide.fail("retrieve_pet", TransportError("down"), TransportError("down"))
        report = ReconciliationDriver(orna_data, guide, fix=True).run(["pets"])
        assert not report.ok
        assert "down" in report.errors[0]


class TestReports:
    def test_kind_summary(self):
        report = KindReport("items", matched=3, mismatched=1, missing_on_guide=["x"])
        assert report.checked == 4
        assert report.summary() == (
            "items: 4 checked, 3 matched, 1 mismatched, 1 missing on guide, 0 not on codex"
        )

    def test_summary_mentions_additions_and_errors(self):
        report = KindReport("skills", added=["A"], errors=["boom"])
        assert report.summary().endswith(", 1 added, 1 error(s)")
        assert not report.ok

    def test_reconciliation_report(self):
        report = ReconciliationReport()
        report.add(KindReport("items"))
        report.add(KindReport("pets", errors=["e1"]))
        assert not report.ok
        assert report.errors == ["e1"]
        assert report.summary().splitlines()[1].startswith("pets:")
