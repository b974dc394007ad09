"""
Tests for ornasync/refresh.py

Covers:
    - fetch_all ordering on the thread pool and sequentially
    - Retry, failure propagation and cancellation
    - refresh_guide / refresh_codex replacing snapshot tables
"""

import threading

import pytest

from ornasync.capabilities import SnapshotCodex
from ornasync.data_store import OrnaData
from ornasync.errors import TransportError
from ornasync.refresh import RefreshCancelled, fetch_all, refresh_codex, refresh_guide


class TestFetchAll:
    def test_pool_preserves_order(self):
        assert fetch_all(range(20), lambda key: key * 2, workers=4) == [k * 2 for k in range(20)]

    def test_sequential_with_delay(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("ornasync.refresh.time.sleep", sleeps.append)
        assert fetch_all([1, 2, 3], str, workers=4, delay=0.5) == ["1", "2", "3"]
        assert sleeps == [0.5, 0.5]

    def test_single_worker_is_sequential(self):
        seen = []

        def fetch(key):
            seen.append((key, threading.current_thread().name))
            return key

        fetch_all([1, 2], fetch, workers=1)
        assert {name for _, name in seen} == {threading.current_thread().name}

    def test_failed_fetch_is_retried_once(self):
        failures = {2: [TransportError("reset")]}

        def fetch(key):
            if failures.get(key):
                raise failures[key].pop(0)
            return key

        assert fetch_all([1, 2, 3], fetch, workers=2) == [1, 2, 3]

    def test_persistent_failure_propagates_and_cancels(self):
        cancel = threading.Event()

        def fetch(key):
            if key == 3:
                raise TransportError("down")
            return key

        with pytest.raises(TransportError):
            fetch_all(range(10), fetch, workers=2, cancel=cancel)
        assert cancel.is_set()

    def test_cancelled_before_start(self):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RefreshCancelled):
            fetch_all([1, 2], lambda key: key, workers=1, cancel=cancel)

    def test_cancelled_midway(self):
        cancel = threading.Event()
        fetched = []

        def fetch(key):
            fetched.append(key)
            if key == 2:
                cancel.set()
            return key

        with pytest.raises(RefreshCancelled, match="widgets"):
            fetch_all([1, 2, 3, 4], fetch, workers=1, cancel=cancel, what="widgets")
        assert fetched == [1, 2]


class TestRefreshGuide:
    def test_refresh_all(self, orna_data, make_guide):
        guide = make_guide(orna_data)
        data = OrnaData()
        counts = refresh_guide(data, guide, workers=2)
        assert counts == {"static": 15, "items": 2, "monsters": 2, "skills": 1, "pets": 1}
        assert [i.id for i in data.guide.items] == [1, 2]
        assert data.guide.find_monster_by_id(11).boss
        assert data.guide.static.spawns[2].event_name == "Fallen Heroes"

    def test_refresh_selected_kinds(self, orna_data, make_guide):
        guide = make_guide(orna_data)
        data = OrnaData()
        counts = refresh_guide(data, guide, ["pets"])
        assert counts == {"pets": 1}
        assert data.guide.items == []
        assert guide.called("retrieve_static_resources") == []

    def test_unknown_kind(self, orna_data, make_guide):
        with pytest.raises(ValueError, match="weather"):
            refresh_guide(OrnaData(), make_guide(orna_data), ["items", "weather"])

    def test_failure_leaves_table_untouched(self, orna_data, make_guide):
        guide = make_guide(orna_data)
        guide.fail("retrieve_item", TransportError("down"), TransportError("down"))
        with pytest.raises(TransportError):
            refresh_guide(orna_data, guide, ["items"], workers=1)
        assert [i.id for i in orna_data.guide.items] == [1, 2]

    def test_list_is_retried(self, orna_data, make_guide):
        guide = make_guide(orna_data)
        guide.fail("list_skills", TransportError("reset"))
        assert refresh_guide(OrnaData(), guide, ["skills"]) == {"skills": 1}


class TestRefreshCodex:
    def test_refresh_from_snapshot_codex(self, orna_data):
        data = OrnaData()
        counts = refresh_codex(data, SnapshotCodex(orna_data.codex), workers=3)
        assert counts["spells"] == 1
        assert counts["raids"] == 1
        assert [s.slug for s in data.codex.skills] == ["fireball"]
        assert data.codex.items == orna_data.codex.items

    def test_unknown_codex_kind(self, orna_data):
        with pytest.raises(ValueError):
            refresh_codex(OrnaData(), SnapshotCodex(orna_data.codex), ["skills"])
