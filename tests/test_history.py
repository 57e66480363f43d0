"""Tests for echo_score.history.ScoreHistoryStore."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from conftest import NOW, snapshot
from echo_score.errors import DataAccessError
from echo_score.history import ScoreHistoryStore

DAY = timedelta(days=1)


class TestUpsert:
    def test_same_day_replaces(self, history) -> None:
        history.upsert(snapshot(40, NOW - timedelta(hours=3)))
        history.upsert(snapshot(55, NOW))
        stored = history.history("u1")
        assert len(stored) == 1
        assert stored[0].total_score == 55

    def test_different_days_accumulate(self, history) -> None:
        history.upsert(snapshot(40, NOW - DAY))
        history.upsert(snapshot(55, NOW))
        assert [s.total_score for s in history.history("u1")] == [40, 55]

    def test_users_are_isolated(self, history) -> None:
        history.upsert(snapshot(40, NOW, user_id="u1"))
        history.upsert(snapshot(90, NOW, user_id="u2"))
        assert history.latest("u1").total_score == 40
        assert history.user_ids() == ["u1", "u2"]


class TestQueries:
    def test_history_sorted_when_inserted_out_of_order(self, history) -> None:
        for days_ago, total in [(2, 20), (0, 40), (5, 10), (1, 30)]:
            history.upsert(snapshot(total, NOW - DAY * days_ago))
        stored = history.history("u1")
        assert [s.total_score for s in stored] == [10, 20, 30, 40]
        assert stored == sorted(stored, key=lambda s: s.computed_at)

    def test_history_since_filters_by_day(self, history) -> None:
        for days_ago in range(5):
            history.upsert(snapshot(days_ago, NOW - DAY * days_ago))
        recent = history.history("u1", since=NOW - DAY * 2)
        assert [s.total_score for s in recent] == [2, 1, 0]

    def test_unknown_user(self, history) -> None:
        assert history.history("nobody") == []
        assert history.latest("nobody") is None

    def test_latest(self, history) -> None:
        history.upsert(snapshot(70, NOW))
        history.upsert(snapshot(10, NOW - DAY))
        assert history.latest("u1").total_score == 70

    def test_recent_limit(self, history) -> None:
        for days_ago in range(5):
            history.upsert(snapshot(days_ago, NOW - DAY * days_ago))
        assert [s.total_score for s in history.recent("u1", 2)] == [1, 0]
        assert history.recent("u1", 0) == []


class TestPersistence:
    def test_persist_then_load(self, tmp_path) -> None:
        path = str(tmp_path / "snapshots.json")
        store = ScoreHistoryStore(path=path)
        store.upsert(snapshot(40, NOW - DAY))
        store.upsert(snapshot(55, NOW, user_id="u2"))
        assert store.persist() == 2

        fresh = ScoreHistoryStore(path=path)
        assert fresh.load() == 2
        assert fresh.latest("u2") == store.latest("u2")
        assert fresh.history("u1") == store.history("u1")

    def test_missing_file_loads_empty(self, tmp_path) -> None:
        store = ScoreHistoryStore(path=str(tmp_path / "absent.json"))
        assert store.load() == 0
        assert store.user_ids() == []

    def test_corrupt_file_raises_data_access_error(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(DataAccessError):
            ScoreHistoryStore().load(str(path))

    def test_malformed_row_raises_data_access_error(self, tmp_path) -> None:
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([{"user_id": "u1"}]))
        with pytest.raises(DataAccessError):
            ScoreHistoryStore().load(str(path))

    def test_failed_write_keeps_previous_file(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "snapshots.json"
        store = ScoreHistoryStore(path=str(path))
        store.upsert(snapshot(40, NOW - DAY))
        store.persist()
        before = path.read_text()

        def disk_full(rows, fh, **kwargs):
            fh.write('[{"user_id": ')
            raise OSError("No space left on device")

        store.upsert(snapshot(70, NOW))
        monkeypatch.setattr(json, "dump", disk_full)
        with pytest.raises(DataAccessError):
            store.persist()

        assert path.read_text() == before
        assert [p.name for p in tmp_path.iterdir()] == ["snapshots.json"]

    def test_unwritable_path_raises_data_access_error(self, tmp_path) -> None:
        with pytest.raises(DataAccessError):
            ScoreHistoryStore().persist(str(tmp_path / "missing-dir" / "out.json"))

    def test_no_path_configured(self) -> None:
        with pytest.raises(DataAccessError):
            ScoreHistoryStore().persist()
