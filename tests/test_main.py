"""Tests for the main module's wiring and developer CLI."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

import config
import main
from conftest import NOW, clock
from echo_score.history import ScoreHistoryStore
from echo_score.repository import InMemoryActivityRepository
from echo_score.service import EchoScoreService


def _write_activity(path, at: datetime, user_id: str = "u1") -> None:
    stamp = at.isoformat()
    path.write_text(
        json.dumps(
            {
                "interactions": [
                    {
                        "user_id": user_id,
                        "content_id": "c1",
                        "source_bias_rating": -2,
                        "time_spent_seconds": 90,
                        "completion_percentage": 100,
                        "occurred_at": stamp,
                        "source": "Left Daily",
                    }
                ],
                "submissions": [
                    {
                        "user_id": user_id,
                        "challenge_id": "ch1",
                        "is_correct": True,
                        "time_spent_seconds": 30,
                        "occurred_at": stamp,
                    }
                ],
            }
        )
    )


class TestBuildService:
    def test_returns_wired_service(self) -> None:
        history = ScoreHistoryStore()
        repo = InMemoryActivityRepository(history=history, clock=clock)
        service = main.build_service(repo, history, clock=clock)
        assert isinstance(service, EchoScoreService)
        assert service.calculate("u1").switch_speed_score == 50


class TestLoadActivity:
    def test_loads_events(self, tmp_path) -> None:
        path = tmp_path / "activity.json"
        _write_activity(path, NOW - timedelta(hours=2))
        repo = InMemoryActivityRepository(clock=clock)
        assert main.load_activity(str(path), repo) == (1, 1)
        assert repo.fetch_interactions("u1", 1)[0].source == "Left Daily"

    def test_timestamps_without_offset_are_utc(self, tmp_path) -> None:
        path = tmp_path / "activity.json"
        _write_activity(path, (NOW - timedelta(hours=2)).replace(tzinfo=None))
        repo = InMemoryActivityRepository(clock=clock)
        main.load_activity(str(path), repo)

        [event] = repo.fetch_submissions("u1", 1)
        assert event.occurred_at == NOW - timedelta(hours=2)
        assert event.occurred_at.tzinfo is not None

        snap = main.build_service(repo, ScoreHistoryStore(), clock=clock).calculate("u1")
        assert snap.accuracy_score == 100


class TestMain:
    def test_recomputes_and_persists(self, tmp_path, monkeypatch) -> None:
        activity = tmp_path / "activity.json"
        store = tmp_path / "snapshots.json"
        _write_activity(activity, datetime.now(timezone.utc) - timedelta(hours=2))
        monkeypatch.setattr(config, "SNAPSHOT_STORE_PATH", str(store))

        assert main.main([str(activity), "u1"]) == 0

        saved = ScoreHistoryStore(path=str(store))
        assert saved.load() == 1
        assert saved.latest("u1").accuracy_score == 100

    def test_invalid_window_reports_failure(self, tmp_path, monkeypatch) -> None:
        activity = tmp_path / "activity.json"
        _write_activity(activity, datetime.now(timezone.utc) - timedelta(hours=2))
        monkeypatch.setattr(config, "SNAPSHOT_STORE_PATH", "")
        assert main.main([str(activity), "u1", "--window-days", "0"]) == 1

    def test_requires_user_ids(self, tmp_path) -> None:
        with pytest.raises(SystemExit):
            main.main([str(tmp_path / "activity.json")])
