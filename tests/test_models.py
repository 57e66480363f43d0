"""Tests for echo_score.models dataclasses."""

from datetime import datetime, timezone

import pytest

from echo_score.models import (
    COMPONENT_ORDER,
    BatchResult,
    ScoreComponent,
    ScoreDefaults,
    ScoreSnapshot,
)


TS = datetime(2024, 6, 1, 23, 30, 0, tzinfo=timezone.utc)


def _snapshot() -> ScoreSnapshot:
    return ScoreSnapshot(
        user_id="u1",
        total_score=55,
        diversity_score=60,
        accuracy_score=80,
        switch_speed_score=50,
        consistency_score=30,
        improvement_score=50,
        computed_at=TS,
        details={"accuracy": {"correct_answers": 4, "total_answers": 5}},
    )


class TestScoreComponent:
    def test_values(self) -> None:
        assert ScoreComponent.SWITCH_SPEED == "switch_speed"
        assert ScoreComponent("diversity") is ScoreComponent.DIVERSITY

    def test_fixed_order(self) -> None:
        assert [c.value for c in COMPONENT_ORDER] == [
            "diversity",
            "accuracy",
            "switch_speed",
            "consistency",
            "improvement",
        ]


class TestScoreDefaults:
    def test_standard_policy(self) -> None:
        defaults = ScoreDefaults()
        assert [defaults.for_component(c) for c in COMPONENT_ORDER] == [0, 0, 50, 0, 50]

    def test_override(self) -> None:
        defaults = ScoreDefaults(switch_speed=40)
        assert defaults.for_component(ScoreComponent.SWITCH_SPEED) == 40

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            ScoreDefaults().diversity = 5  # type: ignore[misc]


class TestScoreSnapshot:
    def test_score_date(self) -> None:
        assert _snapshot().score_date == TS.date()

    def test_component_score(self) -> None:
        snap = _snapshot()
        assert snap.component_score(ScoreComponent.ACCURACY) == 80
        assert snap.component_score(ScoreComponent.SWITCH_SPEED) == 50

    def test_dict_round_trip_preserves_fields(self) -> None:
        snap = _snapshot()
        restored = ScoreSnapshot.from_dict(snap.to_dict())
        assert restored == snap
        assert restored.computed_at.tzinfo is not None

    def test_to_dict_uses_iso_timestamp(self) -> None:
        assert _snapshot().to_dict()["computed_at"] == "2024-06-01T23:30:00+00:00"


class TestBatchResult:
    def test_failed_count(self) -> None:
        result = BatchResult(processed=["u1"], failed_users=["u2", "u3"])
        assert result.failed == 2
