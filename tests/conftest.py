"""Shared pytest fixtures for all echo_score tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from echo_score.history import ScoreHistoryStore
from echo_score.models import InteractionEvent, ScoreSnapshot, SubmissionEvent
from echo_score.repository import InMemoryActivityRepository
from echo_score.scorers.base import ScoringContext
from main import build_service


NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def clock() -> datetime:
    return NOW


# ---------------------------------------------------------------------------
# Event builders
# ---------------------------------------------------------------------------


def interaction(
    bias: int,
    at: datetime = NOW,
    user_id: str = "u1",
    content_id: str = "c1",
    source: str | None = None,
) -> InteractionEvent:
    return InteractionEvent(
        user_id=user_id,
        content_id=content_id,
        source_bias_rating=bias,
        time_spent_seconds=120.0,
        completion_percentage=100.0,
        occurred_at=at,
        source=source,
    )


def submission(
    is_correct: bool,
    at: datetime = NOW,
    user_id: str = "u1",
    challenge_id: str = "ch1",
) -> SubmissionEvent:
    return SubmissionEvent(
        user_id=user_id,
        challenge_id=challenge_id,
        is_correct=is_correct,
        time_spent_seconds=45.0,
        occurred_at=at,
    )


def snapshot(
    total: int,
    at: datetime,
    user_id: str = "u1",
    component: int | None = None,
) -> ScoreSnapshot:
    """A snapshot whose sub-scores all equal *component* (default: *total*)."""
    value = total if component is None else component
    return ScoreSnapshot(
        user_id=user_id,
        total_score=total,
        diversity_score=value,
        accuracy_score=value,
        switch_speed_score=value,
        consistency_score=value,
        improvement_score=value,
        computed_at=at,
    )


def context(
    interactions=(),
    submissions=(),
    snapshots=(),
    window_days: int = 30,
) -> ScoringContext:
    return ScoringContext(
        user_id="u1",
        window_days=window_days,
        now=NOW,
        interactions=list(interactions),
        submissions=list(submissions),
        snapshots=list(snapshots),
    )


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def history() -> ScoreHistoryStore:
    return ScoreHistoryStore()


@pytest.fixture
def repository(history) -> InMemoryActivityRepository:
    return InMemoryActivityRepository(history=history, clock=clock)


@pytest.fixture
def service(repository, history):
    return build_service(repository, history, clock=clock)


@pytest.fixture
def active_user_events(repository) -> None:
    """Two weeks of daily, politically mixed activity for ``u1``."""
    ratings = [-3, -2, -1, 0, 1, 2, 3]
    for day in range(14):
        at = NOW - timedelta(days=day, hours=1)
        repository.add_interactions(
            [
                interaction(ratings[day % 7], at=at, source=f"outlet{day % 4}"),
                interaction(-ratings[day % 7], at=at + timedelta(minutes=30)),
            ]
        )
        repository.add_submissions([submission(day % 4 != 0, at=at)])
