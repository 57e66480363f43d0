"""Core domain dataclasses shared across all echo_score modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class ScoreComponent(str, Enum):
    """The five sub-components of the composite Echo Score.

    Declaration order is the fixed evaluation order used by the engine and
    the composite calculator.
    """

    DIVERSITY = "diversity"
    ACCURACY = "accuracy"
    SWITCH_SPEED = "switch_speed"
    CONSISTENCY = "consistency"
    IMPROVEMENT = "improvement"


COMPONENT_ORDER: tuple[ScoreComponent, ...] = tuple(ScoreComponent)


@dataclass(frozen=True)
class ScoreDefaults:
    """Score assigned to each component when there is no data to score.

    ==============  =======  ==========================================
    Component       Default  Meaning
    ==============  =======  ==========================================
    Diversity       0        No reading activity is penalised
    Accuracy        0        No submissions is penalised
    Switch speed    50       Too few crossings is neutral
    Consistency     0        No active days is penalised
    Improvement     50       Too little history is neutral
    ==============  =======  ==========================================
    """

    diversity: int = 0
    accuracy: int = 0
    switch_speed: int = 50
    consistency: int = 0
    improvement: int = 50

    def for_component(self, component: ScoreComponent) -> int:
        return getattr(self, component.value)


@dataclass(frozen=True)
class InteractionEvent:
    """A single piece of content consumed by a user.

    Attributes:
        user_id: The consuming user.
        content_id: The article or item that was consumed.
        source_bias_rating: Political lean of the content source, from
            ``-3`` (far left) to ``+3`` (far right).
        time_spent_seconds: Reading time.
        completion_percentage: How much of the content was consumed (0–100).
        occurred_at: When the interaction happened (UTC).
        source: Optional outlet name, used for calculation details only.
    """

    user_id: str
    content_id: str
    source_bias_rating: int
    time_spent_seconds: float
    completion_percentage: float
    occurred_at: datetime
    source: str | None = None


@dataclass(frozen=True)
class SubmissionEvent:
    """A single answer submitted to a challenge."""

    user_id: str
    challenge_id: str
    is_correct: bool
    time_spent_seconds: float
    occurred_at: datetime


@dataclass(frozen=True)
class ComponentScore:
    """Output of one :class:`~echo_score.scorers.base.Scorer`.

    Attributes:
        component: Which sub-component this score belongs to.
        score: Integer score in [0, 100].
        details: Metrics explaining how the score was reached.
        defaulted: ``True`` when the score came from :class:`ScoreDefaults`
            because there was not enough data.
    """

    component: ScoreComponent
    score: int
    details: dict[str, Any] = field(default_factory=dict)
    defaulted: bool = False


@dataclass
class ScoreSnapshot:
    """A computed composite score and its five sub-scores.

    Snapshots returned by ``calculate`` are transient; those returned by
    ``calculate_and_save`` are also held by the
    :class:`~echo_score.history.ScoreHistoryStore`, keyed by
    ``(user_id, score_date)``.

    Attributes:
        details: Per-component calculation metrics, keyed by component name.
    """

    user_id: str
    total_score: int
    diversity_score: int
    accuracy_score: int
    switch_speed_score: int
    consistency_score: int
    improvement_score: int
    computed_at: datetime
    details: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def score_date(self) -> date:
        """The calendar day this snapshot belongs to."""
        return self.computed_at.date()

    def component_score(self, component: ScoreComponent) -> int:
        return getattr(self, f"{component.value}_score")

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "total_score": self.total_score,
            "diversity_score": self.diversity_score,
            "accuracy_score": self.accuracy_score,
            "switch_speed_score": self.switch_speed_score,
            "consistency_score": self.consistency_score,
            "improvement_score": self.improvement_score,
            "computed_at": self.computed_at.isoformat(),
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreSnapshot:
        return cls(
            user_id=data["user_id"],
            total_score=int(data["total_score"]),
            diversity_score=int(data["diversity_score"]),
            accuracy_score=int(data["accuracy_score"]),
            switch_speed_score=int(data["switch_speed_score"]),
            consistency_score=int(data["consistency_score"]),
            improvement_score=int(data["improvement_score"]),
            computed_at=datetime.fromisoformat(data["computed_at"]),
            details=dict(data.get("details") or {}),
        )


@dataclass
class ProgressReport:
    """Snapshots for a reporting period plus per-component trends.

    Attributes:
        period: ``"daily"`` or ``"weekly"``.
        scores: Snapshots inside the period, oldest first.
        trends: Signed change between the most recent bucket average and the
            previous one, keyed by ``"total"`` and each component name.
    """

    period: str
    scores: list[ScoreSnapshot]
    trends: dict[str, float]


@dataclass
class WeeklySummary:
    """Average scores over the last seven days of snapshots."""

    user_id: str
    scores_count: int
    averages: dict[str, float]
    calculated_at: datetime


@dataclass
class BatchResult:
    """Outcome of recomputing scores for many users."""

    processed: list[str] = field(default_factory=list)
    failed_users: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_users)
