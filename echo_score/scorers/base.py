"""Abstract base class for all sub-score scorers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from echo_score.models import (
    ComponentScore,
    InteractionEvent,
    ScoreComponent,
    ScoreDefaults,
    ScoreSnapshot,
    SubmissionEvent,
)


@dataclass(frozen=True)
class ScoringContext:
    """Everything a scorer may look at for one calculation.

    Attributes:
        user_id: The user being scored.
        window_days: Length of the trailing window the events were fetched for.
        now: The instant the calculation is anchored to (UTC).
        interactions: Content interactions inside the window.
        submissions: Challenge submissions inside the window.
        snapshots: Recent persisted snapshots, oldest first, excluding any
            snapshot for the day being computed.
    """

    user_id: str
    window_days: int
    now: datetime
    interactions: list[InteractionEvent] = field(default_factory=list)
    submissions: list[SubmissionEvent] = field(default_factory=list)
    snapshots: list[ScoreSnapshot] = field(default_factory=list)


class Scorer(ABC):
    """Abstract base class for the five sub-score strategies.

    Each scorer is a stateless strategy that turns one slice of a
    :class:`ScoringContext` into a :class:`~echo_score.models.ComponentScore`.
    The :class:`~echo_score.engine.EchoScoreEngine` calls every scorer in
    :data:`~echo_score.models.COMPONENT_ORDER` and hands the results to the
    :class:`~echo_score.composite.CompositeCalculator`.

    When there is not enough data to score, subclasses return
    :meth:`_default`, which reads the value from the
    :class:`~echo_score.models.ScoreDefaults` table.

    Args:
        defaults: The "no data" policy table.
    """

    component: ScoreComponent

    def __init__(self, defaults: ScoreDefaults | None = None) -> None:
        self._defaults = defaults or ScoreDefaults()

    @abstractmethod
    def score(self, context: ScoringContext) -> ComponentScore:
        """Return this scorer's sub-score for *context*.

        Args:
            context: The fetched activity for the user and window.

        Returns:
            A :class:`~echo_score.models.ComponentScore` whose ``score`` lies
            in [0, 100].
        """

    def _result(self, value: float, details: dict[str, Any]) -> ComponentScore:
        return ComponentScore(
            component=self.component,
            score=clamp_score(value),
            details=details,
        )

    def _default(self, details: dict[str, Any] | None = None) -> ComponentScore:
        return ComponentScore(
            component=self.component,
            score=self._defaults.for_component(self.component),
            details=details or {},
            defaulted=True,
        )


def clamp_score(value: float) -> int:
    """Round *value* and clamp it to the integer range [0, 100]."""
    return int(max(0, min(100, round(value))))
