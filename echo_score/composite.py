"""Composite calculator: folds the five sub-scores into the total Echo Score."""

from __future__ import annotations

from typing import Mapping

from echo_score.errors import ContractViolation
from echo_score.models import COMPONENT_ORDER, ScoreComponent

# Fixed component weights; must sum to exactly 1.0.
WEIGHTS: dict[ScoreComponent, float] = {
    ScoreComponent.DIVERSITY: 0.25,
    ScoreComponent.ACCURACY: 0.25,
    ScoreComponent.SWITCH_SPEED: 0.20,
    ScoreComponent.CONSISTENCY: 0.15,
    ScoreComponent.IMPROVEMENT: 0.15,
}


class CompositeCalculator:
    """Combines sub-scores with fixed weights into a 0–100 total.

    ========================  ======
    Component                 Weight
    ========================  ======
    Diversity                 0.25
    Accuracy                  0.25
    Switch speed              0.20
    Consistency               0.15
    Improvement               0.15
    ========================  ======

    The weighted sum is rounded and clamped to [0, 100].  A missing
    component or a sub-score outside [0, 100] is a programming error and
    raises :class:`~echo_score.errors.ContractViolation`.
    """

    def __init__(self, weights: Mapping[ScoreComponent, float] = WEIGHTS) -> None:
        self._weights = dict(weights)

    @property
    def weights(self) -> dict[ScoreComponent, float]:
        return dict(self._weights)

    def combine(self, scores: Mapping[ScoreComponent, float]) -> int:
        """Return the weighted total of *scores*.

        Args:
            scores: Sub-score per component; every component must be present.

        Returns:
            Integer total in [0, 100].

        Raises:
            ContractViolation: If a component is missing or out of range.
        """
        weighted = 0.0
        for component in COMPONENT_ORDER:
            if component not in scores:
                raise ContractViolation(f"Missing sub-score for {component.value}")
            value = scores[component]
            if not 0 <= value <= 100:
                raise ContractViolation(
                    f"{component.value} sub-score {value!r} is outside [0, 100]"
                )
            weighted += value * self._weights[component]
        return int(max(0, min(100, round(weighted))))
