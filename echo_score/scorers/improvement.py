"""Improvement scorer: trend of the user's recent composite scores."""

from __future__ import annotations

import numpy as np

from echo_score.models import ComponentScore, ScoreComponent, ScoreDefaults
from echo_score.scorers.base import Scorer, ScoringContext

_MIN_SNAPSHOTS = 2


class ImprovementScorer(Scorer):
    """Compares the newer half of recent total scores with the older half.

    ``context.snapshots`` (oldest first) is split into a prior half
    ``totals[:n // 2]`` and a recent half ``totals[n // 2:]``::

        score = 50 + clamp(scale * (mean(recent) - mean(prior)), -50, 50)

    **No data**: fewer than two snapshots falls back to the improvement
    default (50).

    Args:
        scale: Score points per point of average total-score change.
        defaults: The "no data" policy table.
    """

    component = ScoreComponent.IMPROVEMENT

    def __init__(self, scale: float = 2.0, defaults: ScoreDefaults | None = None) -> None:
        super().__init__(defaults)
        self._scale = scale

    def score(self, context: ScoringContext) -> ComponentScore:
        totals = [s.total_score for s in sorted(context.snapshots, key=lambda s: s.computed_at)]
        if len(totals) < _MIN_SNAPSHOTS:
            return self._default(
                {"snapshots_used": len(totals), "recent_average": None, "prior_average": None}
            )

        split = len(totals) // 2
        prior = float(np.mean(totals[:split]))
        recent = float(np.mean(totals[split:]))
        delta = max(-50.0, min(50.0, self._scale * (recent - prior)))

        return self._result(
            50 + delta,
            {
                "snapshots_used": len(totals),
                "recent_average": round(recent, 2),
                "prior_average": round(prior, 2),
            },
        )
