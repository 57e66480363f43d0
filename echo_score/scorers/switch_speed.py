"""Switch-speed scorer: how quickly a user moves between opposing perspectives."""

from __future__ import annotations

import logging

import numpy as np

from echo_score.models import ComponentScore, InteractionEvent, ScoreComponent, ScoreDefaults
from echo_score.scorers.base import Scorer, ScoringContext

logger = logging.getLogger(__name__)

_MIN_CROSSINGS = 2


class SwitchSpeedScorer(Scorer):
    """Scores the cadence of cross-perspective engagement.

    Interactions are ordered by ``occurred_at``.  Each consecutive pair is a
    *crossing* when the two bias ratings lie on opposite sides of center, or
    when they are at least ``min_bucket_jump`` buckets apart.  With ``m`` the
    median crossing interval and ``R`` the reference interval::

        score = 100 * R / (R + m)

    so an immediate switch scores 100, a switch after exactly ``R`` seconds
    scores 50, and the score falls towards 0 as switches get slower.

    **No data**: fewer than two crossings falls back to the switch-speed
    default (50).

    Args:
        reference_interval_seconds: Median interval that maps to a score of 50.
        min_bucket_jump: Bucket distance that counts as a crossing even
            without a change of side.  The default of 4 leaves the
            opposite-sides rule as the only one in effect on a -3..+3 scale.
        defaults: The "no data" policy table.
    """

    component = ScoreComponent.SWITCH_SPEED

    def __init__(
        self,
        reference_interval_seconds: float = 86400.0,
        min_bucket_jump: int = 4,
        defaults: ScoreDefaults | None = None,
    ) -> None:
        super().__init__(defaults)
        if reference_interval_seconds <= 0:
            raise ValueError(
                f"reference_interval_seconds must be positive, got {reference_interval_seconds!r}"
            )
        if min_bucket_jump < 1:
            raise ValueError(f"min_bucket_jump must be at least 1, got {min_bucket_jump!r}")
        self._reference = float(reference_interval_seconds)
        self._min_bucket_jump = min_bucket_jump

    def score(self, context: ScoringContext) -> ComponentScore:
        intervals = self.crossing_intervals(context.interactions)
        if len(intervals) < _MIN_CROSSINGS:
            return self._default(
                {"crossings": len(intervals), "median_interval_seconds": None}
            )

        median = float(np.median(intervals))
        details = {"crossings": len(intervals), "median_interval_seconds": median}
        logger.debug("Switch speed for user %r: %s", context.user_id, details)
        return self._result(100 * self._reference / (self._reference + median), details)

    def crossing_intervals(self, interactions: list[InteractionEvent]) -> list[float]:
        """Return the elapsed seconds of every crossing, in chronological order."""
        ordered = sorted(interactions, key=lambda e: e.occurred_at)
        intervals: list[float] = []
        for previous, current in zip(ordered, ordered[1:]):
            if self._is_crossing(previous.source_bias_rating, current.source_bias_rating):
                elapsed = (current.occurred_at - previous.occurred_at).total_seconds()
                intervals.append(max(0.0, elapsed))
        return intervals

    def _is_crossing(self, a: int, b: int) -> bool:
        if a * b < 0:
            return True
        return abs(a - b) >= self._min_bucket_jump
