"""Consistency scorer: how regularly a user is active across the window."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import numpy as np

from echo_score.models import ComponentScore, ScoreComponent, ScoreDefaults
from echo_score.scorers.base import Scorer, ScoringContext

logger = logging.getLogger(__name__)


class ConsistencyScorer(Scorer):
    """Scores the fraction of active days, discounted for bursty activity.

    Interactions and submissions are counted per UTC day over the
    ``window_days`` days ending on the day of ``context.now``.  With
    ``cv`` the coefficient of variation of the counts on active days::

        score = 100 * (active_days / window_days) / (1 + variance_penalty * cv)

    A user active every day with the same number of events scores 100; the
    same total packed into a few bursts scores lower.

    **No data**: zero active days falls back to the consistency default (0).

    Args:
        variance_penalty: Weight of the burstiness discount. ``0`` disables it.
        defaults: The "no data" policy table.
    """

    component = ScoreComponent.CONSISTENCY

    def __init__(
        self,
        variance_penalty: float = 0.25,
        defaults: ScoreDefaults | None = None,
    ) -> None:
        super().__init__(defaults)
        if variance_penalty < 0:
            raise ValueError(f"variance_penalty must be >= 0, got {variance_penalty!r}")
        self._variance_penalty = variance_penalty

    def score(self, context: ScoringContext) -> ComponentScore:
        daily_counts = self.daily_counts(context)
        active_days = len(daily_counts)
        if active_days == 0:
            return self._default(
                {
                    "active_days": 0,
                    "total_days": context.window_days,
                    "streak_length": 0,
                    "daily_cv": 0.0,
                }
            )

        counts = np.array(list(daily_counts.values()), dtype=float)
        cv = float(counts.std() / counts.mean())
        fraction = active_days / context.window_days
        factor = 1.0 / (1.0 + self._variance_penalty * cv)

        details = {
            "active_days": active_days,
            "total_days": context.window_days,
            "streak_length": _streak_length(set(daily_counts), context.now.date()),
            "daily_cv": round(cv, 4),
        }
        logger.debug("Consistency for user %r: %s", context.user_id, details)
        return self._result(100 * fraction * factor, details)

    @staticmethod
    def daily_counts(context: ScoringContext) -> dict[date, int]:
        """Count qualifying events per day inside the window.

        Returns:
            Map from day to event count; days without events are absent.
        """
        today = context.now.date()
        first_day = today - timedelta(days=context.window_days - 1)
        counts: dict[date, int] = {}
        timestamps = [e.occurred_at for e in context.interactions]
        timestamps += [s.occurred_at for s in context.submissions]
        for ts in timestamps:
            day = ts.date()
            if first_day <= day <= today:
                counts[day] = counts.get(day, 0) + 1
        return counts


def _streak_length(active_days: set[date], today: date) -> int:
    """Consecutive active days ending today, or yesterday if today is idle."""
    day = today if today in active_days else today - timedelta(days=1)
    streak = 0
    while day in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak
