"""Accuracy scorer: share of challenge submissions answered correctly."""

from __future__ import annotations

from datetime import timedelta

from echo_score.models import ComponentScore, ScoreComponent
from echo_score.scorers.base import Scorer, ScoringContext

_RECENT_DAYS = 7


class AccuracyScorer(Scorer):
    """Scores ``100 * correct / total`` over the window's submissions.

    The ratio is rounded to one decimal, then to the integer scale shared by
    all sub-scores.  Zero submissions falls back to the accuracy default (0).
    """

    component = ScoreComponent.ACCURACY

    def score(self, context: ScoringContext) -> ComponentScore:
        submissions = context.submissions
        if not submissions:
            return self._default(
                {"correct_answers": 0, "total_answers": 0, "recent_accuracy": 0.0}
            )

        correct = sum(1 for s in submissions if s.is_correct)
        accuracy = round(100 * correct / len(submissions), 1)

        recent_since = context.now - timedelta(days=_RECENT_DAYS)
        recent = [s for s in submissions if s.occurred_at >= recent_since]
        recent_correct = sum(1 for s in recent if s.is_correct)
        recent_accuracy = round(100 * recent_correct / len(recent), 1) if recent else 0.0

        return self._result(
            accuracy,
            {
                "correct_answers": correct,
                "total_answers": len(submissions),
                "recent_accuracy": recent_accuracy,
            },
        )
