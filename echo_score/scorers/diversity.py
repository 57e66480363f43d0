"""Diversity scorer: how evenly a user's reading spreads across the bias spectrum."""

from __future__ import annotations

import logging
import math

import numpy as np

from echo_score.models import ComponentScore, ScoreComponent
from echo_score.scorers.base import Scorer, ScoringContext

logger = logging.getLogger(__name__)

MIN_BIAS_RATING = -3
MAX_BIAS_RATING = 3
_N_BUCKETS = MAX_BIAS_RATING - MIN_BIAS_RATING + 1


class DiversityScorer(Scorer):
    """Scores the spread of consumed content across the seven bias buckets.

    Each interaction's ``source_bias_rating`` is placed in one of seven
    buckets (``-3`` … ``+3``; out-of-range ratings are clamped to the nearest
    end).  The score is the Shannon entropy of the bucket distribution,
    normalised by the entropy of a perfectly even spread:

    - every interaction in one bucket → 0
    - equal counts in all seven buckets → 100

    **No data**: zero interactions falls back to the diversity default (0).
    """

    component = ScoreComponent.DIVERSITY

    def score(self, context: ScoringContext) -> ComponentScore:
        if not context.interactions:
            return self._default(
                {"entropy": 0.0, "buckets_visited": 0, "sources_read": [], "bias_range": 0}
            )

        ratings = np.array(
            [e.source_bias_rating for e in context.interactions], dtype=int
        )
        ratings = np.clip(ratings, MIN_BIAS_RATING, MAX_BIAS_RATING)
        counts = np.bincount(ratings - MIN_BIAS_RATING, minlength=_N_BUCKETS)

        probabilities = counts[counts > 0] / counts.sum()
        entropy = float(-(probabilities * np.log(probabilities)).sum())
        normalised = entropy / math.log(_N_BUCKETS)

        details = {
            "entropy": round(entropy, 4),
            "buckets_visited": int((counts > 0).sum()),
            "sources_read": sorted({e.source for e in context.interactions if e.source}),
            "bias_range": int(ratings.max() - ratings.min()),
        }
        logger.debug("Diversity for user %r: %s", context.user_id, details)
        return self._result(normalised * 100, details)
