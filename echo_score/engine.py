"""Echo Score engine: fetches activity, runs the five scorers, folds the total."""

from __future__ import annotations

import logging
from concurrent import futures
from datetime import datetime
from typing import Sequence

from echo_score.composite import CompositeCalculator
from echo_score.errors import CalculationTimeoutError, ContractViolation
from echo_score.models import COMPONENT_ORDER, ComponentScore, ScoreComponent, ScoreSnapshot
from echo_score.repository import ActivityRepository
from echo_score.scorers.base import Scorer, ScoringContext

logger = logging.getLogger(__name__)


class EchoScoreEngine:
    """Computes a transient :class:`~echo_score.models.ScoreSnapshot` for a user.

    A calculation runs in two phases:

    1. **Fetch** – interactions, submissions and recent snapshots are read
       from the :class:`~echo_score.repository.ActivityRepository`
       concurrently on a thread pool owned by that calculation, so the
       timeout only runs while its own fetches do.  If it expires the whole
       calculation fails with
       :class:`~echo_score.errors.CalculationTimeoutError`.
    2. **Score** – every scorer runs over the fetched data in
       :data:`~echo_score.models.COMPONENT_ORDER`, then the
       :class:`~echo_score.composite.CompositeCalculator` folds the results.

    Repository errors (e.g. :class:`~echo_score.errors.DataAccessError`)
    propagate unchanged.

    Args:
        repository: Source of activity and snapshot data.
        scorers: One scorer per :class:`~echo_score.models.ScoreComponent`.
        calculator: Combines sub-scores into the total.
        improvement_history_size: How many recent snapshots to fetch for the
            improvement scorer.
        fetch_timeout_seconds: Default bound on the fetch phase.
        max_workers: Size of the thread pool each calculation fetches on.
    """

    def __init__(
        self,
        repository: ActivityRepository,
        scorers: Sequence[Scorer],
        calculator: CompositeCalculator | None = None,
        improvement_history_size: int = 14,
        fetch_timeout_seconds: float | None = 10.0,
        max_workers: int = 3,
    ) -> None:
        by_component = {s.component: s for s in scorers}
        missing = [c.value for c in COMPONENT_ORDER if c not in by_component]
        if missing or len(by_component) != len(scorers):
            raise ValueError(
                f"Exactly one scorer per component is required; missing={missing}"
            )
        if improvement_history_size < 1:
            raise ValueError(
                f"improvement_history_size must be at least 1, got {improvement_history_size!r}"
            )
        self._repository = repository
        self._scorers = [by_component[c] for c in COMPONENT_ORDER]
        self._calculator = calculator or CompositeCalculator()
        self._history_size = improvement_history_size
        self._fetch_timeout = fetch_timeout_seconds
        self._max_workers = max_workers

    def calculate(
        self,
        user_id: str,
        window_days: int,
        now: datetime,
        timeout: float | None = None,
    ) -> ScoreSnapshot:
        """Return a freshly computed, unsaved snapshot for *user_id*.

        Args:
            user_id: The user to score. Must be non-empty.
            window_days: Trailing window in days; validated by the caller.
            now: The instant the calculation is anchored to.
            timeout: Seconds allowed for the fetch phase.  Defaults to the
                engine's ``fetch_timeout_seconds``.

        Returns:
            A :class:`~echo_score.models.ScoreSnapshot` with
            ``computed_at == now``.

        Raises:
            ValueError: If *user_id* is empty.
            CalculationTimeoutError: If fetching exceeded *timeout*.
        """
        if not user_id:
            raise ValueError("user_id must be non-empty")

        context = self._fetch(user_id, window_days, now, timeout)
        results = self.score(context)
        sub_scores = {c: r.score for c, r in results.items()}
        total = self._calculator.combine(sub_scores)

        snapshot = ScoreSnapshot(
            user_id=user_id,
            total_score=total,
            diversity_score=sub_scores[ScoreComponent.DIVERSITY],
            accuracy_score=sub_scores[ScoreComponent.ACCURACY],
            switch_speed_score=sub_scores[ScoreComponent.SWITCH_SPEED],
            consistency_score=sub_scores[ScoreComponent.CONSISTENCY],
            improvement_score=sub_scores[ScoreComponent.IMPROVEMENT],
            computed_at=now,
            details={c.value: dict(r.details, defaulted=r.defaulted) for c, r in results.items()},
        )
        logger.debug(
            "Echo score for user %r: total=%d %s",
            user_id,
            total,
            {c.value: s for c, s in sub_scores.items()},
        )
        return snapshot

    def score(self, context: ScoringContext) -> dict[ScoreComponent, ComponentScore]:
        """Run every scorer over *context* in component order."""
        results: dict[ScoreComponent, ComponentScore] = {}
        for scorer in self._scorers:
            result = scorer.score(context)
            if result.component is not scorer.component:
                raise ContractViolation(
                    f"{type(scorer).__name__} returned a {result.component.value} score"
                )
            results[scorer.component] = result
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fetch(
        self,
        user_id: str,
        window_days: int,
        now: datetime,
        timeout: float | None,
    ) -> ScoringContext:
        """Fetch all inputs concurrently and wait for every one of them."""
        deadline = timeout if timeout is not None else self._fetch_timeout
        # A pool per calculation: concurrent calculations never queue behind
        # each other's fetches, so the deadline only covers this user's I/O.
        executor = futures.ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="echo-fetch"
        )
        try:
            interactions_f = executor.submit(
                self._repository.fetch_interactions, user_id, window_days
            )
            submissions_f = executor.submit(
                self._repository.fetch_submissions, user_id, window_days
            )
            snapshots_f = executor.submit(
                self._repository.fetch_recent_snapshots, user_id, self._history_size + 1
            )
            pending = [interactions_f, submissions_f, snapshots_f]

            _, not_done = futures.wait(pending, timeout=deadline)
            if not_done:
                for f in not_done:
                    f.cancel()
                raise CalculationTimeoutError(
                    f"Fetching activity for user {user_id!r} exceeded {deadline}s"
                )
        finally:
            # Never block on a fetch that overran the deadline.
            executor.shutdown(wait=False, cancel_futures=True)

        # Today's snapshot is the one being recomputed, never a trend input.
        snapshots = [
            s for s in snapshots_f.result() if s.score_date != now.date()
        ][-self._history_size:]

        return ScoringContext(
            user_id=user_id,
            window_days=window_days,
            now=now,
            interactions=list(interactions_f.result()),
            submissions=list(submissions_f.result()),
            snapshots=snapshots,
        )
