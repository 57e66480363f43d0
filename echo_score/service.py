"""Echo Score service: the operations exposed to the external request layer."""

from __future__ import annotations

import logging
import threading
import time
import weakref
from concurrent import futures
from datetime import datetime, timedelta
from typing import Callable, Iterable

import numpy as np

from echo_score.engine import EchoScoreEngine
from echo_score.errors import InvalidWindowError
from echo_score.history import ScoreHistoryStore
from echo_score.models import (
    COMPONENT_ORDER,
    BatchResult,
    ProgressReport,
    ScoreSnapshot,
    WeeklySummary,
)
from echo_score.repository import utcnow

logger = logging.getLogger(__name__)

# period -> (lookback days, bucket width in days)
_PERIODS = {
    "daily": (7, 1),
    "weekly": (28, 7),
}

_SUMMARY_DAYS = 7


class EchoScoreService:
    """Calculates, saves and reports Echo Scores.

    This is the boundary used by the request layer.  Scores are computed by
    the :class:`~echo_score.engine.EchoScoreEngine` and saved snapshots live
    in the :class:`~echo_score.history.ScoreHistoryStore`.

    Saves are serialised per user: concurrent :meth:`calculate_and_save`
    calls for the same user run one after the other and the last one wins.

    Args:
        engine: Computes transient snapshots.
        history: Snapshot storage.
        clock: Returns the current UTC time.
        default_window_days: Window used when a caller passes none.
        max_window_days: Largest accepted window.
        slow_calculation_warn_ms: Calculations slower than this are logged
            at warning level.
        batch_max_workers: Concurrency of :meth:`calculate_and_save_many`.
    """

    def __init__(
        self,
        engine: EchoScoreEngine,
        history: ScoreHistoryStore,
        clock: Callable[[], datetime] = utcnow,
        default_window_days: int = 30,
        max_window_days: int = 365,
        slow_calculation_warn_ms: float = 250.0,
        batch_max_workers: int = 10,
    ) -> None:
        self._engine = engine
        self._history = history
        self._clock = clock
        self._max_window_days = max_window_days
        self._default_window_days = self._validate_window(default_window_days)
        self._slow_warn_ms = slow_calculation_warn_ms
        self._batch_max_workers = batch_max_workers
        self._locks_guard = threading.Lock()
        # Entries vanish once no caller holds the lock.
        self._user_locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def calculate(
        self,
        user_id: str,
        window_days: int | None = None,
        timeout: float | None = None,
    ) -> ScoreSnapshot:
        """Compute the user's current Echo Score without saving it.

        Args:
            user_id: The user to score.
            window_days: Trailing window in days. Defaults to the service's
                ``default_window_days``.
            timeout: Seconds allowed for fetching activity.

        Returns:
            A transient :class:`~echo_score.models.ScoreSnapshot`.

        Raises:
            InvalidWindowError: If *window_days* is out of range.
            CalculationTimeoutError: If fetching exceeded *timeout*.
            DataAccessError: If the repository failed.
        """
        window = self._validate_window(
            self._default_window_days if window_days is None else window_days
        )
        start_ms = time.monotonic() * 1000
        try:
            return self._engine.calculate(user_id, window, self._clock(), timeout=timeout)
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > self._slow_warn_ms:
                logger.warning(
                    "Echo score calculation for user=%r took %.1fms", user_id, elapsed_ms
                )
            else:
                logger.debug(
                    "Echo score calculation for user=%r took %.1fms", user_id, elapsed_ms
                )

    def calculate_and_save(
        self,
        user_id: str,
        window_days: int | None = None,
        timeout: float | None = None,
    ) -> ScoreSnapshot:
        """Compute the user's Echo Score and upsert today's snapshot.

        A second save on the same day replaces the first.

        Returns:
            The saved :class:`~echo_score.models.ScoreSnapshot`.
        """
        with self._lock_for(user_id):
            snapshot = self.calculate(user_id, window_days, timeout=timeout)
            self._history.upsert(snapshot)
        logger.info(
            "Saved echo score for user=%r day=%s total=%d",
            user_id,
            snapshot.score_date,
            snapshot.total_score,
        )
        return snapshot

    def calculate_and_save_many(
        self,
        user_ids: Iterable[str],
        window_days: int | None = None,
    ) -> BatchResult:
        """Recompute and save scores for many users, continuing past failures.

        Each failure is logged with its traceback and reported in the
        returned :class:`~echo_score.models.BatchResult`.

        Args:
            user_ids: Users to recompute. Duplicates are processed once.
            window_days: Trailing window in days for every user.

        Returns:
            Which users were processed and which failed, in input order.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        result = BatchResult()
        if not unique_ids:
            return result

        with futures.ThreadPoolExecutor(
            max_workers=self._batch_max_workers, thread_name_prefix="echo-batch"
        ) as pool:
            submitted = {
                user_id: pool.submit(self.calculate_and_save, user_id, window_days)
                for user_id in unique_ids
            }
            for user_id, future in submitted.items():
                try:
                    future.result()
                except Exception:
                    logger.exception("Failed to calculate echo score for user=%r", user_id)
                    result.failed_users.append(user_id)
                else:
                    result.processed.append(user_id)

        logger.info(
            "Batch echo score run: %d processed, %d failed.",
            len(result.processed),
            result.failed,
        )
        return result

    # ------------------------------------------------------------------
    # History and reporting
    # ------------------------------------------------------------------

    def get_latest(self, user_id: str) -> ScoreSnapshot | None:
        return self._history.latest(user_id)

    def get_history(self, user_id: str, days: int | None = None) -> list[ScoreSnapshot]:
        """Return saved snapshots, oldest first.

        Args:
            user_id: The user whose history is wanted.
            days: Only return snapshots from the last *days* days. All
                snapshots are returned when omitted.

        Raises:
            InvalidWindowError: If *days* is out of range.
        """
        if days is None:
            return self._history.history(user_id)
        self._validate_window(days)
        return self._history.history(user_id, since=self._clock() - timedelta(days=days))

    def get_progress(self, user_id: str, period: str = "daily") -> ProgressReport:
        """Return recent snapshots with per-component trends.

        ``"daily"`` looks back 7 days in one-day buckets; ``"weekly"`` looks
        back 28 days in seven-day buckets counted back from today.  Each
        trend is the mean of the most recent bucket minus the mean of the
        previous non-empty bucket, or ``0.0`` with fewer than two buckets.

        Raises:
            ValueError: If *period* is not ``"daily"`` or ``"weekly"``.
        """
        if period not in _PERIODS:
            raise ValueError(f"period must be 'daily' or 'weekly', got {period!r}")
        lookback_days, bucket_days = _PERIODS[period]

        scores = self.get_history(user_id, lookback_days)
        today = self._clock().date()
        buckets: dict[int, list[ScoreSnapshot]] = {}
        for snapshot in scores:
            index = (today - snapshot.score_date).days // bucket_days
            buckets.setdefault(index, []).append(snapshot)

        trends = dict.fromkeys(_trend_keys(), 0.0)
        if len(buckets) >= 2:
            latest_index, previous_index = sorted(buckets)[:2]
            latest = _averages(buckets[latest_index])
            previous = _averages(buckets[previous_index])
            trends = {key: round(latest[key] - previous[key], 2) for key in trends}

        return ProgressReport(period=period, scores=scores, trends=trends)

    def get_weekly_summary(self, user_id: str) -> WeeklySummary | None:
        """Return average scores over the last seven days, or ``None`` if none."""
        scores = self.get_history(user_id, _SUMMARY_DAYS)
        if not scores:
            return None
        return WeeklySummary(
            user_id=user_id,
            scores_count=len(scores),
            averages={key: round(value, 2) for key, value in _averages(scores).items()},
            calculated_at=self._clock(),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate_window(self, days: int) -> int:
        if isinstance(days, bool) or not isinstance(days, int):
            raise InvalidWindowError(f"window must be an integer number of days, got {days!r}")
        if not 1 <= days <= self._max_window_days:
            raise InvalidWindowError(
                f"window must be between 1 and {self._max_window_days} days, got {days}"
            )
        return days

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock


# ---------------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------------


def _trend_keys() -> list[str]:
    return ["total"] + [c.value for c in COMPONENT_ORDER]


def _averages(snapshots: list[ScoreSnapshot]) -> dict[str, float]:
    """Mean total and per-component score over *snapshots*."""
    averages = {"total": float(np.mean([s.total_score for s in snapshots]))}
    for component in COMPONENT_ORDER:
        averages[component.value] = float(
            np.mean([s.component_score(component) for s in snapshots])
        )
    return averages
