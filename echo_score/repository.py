"""Activity repository: read access to interaction, submission and snapshot data."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from echo_score.history import ScoreHistoryStore
from echo_score.models import InteractionEvent, ScoreSnapshot, SubmissionEvent

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityRepository(ABC):
    """Abstract read-only view over a user's activity.

    Implementations must return empty lists for users with no activity and
    raise :class:`~echo_score.errors.DataAccessError` only for genuine
    storage or connectivity failures.
    """

    @abstractmethod
    def fetch_interactions(self, user_id: str, window_days: int) -> list[InteractionEvent]:
        """Return the user's content interactions from the last *window_days* days."""

    @abstractmethod
    def fetch_submissions(self, user_id: str, window_days: int) -> list[SubmissionEvent]:
        """Return the user's challenge submissions from the last *window_days* days."""

    @abstractmethod
    def fetch_recent_snapshots(self, user_id: str, limit: int) -> list[ScoreSnapshot]:
        """Return up to *limit* of the user's newest persisted snapshots, oldest first."""


class InMemoryActivityRepository(ActivityRepository):
    """Thread-safe :class:`ActivityRepository` holding events in memory.

    Used by tests and the developer CLI.  Snapshot reads are delegated to a
    :class:`~echo_score.history.ScoreHistoryStore` so that snapshots saved by
    the service are visible to the improvement scorer.

    Args:
        history: Store to read recent snapshots from.  A private empty store
            is created if omitted.
        clock: Returns the current time; window cut-offs are computed from it.
    """

    def __init__(
        self,
        history: ScoreHistoryStore | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._history = history if history is not None else ScoreHistoryStore()
        self._clock = clock
        self._lock = threading.RLock()
        self._interactions: dict[str, list[InteractionEvent]] = {}
        self._submissions: dict[str, list[SubmissionEvent]] = {}

    # ------------------------------------------------------------------
    # Event recording
    # ------------------------------------------------------------------

    def add_interactions(self, events: Iterable[InteractionEvent]) -> None:
        with self._lock:
            for event in events:
                self._interactions.setdefault(event.user_id, []).append(event)

    def add_submissions(self, events: Iterable[SubmissionEvent]) -> None:
        with self._lock:
            for event in events:
                self._submissions.setdefault(event.user_id, []).append(event)

    # ------------------------------------------------------------------
    # ActivityRepository interface
    # ------------------------------------------------------------------

    def fetch_interactions(self, user_id: str, window_days: int) -> list[InteractionEvent]:
        since = self._since(window_days)
        with self._lock:
            events = list(self._interactions.get(user_id, []))
        return [e for e in events if e.occurred_at >= since]

    def fetch_submissions(self, user_id: str, window_days: int) -> list[SubmissionEvent]:
        since = self._since(window_days)
        with self._lock:
            events = list(self._submissions.get(user_id, []))
        return [e for e in events if e.occurred_at >= since]

    def fetch_recent_snapshots(self, user_id: str, limit: int) -> list[ScoreSnapshot]:
        return self._history.recent(user_id, limit)

    def _since(self, window_days: int) -> datetime:
        return self._clock() - timedelta(days=window_days)
