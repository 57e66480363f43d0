"""Score history store: per-day snapshot upserts, range queries, persistence."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import date, datetime

from echo_score.errors import DataAccessError
from echo_score.models import ScoreSnapshot

logger = logging.getLogger(__name__)


class ScoreHistoryStore:
    """Thread-safe in-memory store of :class:`~echo_score.models.ScoreSnapshot` rows.

    Snapshots are keyed by ``(user_id, score_date)``: at most one snapshot
    exists per user per day, and a later :meth:`upsert` for the same day
    replaces the earlier one.

    The store can be made durable with :meth:`load` and :meth:`persist`,
    which read and write a JSON file of snapshot rows.

    Args:
        path: Optional JSON file used by :meth:`load` and :meth:`persist`
            when no explicit path is given.
    """

    def __init__(self, path: str | None = None) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._snapshots: dict[str, dict[date, ScoreSnapshot]] = {}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, snapshot: ScoreSnapshot) -> ScoreSnapshot:
        """Insert *snapshot*, replacing any snapshot for the same user and day.

        Args:
            snapshot: The snapshot to store.

        Returns:
            The stored snapshot.
        """
        with self._lock:
            by_day = self._snapshots.setdefault(snapshot.user_id, {})
            replaced = snapshot.score_date in by_day
            by_day[snapshot.score_date] = snapshot
        logger.debug(
            "%s snapshot for user=%r day=%s (total=%d)",
            "Replaced" if replaced else "Stored",
            snapshot.user_id,
            snapshot.score_date,
            snapshot.total_score,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def latest(self, user_id: str) -> ScoreSnapshot | None:
        """Return the most recently computed snapshot for *user_id*, if any."""
        history = self.history(user_id)
        return history[-1] if history else None

    def history(self, user_id: str, since: datetime | None = None) -> list[ScoreSnapshot]:
        """Return snapshots for *user_id* ordered by ``computed_at`` ascending.

        Args:
            user_id: The user whose snapshots are wanted.
            since: If given, only snapshots whose ``score_date`` is on or after
                ``since.date()`` are returned.

        Returns:
            A new list; empty if the user has no snapshots.
        """
        with self._lock:
            snapshots = list(self._snapshots.get(user_id, {}).values())
        if since is not None:
            snapshots = [s for s in snapshots if s.score_date >= since.date()]
        return sorted(snapshots, key=lambda s: s.computed_at)

    def recent(self, user_id: str, limit: int) -> list[ScoreSnapshot]:
        """Return up to *limit* of the newest snapshots, oldest first."""
        if limit <= 0:
            return []
        return self.history(user_id)[-limit:]

    def user_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._snapshots)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, path: str | None = None) -> int:
        """Replace the store's contents with the snapshots saved at *path*.

        A missing file is treated as an empty store.

        Args:
            path: JSON file to read. Defaults to the constructor's ``path``.

        Returns:
            The number of snapshots loaded.

        Raises:
            DataAccessError: If the file cannot be read or parsed.
        """
        target = self._resolve_path(path)
        try:
            with open(target, encoding="utf-8") as fh:
                rows = json.load(fh)
        except FileNotFoundError:
            logger.info("No snapshot file at %s; starting empty.", target)
            rows = []
        except (OSError, ValueError) as exc:
            raise DataAccessError(f"Could not read snapshots from {target}: {exc}") from exc

        try:
            loaded = [ScoreSnapshot.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise DataAccessError(f"Malformed snapshot row in {target}: {exc}") from exc

        with self._lock:
            self._snapshots = {}
            for snapshot in loaded:
                self._snapshots.setdefault(snapshot.user_id, {})[snapshot.score_date] = snapshot
        logger.info("Loaded %d snapshots from %s.", len(loaded), target)
        return len(loaded)

    def persist(self, path: str | None = None) -> int:
        """Write every snapshot in the store to *path* as JSON.

        Returns:
            The number of snapshots written.

        Raises:
            DataAccessError: If the file cannot be written.
        """
        target = self._resolve_path(path)
        with self._lock:
            rows = [
                snapshot.to_dict()
                for user_id in sorted(self._snapshots)
                for snapshot in self.history(user_id)
            ]
        # Written to a sibling temp file, then swapped in, so a failed write
        # leaves the previous file untouched.
        directory = os.path.dirname(os.path.abspath(target))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".snapshots-", suffix=".tmp")
        except OSError as exc:
            raise DataAccessError(f"Could not write snapshots to {target}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh, indent=2)
            os.replace(tmp_path, target)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise DataAccessError(f"Could not write snapshots to {target}: {exc}") from exc
        logger.info("Persisted %d snapshots to %s.", len(rows), target)
        return len(rows)

    def _resolve_path(self, path: str | None) -> str:
        target = path or self._path
        if not target:
            raise DataAccessError("No snapshot file path configured")
        return target
