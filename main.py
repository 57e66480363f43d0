"""Entry point: wires all components and recomputes scores from an activity file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable

import config
from echo_score.engine import EchoScoreEngine
from echo_score.history import ScoreHistoryStore
from echo_score.models import InteractionEvent, ScoreDefaults, SubmissionEvent
from echo_score.repository import ActivityRepository, InMemoryActivityRepository, utcnow
from echo_score.scorers.accuracy import AccuracyScorer
from echo_score.scorers.consistency import ConsistencyScorer
from echo_score.scorers.diversity import DiversityScorer
from echo_score.scorers.improvement import ImprovementScorer
from echo_score.scorers.switch_speed import SwitchSpeedScorer
from echo_score.service import EchoScoreService

logger = logging.getLogger(__name__)


def build_service(
    repository: ActivityRepository,
    history: ScoreHistoryStore,
    defaults: ScoreDefaults | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> EchoScoreService:
    """Construct the service with every scorer configured from :mod:`config`.

    Args:
        repository: Source of activity and recent snapshots.
        history: Store that saved snapshots are written to.
        defaults: "No data" policy table; the standard table if omitted.
        clock: Returns the current UTC time.

    Returns:
        A ready-to-use :class:`~echo_score.service.EchoScoreService`.
    """
    defaults = defaults or ScoreDefaults()
    engine = EchoScoreEngine(
        repository=repository,
        scorers=[
            DiversityScorer(defaults=defaults),
            AccuracyScorer(defaults=defaults),
            SwitchSpeedScorer(
                reference_interval_seconds=config.SWITCH_REFERENCE_INTERVAL_SECONDS,
                min_bucket_jump=config.SWITCH_MIN_BUCKET_JUMP,
                defaults=defaults,
            ),
            ConsistencyScorer(
                variance_penalty=config.CONSISTENCY_VARIANCE_PENALTY,
                defaults=defaults,
            ),
            ImprovementScorer(scale=config.IMPROVEMENT_SCALE, defaults=defaults),
        ],
        improvement_history_size=config.IMPROVEMENT_HISTORY_SIZE,
        fetch_timeout_seconds=config.FETCH_TIMEOUT_SECONDS,
        max_workers=config.FETCH_MAX_WORKERS,
    )
    return EchoScoreService(
        engine=engine,
        history=history,
        clock=clock,
        default_window_days=config.DEFAULT_WINDOW_DAYS,
        max_window_days=config.MAX_WINDOW_DAYS,
        slow_calculation_warn_ms=config.SLOW_CALCULATION_WARN_MS,
        batch_max_workers=config.BATCH_MAX_WORKERS,
    )


def load_activity(path: str, repository: InMemoryActivityRepository) -> tuple[int, int]:
    """Load interactions and submissions from a JSON file into *repository*.

    The file holds an object with ``"interactions"`` and ``"submissions"``
    lists whose entries use the dataclass field names and ISO-8601
    ``occurred_at`` timestamps.  Timestamps without a UTC offset are read
    as UTC.

    Returns:
        ``(n_interactions, n_submissions)`` loaded.
    """
    with open(path, encoding="utf-8") as fh:
        data: dict[str, Any] = json.load(fh)

    interactions = [
        InteractionEvent(**dict(row, occurred_at=_parse_timestamp(row["occurred_at"])))
        for row in data.get("interactions", [])
    ]
    submissions = [
        SubmissionEvent(**dict(row, occurred_at=_parse_timestamp(row["occurred_at"])))
        for row in data.get("submissions", [])
    ]
    repository.add_interactions(interactions)
    repository.add_submissions(submissions)
    return len(interactions), len(submissions)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def main(argv: list[str] | None = None) -> int:
    """Recompute and save Echo Scores for the given users.

    Startup sequence:
    1. Load saved snapshots (when ``SNAPSHOT_STORE_PATH`` is set).
    2. Load the activity file into an in-memory repository.
    3. Recompute and save each user's score.
    4. Persist snapshots back to ``SNAPSHOT_STORE_PATH``.

    Returns:
        Process exit code: ``0`` if every user succeeded, ``1`` otherwise.
    """
    parser = argparse.ArgumentParser(description="Recompute Echo Scores.")
    parser.add_argument("activity_file", help="JSON file of interactions and submissions")
    parser.add_argument("user_ids", nargs="+", help="users to recompute")
    parser.add_argument("--window-days", type=int, default=config.DEFAULT_WINDOW_DAYS)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    history = ScoreHistoryStore(path=config.SNAPSHOT_STORE_PATH or None)
    if config.SNAPSHOT_STORE_PATH:
        history.load()

    repository = InMemoryActivityRepository(history=history)
    n_interactions, n_submissions = load_activity(args.activity_file, repository)
    logger.info(
        "Loaded %d interactions and %d submissions from %s",
        n_interactions,
        n_submissions,
        args.activity_file,
    )

    service = build_service(repository, history)
    result = service.calculate_and_save_many(args.user_ids, window_days=args.window_days)
    for user_id in result.processed:
        snapshot = service.get_latest(user_id)
        logger.info("user=%s echo_score=%d", user_id, snapshot.total_score)

    if config.SNAPSHOT_STORE_PATH:
        history.persist()
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
