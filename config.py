"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
"""

import os

# ---------------------------------------------------------------------------
# Calculation windows
# ---------------------------------------------------------------------------

DEFAULT_WINDOW_DAYS: int = int(os.getenv("DEFAULT_WINDOW_DAYS", "30"))

# Windows above this are rejected before any data is fetched.
MAX_WINDOW_DAYS: int = int(os.getenv("MAX_WINDOW_DAYS", "365"))

# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

# Upper bound on the activity fetch phase of a single calculation.  A fetch
# that runs longer fails the whole calculation.
FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))

# Fetch threads per calculation, one per repository read.
FETCH_MAX_WORKERS: int = int(os.getenv("FETCH_MAX_WORKERS", "3"))

# Users recomputed concurrently by a batch run.
BATCH_MAX_WORKERS: int = int(os.getenv("BATCH_MAX_WORKERS", "10"))

# Calculations slower than this are logged at warning level.
SLOW_CALCULATION_WARN_MS: float = float(os.getenv("SLOW_CALCULATION_WARN_MS", "250"))

# ---------------------------------------------------------------------------
# Scorers
# ---------------------------------------------------------------------------

# Median crossing interval (seconds) that maps to a switch-speed score of 50.
SWITCH_REFERENCE_INTERVAL_SECONDS: float = float(
    os.getenv("SWITCH_REFERENCE_INTERVAL_SECONDS", "86400")
)

# Bucket distance that counts as a crossing without changing side.
SWITCH_MIN_BUCKET_JUMP: int = int(os.getenv("SWITCH_MIN_BUCKET_JUMP", "4"))

CONSISTENCY_VARIANCE_PENALTY: float = float(os.getenv("CONSISTENCY_VARIANCE_PENALTY", "0.25"))

IMPROVEMENT_HISTORY_SIZE: int = int(os.getenv("IMPROVEMENT_HISTORY_SIZE", "14"))   # snapshots
IMPROVEMENT_SCALE: float = float(os.getenv("IMPROVEMENT_SCALE", "2.0"))

# ---------------------------------------------------------------------------
# Snapshot persistence
# ---------------------------------------------------------------------------

# JSON file the developer CLI loads snapshots from and saves them to.
# Empty means keep snapshots in memory only.
SNAPSHOT_STORE_PATH: str = os.getenv("SNAPSHOT_STORE_PATH", "")
