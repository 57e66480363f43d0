"""Exception hierarchy for the Echo Score engine.

Sparse activity is never an error: missing data resolves to the
:class:`~echo_score.models.ScoreDefaults` table.  Only storage failures,
invalid caller input and broken internal contracts raise.
"""

from __future__ import annotations


class EchoScoreError(Exception):
    """Base class for all errors raised by :mod:`echo_score`."""


class DataAccessError(EchoScoreError):
    """The underlying storage failed during a fetch or upsert."""


class InvalidWindowError(EchoScoreError, ValueError):
    """A window (in days) was non-positive or above the configured maximum."""


class ContractViolation(EchoScoreError, AssertionError):
    """A sub-score outside [0, 100] reached the composite calculator."""


class CalculationTimeoutError(EchoScoreError, TimeoutError):
    """Fetching activity took longer than the caller's deadline."""
