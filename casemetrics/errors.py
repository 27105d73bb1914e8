"""Exception types raised by the metrics pipeline."""

from __future__ import annotations


class DataError(ValueError):
    """Input data is malformed, incomplete, or cannot be repaired."""


class UndefinedMetricError(ArithmeticError):
    """A metric has no meaningful value for the given inputs."""


class BatchStateError(RuntimeError):
    """A :class:`~casemetrics.fdr.ScoringBatch` was used out of order."""
