"""Benjamini-Hochberg adjustment across one scoring run.

Adjusted p-values depend on every p-value in the batch, so adding or
removing a region changes every region's adjusted value. :class:`ScoringBatch`
collects the run's p-values and is the only place the adjustment happens.
"""

from __future__ import annotations

import math
from typing import Hashable, Iterable, Optional

import numpy as np
from scipy.stats import false_discovery_control

from casemetrics.errors import BatchStateError
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def bh_adjust(p_values: Iterable[float]) -> np.ndarray:
    """Benjamini-Hochberg adjusted p-values, in input order.

    NaN entries are excluded from the batch and stay NaN.
    """
    p = np.asarray(list(p_values), dtype=float)
    adjusted = np.full(p.shape, np.nan)
    valid = ~np.isnan(p)
    if valid.any():
        adjusted[valid] = false_discovery_control(p[valid], method="bh")
    return adjusted


class ScoringBatch:
    """Collects one p-value per region and adjusts them together, once.

    Regions are identified by any hashable key, e.g. ``region_id`` or a
    ``(region_id, level)`` tuple.
    """

    def __init__(self) -> None:
        self._p_values: dict[Hashable, float] = {}
        self._adjusted: Optional[dict[Hashable, float]] = None

    @property
    def is_adjusted(self) -> bool:
        return self._adjusted is not None

    def add(self, region: Hashable, p_value: float) -> None:
        """Register *region*'s raw p-value (NaN if it could not be computed)."""
        if self.is_adjusted:
            raise BatchStateError("Cannot add regions after the batch has been adjusted")
        if region in self._p_values:
            raise BatchStateError(f"Region {region!r} already in batch")
        self._p_values[region] = float(p_value)

    def add_many(self, regions: Iterable[Hashable], p_values: Iterable[float]) -> None:
        for region, p_value in zip(regions, p_values):
            self.add(region, p_value)

    def excluded(self) -> list[Hashable]:
        """Regions left out of the adjustment because their p-value is NaN."""
        return [r for r, p in self._p_values.items() if math.isnan(p)]

    def adjust(self) -> None:
        if self.is_adjusted:
            raise BatchStateError("Batch has already been adjusted")
        regions = list(self._p_values)
        adjusted = bh_adjust(self._p_values[r] for r in regions)
        self._adjusted = dict(zip(regions, adjusted.tolist()))
        excluded = self.excluded()
        if excluded:
            log.warning("Excluded from FDR batch (no p-value): %s", excluded)
        log.info(
            "FDR-adjusted %d p-values (%d excluded).",
            len(regions) - len(excluded),
            len(excluded),
        )

    def adjusted(self, region: Hashable) -> float:
        if not self.is_adjusted:
            raise BatchStateError("Batch must be adjusted before results are read")
        return self._adjusted[region]

    def adjusted_values(self, regions: Iterable[Hashable]) -> np.ndarray:
        """Adjusted p-values for *regions*, in the given order."""
        return np.array([self.adjusted(r) for r in regions], dtype=float)
