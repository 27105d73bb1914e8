"""Ordinal classification of burden and trajectory, and the composite level."""

from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from casemetrics.config import (
    BURDEN_CLASSES,
    BURDEN_THRESHOLDS,
    COMPOSITE_TABLE,
    TRAJECTORY_DECREASING,
    TRAJECTORY_INCREASING,
    TRAJECTORY_NO_CHANGE,
    TRAJECTORY_P_THRESHOLD,
    TRAJECTORY_RATIO_LOWER,
    TRAJECTORY_RATIO_UPPER,
)
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def _missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def classify_burden(
    score: float,
    thresholds: Sequence[float] = BURDEN_THRESHOLDS,
    labels: Sequence[str] = BURDEN_CLASSES,
) -> str:
    """Class whose interval ``[threshold_i, threshold_i+1)`` contains *score*."""
    if _missing(score) or score < thresholds[0]:
        raise ValueError(f"Burden score {score!r} is outside the classification range")
    idx = int(np.searchsorted(thresholds, score, side="right")) - 1
    return labels[idx]


def classify_trajectory(
    ratio: Optional[float],
    p_value: Optional[float],
    upper: float = TRAJECTORY_RATIO_UPPER,
    lower: float = TRAJECTORY_RATIO_LOWER,
    p_threshold: float = TRAJECTORY_P_THRESHOLD,
) -> str:
    """Combine the ratio and its significance into a trajectory class.

    A ratio beyond a threshold that is not significant is "No significant
    change". An undefined ratio (previous week zero) with a significant
    p-value is "Increasing"; an undefined p-value (both weeks zero) is
    "No significant change".
    """
    if _missing(p_value) or p_value >= p_threshold:
        return TRAJECTORY_NO_CHANGE
    if _missing(ratio):
        return TRAJECTORY_INCREASING
    if ratio > upper:
        return TRAJECTORY_INCREASING
    if ratio < lower:
        return TRAJECTORY_DECREASING
    return TRAJECTORY_NO_CHANGE


def composite_class(
    burden_class: str,
    trajectory_class: str,
    table: Mapping[tuple[str, str], str] = COMPOSITE_TABLE,
) -> str:
    """Look up the composite activity level."""
    try:
        return table[(burden_class, trajectory_class)]
    except KeyError:
        raise ValueError(
            f"No composite level for ({burden_class!r}, {trajectory_class!r})"
        ) from None


def classify_regions(scored: pd.DataFrame) -> pd.DataFrame:
    """Add ``burden_class``, ``trajectory_class`` and ``composite_class``."""
    df = scored.copy()
    df["burden_class"] = [classify_burden(s) for s in df["burden"]]
    df["trajectory_class"] = [
        classify_trajectory(r, p)
        for r, p in zip(df["trajectory_ratio"], df["trajectory_p"])
    ]
    df["composite_class"] = [
        composite_class(b, t)
        for b, t in zip(df["burden_class"], df["trajectory_class"])
    ]
    log.info(
        "Composite levels: %s",
        df["composite_class"].value_counts().to_dict(),
    )
    return df
