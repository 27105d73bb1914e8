"""Reverse CUSUM over a region's weekly history.

Weeks are indexed backward from the most recent complete week
(``weeks_ago = 0``) and summed from there into the past::

    S_N(w)   = sum(c_0 .. c_w) - w * c_0
    S_N_z(w) = S_N(w) / w - c_0          (w >= 1)

Under a stable Poisson rate equal to the most recent count ``c_0``, the
older weeks sum to ``T(w) ~ Poisson(w * c_0)`` and ``S_N(w) = T(w) + c_0 -
w * c_0``. The control limits are the ``alpha / 2`` and ``1 - alpha / 2``
quantiles of ``T(w)`` carried through that same shift, so they widen as
``w`` grows. A week is flagged when ``S_N`` falls outside them.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
from scipy.stats import poisson

from casemetrics.config import CUSUM_ALPHA
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)

CUSUM_COLUMNS: list[str] = [
    "weeks_ago", "cases", "S_N", "S_N_z", "lcl", "ucl", "lcl_z", "ucl_z", "flag",
]


def _poisson_quantile(q: float, mu: np.ndarray) -> np.ndarray:
    """Poisson quantile that is 0 wherever the mean is 0."""
    positive = mu > 0
    safe_mu = np.where(positive, mu, 1.0)
    return np.where(positive, poisson.ppf(q, safe_mu), 0.0)


def control_limits(
    current: float,
    weeks_ago: np.ndarray,
    alpha: float = CUSUM_ALPHA,
) -> tuple[np.ndarray, np.ndarray]:
    """Lower and upper limits for ``S_N`` given the current week's count."""
    w = np.asarray(weeks_ago, dtype=float)
    mu = w * current
    shift = current - w * current
    lcl = _poisson_quantile(alpha / 2, mu) + shift
    ucl = _poisson_quantile(1 - alpha / 2, mu) + shift
    return lcl, ucl


def _per_week(values: np.ndarray, w: np.ndarray, current: float) -> np.ndarray:
    out = np.full(values.shape, np.nan)
    np.divide(values, w, out=out, where=w > 0)
    return out - current


def reverse_cusum(
    weekly_counts: Sequence[float],
    alpha: float = CUSUM_ALPHA,
) -> pd.DataFrame:
    """Reverse CUSUM statistic and limits for one region.

    Args:
        weekly_counts: Weekly case counts, oldest first; the last entry is
            the most recent complete week.
        alpha: Two-sided tail probability of the control limits.

    Returns:
        One row per week, most recent first, with columns ``CUSUM_COLUMNS``.
        ``S_N_z`` and the ``_z`` limits are NaN at ``weeks_ago = 0``.
    """
    counts = np.asarray(weekly_counts, dtype=float)[::-1]
    if counts.size == 0:
        return pd.DataFrame(columns=CUSUM_COLUMNS)

    current = counts[0]
    w = np.arange(counts.size, dtype=float)
    s_n = np.cumsum(counts) - w * current
    lcl, ucl = control_limits(current, w, alpha)

    return pd.DataFrame({
        "weeks_ago": w.astype(int),
        "cases": counts.astype(int),
        "S_N": s_n,
        "S_N_z": _per_week(s_n, w, current),
        "lcl": lcl,
        "ucl": ucl,
        "lcl_z": _per_week(lcl, w, current),
        "ucl_z": _per_week(ucl, w, current),
        "flag": (w > 0) & ((s_n < lcl) | (s_n > ucl)),
    })


def monitor_regions(bins: pd.DataFrame, alpha: float = CUSUM_ALPHA) -> pd.DataFrame:
    """Run :func:`reverse_cusum` over every region's weekly bins.

    Args:
        bins: Output of :func:`casemetrics.binning.weekly_bins`. A ``level``
            column, when present, is part of the region's identity.
    """
    keys = ["region_id", "region_name"]
    if "level" in bins.columns:
        keys.append("level")
    frames: list[pd.DataFrame] = []
    for key, grp in bins.groupby(keys, sort=True):
        grp = grp.sort_values("bin_index", ascending=False)
        series = reverse_cusum(grp["cases"].to_numpy(), alpha=alpha)
        for pos, (col, value) in enumerate(zip(keys, key)):
            series.insert(pos, col, value)
        series.insert(len(keys), "bin_end_date", grp["bin_end_date"].to_numpy()[::-1])
        frames.append(series)
    if not frames:
        return pd.DataFrame(columns=keys + ["bin_end_date"] + CUSUM_COLUMNS)
    result = pd.concat(frames, ignore_index=True)
    flagged = result.loc[result["flag"]].drop_duplicates(keys)
    log.info(
        "Reverse CUSUM over %d regions; %d with weeks outside control limits.",
        len(frames),
        len(flagged),
    )
    return result
