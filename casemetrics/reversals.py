"""Repair of non-monotonic cumulative case counts.

Reporting corrections can make a region's cumulative count fall from one day
to the next. A value is trusted (an *anchor*) when it does not exceed any
later value in the series; the last value is therefore always an anchor and
the reported total is preserved. Every other value is replaced by the floor
of the linear interpolation between the nearest anchors on either side, and
values before the first anchor take that anchor's value. This is the fixed
point of repeatedly interpolating over each day that precedes a decrease, so
a corrected series passes through unchanged.

    >>> correct_cumulative([10, 12, 9, 15]).tolist()
    [9.0, 9.0, 9.0, 15.0]
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from casemetrics.errors import DataError
from casemetrics.utils.dates import check_contiguous_dates
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def find_anchors(cumulative: np.ndarray) -> np.ndarray:
    """Boolean mask of values that do not exceed any later value."""
    suffix_min = np.minimum.accumulate(cumulative[::-1])[::-1]
    return cumulative <= suffix_min


def correct_cumulative(cumulative: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return a non-decreasing copy of *cumulative* with reversals repaired.

    Raises:
        DataError: if the series contains missing values or the repaired
            series would still hold a negative cumulative count.
    """
    values = np.asarray(cumulative, dtype=float)
    if values.size == 0:
        return values.copy()
    if np.isnan(values).any():
        raise DataError("Cumulative series contains missing values")

    anchors = find_anchors(values)
    if anchors.all():
        corrected = values.copy()
    else:
        positions = np.arange(values.size)
        anchor_pos = positions[anchors]
        corrected = np.interp(positions, anchor_pos, values[anchor_pos])
        corrected[~anchors] = np.floor(corrected[~anchors])
        corrected[anchors] = values[anchors]

    if corrected[0] < 0:
        raise DataError(
            f"Negative cumulative count ({corrected[0]:g}) cannot be repaired"
        )
    return corrected


def count_reversals(cumulative: Sequence[float] | np.ndarray) -> int:
    """Number of day-over-day decreases in *cumulative*."""
    values = np.asarray(cumulative, dtype=float)
    return int((np.diff(values) < 0).sum())


def _correct_region(cases: pd.Series) -> tuple[np.ndarray, int]:
    cumulative = cases.cumsum().to_numpy(dtype=float)
    corrected = correct_cumulative(cumulative)
    deltas = np.diff(corrected, prepend=0.0)
    return deltas, count_reversals(cumulative)


def correct_reversals(daily: pd.DataFrame) -> pd.DataFrame:
    """Repair every region's cumulative series and re-derive daily cases.

    Args:
        daily: ``(region_id, date, cases, ...)`` with daily new-case counts,
            one row per region per day.

    Returns:
        Copy of *daily* sorted by ``(region_id, date)`` whose ``cases`` are
        the non-negative deltas of the corrected cumulative series, plus a
        ``cumulative`` column holding that series.
    """
    check_contiguous_dates(daily)
    df = daily.sort_values(["region_id", "date"]).reset_index(drop=True)
    if df.empty:
        df["cumulative"] = pd.Series(dtype="int64")
        return df

    repaired_regions = 0
    repaired_points = 0
    for _, idx in df.groupby("region_id", sort=False).groups.items():
        deltas, n_rev = _correct_region(df.loc[idx, "cases"])
        if n_rev:
            repaired_regions += 1
            repaired_points += n_rev
        df.loc[idx, "cases"] = deltas.astype("int64")

    df["cases"] = df["cases"].astype("int64")
    df["cumulative"] = df.groupby("region_id")["cases"].cumsum()
    if repaired_points:
        log.warning(
            "Repaired %d cumulative reversal(s) across %d region(s).",
            repaired_points,
            repaired_regions,
        )
    log.info("Reversal check complete for %d regions.", df["region_id"].nunique())
    return df
