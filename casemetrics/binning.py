"""Trailing 7-day binning of daily case counts.

Bin 1 is the window of ``WINDOW_DAYS`` days ending on the end date, bin 2 the
window before it, and so on into the past::

    bin_index(date) = (end_date - date).days // WINDOW_DAYS + 1

A date only receives a bin when that bin lies entirely inside the region's
observed history; dates after the end date and partial windows at either
end of a region's series are left unbinned.

Rows are identified by ``region_id`` plus ``level`` when the frame carries
one, so a region may reuse the id of one of its counties.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from casemetrics.config import SCORED_BINS, WINDOW_DAYS
from casemetrics.errors import DataError
from casemetrics.utils.dates import bin_end_date, to_timestamp
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def region_keys(df: pd.DataFrame) -> list[str]:
    """Columns that identify one region's series in *df*."""
    return ["region_id", "level"] if "level" in df.columns else ["region_id"]


def resolve_end_date(daily: pd.DataFrame, end_date=None) -> pd.Timestamp:
    """Default to the last observed date; reject dates outside the data."""
    if daily.empty:
        raise DataError("Cannot bin an empty daily series")
    first, last = daily["date"].min(), daily["date"].max()
    if end_date is None:
        return last
    end = to_timestamp(end_date)
    if end < first or end > last:
        raise DataError(
            f"End date {end.date()} is outside the data range "
            f"{first.date()} → {last.date()}"
        )
    return end


def assign_bins(
    daily: pd.DataFrame,
    end_date=None,
    window: int = WINDOW_DAYS,
) -> pd.DataFrame:
    """Add nullable ``bin_index`` and ``bin_end_date`` columns to *daily*.

    Args:
        daily: ``(region_id, date, cases, ...)`` rows.
        end_date: Last day of bin 1. Defaults to the latest date present.
        window: Days per bin.
    """
    end = resolve_end_date(daily, end_date)
    df = daily.copy()
    days_back = (end - df["date"]).dt.days
    raw_bin = days_back // window + 1

    dates = df.groupby(region_keys(df))["date"]
    first_back = (end - dates.transform("min")).dt.days
    last_back = (end - dates.transform("max")).dt.days

    # bin k covers days_back in [window*(k-1), window*k - 1]
    complete = (
        (days_back >= 0)
        & (last_back <= window * (raw_bin - 1))
        & (first_back >= window * raw_bin - 1)
    )
    df["bin_index"] = raw_bin.where(complete).astype("Int64")
    df["bin_end_date"] = bin_end_date(end, raw_bin, window).where(complete)
    return df


def aggregate_bins(binned: pd.DataFrame) -> pd.DataFrame:
    """Sum daily cases per ``(region, bin_index)``.

    Returns a long DataFrame with columns ``region_id``, ``region_name``,
    ``bin_index``, ``bin_end_date``, ``cases``, ``population`` (and
    ``level`` when present), ordered oldest bin first within each region.
    """
    keys = ["region_id", "region_name"]
    if "level" in binned.columns:
        keys.append("level")
    rows = binned.dropna(subset=["bin_index"])
    bins = (
        rows.groupby(keys + ["bin_index"], as_index=False)
        .agg(
            bin_end_date=("bin_end_date", "first"),
            cases=("cases", "sum"),
            population=("population", "first"),
        )
    )
    bins["bin_index"] = bins["bin_index"].astype(int)
    return bins.sort_values(
        region_keys(bins) + ["bin_index"],
        ascending=[True] * len(region_keys(bins)) + [False],
    ).reset_index(drop=True)


def weekly_bins(
    daily: pd.DataFrame,
    end_date=None,
    window: int = WINDOW_DAYS,
) -> pd.DataFrame:
    """Full weekly history per region (every complete bin)."""
    bins = aggregate_bins(assign_bins(daily, end_date, window))
    log.info(
        "Binned %d daily rows into %d weekly bins across %d regions.",
        len(daily),
        len(bins),
        len(bins.drop_duplicates(region_keys(bins))),
    )
    return bins


def current_and_previous(
    bins: pd.DataFrame,
    daily: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """Reshape bins 1 and 2 into one row per region.

    Regions present in *daily* (or, without it, in *bins*) must all have
    both weeks.

    Returns columns ``region_id``, ``region_name``, (``level``),
    ``population``, ``as_of_date``, ``case_weekly_1``, ``case_weekly_2``.

    Raises:
        DataError: if any region lacks a complete current or previous week.
    """
    keys = ["region_id", "region_name"]
    if "level" in bins.columns:
        keys.append("level")
    recent = bins[bins["bin_index"].isin(SCORED_BINS)]
    if recent.empty:
        raise DataError("No region has a complete current week of history")

    wide = recent.pivot_table(
        index=keys, columns="bin_index", values="cases", aggfunc="sum"
    )
    source = bins if daily is None else daily
    all_regions = pd.MultiIndex.from_frame(source[keys].drop_duplicates())
    wide = wide.reindex(index=all_regions, columns=SCORED_BINS)
    incomplete = wide.isna().any(axis=1)
    if incomplete.any():
        bad = sorted(str(k[0]) for k in wide.index[incomplete])
        raise DataError(
            f"Regions without {len(SCORED_BINS)} complete weeks of history: {bad}"
        )
    wide.columns = [f"case_weekly_{b}" for b in SCORED_BINS]
    wide = wide.astype(np.int64)

    meta = (
        recent[recent["bin_index"] == 1]
        .set_index(keys)[["bin_end_date", "population"]]
        .reindex(wide.index)
    )
    wide["as_of_date"] = meta["bin_end_date"]
    wide["population"] = meta["population"]
    wide = wide.reset_index()
    return wide[keys + ["population", "as_of_date", "case_weekly_1", "case_weekly_2"]]
