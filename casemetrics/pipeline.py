"""End-to-end metric and CUSUM runs over a cleaned daily case table."""

from __future__ import annotations

from typing import Optional

import pandas as pd

from casemetrics.binning import (
    current_and_previous,
    region_keys,
    resolve_end_date,
    weekly_bins,
)
from casemetrics.classify import classify_regions
from casemetrics.config import (
    BURDEN_DIGITS,
    CUSUM_ALPHA,
    OUTPUT_COLUMNS,
    P_VALUE_DIGITS,
    TRAJECTORY_DIGITS,
)
from casemetrics.cusum import monitor_regions
from casemetrics.fdr import ScoringBatch
from casemetrics.regions import aggregate_hierarchy
from casemetrics.reversals import correct_reversals
from casemetrics.scoring import score_regions
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)

METRIC_COLUMNS: list[str] = [
    "region_id",
    "region_name",
    "as_of_date",
    "burden",
    "burden_class",
    "trajectory",
    "trajectory_class",
    "trajectory_p",
    "trajectory_fdr",
    "composite_class",
]


def prepare_daily(
    daily: pd.DataFrame,
    region_map: Optional[pd.DataFrame] = None,
    include_state: bool = False,
) -> pd.DataFrame:
    """Repair county series, then derive region/state rows from them."""
    corrected = correct_reversals(daily)
    if region_map is None and not include_state:
        return corrected
    return aggregate_hierarchy(corrected, region_map, include_state=include_state)


def run_metrics(
    daily: pd.DataFrame,
    end_date=None,
    region_map: Optional[pd.DataFrame] = None,
    include_state: bool = False,
) -> pd.DataFrame:
    """Score every region as of *end_date*.

    Every region's p-value goes into a single :class:`ScoringBatch`; no
    record is returned until that batch has been adjusted.

    Returns:
        One row per region with the ``METRIC_COLUMNS`` (plus ``level``,
        the weekly counts and ``trajectory_ratio``).
    """
    prepared = prepare_daily(daily, region_map, include_state)
    end = resolve_end_date(prepared, end_date)
    bins = weekly_bins(prepared, end)
    weekly = current_and_previous(bins, prepared)
    scored = score_regions(weekly)

    regions = list(scored[region_keys(scored)].itertuples(index=False, name=None))
    batch = ScoringBatch()
    batch.add_many(regions, scored["trajectory_p"])
    batch.adjust()
    scored["trajectory_fdr"] = batch.adjusted_values(regions)

    metrics = classify_regions(scored)
    extra = [c for c in metrics.columns if c not in METRIC_COLUMNS]
    log.info("Metrics complete for %d regions as of %s.", len(metrics), end.date())
    return metrics[METRIC_COLUMNS + extra].reset_index(drop=True)


def run_cusum(
    daily: pd.DataFrame,
    end_date=None,
    region_map: Optional[pd.DataFrame] = None,
    include_state: bool = False,
    alpha: float = CUSUM_ALPHA,
) -> pd.DataFrame:
    """Reverse-CUSUM series for every region over its full weekly history."""
    prepared = prepare_daily(daily, region_map, include_state)
    bins = weekly_bins(prepared, end_date)
    return monitor_regions(bins, alpha=alpha)


def to_output(
    metrics: pd.DataFrame,
    columns=OUTPUT_COLUMNS,
) -> pd.DataFrame:
    """Round scores and rename/order columns for the dashboard consumer."""
    out = metrics[list(columns)].copy()
    out["burden"] = out["burden"].round(BURDEN_DIGITS)
    out["trajectory"] = out["trajectory"].round(TRAJECTORY_DIGITS)
    out["trajectory_p"] = out["trajectory_p"].round(P_VALUE_DIGITS)
    out["trajectory_fdr"] = out["trajectory_fdr"].round(P_VALUE_DIGITS)
    out["as_of_date"] = pd.to_datetime(out["as_of_date"]).dt.strftime("%Y-%m-%d")
    return out.rename(columns=dict(columns))
