"""County → region → state aggregation of corrected daily cases.

Region and state rows are never observed directly: they are sums of the
corrected county rows, which keeps them non-decreasing without a second
reversal pass.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from casemetrics.config import (
    LEVEL_COUNTY,
    LEVEL_REGION,
    LEVEL_STATE,
    STATE_ID,
    STATE_NAME,
)
from casemetrics.errors import DataError
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def _sum_strict(series: pd.Series) -> float:
    """Sum that stays NaN if any member is NaN."""
    return series.sum(skipna=False)


def _common_span(cases: pd.DataFrame, level: str) -> pd.DataFrame:
    """Drop days on which some county of a group has no row yet (or any more).

    Raises:
        DataError: if a group's counties share no reported day.
    """
    county_span = cases.groupby(["region_id", "county_id"])["date"].agg(
        first="min", last="max"
    )
    common = county_span.groupby(level="region_id").agg(
        first=("first", "max"), last=("last", "min")
    )
    disjoint = common.index[common["first"] > common["last"]]
    if len(disjoint):
        raise DataError(
            f"No day reported by every county of {level} {sorted(disjoint)}"
        )

    spans = cases["region_id"].map(common["first"]), cases["region_id"].map(common["last"])
    inside = cases["date"].between(*spans)
    if not inside.all():
        trimmed = sorted(cases.loc[~inside, "region_id"].unique())
        log.warning(
            "Counties report different date spans; %s rows for %s are limited to "
            "their common span (%d county-days dropped).",
            level,
            trimmed,
            int((~inside).sum()),
        )
    return cases[inside]


def _roll_up(
    daily: pd.DataFrame,
    populations: pd.DataFrame,
    keys: pd.DataFrame,
    level: str,
) -> pd.DataFrame:
    """Sum county cases and populations onto the ``keys`` grouping.

    *keys* maps ``county_id`` → ``(region_id, region_name)``. Each rolled-up
    series only covers the days reported by all of its counties.
    """
    keys = keys[["county_id", "region_id", "region_name"]]
    cases = (
        daily[["region_id", "date", "cases"]]
        .rename(columns={"region_id": "county_id"})
        .merge(keys, on="county_id")
    )
    cases = _common_span(cases, level)
    summed = (
        cases.groupby(["region_id", "region_name", "date"], as_index=False)["cases"]
        .sum()
    )
    pops = (
        populations.rename(columns={"region_id": "county_id"})
        .merge(keys, on="county_id")
        .groupby(["region_id", "region_name"], as_index=False)["population"]
        .agg(_sum_strict)
    )
    out = summed.merge(pops, on=["region_id", "region_name"], how="left")
    out["level"] = level
    return out


def aggregate_hierarchy(
    county_daily: pd.DataFrame,
    region_map: Optional[pd.DataFrame] = None,
    include_state: bool = True,
) -> pd.DataFrame:
    """Append region-level and state-level rows to corrected county rows.

    Args:
        county_daily: Reversal-corrected ``(region_id, region_name, date,
            cases, population)`` rows, one region per county.
        region_map: ``(county_id, region_id, region_name)``. Counties absent
            from the map contribute only to the state total.
        include_state: Whether to add the state-wide row.

    Returns:
        Long DataFrame with a ``level`` column (county / region / state).
    """
    counties = county_daily[["region_id", "region_name", "date", "cases", "population"]].copy()
    counties["level"] = LEVEL_COUNTY
    populations = counties.groupby("region_id", as_index=False)["population"].first()
    frames: list[pd.DataFrame] = [counties]

    if region_map is not None and not region_map.empty:
        unmapped = sorted(set(counties["region_id"]) - set(region_map["county_id"]))
        if unmapped:
            log.warning("Counties missing from region map (state total only): %s", unmapped)
        frames.append(_roll_up(counties, populations, region_map, LEVEL_REGION))

    if include_state:
        state_keys = pd.DataFrame({
            "county_id": populations["region_id"],
            "region_id": STATE_ID,
            "region_name": STATE_NAME,
        })
        frames.append(_roll_up(counties, populations, state_keys, LEVEL_STATE))

    result = pd.concat(frames, ignore_index=True)
    log.info(
        "Aggregated hierarchy: %s",
        result.groupby("level")["region_id"].nunique().to_dict(),
    )
    return result.sort_values(["level", "region_id", "date"]).reset_index(drop=True)
