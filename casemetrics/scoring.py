"""Burden and trajectory scores from the two most recent weekly bins."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
from scipy.stats import binomtest

from casemetrics.config import PER_POPULATION
from casemetrics.errors import DataError, UndefinedMetricError
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def burden_score(cases_14d: float, population: float | None) -> float:
    """14-day cases per ``PER_POPULATION`` residents.

    A region with no cases and no usable population scores 0.0.

    Raises:
        DataError: if the population is missing or non-positive while the
            region has case activity.
    """
    bad_population = population is None or math.isnan(population) or population <= 0
    if bad_population:
        if cases_14d == 0:
            log.warning("Population %r unusable; burden set to 0.0 for a region with no cases.", population)
            return 0.0
        raise DataError(
            f"Population {population!r} is unusable for a region with "
            f"{cases_14d:g} cases in 14 days"
        )
    return cases_14d / population * PER_POPULATION


def trajectory_ratio(case_weekly_1: int, case_weekly_2: int) -> float:
    """Current-week over previous-week case ratio.

    Raises:
        UndefinedMetricError: when the previous week had no cases.
    """
    if case_weekly_2 == 0:
        raise UndefinedMetricError("Trajectory ratio is undefined for a previous week of 0")
    return case_weekly_1 / case_weekly_2


def trajectory_p_value(case_weekly_1: int, case_weekly_2: int) -> float:
    """Exact two-sided test that two equal-length Poisson counts share a rate.

    Conditional on the total, the current week's count is
    Binomial(n, 0.5) under the null.

    Raises:
        UndefinedMetricError: when both weeks are zero.
    """
    n = int(case_weekly_1) + int(case_weekly_2)
    if n == 0:
        raise UndefinedMetricError("No cases in either week; nothing to test")
    return float(binomtest(int(case_weekly_1), n, p=0.5, alternative="two-sided").pvalue)


def _score_row(row: pd.Series) -> pd.Series:
    w1, w2 = int(row["case_weekly_1"]), int(row["case_weekly_2"])
    try:
        ratio = trajectory_ratio(w1, w2)
    except UndefinedMetricError:
        ratio = np.nan
    try:
        p_value = trajectory_p_value(w1, w2)
    except UndefinedMetricError:
        p_value = np.nan
    return pd.Series({
        "burden": burden_score(w1 + w2, row["population"]),
        "trajectory_ratio": ratio,
        "trajectory": (ratio - 1.0) * 100.0,
        "trajectory_p": p_value,
    })


def score_regions(weekly: pd.DataFrame) -> pd.DataFrame:
    """Add ``burden``, ``trajectory_ratio``, ``trajectory`` (percent change)
    and ``trajectory_p`` to the one-row-per-region weekly frame.

    Undefined trajectories are left as NaN and are resolved explicitly by
    the classifier and the FDR batch.
    """
    counts = weekly[["case_weekly_1", "case_weekly_2"]]
    if (counts < 0).any().any():
        raise DataError("Negative weekly case counts after reversal correction")
    if weekly.empty:
        return weekly.assign(
            burden=pd.Series(dtype=float),
            trajectory_ratio=pd.Series(dtype=float),
            trajectory=pd.Series(dtype=float),
            trajectory_p=pd.Series(dtype=float),
        )

    scores = weekly.apply(_score_row, axis=1)
    scored = pd.concat([weekly, scores], axis=1)
    n_undefined = int(scored["trajectory_ratio"].isna().sum())
    if n_undefined:
        log.warning(
            "%d region(s) had no cases in the previous week; trajectory left unscored.",
            n_undefined,
        )
    log.info("Scored %d regions.", len(scored))
    return scored
