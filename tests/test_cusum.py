import numpy as np
import pandas as pd
import pytest
from scipy.stats import poisson

from casemetrics.cusum import CUSUM_COLUMNS, control_limits, monitor_regions, reverse_cusum


def test_statistic_definitions():
    # oldest first; most recent week is 4
    out = reverse_cusum([1, 2, 3, 4])
    assert out["weeks_ago"].tolist() == [0, 1, 2, 3]
    assert out["cases"].tolist() == [4, 3, 2, 1]
    # cumsum 4, 7, 9, 10 minus w * 4
    assert out["S_N"].tolist() == [4, 3, 1, -2]
    assert np.isnan(out["S_N_z"].iloc[0])
    np.testing.assert_allclose(out["S_N_z"].iloc[1:], [3 - 4, 0.5 - 4, -2 / 3 - 4])


def test_limits_match_poisson_quantiles():
    lcl, ucl = control_limits(10, np.array([0, 1, 2, 3]), alpha=0.05)
    w = np.array([1, 2, 3])
    np.testing.assert_allclose(lcl[1:], poisson.ppf(0.025, 10 * w) + 10 - 10 * w)
    np.testing.assert_allclose(ucl[1:], poisson.ppf(0.975, 10 * w) + 10 - 10 * w)
    assert lcl[0] == ucl[0] == 10


def test_limits_widen_with_weeks_ago():
    lcl, ucl = control_limits(25, np.arange(12))
    assert (np.diff(ucl - lcl) >= 0).all()


def test_stable_series_not_flagged():
    out = reverse_cusum([10] * 8)
    assert not out["flag"].any()
    assert (out["S_N"] >= out["lcl"]).all() and (out["S_N"] <= out["ucl"]).all()


def test_sharp_recent_drop_flagged():
    out = reverse_cusum([100, 100, 100, 10])
    assert not out["flag"].iloc[0]
    assert out["flag"].iloc[1:].all()


def test_zero_current_week_has_degenerate_limits():
    out = reverse_cusum([5, 0])
    assert out["lcl"].tolist() == [0.0, 0.0]
    assert out["ucl"].tolist() == [0.0, 0.0]
    assert out["flag"].tolist() == [False, True]


def test_empty_history():
    assert list(reverse_cusum([]).columns) == CUSUM_COLUMNS


def test_monitor_regions_orders_most_recent_first():
    bins = pd.DataFrame({
        "region_id": ["A", "A", "A", "B"],
        "region_name": ["A", "A", "A", "B"],
        "bin_index": [3, 2, 1, 1],
        "bin_end_date": pd.to_datetime(["2026-01-07", "2026-01-14", "2026-01-21", "2026-01-21"]),
        "cases": [30, 20, 10, 4],
    })
    out = monitor_regions(bins)
    a = out[out["region_id"] == "A"]
    assert a["cases"].tolist() == [10, 20, 30]
    assert a["bin_end_date"].iloc[0] == pd.Timestamp("2026-01-21")
    assert a["S_N"].tolist() == [10, 20, 40]
    assert out[out["region_id"] == "B"]["weeks_ago"].tolist() == [0]
