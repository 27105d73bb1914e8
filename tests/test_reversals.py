import numpy as np
import pandas as pd
import pytest

from casemetrics.errors import DataError
from casemetrics.reversals import correct_cumulative, correct_reversals, count_reversals
from tests.conftest import make_daily


def test_no_reversal_unchanged():
    values = [0, 3, 3, 7, 12]
    assert correct_cumulative(values).tolist() == values


def test_all_zero_unchanged():
    assert correct_cumulative([0, 0, 0, 0]).tolist() == [0, 0, 0, 0]


def test_empty_series():
    assert correct_cumulative([]).size == 0


def test_reversal_mid_series_trusts_later_value():
    assert correct_cumulative([10, 12, 9, 15]).tolist() == [9, 9, 9, 15]


def test_reversal_interpolates_between_anchors():
    # 8 exceeds the later 6; it is interpolated between 4 and 6 and floored
    assert correct_cumulative([1, 4, 8, 6, 9]).tolist() == [1, 4, 5, 6, 9]


def test_reversal_at_first_element():
    assert correct_cumulative([5, 3, 4]).tolist() == [3, 3, 4]


def test_reversal_at_last_element():
    assert correct_cumulative([1, 5, 8, 6]).tolist() == [1, 5, 5, 6]


def test_final_value_preserved():
    values = [3, 10, 2, 8, 7, 20, 18]
    assert correct_cumulative(values)[-1] == 18


@pytest.mark.parametrize("values", [
    [10, 12, 9, 15],
    [5, 3, 4],
    [1, 5, 8, 6],
    [0, 100, 50, 60, 40, 200, 150, 151],
    [7, 7, 7, 2],
])
def test_idempotent_and_monotone(values):
    once = correct_cumulative(values)
    twice = correct_cumulative(once)
    np.testing.assert_array_equal(once, twice)
    assert (np.diff(once) >= 0).all()


def test_random_series_idempotent():
    rng = np.random.default_rng(7)
    daily = rng.integers(-20, 40, size=200)
    once = correct_cumulative(np.cumsum(daily) + 500)
    np.testing.assert_array_equal(once, correct_cumulative(once))
    assert (np.diff(once) >= 0).all()


def test_negative_total_raises():
    with pytest.raises(DataError):
        correct_cumulative([2, 1, -4])


def test_missing_values_raise():
    with pytest.raises(DataError):
        correct_cumulative([1, np.nan, 3])


def test_count_reversals():
    assert count_reversals([10, 12, 9, 15, 14]) == 2


def test_correct_reversals_rederives_daily_cases():
    daily = make_daily("A", [10, 2, -3, 6])
    out = correct_reversals(daily)
    assert out["cumulative"].tolist() == [9, 9, 9, 15]
    assert out["cases"].tolist() == [9, 0, 0, 6]
    assert (out["cases"] >= 0).all()


def test_correct_reversals_per_region():
    daily = pd.concat([
        make_daily("A", [10, 2, -3, 6]),
        make_daily("B", [1, 1, 1, 1]),
    ], ignore_index=True)
    out = correct_reversals(daily)
    assert out.loc[out["region_id"] == "B", "cases"].tolist() == [1, 1, 1, 1]
    assert out.groupby("region_id")["cases"].sum().to_dict() == {"A": 15, "B": 4}


def test_correct_reversals_rejects_gaps():
    daily = make_daily("A", [1, 2, 3, 4]).drop(index=2)
    with pytest.raises(DataError, match="missing day"):
        correct_reversals(daily)


def test_correct_reversals_rejects_duplicate_dates():
    daily = make_daily("A", [1, 2, 3])
    with pytest.raises(DataError, match="Duplicate"):
        correct_reversals(pd.concat([daily, daily.iloc[[0]]]))
