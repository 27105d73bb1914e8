import math

import numpy as np
import pytest

from casemetrics.errors import BatchStateError
from casemetrics.fdr import ScoringBatch, bh_adjust


def test_bh_adjust_known_values():
    adjusted = bh_adjust([0.01, 0.04, 0.03, 0.005])
    np.testing.assert_allclose(adjusted, [0.02, 0.04, 0.04, 0.02])


def test_bh_adjust_running_minimum():
    # raw 0.04 * 4/3 would exceed the rank-4 value; the running min caps it
    adjusted = bh_adjust([0.001, 0.002, 0.04, 0.045])
    np.testing.assert_allclose(adjusted, [0.004, 0.004, 0.045, 0.045])


def test_bh_adjust_sorted_is_non_decreasing():
    rng = np.random.default_rng(3)
    p = rng.uniform(size=50)
    adjusted = bh_adjust(p)
    in_raw_order = adjusted[np.argsort(p)]
    assert (np.diff(in_raw_order) >= -1e-15).all()
    assert (adjusted >= p).all()
    assert (adjusted <= 1).all()


def test_bh_adjust_excludes_nan():
    adjusted = bh_adjust([0.01, float("nan"), 0.04])
    assert math.isnan(adjusted[1])
    np.testing.assert_allclose(adjusted[[0, 2]], [0.02, 0.04])


def test_bh_adjust_empty_and_all_nan():
    assert bh_adjust([]).size == 0
    assert np.isnan(bh_adjust([float("nan")])).all()


def test_batch_composition_changes_every_value():
    small = ScoringBatch()
    small.add_many(["A", "B"], [0.01, 0.04])
    small.adjust()

    large = ScoringBatch()
    large.add_many(["A", "B", "C"], [0.01, 0.04, 0.5])
    large.adjust()

    assert small.adjusted("A") != large.adjusted("A")
    assert small.adjusted("B") != large.adjusted("B")


def test_batch_reports_excluded_regions():
    batch = ScoringBatch()
    batch.add_many(["A", "B"], [0.2, float("nan")])
    batch.adjust()
    assert batch.excluded() == ["B"]
    assert math.isnan(batch.adjusted("B"))
    assert batch.adjusted("A") == pytest.approx(0.2)


def test_batch_results_unavailable_before_adjust():
    batch = ScoringBatch()
    batch.add("A", 0.01)
    with pytest.raises(BatchStateError):
        batch.adjusted("A")


def test_batch_adjusts_once():
    batch = ScoringBatch()
    batch.add("A", 0.01)
    batch.adjust()
    with pytest.raises(BatchStateError):
        batch.adjust()
    with pytest.raises(BatchStateError):
        batch.add("B", 0.02)


def test_batch_rejects_duplicate_region():
    batch = ScoringBatch()
    batch.add("A", 0.01)
    with pytest.raises(BatchStateError):
        batch.add("A", 0.02)


def test_batch_accepts_composite_region_keys():
    batch = ScoringBatch()
    batch.add_many([("55079", "county"), ("55079", "region")], [0.01, 0.04])
    batch.adjust()
    np.testing.assert_allclose(
        batch.adjusted_values([("55079", "region"), ("55079", "county")]),
        [0.04, 0.02],
    )
