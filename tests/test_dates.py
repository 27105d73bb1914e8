import pandas as pd
import pytest

from casemetrics.errors import DataError
from casemetrics.utils.dates import bin_end_date, check_contiguous_dates, parse_dates_robust


def test_bin_end_date_scalar():
    end = pd.Timestamp("2026-01-21")
    assert bin_end_date(end, 1) == end
    assert bin_end_date(end, 3) == pd.Timestamp("2026-01-07")


def test_bin_end_date_series():
    end = pd.Timestamp("2026-01-21")
    out = bin_end_date(end, pd.Series([1, 2, 4]))
    assert out.tolist() == [
        pd.Timestamp("2026-01-21"),
        pd.Timestamp("2026-01-14"),
        pd.Timestamp("2025-12-31"),
    ]


def test_parse_dates_robust_mixed_formats():
    parsed = parse_dates_robust(pd.Series(["2026-01-05", "01/06/2026", "20260107", "nope"]))
    assert parsed.iloc[:3].tolist() == list(pd.date_range("2026-01-05", periods=3))
    assert parsed.isna().iloc[3]


def test_check_contiguous_dates_accepts_daily_series():
    df = pd.DataFrame({
        "region_id": ["A"] * 3 + ["B"] * 2,
        "date": list(pd.date_range("2026-01-01", periods=3)) + list(pd.date_range("2026-01-10", periods=2)),
    })
    check_contiguous_dates(df)


def test_check_contiguous_dates_rejects_gap():
    df = pd.DataFrame({
        "region_id": ["A", "A"],
        "date": pd.to_datetime(["2026-01-01", "2026-01-03"]),
    })
    with pytest.raises(DataError, match="1 missing day"):
        check_contiguous_dates(df)
