"""Date parsing and daily-calendar helpers."""

from __future__ import annotations

import datetime as dt

import pandas as pd

from casemetrics.errors import DataError

_DATE_FORMATS: list[str] = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%Y%m%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]


def parse_dates_robust(series: pd.Series) -> pd.Series:
    """Parse with each known format in turn, keeping the first that matches.

    Returns a :class:`pd.Series` of normalised ``datetime64[ns]`` with
    unparseable entries set to ``NaT``.
    """
    if pd.api.types.is_datetime64_any_dtype(series):
        return series.dt.normalize()
    result = pd.Series(pd.NaT, index=series.index, dtype="datetime64[ns]")
    as_text = series.astype(str).str.strip()
    for fmt in _DATE_FORMATS:
        still_missing = result.isna() & series.notna()
        if not still_missing.any():
            break
        result = result.fillna(pd.to_datetime(as_text, format=fmt, errors="coerce"))
    return result.dt.normalize()


def to_timestamp(date: dt.date | str | pd.Timestamp) -> pd.Timestamp:
    """Coerce *date* to a midnight :class:`pd.Timestamp`."""
    return pd.Timestamp(date).normalize()


def check_contiguous_dates(
    df: pd.DataFrame,
    group_col: str = "region_id",
    date_col: str = "date",
) -> None:
    """Raise :class:`DataError` unless every group has one row per calendar day.

    Duplicated dates and gaps inside a group's span are both rejected.
    """
    dupes = df.duplicated(subset=[group_col, date_col])
    if dupes.any():
        bad = sorted(df.loc[dupes, group_col].astype(str).unique())
        raise DataError(f"Duplicate dates for regions: {bad}")

    for key, grp in df.groupby(group_col, sort=False):
        dates = grp[date_col].sort_values()
        span = (dates.iloc[-1] - dates.iloc[0]).days + 1
        if span != len(dates):
            raise DataError(
                f"Region {key!r} has {span - len(dates)} missing day(s) "
                f"between {dates.iloc[0].date()} and {dates.iloc[-1].date()}"
            )


def bin_end_date(
    end_date: pd.Timestamp,
    bin_index: int | pd.Series,
    window: int = 7,
) -> pd.Timestamp | pd.Series:
    """Return the last calendar day covered by trailing bin *bin_index*.

    Accepts a scalar index or a Series of indices.
    """
    return end_date - pd.to_timedelta(window * (bin_index - 1), unit="D")
