"""Load the cleaned daily case table handed over by the data-retrieval layer.

The canonical schema is::

    region_id (str), region_name (str), date (datetime64),
    cases (int, daily new confirmed cases), population (float, nullable)

Common alternate column names are mapped onto it before validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from casemetrics.config import DAILY_CASES_PATH
from casemetrics.errors import DataError
from casemetrics.utils.dates import parse_dates_robust
from casemetrics.utils.io import load_csv
from casemetrics.utils.logging import get_logger

log = get_logger(__name__)

# ── Column mappings ──────────────────────────────────────────────────────────
# Maps common alternate column names → canonical names.
_COLUMN_ALIASES: dict[str, list[str]] = {
    "region_id": ["geoid", "fips", "county_fips", "geo_id", "id"],
    "region_name": ["name", "geo_name", "county", "region", "location"],
    "date": ["report_date", "post_date", "loaddttm", "day"],
    "cases": ["pos_new", "new_cases", "daily_cases", "conf_new", "cases_new"],
    "population": ["pop", "population_total", "pop_2020"],
}

DAILY_COLUMNS: list[str] = ["region_id", "region_name", "date", "cases", "population"]
_REGION_MAP_COLUMNS: list[str] = ["county_id", "region_id", "region_name"]


def validate_daily(df: pd.DataFrame) -> pd.DataFrame:
    """Check and coerce a daily case table to the canonical schema.

    Raises:
        DataError: on missing columns, unparseable dates, or non-numeric
            case counts.
    """
    missing = set(DAILY_COLUMNS) - set(df.columns)
    if missing:
        raise DataError(
            f"Missing required columns: {sorted(missing)}. "
            f"Available: {sorted(df.columns)}"
        )
    df = df[DAILY_COLUMNS].copy()
    df["region_id"] = df["region_id"].astype(str).str.strip()
    df["region_name"] = df["region_name"].astype(str).str.strip()

    df["date"] = parse_dates_robust(df["date"])
    if df["date"].isna().any():
        raise DataError(f"{int(df['date'].isna().sum())} row(s) have unparseable dates")

    cases = pd.to_numeric(df["cases"], errors="coerce")
    if cases.isna().any():
        raise DataError(f"{int(cases.isna().sum())} row(s) have missing or non-numeric cases")
    df["cases"] = cases.round().astype("int64")
    df["population"] = pd.to_numeric(df["population"], errors="coerce")

    return df.sort_values(["region_id", "date"]).reset_index(drop=True)


def load_daily_cases(path: Optional[Path] = None) -> pd.DataFrame:
    """Load and validate the daily case CSV.

    Every column is read as text so identifiers keep their leading zeros;
    :func:`validate_daily` does the numeric coercion.
    """
    path = path or DAILY_CASES_PATH
    df = load_csv(path, aliases=_COLUMN_ALIASES, dtype=str)
    df = validate_daily(df)
    log.info(
        "Loaded %d daily rows for %d regions (%s → %s).",
        len(df),
        df["region_id"].nunique(),
        df["date"].min().date(),
        df["date"].max().date(),
    )
    return df


def load_region_map(path: Path) -> pd.DataFrame:
    """Load a ``county_id → region_id, region_name`` mapping table."""
    df = load_csv(path, aliases={}, dtype=str)
    missing = set(_REGION_MAP_COLUMNS) - set(df.columns)
    if missing:
        raise DataError(f"Region map missing columns: {sorted(missing)}")
    df = df[_REGION_MAP_COLUMNS].apply(lambda s: s.str.strip())
    if df["county_id"].duplicated().any():
        raise DataError("Region map assigns a county to more than one region")
    return df
