from __future__ import annotations

import pandas as pd
import pytest


def make_daily(
    region_id: str,
    cases: list[int],
    start: str = "2026-01-01",
    name: str | None = None,
    population: float = 100_000.0,
) -> pd.DataFrame:
    return pd.DataFrame({
        "region_id": region_id,
        "region_name": name or region_id.title(),
        "date": pd.date_range(start, periods=len(cases), freq="D"),
        "cases": cases,
        "population": population,
    })


def weeks(*totals: int) -> list[int]:
    """Daily counts for consecutive weeks, oldest first, each summing to its total."""
    days: list[int] = []
    for total in totals:
        base, extra = divmod(total, 7)
        days.extend(base + (1 if i < extra else 0) for i in range(7))
    return days


@pytest.fixture
def two_counties() -> pd.DataFrame:
    return pd.concat([
        make_daily("55001", weeks(5, 10, 20), name="Adams", population=20_000),
        make_daily("55003", weeks(40, 30, 30), name="Ashland", population=16_000),
    ], ignore_index=True)


@pytest.fixture
def region_map() -> pd.DataFrame:
    return pd.DataFrame({
        "county_id": ["55001", "55003"],
        "region_id": ["NC", "NC"],
        "region_name": ["North Central", "North Central"],
    })
