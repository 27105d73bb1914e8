"""Central configuration for the case-surveillance metrics pipeline."""

from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import Final, Mapping

# ── Paths ────────────────────────────────────────────────────────────────────
ROOT_DIR: Final[Path] = Path(__file__).resolve().parents[1]
DATA_RAW_DIR: Final[Path] = ROOT_DIR / "data" / "raw"
REPORTS_DIR: Final[Path] = ROOT_DIR / "reports"

DAILY_CASES_PATH: Final[Path] = DATA_RAW_DIR / "daily_cases.csv"
METRICS_OUTPUT_PATH: Final[Path] = REPORTS_DIR / "region_metrics.csv"
CUSUM_OUTPUT_PATH: Final[Path] = REPORTS_DIR / "region_cusum.csv"

# ── Windows ──────────────────────────────────────────────────────────────────
WINDOW_DAYS: Final[int] = 7
SCORED_BINS: Final[list[int]] = [1, 2]  # current and previous complete week

# ── Burden (14-day cases per 100k) ───────────────────────────────────────────
PER_POPULATION: Final[int] = 100_000

BURDEN_LOW: Final[str] = "Low"
BURDEN_MODERATE: Final[str] = "Moderate"
BURDEN_MODERATELY_HIGH: Final[str] = "Moderately High"
BURDEN_HIGH: Final[str] = "High"
BURDEN_CLASSES: Final[list[str]] = [
    BURDEN_LOW,
    BURDEN_MODERATE,
    BURDEN_MODERATELY_HIGH,
    BURDEN_HIGH,
]
# Lower edge of each class; intervals are [edge_i, edge_i+1).
BURDEN_THRESHOLDS: Final[list[float]] = [0.0, 10.0, 50.0, 100.0]

# ── Trajectory (week-over-week) ──────────────────────────────────────────────
TRAJECTORY_DECREASING: Final[str] = "Decreasing"
TRAJECTORY_NO_CHANGE: Final[str] = "No significant change"
TRAJECTORY_INCREASING: Final[str] = "Increasing"
TRAJECTORY_CLASSES: Final[list[str]] = [
    TRAJECTORY_DECREASING,
    TRAJECTORY_NO_CHANGE,
    TRAJECTORY_INCREASING,
]
TRAJECTORY_RATIO_UPPER: Final[float] = 1.10
TRAJECTORY_RATIO_LOWER: Final[float] = 0.90
TRAJECTORY_P_THRESHOLD: Final[float] = float(
    os.getenv("TRAJECTORY_P_THRESHOLD", "0.025")
)

# ── Composite activity level ─────────────────────────────────────────────────
COMPOSITE_LOW: Final[str] = "Low"
COMPOSITE_MODERATE: Final[str] = "Moderate"
COMPOSITE_HIGH: Final[str] = "High"
COMPOSITE_CLASSES: Final[list[str]] = [COMPOSITE_LOW, COMPOSITE_MODERATE, COMPOSITE_HIGH]

COMPOSITE_TABLE: Final[Mapping[tuple[str, str], str]] = MappingProxyType({
    (BURDEN_LOW, TRAJECTORY_DECREASING): COMPOSITE_LOW,
    (BURDEN_LOW, TRAJECTORY_NO_CHANGE): COMPOSITE_LOW,
    (BURDEN_LOW, TRAJECTORY_INCREASING): COMPOSITE_MODERATE,
    (BURDEN_MODERATE, TRAJECTORY_DECREASING): COMPOSITE_MODERATE,
    (BURDEN_MODERATE, TRAJECTORY_NO_CHANGE): COMPOSITE_MODERATE,
    (BURDEN_MODERATE, TRAJECTORY_INCREASING): COMPOSITE_HIGH,
    (BURDEN_MODERATELY_HIGH, TRAJECTORY_DECREASING): COMPOSITE_MODERATE,
    (BURDEN_MODERATELY_HIGH, TRAJECTORY_NO_CHANGE): COMPOSITE_HIGH,
    (BURDEN_MODERATELY_HIGH, TRAJECTORY_INCREASING): COMPOSITE_HIGH,
    (BURDEN_HIGH, TRAJECTORY_DECREASING): COMPOSITE_HIGH,
    (BURDEN_HIGH, TRAJECTORY_NO_CHANGE): COMPOSITE_HIGH,
    (BURDEN_HIGH, TRAJECTORY_INCREASING): COMPOSITE_HIGH,
})

# ── Reverse CUSUM ────────────────────────────────────────────────────────────
CUSUM_ALPHA: Final[float] = float(os.getenv("CUSUM_ALPHA", "0.05"))

# ── Region hierarchy ─────────────────────────────────────────────────────────
LEVEL_COUNTY: Final[str] = "county"
LEVEL_REGION: Final[str] = "region"
LEVEL_STATE: Final[str] = "state"
STATE_ID: Final[str] = os.getenv("STATE_ID", "state")
STATE_NAME: Final[str] = os.getenv("STATE_NAME", "Statewide")

# ── Output mapping (internal name → consumer column, in order) ───────────────
BURDEN_DIGITS: Final[int] = 1
TRAJECTORY_DIGITS: Final[int] = 0
P_VALUE_DIGITS: Final[int] = 4

OUTPUT_COLUMNS: Final[Mapping[str, str]] = MappingProxyType({
    "region_id": "Region_ID",
    "region_name": "Region",
    "as_of_date": "Date",
    "burden": "Burden",
    "burden_class": "Burden_Class",
    "trajectory": "Trajectory",
    "trajectory_class": "Trajectory_Class",
    "trajectory_p": "Trajectory_P",
    "trajectory_fdr": "Trajectory_FDR",
    "composite_class": "Composite_Class",
})

# ── Env overrides ────────────────────────────────────────────────────────────
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")
