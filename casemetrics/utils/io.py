"""I/O helpers for data artefacts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import pandas as pd

from casemetrics.utils.logging import get_logger

log = get_logger(__name__)


def ensure_dir(path: Path) -> Path:
    """Create directory (and parents) if it doesn't exist. Returns *path*."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def normalise_column(name: str) -> str:
    """``" Pos New"`` → ``"pos_new"``."""
    return name.strip().lower().replace(" ", "_")


def resolve_columns(
    df: pd.DataFrame,
    aliases: Mapping[str, Sequence[str]],
) -> pd.DataFrame:
    """Normalise column names, then rename the first alias found for each
    canonical name that is not already present.
    """
    df = df.rename(columns=normalise_column)

    rename_map: dict[str, str] = {}
    for canonical, candidates in aliases.items():
        if canonical in df.columns:
            continue
        for alias in candidates:
            alias = normalise_column(alias)
            if alias in df.columns and alias not in rename_map:
                rename_map[alias] = canonical
                break
    return df.rename(columns=rename_map)


def load_csv(
    path: Path,
    aliases: Optional[Mapping[str, Sequence[str]]] = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """Load a CSV with informative logging.

    With *aliases*, column names are normalised and mapped onto canonical
    names via :func:`resolve_columns`.
    """
    if not path.exists():
        raise FileNotFoundError(f"CSV not found: {path}")
    log.info("Loading CSV: %s", path)
    df = pd.read_csv(path, **kwargs)
    if aliases is not None:
        df = resolve_columns(df, aliases)
    return df


def save_csv(df: pd.DataFrame, path: Path, **kwargs: Any) -> None:
    """Persist a DataFrame to CSV, creating parent dirs as needed."""
    ensure_dir(path.parent)
    df.to_csv(path, index=False, **kwargs)
    log.info("Saved CSV (%d rows): %s", len(df), path)
