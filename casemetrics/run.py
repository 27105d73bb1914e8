"""CLI entry point: ``python -m casemetrics.run <command>``."""

from __future__ import annotations

import argparse
from pathlib import Path

from casemetrics.utils.logging import get_logger

log = get_logger("casemetrics.run")


def _load_inputs(args: argparse.Namespace):
    from casemetrics.ingest import load_daily_cases, load_region_map

    daily = load_daily_cases(args.input)
    region_map = load_region_map(args.regions) if args.regions else None
    return daily, region_map


def cmd_score(args: argparse.Namespace) -> None:
    from casemetrics.config import METRICS_OUTPUT_PATH
    from casemetrics.pipeline import run_metrics, to_output
    from casemetrics.utils.io import save_csv

    daily, region_map = _load_inputs(args)
    metrics = run_metrics(daily, args.end_date, region_map, include_state=args.state)
    save_csv(to_output(metrics), args.output or METRICS_OUTPUT_PATH)
    log.info("Scoring done - %d regions.", len(metrics))


def cmd_cusum(args: argparse.Namespace) -> None:
    from casemetrics.config import CUSUM_OUTPUT_PATH
    from casemetrics.pipeline import run_cusum
    from casemetrics.utils.io import save_csv

    daily, region_map = _load_inputs(args)
    series = run_cusum(daily, args.end_date, region_map, include_state=args.state)
    save_csv(series, args.output or CUSUM_OUTPUT_PATH)
    log.info("Reverse CUSUM done - %d region-weeks.", len(series))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Case-surveillance metrics CLI")
    parser.add_argument(
        "command",
        choices=["score", "cusum"],
        help="Pipeline run to execute.",
    )
    parser.add_argument("--input", type=Path, default=None, help="Daily case CSV.")
    parser.add_argument("--regions", type=Path, default=None, help="County → region map CSV.")
    parser.add_argument("--end-date", default=None, help="Last day of the current week.")
    parser.add_argument("--state", action="store_true", help="Add a state-wide row.")
    parser.add_argument("--output", type=Path, default=None, help="Output CSV path.")
    args = parser.parse_args(argv)

    dispatch = {
        "score": cmd_score,
        "cusum": cmd_cusum,
    }
    dispatch[args.command](args)


if __name__ == "__main__":
    main()
