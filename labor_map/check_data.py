"""
labor_map/check_data.py

Quick sanity check of data/latest.json: how many states have each metric,
plus a few sample records.

  python -m labor_map.check_data
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping

import pandas as pd

from labor_map.config import DATA_PATH, METRIC_META
from labor_map.dataset import load_dataset

SAMPLE_STATES = ["CA", "TX", "FL", "NY", "IL", "WA", "DC"]


def to_frame(dataset: Mapping[str, Mapping]) -> pd.DataFrame:
    """One row per state, one numeric column per metric (NaN when missing)."""
    states = list(dataset)
    df = pd.DataFrame.from_records([dict(dataset[s]) for s in states], index=states)
    for field in METRIC_META:
        if field not in df.columns:
            df[field] = None
        df[field] = pd.to_numeric(df[field], errors="coerce")
    df.index.name = "state"
    return df[list(METRIC_META)]


def coverage_summary(dataset: Mapping[str, Mapping]) -> dict[str, int]:
    """Number of states with a finite value, per metric."""
    if not dataset:
        return {field: 0 for field in METRIC_META}
    df = to_frame(dataset)
    return {field: int(df[field].notna().sum()) for field in METRIC_META}


def main() -> None:
    parser = argparse.ArgumentParser(description="Report coverage of the stored dataset.")
    parser.add_argument("--data-path", type=Path, default=DATA_PATH)
    args = parser.parse_args()

    if not args.data_path.exists():
        print(f"Missing {args.data_path}", file=sys.stderr)
        sys.exit(1)

    dataset = load_dataset(args.data_path)
    for field, count in coverage_summary(dataset).items():
        print(f"States with {field}: {count}")

    for abbr in SAMPLE_STATES:
        if abbr in dataset:
            print(abbr, dataset[abbr])


if __name__ == "__main__":
    main()
