"""
labor_map/update_data.py

This is the updater script behind the map.

What it does:
1) LAUS phase: fetch the latest statewide unemployment rate for lower-48 + DC
   and merge it into data/latest.json (field "unemployment_rate").
2) OEWS phase: fetch the latest Software Developer annual mean wage, fill
   gaps from the hourly mean (x2080), and merge it in (field "swdev_wage").
3) After each write, mirror the file to docs/data/latest.json if docs/ exists.

Failure policy:
- If BLS says the daily quota is used up, that phase keeps the existing file
  untouched (and re-mirrors it), then the run moves on.
- Anything else aborts the run before that phase writes. Phases that already
  finished keep their writes.

How to run locally:
  python -m labor_map.update_data

Environment variables:
- BLS_API_KEY (optional): BLS v2 registration key (raises the daily quota).
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from labor_map.bls_api import QuotaExceeded, fetch_latest
from labor_map.config import (
    DATA_PATH,
    LAUS_UNEMPLOYMENT_RATE,
    MIRROR_ROOT,
    OEWS_ANNUAL_MEAN,
    OEWS_FALLBACK_DATATYPES,
    STATES,
    api_key_from_env,
)
from labor_map.dataset import (
    load_dataset,
    merge_dataset,
    mirror_dataset,
    preserve_dataset,
    write_dataset,
)
from labor_map.fallback import annualize_hourly, resolve_with_fallback
from labor_map.series_ids import fips_for_series_id, laus_series_id, oews_series_id

UNEMPLOYMENT = "unemployment"
WAGE = "wage"


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of one pipeline phase."""

    name: str
    field: str
    status: str  # "updated" | "preserved"
    filled: int
    total: int


def fetch_unemployment(api_key: Optional[str]) -> dict[str, float]:
    """Latest LAUS unemployment rate keyed by FIPS."""
    ids = [laus_series_id(fips, LAUS_UNEMPLOYMENT_RATE) for fips in STATES.values()]
    got = fetch_latest(ids, api_key=api_key)
    return {fips_for_series_id(sid): value for sid, value in got.items()}


def fetch_wages(api_key: Optional[str]) -> dict[str, float]:
    """Latest OEWS annual mean wage keyed by FIPS, with hourly fallback."""
    fips_codes = list(STATES.values())
    ids = [oews_series_id(fips, OEWS_ANNUAL_MEAN) for fips in fips_codes]
    got = fetch_latest(ids, api_key=api_key)
    primary = {fips_for_series_id(sid): value for sid, value in got.items()}
    print(f"OEWS annual mean: {len(primary)}/{len(fips_codes)} states")

    fallbacks = [(dt, annualize_hourly) for dt in OEWS_FALLBACK_DATATYPES]
    resolved = resolve_with_fallback(
        primary, fips_codes, fallbacks, fetch_latest, oews_series_id, api_key=api_key
    )
    # Annual wages are whole dollars; keep them as ints in the JSON.
    return {
        fips: int(v) if float(v).is_integer() else v for fips, v in resolved.items()
    }


def build_updates(values_by_fips: dict[str, float], field: str) -> dict[str, dict]:
    """
    Partial records for every tracked state.

    States without a value get an empty partial: the merge still gives them a
    full record (null by default) but keeps whatever value they already had.
    """
    updates: dict[str, dict] = {}
    for abbr, fips in STATES.items():
        value = values_by_fips.get(fips)
        updates[abbr] = {field: value} if value is not None else {}
    return updates


def run_phase(
    name: str,
    field: str,
    fetcher: Callable[[Optional[str]], dict[str, float]],
    data_path: Path,
    mirror_root: Optional[Path],
    *,
    api_key: Optional[str] = None,
) -> PhaseResult:
    """Fetch, merge, write and mirror one metric."""
    total = len(STATES)
    print(f"\n=== {name} ({field}) ===")

    try:
        values = fetcher(api_key)
    except QuotaExceeded as e:
        print(f"[warn] {e}")
        print(f"[warn] {name} quota hit; preserving existing {field} and continuing.")
        preserve_dataset(data_path, mirror_root)
        return PhaseResult(name, field, "preserved", 0, total)

    merged = merge_dataset(load_dataset(data_path), build_updates(values, field))
    write_dataset(merged, data_path)
    filled = sum(1 for abbr in STATES if merged[abbr].get(field) is not None)
    print(f"Wrote {data_path}: {field} filled for {filled}/{total} states")
    mirror_dataset(data_path, mirror_root)
    return PhaseResult(name, field, "updated", filled, total)


def run_unemployment_phase(
    data_path: Path, mirror_root: Optional[Path], *, api_key: Optional[str] = None
) -> PhaseResult:
    return run_phase(
        "LAUS", "unemployment_rate", fetch_unemployment, data_path, mirror_root, api_key=api_key
    )


def run_wage_phase(
    data_path: Path, mirror_root: Optional[Path], *, api_key: Optional[str] = None
) -> PhaseResult:
    return run_phase(
        "OEWS", "swdev_wage", fetch_wages, data_path, mirror_root, api_key=api_key
    )


PHASES = {
    UNEMPLOYMENT: run_unemployment_phase,
    WAGE: run_wage_phase,
}


def update_dataset(
    data_path: Path = DATA_PATH,
    mirror_root: Optional[Path] = MIRROR_ROOT,
    *,
    api_key: Optional[str] = None,
    phases: Sequence[str] = (UNEMPLOYMENT, WAGE),
) -> list[PhaseResult]:
    """
    Run the requested phases in order against one dataset file.

    Returns one PhaseResult per phase. A non-quota failure propagates and
    stops the remaining phases.
    """
    unknown = [p for p in phases if p not in PHASES]
    if unknown:
        raise ValueError(f"Unknown phases {unknown}; expected any of {list(PHASES)}")
    return [PHASES[p](data_path, mirror_root, api_key=api_key) for p in phases]


def _mask(key: Optional[str]) -> str:
    return f"{key[:6]}…" if key else "(none)"


def main() -> None:
    """
    CLI entrypoint so the script can be run with:
        python -m labor_map.update_data

    You can override defaults:
        python -m labor_map.update_data --only wage --mirror-root site
    """
    parser = argparse.ArgumentParser(description="Refresh data/latest.json from the BLS API.")
    parser.add_argument("--data-path", type=Path, default=DATA_PATH)
    parser.add_argument("--mirror-root", type=Path, default=MIRROR_ROOT)
    parser.add_argument("--only", choices=list(PHASES), action="append", dest="phases")
    args = parser.parse_args()

    api_key = api_key_from_env()
    print("BLS key detected:", _mask(api_key))

    results = update_dataset(
        data_path=args.data_path,
        mirror_root=args.mirror_root,
        api_key=api_key,
        phases=args.phases or (UNEMPLOYMENT, WAGE),
    )

    for r in results:
        print(f"{r.name}: {r.status} ({r.field} {r.filled}/{r.total})")
    print(f"All done. {args.data_path} updated and mirrored if {args.mirror_root} exists.")


if __name__ == "__main__":
    main()
