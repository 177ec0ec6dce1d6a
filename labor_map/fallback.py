"""
labor_map/fallback.py

Fill states that have no value in the preferred series from related series.

For OEWS the preferred series is the annual mean wage (data type 04). Some
states only publish the hourly mean (03), which we annualize with the
standard 2080-hour work year.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Mapping, Optional, Sequence

from labor_map.bls_api import QuotaExceeded, iter_batches, max_batch_size
from labor_map.config import ANNUAL_ROUNDING, HOURS_PER_YEAR

Fetch = Callable[..., dict[str, float]]
Convert = Callable[[float], float]
# (data_type, conversion applied to each value from that series)
FallbackTier = tuple[str, Convert]


def annualize_hourly(hourly: float, *, rounding: str = ANNUAL_ROUNDING) -> int:
    """
    Convert an hourly mean wage to an annual estimate in whole dollars.

    >>> annualize_hourly(72.0)
    149760
    """
    annual = Decimal(str(hourly)) * HOURS_PER_YEAR
    if rounding == "half_up":
        return int(annual.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if rounding == "truncate":
        return int(math.trunc(annual))
    raise ValueError(f"Unknown rounding rule: {rounding!r}")


def missing_regions(resolved: Mapping[str, float], fips_codes: Iterable[str]) -> list[str]:
    """FIPS codes (in input order) that have no value yet."""
    return [fips for fips in fips_codes if resolved.get(fips) is None]


def resolve_with_fallback(
    primary: Mapping[str, float],
    fips_codes: Sequence[str],
    fallbacks: Sequence[FallbackTier],
    fetch: Fetch,
    build_id: Callable[[str, str], str],
    *,
    api_key: Optional[str] = None,
) -> dict[str, float]:
    """
    Return {fips: value} using primary values first, then each fallback tier.

    Parameters
    ----------
    primary:
        {fips: value} from the preferred series.
    fips_codes:
        Every state that should end up with a value.
    fallbacks:
        Ordered (data_type, convert) tiers. Each tier only queries states that
        are still missing, so a state filled by one tier is never re-queried.
    fetch:
        Callable with the signature of bls_api.fetch_latest. Called once per
        batch with retry_empty=False, so an empty tier costs one call per batch.
    build_id:
        (fips, data_type) -> series ID.

    A QuotaExceeded during fallback ends fallback for this run; whatever was
    resolved so far is returned. Other errors propagate.
    """
    resolved: dict[str, float] = {
        fips: primary[fips] for fips in fips_codes if primary.get(fips) is not None
    }

    for data_type, convert in fallbacks:
        missing = missing_regions(resolved, fips_codes)
        if not missing:
            break

        ids = {build_id(fips, data_type): fips for fips in missing}
        filled = 0
        quota_hit = False
        # One call per batch so values from finished batches survive a quota hit.
        for batch in iter_batches(list(ids), max_batch_size(api_key)):
            try:
                got = fetch(batch, api_key=api_key, retry_empty=False)
            except QuotaExceeded:
                print(f"[warn] Quota hit during fallback ({data_type}); stopping fallback attempts.")
                quota_hit = True
                break
            for sid, value in got.items():
                fips = ids.get(sid)
                if fips is None:
                    continue
                resolved[fips] = convert(value)
                filled += 1

        print(f"Fallback {data_type} filled {filled}/{len(missing)} missing states")
        if quota_hit:
            break

    return resolved
