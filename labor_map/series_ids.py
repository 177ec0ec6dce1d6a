"""
labor_map/series_ids.py

Builders for the two fixed-width BLS series ID formats we query.

Both builders are pure: the same (FIPS, data type, family) always yields the
same string. Any input outside the configured state table is treated as a bug
in the caller and raises MalformedInput instead of producing an ID that BLS
would silently answer with no data.
"""

from __future__ import annotations

import re

from labor_map.config import (
    FIPS_TO_STATE,
    LAUS_AREA_TYPE,
    LAUS_AREA_WIDTH,
    LAUS_PREFIX,
    LAUS_SEASONAL,
    LAUS_SERIES_LENGTH,
    OEWS_AREA_TYPE,
    OEWS_AREA_WIDTH,
    OEWS_INDUSTRY,
    OEWS_OCCUPATION,
    OEWS_PREFIX,
    OEWS_SEASONAL,
    OEWS_SERIES_LENGTH,
)

OEWS = "oews"
LAUS = "laus"
FAMILIES = (OEWS, LAUS)

_DATA_TYPE_RE = re.compile(r"^\d{2}$")


class MalformedInput(ValueError):
    """Raised when a series ID is requested for an unknown state, data type or family."""
    pass


def _check_inputs(fips: str, data_type: str) -> None:
    if fips not in FIPS_TO_STATE:
        raise MalformedInput(f"Unknown state FIPS code: {fips!r}")
    if not isinstance(data_type, str) or not _DATA_TYPE_RE.match(data_type):
        raise MalformedInput(f"Data type must be two digits, got {data_type!r}")


def oews_series_id(fips: str, data_type: str) -> str:
    """
    Statewide OEWS series for Software Developers.

    Example (CA, annual mean): OEUS060000000000015125204
    """
    _check_inputs(fips, data_type)
    area = fips.ljust(OEWS_AREA_WIDTH, "0")
    series_id = (
        f"{OEWS_PREFIX}{OEWS_SEASONAL}{OEWS_AREA_TYPE}"
        f"{area}{OEWS_INDUSTRY}{OEWS_OCCUPATION}{data_type}"
    )
    if len(series_id) != OEWS_SERIES_LENGTH:
        raise MalformedInput(f"Built OEWS id has wrong length: {series_id}")
    return series_id


def laus_series_id(fips: str, data_type: str) -> str:
    """
    Statewide LAUS series.

    Example (CA, unemployment rate): LASST060000000000003
    """
    _check_inputs(fips, data_type)
    area = f"{LAUS_AREA_TYPE}{fips}".ljust(LAUS_AREA_WIDTH, "0")
    series_id = f"{LAUS_PREFIX}{LAUS_SEASONAL}{area}{data_type}"
    if len(series_id) != LAUS_SERIES_LENGTH:
        raise MalformedInput(f"Built LAUS id has wrong length: {series_id}")
    return series_id


_BUILDERS = {
    OEWS: oews_series_id,
    LAUS: laus_series_id,
}


def build_series_id(fips: str, data_type: str, family: str) -> str:
    """Dispatch to the builder for `family` ("oews" or "laus")."""
    try:
        builder = _BUILDERS[family]
    except KeyError:
        raise MalformedInput(f"family must be one of {list(FAMILIES)}, got {family!r}") from None
    return builder(fips, data_type)


def fips_for_series_id(series_id: str) -> str:
    """
    Recover the state FIPS code embedded in a series ID we built.

    Used when reading API responses, which are keyed by seriesID.
    """
    if series_id.startswith(OEWS_PREFIX) and len(series_id) == OEWS_SERIES_LENGTH:
        fips = series_id[4:6]
    elif series_id.startswith(LAUS_PREFIX) and len(series_id) == LAUS_SERIES_LENGTH:
        fips = series_id[5:7]
    else:
        raise MalformedInput(f"Not a statewide OEWS/LAUS series id: {series_id!r}")
    if fips not in FIPS_TO_STATE:
        raise MalformedInput(f"Series id {series_id!r} points at an untracked state")
    return fips
