"""
labor_map/config.py

This file is the "single source of truth" for:

1) Which states we track (STATES: postal code -> 2-digit FIPS)
2) How the two BLS series families are spelled out (LAUS and OEWS codes)
3) How we talk to the BLS API (endpoint, batch limits, timeouts)
4) Where the dataset lives and where it gets mirrored for publishing
5) How each metric is labelled in the dashboard (METRIC_META)

Important vocabulary:
- "LAUS" = Local Area Unemployment Statistics (statewide unemployment rate)
- "OEWS" = Occupational Employment and Wage Statistics (wages by occupation)

Series IDs are built from these codes in labor_map/series_ids.py. A single
wrong digit still gives a well-formed ID that quietly returns no data, so the
codes below are checked against known-good literal IDs in the tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------
# Lower-48 + DC. Alaska (02) and Hawaii (15) are deliberately left out of the
# map, so they are not fetched either.
STATES: dict[str, str] = {
    "AL": "01", "AZ": "04", "AR": "05", "CA": "06", "CO": "08", "CT": "09",
    "DE": "10", "FL": "12", "GA": "13", "ID": "16", "IL": "17", "IN": "18",
    "IA": "19", "KS": "20", "KY": "21", "LA": "22", "ME": "23", "MD": "24",
    "MA": "25", "MI": "26", "MN": "27", "MS": "28", "MO": "29", "MT": "30",
    "NE": "31", "NV": "32", "NH": "33", "NJ": "34", "NM": "35", "NY": "36",
    "NC": "37", "ND": "38", "OH": "39", "OK": "40", "OR": "41", "PA": "42",
    "RI": "44", "SC": "45", "SD": "46", "TN": "47", "TX": "48", "UT": "49",
    "VT": "50", "VA": "51", "WA": "53", "WV": "54", "WI": "55", "WY": "56",
    "DC": "11",
}

EXCLUDED_STATES: dict[str, str] = {"AK": "02", "HI": "15"}

FIPS_TO_STATE: dict[str, str] = {fips: abbr for abbr, fips in STATES.items()}

# ---------------------------------------------------------------------
# LAUS: statewide unemployment rate
# ---------------------------------------------------------------------
# Layout: LA + seasonal(1) + area(15) + measure(2)
#   area = "ST" + FIPS2 + 11 zeros
#   e.g. CA -> LASST060000000000003
LAUS_PREFIX = "LA"
LAUS_SEASONAL = "S"  # seasonally adjusted
LAUS_AREA_TYPE = "ST"  # statewide
LAUS_AREA_WIDTH = 15
LAUS_UNEMPLOYMENT_RATE = "03"
LAUS_SERIES_LENGTH = 20

# ---------------------------------------------------------------------
# OEWS: Software Developers (SOC 15-1252) mean wage
# ---------------------------------------------------------------------
# Layout: OE + seasonal(1) + areatype(1) + area(7) + industry(6)
#         + occupation(6) + datatype(2)
#   area = FIPS2 + "00000"
#   e.g. CA -> OEUS060000000000015125204
OEWS_PREFIX = "OE"
OEWS_SEASONAL = "U"  # unadjusted
OEWS_AREA_TYPE = "S"  # state
OEWS_AREA_WIDTH = 7
OEWS_INDUSTRY = "000000"  # cross-industry
OEWS_OCCUPATION = "151252"  # Software Developers
OEWS_ANNUAL_MEAN = "04"
OEWS_HOURLY_MEAN = "03"
OEWS_SERIES_LENGTH = 25

# Tried in order when the annual mean is missing for a state.
OEWS_FALLBACK_DATATYPES: list[str] = [OEWS_HOURLY_MEAN]

# Hourly -> annual conversion used by BLS for OEWS estimates.
HOURS_PER_YEAR = 2080

# How an annualized hourly wage is turned into whole dollars:
# - "half_up":  nearest integer, .5 rounds up
# - "truncate": drop the fractional part
ANNUAL_ROUNDING = "half_up"

# ---------------------------------------------------------------------
# BLS API
# ---------------------------------------------------------------------
# Only v2 supports the "latest" flag we rely on to keep quota usage down.
BLS_ENDPOINTS = {
    "v2": "https://api.bls.gov/publicAPI/v2/timeseries/data/",
}

SUCCESS_STATUS = "REQUEST_SUCCEEDED"
QUOTA_STATUS = "REQUEST_NOT_PROCESSED"
QUOTA_MESSAGE_MARKER = "daily threshold"

# BLS v2 rejects queries with more series than this.
MAX_SERIES_PER_QUERY = {
    "registered": 50,
    "unregistered": 25,
}

# Size of the mini-batches used when a full request comes back empty.
RETRY_BATCH_SIZE = 10

DEFAULT_TIMEOUT_S = 60
MAX_RETRIES = 3

# ---------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------
# Fields:
# - name:   What users see in the dashboard
# - unit:   Human-readable unit label
# - type:   "rate" for percents, "level" for currency amounts
# - source: The BLS program the value comes from
METRIC_META: dict[str, dict[str, str]] = {
    "unemployment_rate": {
        "name": "Unemployment Rate (LAUS, %)",
        "unit": "Percent",
        "type": "rate",
        "source": "LAUS",
    },
    "swdev_wage": {
        "name": "Software Dev Annual Mean Wage (OEWS)",
        "unit": "Dollars per year",
        "type": "level",
        "source": "OEWS",
    },
}

ROOT = Path(__file__).resolve().parents[1]
DATA_PATH = ROOT / "data" / "latest.json"

# GitHub Pages serves docs/, so a copy of the dataset goes there when the
# directory exists.
MIRROR_ROOT = ROOT / "docs"
MIRROR_RELATIVE = Path("data") / "latest.json"


def api_key_from_env() -> Optional[str]:
    """Return the BLS registration key from the environment, if any."""
    return os.getenv("BLS_API_KEY") or os.getenv("bls_api_key") or None
