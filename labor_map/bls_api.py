"""
labor_map/bls_api.py

Small wrapper around the BLS Public Data API (v2, "latest" queries only).

Why this file exists:
- Keeps API request/response parsing isolated from the pipelines
- Enforces the per-query series limit so BLS never rejects a batch as too big
- Separates "daily quota used up" from every other failure, because the
  updater treats the first as recoverable and the second as fatal

Main output:
- fetch_latest(...): {series_id: latest numeric value}

Notes about BLS API responses:
- With "latest": true, each series carries at most one observation.
- Unavailable values come back as "" or "-" (we leave those series out).
- The JSON shape differs slightly between endpoints/versions, so we handle
  both the dict and list forms of "Results".
"""

from __future__ import annotations

import json
import time
from typing import Any, Iterator, Optional, Sequence

import pandas as pd
import requests

from labor_map.config import (
    BLS_ENDPOINTS,
    DEFAULT_TIMEOUT_S,
    MAX_RETRIES,
    MAX_SERIES_PER_QUERY,
    QUOTA_MESSAGE_MARKER,
    QUOTA_STATUS,
    RETRY_BATCH_SIZE,
    SUCCESS_STATUS,
)


class BLSError(RuntimeError):
    """Base class for anything that goes wrong talking to the BLS API."""
    pass


class QuotaExceeded(BLSError):
    """BLS refused the request because the daily threshold was reached."""
    pass


class ApiFailure(BLSError):
    """Any other non-success response or transport error (timeouts included)."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message)
        self.body = body


def _extract_series_list(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Extract the list of series objects from a BLS response.

    Accepts both:
      - {"Results": {"series": [...]}}
      - {"Results": [{"series": [...]}]}
    """
    results = payload.get("Results")
    if isinstance(results, dict):
        return list(results.get("series", []) or [])
    if isinstance(results, list) and results and isinstance(results[0], dict):
        return list(results[0].get("series", []) or [])
    return []


def _messages(payload: dict[str, Any]) -> list[str]:
    msgs = payload.get("message") or []
    if isinstance(msgs, str):
        msgs = [msgs]
    return [str(m) for m in msgs]


def classify_failure(payload: dict[str, Any]) -> BLSError:
    """
    Turn a non-success BLS payload into the matching exception.

    BLS signals quota exhaustion with status REQUEST_NOT_PROCESSED and a
    message mentioning the "daily threshold".
    """
    status = payload.get("status")
    msgs = _messages(payload)
    text = "; ".join(msgs)
    if status == QUOTA_STATUS or any(QUOTA_MESSAGE_MARKER in m.lower() for m in msgs):
        return QuotaExceeded(f"BLS daily quota reached (status={status}): {text}")
    return ApiFailure(
        f"BLS request failed (status={status}): {json.dumps(payload, indent=2)}",
        body=payload,
    )


def parse_latest_values(payload: dict[str, Any]) -> dict[str, float]:
    """
    Map seriesID -> latest value for every series that has a usable value.

    Series with no data, an empty value or a non-numeric placeholder are
    skipped rather than raising.
    """
    out: dict[str, float] = {}
    for series in _extract_series_list(payload):
        sid = series.get("seriesID")
        rows = series.get("data") or []
        if not sid or not rows:
            continue
        value = pd.to_numeric(rows[0].get("value"), errors="coerce")
        if pd.isna(value):
            continue
        out[sid] = float(value)
    return out


def iter_batches(series_ids: Sequence[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of at most `size` IDs, preserving order."""
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(series_ids), size):
        yield list(series_ids[start:start + size])


def max_batch_size(api_key: Optional[str]) -> int:
    """BLS allows more series per query for registered keys."""
    return MAX_SERIES_PER_QUERY["registered" if api_key else "unregistered"]


def _post_batch(
    series_ids: list[str],
    *,
    api_key: Optional[str],
    url: str,
    timeout_s: int,
    max_retries: int,
) -> dict[str, Any]:
    """
    POST one batch and return the decoded payload of a successful response.

    Transient HTTP errors (429/5xx) are retried with a growing pause. API-level
    failures are not retried: a quota rejection would only burn more quota.
    """
    headers = {"Content-type": "application/json"}
    payload: dict[str, Any] = {"seriesid": series_ids, "latest": True}
    if api_key:
        payload["registrationkey"] = api_key

    last_status: Optional[int] = None
    for attempt in range(1, max_retries + 1):
        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=timeout_s)
        except requests.RequestException as e:
            # Timeouts and connection errors are not worth distinguishing.
            raise ApiFailure(f"BLS request failed: {e}") from e

        if resp.status_code in (429, 500, 502, 503, 504):
            last_status = resp.status_code
            if attempt == max_retries:
                break
            print(f"[warn] BLS HTTP {resp.status_code}; retrying ({attempt}/{max_retries})")
            time.sleep(2 * attempt)
            continue

        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.HTTPError, ValueError) as e:
            raise ApiFailure(f"BLS request failed: {e}", body=resp.text) from e

        if data.get("status") != SUCCESS_STATUS:
            raise classify_failure(data)
        return data

    raise ApiFailure(f"BLS request failed after {max_retries} attempts (last HTTP {last_status})")


def fetch_latest(
    series_ids: Sequence[str],
    *,
    api_key: Optional[str] = None,
    api_version: str = "v2",
    batch_size: Optional[int] = None,
    timeout_s: int = DEFAULT_TIMEOUT_S,
    max_retries: int = MAX_RETRIES,
    retry_empty: bool = True,
) -> dict[str, float]:
    """
    Fetch the most recent observation for each series ID.

    Parameters
    ----------
    series_ids:
        Ordered list of BLS series IDs.
    api_key:
        Optional BLS registration key. Without one BLS applies a lower daily
        quota and a smaller per-query limit.
    batch_size:
        Override for the per-query limit (capped at the BLS maximum).
    retry_empty:
        If every batch succeeded but nothing usable came back, try once more
        in small mini-batches (BLS occasionally answers big latest-queries
        with empty series).

    Returns
    -------
    dict of series_id -> float for the series that reported a value.

    Raises
    ------
    QuotaExceeded
        BLS reported the daily threshold was reached.
    ApiFailure
        Any other non-success status, HTTP error, or transport error.
    """
    if api_version not in BLS_ENDPOINTS:
        raise ValueError(f"api_version must be one of {list(BLS_ENDPOINTS)}")
    url = BLS_ENDPOINTS[api_version]

    limit = max_batch_size(api_key)
    size = min(batch_size, limit) if batch_size else limit

    values: dict[str, float] = {}
    for batch in iter_batches(series_ids, size):
        data = _post_batch(
            batch, api_key=api_key, url=url, timeout_s=timeout_s, max_retries=max_retries
        )
        values.update(parse_latest_values(data))

    if values or not series_ids or not retry_empty:
        return values

    print(
        f"[warn] 0/{len(series_ids)} values returned; "
        f"retrying in mini-batches of {RETRY_BATCH_SIZE}."
    )
    for batch in iter_batches(series_ids, min(RETRY_BATCH_SIZE, size)):
        try:
            data = _post_batch(
                batch, api_key=api_key, url=url, timeout_s=timeout_s, max_retries=max_retries
            )
        except QuotaExceeded:
            print("[warn] Quota hit during mini-batch retry; keeping values gathered so far.")
            break
        got = parse_latest_values(data)
        print(f"Mini-batch got {len(got)}/{len(batch)} values")
        values.update(got)
    return values
