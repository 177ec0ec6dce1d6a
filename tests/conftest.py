"""Shared fixtures: a fake BLS endpoint patched over requests.post."""

from typing import Callable, Optional

import pytest
import requests

from labor_map import bls_api
from labor_map.config import STATES
from labor_map.series_ids import laus_series_id, oews_series_id

QUOTA_PAYLOAD = {
    "status": "REQUEST_NOT_PROCESSED",
    "responseTime": 12,
    "message": [
        "Request could not be serviced, as the daily threshold for total number "
        "of requests allocated to the user has been reached."
    ],
    "Results": {},
}

ERROR_PAYLOAD = {
    "status": "REQUEST_FAILED",
    "message": ["Series does not exist"],
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def bls_payload(values: dict) -> dict:
    """Successful BLS response; a value of None means the series has no data."""
    series = []
    for sid, value in values.items():
        data = [] if value is None else [
            {"year": "2024", "period": "A01", "periodName": "Annual", "value": value, "latest": "true"}
        ]
        series.append({"seriesID": sid, "data": data})
    return {"status": "REQUEST_SUCCEEDED", "message": [], "Results": {"series": series}}


class FakeBLS:
    """
    Serves `values` for whatever series are requested.

    - `responses`: queued responses (or exceptions) used before anything else
    - `fail_when`: optional callable(series_ids) -> response to force a failure
    """

    def __init__(self):
        self.calls: list[dict] = []
        self.values: dict[str, str] = {}
        self.responses: list = []
        self.fail_when: Optional[Callable[[list], Optional[FakeResponse]]] = None

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append(json)
        if self.responses:
            r = self.responses.pop(0)
            if isinstance(r, Exception):
                raise r
            return r
        if self.fail_when is not None:
            forced = self.fail_when(json["seriesid"])
            if forced is not None:
                return forced
        return FakeResponse(bls_payload({sid: self.values.get(sid) for sid in json["seriesid"]}))

    @property
    def requested(self) -> list[str]:
        return [sid for call in self.calls for sid in call["seriesid"]]


@pytest.fixture
def fake_bls(monkeypatch):
    fake = FakeBLS()
    monkeypatch.setattr(bls_api.requests, "post", fake.post)
    monkeypatch.setattr(bls_api.time, "sleep", lambda s: None)
    return fake


def laus_values(rate: str = "4.0") -> dict[str, str]:
    return {laus_series_id(fips, "03"): rate for fips in STATES.values()}


def oews_values(wage: str = "120000", data_type: str = "04") -> dict[str, str]:
    return {oews_series_id(fips, data_type): wage for fips in STATES.values()}
