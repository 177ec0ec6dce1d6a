"""End-to-end tests for labor_map.update_data against a fake BLS endpoint."""

import json

import pytest

from conftest import ERROR_PAYLOAD, QUOTA_PAYLOAD, FakeResponse, laus_values, oews_values
from labor_map.bls_api import ApiFailure
from labor_map.config import STATES
from labor_map.dataset import write_dataset
from labor_map.series_ids import oews_series_id
from labor_map.update_data import (
    UNEMPLOYMENT,
    WAGE,
    build_updates,
    update_dataset,
)


def _is_oews(ids):
    return ids[0].startswith("OE")


def _populated(wage=140000, rate=3.9):
    return {abbr: {"unemployment_rate": rate, "swdev_wage": wage} for abbr in STATES}


def test_build_updates_touches_every_state():
    updates = build_updates({"06": 4.1}, "unemployment_rate")
    assert len(updates) == 49
    assert updates["CA"] == {"unemployment_rate": 4.1}
    assert updates["TX"] == {}


def test_fresh_run_fills_both_fields(fake_bls, tmp_path):
    path = tmp_path / "data" / "latest.json"
    fake_bls.values = {**laus_values("4.1"), **oews_values("150000")}

    results = update_dataset(path, None)

    assert [(r.name, r.status, r.filled, r.total) for r in results] == [
        ("LAUS", "updated", 49, 49),
        ("OEWS", "updated", 49, 49),
    ]
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == set(STATES)
    assert data["CA"] == {"unemployment_rate": 4.1, "swdev_wage": 150000}
    assert isinstance(data["CA"]["swdev_wage"], int)


def test_wage_run_fills_two_gaps_and_leaves_rest(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    prior = _populated()
    prior["NV"]["swdev_wage"] = None
    prior["ME"]["swdev_wage"] = None
    write_dataset(prior, path)
    fake_bls.values = oews_values("140000")

    update_dataset(path, None, phases=[WAGE])

    data = json.loads(path.read_text(encoding="utf-8"))
    assert sum(1 for rec in data.values() if rec["swdev_wage"] is not None) == 49
    assert all(rec["unemployment_rate"] == 3.9 for rec in data.values())
    expected = _populated()
    assert data == expected


def test_hourly_fallback_is_annualized(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    values = oews_values("150000")
    del values[oews_series_id("06", "04")]
    values[oews_series_id("06", "03")] = "72.00"
    fake_bls.values = values

    update_dataset(path, None, phases=[WAGE])

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["CA"]["swdev_wage"] == 149760
    assert fake_bls.calls[-1]["seriesid"] == [oews_series_id("06", "03")]


def test_unresolved_state_is_explicit_null(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    values = oews_values("150000")
    del values[oews_series_id("36", "04")]
    fake_bls.values = values

    results = update_dataset(path, None, phases=[WAGE])

    data = json.loads(path.read_text(encoding="utf-8"))
    assert "swdev_wage" in data["NY"]
    assert data["NY"] == {"unemployment_rate": None, "swdev_wage": None}
    assert results[0].filled == 48


def test_quota_on_both_phases_leaves_file_byte_identical(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    path.write_text(json.dumps(_populated()), encoding="utf-8")
    before = path.read_bytes()
    fake_bls.fail_when = lambda ids: FakeResponse(QUOTA_PAYLOAD)

    results = update_dataset(path, None)

    assert [r.status for r in results] == ["preserved", "preserved"]
    assert path.read_bytes() == before


def test_quota_in_first_phase_does_not_stop_second(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    write_dataset(_populated(wage=None, rate=5.5), path)
    fake_bls.values = oews_values("123456")
    fake_bls.responses = [FakeResponse(QUOTA_PAYLOAD)]

    results = update_dataset(path, None)

    assert [r.status for r in results] == ["preserved", "updated"]
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["CA"] == {"unemployment_rate": 5.5, "swdev_wage": 123456}


def test_quota_remirrors_existing_file(fake_bls, tmp_path):
    path = tmp_path / "data" / "latest.json"
    write_dataset(_populated(), path)
    docs = tmp_path / "docs"
    docs.mkdir()
    fake_bls.fail_when = lambda ids: FakeResponse(QUOTA_PAYLOAD)

    update_dataset(path, docs, phases=[UNEMPLOYMENT])

    assert (docs / "data" / "latest.json").read_bytes() == path.read_bytes()


def test_api_failure_aborts_after_earlier_phase_wrote(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    fake_bls.values = laus_values("4.4")
    fake_bls.fail_when = lambda ids: FakeResponse(ERROR_PAYLOAD) if _is_oews(ids) else None

    with pytest.raises(ApiFailure):
        update_dataset(path, None)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["CA"] == {"unemployment_rate": 4.4, "swdev_wage": None}


def test_api_failure_writes_nothing_for_failing_phase(fake_bls, tmp_path):
    path = tmp_path / "latest.json"
    write_dataset(_populated(), path)
    before = path.read_bytes()
    fake_bls.fail_when = lambda ids: FakeResponse(ERROR_PAYLOAD)

    with pytest.raises(ApiFailure):
        update_dataset(path, None, phases=[UNEMPLOYMENT, WAGE])

    assert path.read_bytes() == before


def test_successful_write_is_mirrored(fake_bls, tmp_path):
    path = tmp_path / "data" / "latest.json"
    docs = tmp_path / "docs"
    docs.mkdir()
    fake_bls.values = laus_values("3.3")

    update_dataset(path, docs, phases=[UNEMPLOYMENT])

    assert (docs / "data" / "latest.json").read_bytes() == path.read_bytes()


def test_unknown_phase_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        update_dataset(tmp_path / "latest.json", None, phases=["cpi"])
