import pytest
from fastapi.testclient import TestClient

from services.ingestion.app import main
from shared.alert_service import AlertEvaluationService
from shared.errors import StorageUnavailable
from shared.record_store import DataStorage

from conftest import MINUTE, NOW


class UnavailableStorage(DataStorage):
    def get_records(self, patient_id, start_time, end_time, record_type=None):
        raise StorageUnavailable("backing store offline")


@pytest.fixture
def emitted(monkeypatch):
    events = []

    async def fake_emit(event, data=None, **kwargs):
        events.append((event, data))

    monkeypatch.setattr(main.sio, "emit", fake_emit)
    return events


@pytest.fixture
def api(monkeypatch, emitted):
    storage = DataStorage()
    monkeypatch.setattr(main, "storage", storage)
    monkeypatch.setattr(main, "alert_service", AlertEvaluationService(storage, clock=lambda: NOW))
    with TestClient(main.app) as client:
        yield client


def _post(api, patient_id, value, record_type, timestamp):
    return api.post("/api/v1/records", json={
        "patient_id": patient_id,
        "value": value,
        "record_type": record_type,
        "timestamp": timestamp,
    })


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}
    assert api.get("/").status_code == 200


def test_ingest_record_stores_and_broadcasts(api, emitted):
    resp = _post(api, 1, 97.5, "Saturation", 1000)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["record"] == {"patient_id": 1, "value": 97.5, "record_type": "Saturation", "timestamp": 1000}
    assert emitted == [("record", "1,97.5,Saturation,1000")]
    assert main.storage.record_count(1) == 1


def test_unknown_record_type_is_422(api, emitted):
    resp = _post(api, 1, 37.0, "Temperature", 1000)

    assert resp.status_code == 422
    assert "Unknown record type" in resp.json()["detail"]
    assert emitted == []


def test_missing_fields_are_422(api):
    resp = api.post("/api/v1/records", json={"patient_id": 1, "value": 97.5})

    assert resp.status_code == 422


def test_records_are_returned_sorted_within_bounds(api):
    for ts in (3000, 1000, 2000, 4000):
        _post(api, 1, 70.0, "ECG", ts)

    resp = api.get("/api/v1/patients/1/records", params={"start_time": 1000, "end_time": 4000})

    assert resp.status_code == 200
    assert [r["timestamp"] for r in resp.json()] == [1000, 2000, 3000]


def test_list_patients(api):
    _post(api, 2, 70.0, "ECG", 1000)
    _post(api, 1, 70.0, "ECG", 1000)

    assert api.get("/api/v1/patients").json() == {"patients": [1, 2]}


def test_evaluate_patient_returns_and_broadcasts_alerts(api, emitted):
    _post(api, 1, 85.0, "SystolicPressure", NOW - 5 * MINUTE)
    _post(api, 1, 90.0, "Saturation", NOW - 2 * MINUTE)
    emitted.clear()

    resp = api.get("/api/v1/patients/1/alerts")

    assert resp.status_code == 200
    conditions = [a["condition"] for a in resp.json()]
    assert conditions == [
        "Critical Systolic Pressure Alert",
        "Low Saturation Alert",
        "Hypotensive Hypoxemia Alert",
    ]
    assert [e for e, _ in emitted] == ["alert"] * 3
    assert emitted[-1][1] == {"patient_id": "1", "condition": "Hypotensive Hypoxemia Alert", "timestamp": NOW}


def test_unknown_patient_has_no_alerts(api):
    assert api.get("/api/v1/patients/77/alerts").json() == []


def test_storage_failure_maps_to_503(api, monkeypatch):
    storage = UnavailableStorage()
    monkeypatch.setattr(main, "storage", storage)
    monkeypatch.setattr(main, "alert_service", AlertEvaluationService(storage, clock=lambda: NOW))

    assert api.get("/api/v1/patients/1/alerts").status_code == 503
    assert api.get("/api/v1/patients/1/records").status_code == 503
