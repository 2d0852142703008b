import json

import pytest

from mortgage_calc.state import STORAGE_KEY, default_state, dumps_state, state_to_dict
from mortgage_calc_web.app import create_app
from mortgage_calc_web.kv_store import KeyValueStore


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(f"sqlite:///{tmp_path / 'kv.sqlite3'}")


@pytest.fixture
def client(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app.test_client()


def test_store_last_write_wins(store):
    assert store.get("missing") is None
    store.put("k", "one")
    store.put("k", "two")
    assert store.get("k") == "two"
    store.delete("k")
    assert store.get("k") is None


def test_get_missing_key_returns_null(client):
    response = client.get("/api/state/nothing-here")
    assert response.status_code == 200
    assert response.get_json() == {"value": None}


def test_put_then_get(client):
    blob = dumps_state(default_state())
    response = client.put(f"/api/state/{STORAGE_KEY}", json={"value": blob})
    assert response.status_code == 200
    assert response.get_json() == {"success": True}

    response = client.get(f"/api/state/{STORAGE_KEY}")
    assert response.get_json() == {"value": blob}


@pytest.mark.parametrize("body", [{}, {"value": 12}, ["value"]])
def test_put_requires_string_value(client, body):
    response = client.put("/api/state/k", json=body)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_analysis(client):
    data = state_to_dict(default_state())
    data["startDate"] = "2025-01"
    data["scenarios"].append(
        {"id": "s1", "name": "Extra", "extraMonthlyPrincipal": 200, "lumpSumPayments": [[1, 400000]]}
    )
    response = client.post("/api/analysis", data=json.dumps(data), content_type="application/json")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["monthlyPayment"] == pytest.approx(1896.20, abs=0.01)
    base, extra = payload["scenarios"]
    assert base["summary"]["monthsToPayoff"] == 360
    assert base["schedule"][0]["date"] == "2025-01"
    assert base["schedule"][0]["totalPayment"] == pytest.approx(1896.20 + 300.0, abs=0.01)
    assert extra["summary"]["monthsToPayoff"] == 1
    assert extra["summary"]["monthsSaved"] == 359
    assert extra["schedule"][0]["remainingBalance"] == 0.0


def test_analysis_rejects_invalid_state(client):
    response = client.post("/api/analysis", json={"principal": -5, "annualRate": 6.5, "termYears": 30})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Principal must be positive"

    response = client.post("/api/analysis", data="nope", content_type="application/json")
    assert response.status_code == 400


@pytest.mark.parametrize(
    "changes",
    [{"scenarios": ["x"]}, {"scenarios": [{"id": "s", "lumpSumPayments": [["a", 1]]}]}, {"termYears": 51}],
)
def test_analysis_rejects_malformed_fields(client, changes):
    payload = state_to_dict(default_state())
    payload.update(changes)
    response = client.post("/api/analysis", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_analysis_with_extreme_rate(client):
    payload = state_to_dict(default_state())
    payload.update(annualRate=10_000, termYears=50)
    response = client.post("/api/analysis", json=payload)
    assert response.status_code == 200
    body = response.get_json()
    assert body["monthlyPayment"] == pytest.approx(300_000 * 10_000 / 1200)
    assert len(body["scenarios"][0]["schedule"]) == 600


def test_app_keeps_no_session_state(store):
    app = create_app(store)
    assert app.secret_key is None
    assert "kv_store" not in app.extensions
