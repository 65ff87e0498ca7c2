"""HTTP-level tests: routing, JSON shapes and the error envelope."""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from qrtrack.core.config import AppSettings
from qrtrack.main import create_app


def _settings(tmp_path, **overrides):
    values = {"DB_URL": f"sqlite:///{tmp_path / 'api.db'}", "API_KEY": "", "SYSTEM_ACTOR": "system"}
    values.update(overrides)
    return AppSettings(**values)


@pytest.fixture()
def client(tmp_path):
    with TestClient(create_app(_settings(tmp_path))) as test_client:
        yield test_client


def _register(client, **overrides):
    payload = {
        "name": "Gloves",
        "category": "PPE",
        "description": "Nitrile gloves",
        "registeredBy": "Luis",
        "isConsumable": True,
        "stock": 5,
    }
    payload.update(overrides)
    return client.post("/api/register", json=payload)


def test_health_reports_database(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["database"] == "up"
    assert response.headers["X-Request-ID"]


def test_register_and_consume_flow(client):
    created = _register(client)
    assert created.status_code == 201
    body = created.json()
    assert body["qrCode"] == "G001"
    assert body["isConsumable"] is True
    assert body["stock"] == 5

    consumed = client.post(
        "/api/borrow",
        json={"qrCode": "G001", "person": "Ana", "validatedBy": "Luis", "quantity": 3},
    )
    assert consumed.status_code == 200
    assert consumed.json()["stock"] == 2
    assert consumed.json()["status"] == "available"

    history = client.get("/api/history/G001").json()
    assert [entry["action"] for entry in history] == ["register", "consumption"]
    assert history[-1]["quantity"] == 3
    assert history[-1]["person"] == "Ana"
    assert history[-1]["validatedBy"] == "Luis"
    assert history[-1]["itemCode"] == "G001"


def test_overdraw_returns_conflict_envelope(client):
    _register(client, stock=1)
    response = client.post("/api/borrow", json={"qrCode": "G001", "person": "Ana", "quantity": 2})
    assert response.status_code == 409
    assert response.json()["code"] == "conflict"
    assert response.json()["details"]["requested"] == 2


def test_borrow_and_return_unique_item(client):
    _register(client, qrCode="T001", name="Drill", isConsumable=False, stock=None)

    borrowed = client.post("/api/borrow", json={"qrCode": "T001", "person": "Ana"})
    assert borrowed.json()["status"] == "borrowed"
    assert borrowed.json()["currentHolder"] == "Ana"

    again = client.post("/api/borrow", json={"qrCode": "T001", "person": "Pedro"})
    assert again.status_code == 409

    returned = client.post("/api/return", json={"qrCode": "T001", "person": "Ana", "validatedBy": "Luis"})
    assert returned.status_code == 200
    assert returned.json()["currentHolder"] is None
    assert returned.json()["loanDate"] is None

    history = client.get("/api/history/T001").json()
    assert history[1]["validatedBy"] == "system"


def test_repair_endpoints(client):
    _register(client, qrCode="T009", name="Saw", isConsumable=False, stock=None)
    assert client.post("/api/repair", json={"qrCode": "T009", "person": "Luis"}).json()["status"] == "repair"
    done = client.post("/api/repair/complete", json={"qrCode": "T009", "person": "Luis"})
    assert done.json()["status"] == "available"


def test_validation_and_not_found_errors(client):
    missing = client.post("/api/register", json={"name": "Tape", "category": "Supplies"})
    assert missing.status_code == 422
    assert missing.json()["code"] == "validation_error"

    blank = client.post("/api/borrow", json={"qrCode": "  ", "person": "Ana"})
    assert blank.status_code == 422

    unknown = client.post("/api/borrow", json={"qrCode": "NOPE", "person": "Ana"})
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "not_found"

    assert client.get("/api/history/NOPE").status_code == 404


def test_items_are_listed_by_name(client):
    _register(client, name="Zip ties")
    _register(client, name="Anchors")
    _register(client, name="Mallet", isConsumable=False, stock=None)

    names = [item["name"] for item in client.get("/api/items").json()]
    assert names == ["Anchors", "Mallet", "Zip ties"]


def test_scan_dispatch(client):
    _register(client)
    client.post("/api/workers", json={"qrCode": "W1", "name": "Ana", "pin": "1234"})

    item_scan = client.post("/api/scan", json={"qrCode": "G001"}).json()
    assert item_scan["kind"] == "item"
    assert item_scan["data"]["qrCode"] == "G001"
    assert item_scan["nextAction"] == "consume"

    worker_scan = client.post("/api/scan", json={"qrCode": "W1"}).json()
    assert worker_scan["kind"] == "worker"
    assert "pin" not in worker_scan["data"]

    empty = client.post("/api/scan", json={"qrCode": "NEW-1"}).json()
    assert empty == {"kind": "none", "code": "NEW-1", "nextAction": "register"}


def test_workers_and_attendance(client):
    enrolled = client.post(
        "/api/workers",
        json={"qrCode": "W1", "name": "Ana", "pin": "1234", "position": "Welder", "role": "Warehouse-keeper"},
    )
    assert enrolled.status_code == 201
    assert "pin" not in enrolled.json()

    duplicate = client.post("/api/workers", json={"qrCode": "W1", "name": "Ana", "pin": "1234"})
    assert duplicate.status_code == 409

    bad_pin = client.post("/api/workers", json={"qrCode": "W2", "name": "Luis", "pin": "12"})
    assert bad_pin.status_code == 422

    workers = client.get("/api/workers").json()
    assert [w["qrCode"] for w in workers] == ["W1"]
    assert all("pin" not in w for w in workers)

    first = client.post("/api/attendance", json={"qrCode": "W1"}).json()
    second = client.post("/api/attendance", json={"qrCode": "W1"}).json()
    assert (first["action"], second["action"]) == ("IN", "OUT")
    assert second["worker"]["lastAction"] == "OUT"

    log = client.get("/api/workers/W1/attendance").json()
    assert [entry["action"] for entry in log] == ["IN", "OUT"]
    assert client.post("/api/attendance", json={"qrCode": "W9"}).status_code == 404


def test_api_key_is_enforced_when_configured(tmp_path):
    app = create_app(_settings(tmp_path, API_KEY="s3cret"))
    with TestClient(app) as client:
        denied = client.get("/api/items")
        assert denied.status_code == 401
        assert denied.json()["code"] == "http_error"

        allowed = client.get("/api/items", headers={"X-API-Key": "s3cret"})
        assert allowed.status_code == 200
        assert client.get("/health").status_code == 200


def test_name_fallback_setting(tmp_path):
    app = create_app(_settings(tmp_path, ALLOW_NAME_FALLBACK=True))
    with TestClient(app) as client:
        _register(client, name="Safety Glasses")
        result = client.post("/api/scan", json={"qrCode": "safety glasses"}).json()
        assert result["kind"] == "item"
        assert result["data"]["qrCode"] == "G001"
