"""API smoke tests using FastAPI TestClient."""

import datetime as dt

import pytest
from fastapi.testclient import TestClient

from fleetwatch.main import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _token(client: TestClient, role: str) -> dict:
    r = client.post(f"/auth/dev-token?role={role}")
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def _reading(vid="FL-001", **overrides):
    data = {
        "vehicleId": vid,
        "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
        "gps": {"latitude": 60.1695, "longitude": 24.9354, "speed": 8.5},
        "accelerometer": {"vibrationMagnitude": 0.45, "movementDetected": True},
        "ultrasonic": {"forkHeight": 15},
        "batteryLevel": 85,
    }
    data.update(overrides)
    return data


def test_root(client: TestClient):
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["endpoints"]["fleet"] == "/fleet/snapshot"


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


def test_dev_token(client: TestClient):
    r = client.post("/auth/dev-token?role=admin")
    assert r.status_code == 200
    assert r.json()["role"] == "admin"
    assert r.json()["token_type"] == "bearer"

    assert client.post("/auth/dev-token?role=root").status_code == 400


def test_create_and_get_vehicle(client: TestClient):
    payload = {"vehicle_id": "FL-001", "name": "Forklift Alpha", "model": "Toyota 8FBE20U"}
    r = client.post("/vehicles", json=payload, headers=_token(client, "operator"))
    assert r.status_code == 201
    data = r.json()
    assert data["current_activity"] == "UNKNOWN"
    assert data["battery_level"] is None

    r = client.get("/vehicles/FL-001")
    assert r.status_code == 200
    assert r.json()["name"] == "Forklift Alpha"

    assert client.post("/vehicles", json=payload).status_code == 409


def test_vehicle_not_found(client: TestClient):
    assert client.get("/vehicles/FL-404").status_code == 404
    assert client.patch("/vehicles/FL-404", json={"name": "x"}).status_code == 404


def test_update_vehicle_status(client: TestClient):
    client.post("/vehicles", json={"vehicle_id": "FL-002", "name": "Forklift Beta"})
    r = client.patch("/vehicles/FL-002", json={"status": "maintenance"})
    assert r.status_code == 200
    assert r.json()["status"] == "maintenance"

    listed = client.get("/vehicles?status=maintenance").json()
    assert [v["vehicle_id"] for v in listed] == ["FL-002"]


def test_viewer_cannot_write(client: TestClient):
    r = client.post(
        "/vehicles",
        json={"vehicle_id": "FL-009", "name": "Nope"},
        headers=_token(client, "viewer"),
    )
    assert r.status_code == 403


def test_stations_crud(client: TestClient):
    station = {
        "station_id": "ST-004",
        "name": "Charging Station",
        "type": "charging",
        "rfid_tag_id": "04E78FA65HC4",
        "location": {"zone": "Maintenance Area"},
    }
    r = client.post("/stations", json=station)
    assert r.status_code == 201
    assert r.json()["location"]["zone"] == "Maintenance Area"

    dup_tag = dict(station, station_id="ST-099", name="Other")
    assert client.post("/stations", json=dup_tag).status_code == 409

    r = client.get("/stations?type=charging")
    assert [s["station_id"] for s in r.json()] == ["ST-004"]

    r = client.patch("/stations/ST-004", json={"active": False})
    assert r.status_code == 200
    assert r.json()["active"] is False
    assert client.get("/stations?active=true").json() == []

    assert client.get("/stations/ST-404").status_code == 404


def test_submit_telemetry_registers_vehicle(client: TestClient):
    r = client.post("/telemetry", json=_reading("FL-100"))
    assert r.status_code == 201
    data = r.json()
    assert data["accepted"] is True
    assert data["activity"]["state"] == "DRIVING"
    assert data["activity"]["fork_state"] == "PALLET_HEIGHT"
    assert data["warnings"][0]["vehicle_id"] == "FL-100"

    v = client.get("/vehicles/FL-100").json()
    assert v["current_activity"] == "DRIVING"
    assert v["battery_level"] == 85
    assert v["current_location"]["latitude"] == 60.1695


def test_submit_invalid_telemetry(client: TestClient):
    r = client.post("/telemetry", json=_reading(gps={"latitude": 120, "longitude": 0}))
    assert r.status_code == 422
    data = r.json()
    assert data["accepted"] is False
    assert data["errors"][0]["field"] == "gps.latitude"

    r = client.post("/telemetry", json=[1, 2, 3])
    assert r.status_code == 422


def test_vehicle_telemetry_path(client: TestClient):
    r = client.post("/vehicles/FL-200/telemetry", json=_reading("FL-200"))
    assert r.status_code == 201

    r = client.post("/vehicles/FL-200/telemetry", json=_reading("FL-201"))
    assert r.status_code == 422
    assert r.json()["errors"][0]["field"] == "vehicleId"


def test_latest_and_history(client: TestClient):
    assert client.get("/telemetry/FL-300/latest").status_code == 404

    base = dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=10)
    for i in range(3):
        ts = (base + dt.timedelta(minutes=i)).isoformat()
        client.post("/telemetry", json=_reading("FL-300", timestamp=ts))

    r = client.get("/telemetry/FL-300/latest")
    assert r.status_code == 200
    latest = r.json()
    assert latest["reading"]["vehicleId"] == "FL-300"
    assert latest["activity"]["state"] == "DRIVING"

    r = client.get("/telemetry/FL-300/history", params={"limit": 2})
    assert r.status_code == 200
    assert len(r.json()) == 2
    assert r.json()[0]["id"] == latest["id"]

    r = client.get(
        "/telemetry/FL-300/history",
        params={"start": base.isoformat(), "end": (base - dt.timedelta(minutes=1)).isoformat()},
    )
    assert r.status_code == 400


def test_history_accepts_mixed_offset_bounds(client: TestClient):
    client.post("/telemetry", json=_reading("FL-301", timestamp="2024-01-01T12:00:00Z"))
    r = client.get(
        "/telemetry/FL-301/history",
        params={"start": "2024-01-01T00:00:00", "end": "2024-01-02T00:00:00Z"},
    )
    assert r.status_code == 200

    r = client.get(
        "/telemetry/FL-301/history",
        params={"start": "2024-01-02T00:00:00", "end": "2024-01-01T00:00:00Z"},
    )
    assert r.status_code == 400


def test_fleet_snapshot(client: TestClient):
    r = client.get("/fleet/snapshot")
    assert r.status_code == 200
    assert r.json()["degraded"] is True
    assert r.json()["total_vehicles"] == 0

    client.post("/telemetry", json=_reading("FL-001", batteryLevel=15,
                                            gps={"latitude": 60.1, "longitude": 24.9, "speed": 0},
                                            accelerometer={"vibrationMagnitude": 0.3}))
    client.post("/telemetry", json=_reading("FL-002", batteryLevel=90))

    snap = client.get("/fleet/snapshot").json()
    assert snap["total_vehicles"] == 2
    assert snap["degraded"] is False
    assert snap["activity_distribution"]["IDLE"]["count"] == 1
    assert snap["utilization"] == 50
    assert snap["most_active"]["vehicle_id"] == "FL-002"
    assert snap["battery"]["critical"] == 1

    notes = client.get("/fleet/notifications").json()
    assert sorted(n["kind"] for n in notes) == ["battery_critical", "idle"]


def test_thresholds_and_retention(client: TestClient):
    t = client.get("/fleet/thresholds").json()
    assert t["fork_raised_cm"] == 50
    r = client.get("/retention").json()
    assert r["horizon_days"] == 90
    assert r["sweep_enabled"] is False


def test_ws_fleet_receives_vehicle_state(client: TestClient):
    with client.websocket_connect("/ws/fleet") as ws:
        r = client.post("/telemetry", json=_reading("FL-500"))
        assert r.status_code == 201
        msg = ws.receive_json()
    assert msg["kind"] == "vehicle_state"
    assert msg["data"]["vehicle_id"] == "FL-500"
    assert msg["data"]["current_activity"] == "DRIVING"
