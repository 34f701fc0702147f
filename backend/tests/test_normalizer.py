import datetime as dt

import pytest

from fleetwatch.errors import ValidationError
from fleetwatch.services.telemetry_normalizer import normalize_reading


KNOWN = {"FL-001", "FL-002"}


def known(vid: str) -> bool:
    return vid in KNOWN


def payload(**overrides):
    data = {
        "vehicleId": "FL-001",
        "timestamp": "2024-05-01T12:00:00Z",
        "gps": {"latitude": 60.1695, "longitude": 24.9354, "speed": 8.5, "valid": True},
        "accelerometer": {"vibrationMagnitude": 0.45, "movementDetected": True},
        "ultrasonic": {"forkHeight": 15, "loadDetected": False},
        "batteryLevel": 85,
    }
    data.update(overrides)
    return data


def fields(exc_info) -> list:
    return [e.field for e in exc_info.value.errors]


def test_valid_reading_is_normalized():
    result = normalize_reading(payload(), known)
    r = result.reading
    assert r.vehicle_id == "FL-001"
    assert r.gps.speed == 8.5
    assert r.accelerometer.vibration_magnitude == 0.45
    assert r.ultrasonic.fork_height == 15
    assert r.battery_level == 85
    assert r.timestamp == dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.timezone.utc)
    assert result.warnings == []


def test_missing_vehicle_id_is_rejected():
    data = payload()
    del data["vehicleId"]
    with pytest.raises(ValidationError) as exc:
        normalize_reading(data, known)
    assert "vehicleId" in fields(exc)


def test_latitude_out_of_range_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(gps={"latitude": 120, "longitude": 24.9}), known)
    assert fields(exc) == ["gps.latitude"]


def test_string_boolean_is_not_coerced():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(gps={"latitude": 60.0, "longitude": 24.9, "valid": "yes"}), known)
    assert "gps.valid" in fields(exc)


def test_nan_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(accelerometer={"vibrationMagnitude": float("nan")}), known)
    assert "accelerometer.vibrationMagnitude" in fields(exc)


def test_negative_fork_height_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(ultrasonic={"forkHeight": -1}), known)
    assert "ultrasonic.forkHeight" in fields(exc)


def test_battery_above_100_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(batteryLevel=101), known)
    assert "batteryLevel" in fields(exc)


def test_every_offending_field_is_reported():
    data = payload(gps={"latitude": 95, "longitude": 200}, batteryLevel=-5)
    with pytest.raises(ValidationError) as exc:
        normalize_reading(data, known)
    assert set(fields(exc)) == {"gps.latitude", "gps.longitude", "batteryLevel"}


def test_unexpected_field_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(firmwareBlob="x"), known)
    assert "firmwareBlob" in fields(exc)


def test_device_activity_estimate_is_dropped():
    result = normalize_reading(payload(activity={"state": "PARKED", "engineOn": False}), known)
    assert "activity" not in result.reading.model_dump(by_alias=True)


def test_forklift_id_alias_is_accepted():
    data = payload()
    del data["vehicleId"]
    data["forkliftId"] = "FL-002"
    assert normalize_reading(data, known).reading.vehicle_id == "FL-002"


def test_path_id_fills_missing_body_id():
    data = payload()
    del data["vehicleId"]
    assert normalize_reading(data, known, vehicle_id="FL-002").reading.vehicle_id == "FL-002"


def test_path_and_body_id_must_agree():
    with pytest.raises(ValidationError) as exc:
        normalize_reading(payload(vehicleId="FL-009"), known, vehicle_id="FL-001")
    assert fields(exc) == ["vehicleId"]


@pytest.mark.parametrize("raw", [None, [], "FL-001", 42])
def test_non_object_body_is_rejected(raw):
    with pytest.raises(ValidationError) as exc:
        normalize_reading(raw, known)
    assert fields(exc) == ["body"]


def test_naive_timestamp_is_taken_as_utc():
    r = normalize_reading(payload(timestamp="2024-05-01T12:00:00"), known).reading
    assert r.timestamp.tzinfo is not None
    assert r.timestamp.utcoffset() == dt.timedelta(0)
    assert r.timestamp.hour == 12


def test_offset_timestamp_is_converted_to_utc():
    r = normalize_reading(payload(timestamp="2024-05-01T15:00:00+03:00"), known).reading
    assert r.timestamp == dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.timezone.utc)


def test_missing_timestamp_defaults_to_receive_time():
    now = dt.datetime(2024, 6, 1, 8, 30, tzinfo=dt.timezone.utc)
    data = payload()
    del data["timestamp"]
    assert normalize_reading(data, known, now=now).reading.timestamp == now


def test_unknown_vehicle_produces_warning_not_error():
    result = normalize_reading(payload(vehicleId="FL-404"), known)
    assert result.reading.vehicle_id == "FL-404"
    assert len(result.warnings) == 1
    assert result.warnings[0].vehicle_id == "FL-404"


def test_optional_blocks_may_be_absent():
    data = {"vehicleId": "FL-001", "gps": {"latitude": 0, "longitude": 0}}
    r = normalize_reading(data, known).reading
    assert r.accelerometer is None
    assert r.ultrasonic is None
    assert r.rfid is None
    assert r.battery_level is None
    assert r.gps.valid is True
