from __future__ import annotations

"""Sample fleet for local development.

Creates three forklifts and five stations, then pushes synthetic sensor
readings through the regular ingestion pipeline so vehicle state and
telemetry history look like a live warehouse.

    python -m fleetwatch.seed --readings 10
"""

import argparse
import datetime as dt
import logging
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fleetwatch.db.models import Station, TelemetryRecord, Vehicle
from fleetwatch.schemas.station import StationCreate, StationLocation
from fleetwatch.schemas.vehicle import VehicleCreate
from fleetwatch.services.station_service import StationService
from fleetwatch.services.telemetry_service import TelemetryService
from fleetwatch.services.vehicle_service import VehicleService
from fleetwatch.utils.time import utc_now

logger = logging.getLogger("fleetwatch.seed")

VEHICLES: List[Dict[str, Any]] = [
    {"vehicle_id": "FL-001", "name": "Forklift Alpha", "model": "Toyota 8FBE20U",
     "serial_number": "TY-2023-001", "activity": "DRIVING", "battery": 85.0, "lat": 60.1695, "lon": 24.9354},
    {"vehicle_id": "FL-002", "name": "Forklift Beta", "model": "Linde E20",
     "serial_number": "LI-2023-002", "activity": "IDLE", "battery": 62.0, "lat": 60.1698, "lon": 24.9358},
    {"vehicle_id": "FL-003", "name": "Forklift Gamma", "model": "Toyota 8FBE20U",
     "serial_number": "TY-2023-003", "activity": "WORKING", "battery": 91.0, "lat": 60.1692, "lon": 24.9361},
]

STATIONS: List[StationCreate] = [
    StationCreate(station_id="ST-001", name="Loading Dock A", type="loading", rfid_tag_id="04A32BC21F80",
                  location=StationLocation(latitude=60.1695, longitude=24.9354, zone="North Wing",
                                           description="Main loading area for incoming materials")),
    StationCreate(station_id="ST-002", name="Loading Dock B", type="loading", rfid_tag_id="04B45CD32E91",
                  location=StationLocation(latitude=60.1697, longitude=24.9356, zone="North Wing",
                                           description="Secondary loading dock")),
    StationCreate(station_id="ST-003", name="Storage Zone 1", type="storage", rfid_tag_id="04C56DE43FA2",
                  location=StationLocation(latitude=60.1693, longitude=24.9360, zone="Central Storage",
                                           description="Primary warehouse storage area")),
    StationCreate(station_id="ST-004", name="Charging Station", type="charging", rfid_tag_id="04E78FA65HC4",
                  location=StationLocation(latitude=60.1690, longitude=24.9352, zone="Maintenance Area",
                                           description="Battery charging station")),
    StationCreate(station_id="ST-005", name="Production Line A", type="production", rfid_tag_id="04G90BC87JE6",
                  location=StationLocation(latitude=60.1699, longitude=24.9365, zone="Production Floor",
                                           description="Assembly line material supply point")),
]

CHARGER_TAG = "04E78FA65HC4"

# Typical sensor signature per activity: vibration (g), fork height (cm), speed (km/h)
PROFILES: Dict[str, Dict[str, float]] = {
    "DRIVING": {"vibration": 0.45, "fork_height": 15.0, "speed": 8.5},
    "IDLE": {"vibration": 0.32, "fork_height": 10.0, "speed": 0.0},
    "WORKING": {"vibration": 0.55, "fork_height": 120.0, "speed": 2.1},
    "PARKED": {"vibration": 0.05, "fork_height": 2.0, "speed": 0.0},
    "CHARGING": {"vibration": 0.05, "fork_height": 2.0, "speed": 0.0},
}


def generate_reading(
    vehicle_id: str,
    activity: str,
    rng: random.Random,
    *,
    lat: float = 60.1695,
    lon: float = 24.9354,
    battery: Optional[float] = None,
    timestamp: Optional[dt.datetime] = None,
) -> Dict[str, Any]:
    """Raw device-style payload (camelCase) whose sensors match `activity`."""
    p = PROFILES[activity]
    moving = activity in ("DRIVING", "WORKING")
    speed_jitter = 0.5 if moving else 0.2
    payload: Dict[str, Any] = {
        "vehicleId": vehicle_id,
        "timestamp": (timestamp or utc_now()).isoformat(),
        "gps": {
            "latitude": lat + (rng.random() - 0.5) * 0.0001,
            "longitude": lon + (rng.random() - 0.5) * 0.0001,
            "altitude": 10 + rng.random() * 5,
            "speed": max(0.0, p["speed"] + (rng.random() - 0.5) * 2 * speed_jitter),
            "satellites": 8 + rng.randint(0, 3),
            "valid": True,
        },
        "accelerometer": {
            "accelX": (rng.random() - 0.5) * 0.2,
            "accelY": (rng.random() - 0.5) * 0.2,
            "accelZ": 9.8 + (rng.random() - 0.5) * 0.1,
            "gyroX": (rng.random() - 0.5) * 5,
            "gyroY": (rng.random() - 0.5) * 5,
            "gyroZ": (rng.random() - 0.5) * 5,
            "temperature": 22 + rng.random() * 3,
            "vibrationMagnitude": p["vibration"],
            "tiltAngle": (rng.random() - 0.5) * 10,
            "movementDetected": moving,
        },
        "ultrasonic": {
            "forkHeight": p["fork_height"] + rng.random() * 5,
            "loadDistance": 25 + rng.random() * 10 if activity == "WORKING" else 150.0,
            "frontObstacle": 200 + rng.random() * 100,
            "rearObstacle": 200 + rng.random() * 100,
            "loadDetected": activity == "WORKING",
            "frontWarning": False,
            "frontDanger": False,
            "rearWarning": False,
            "rearDanger": False,
        },
        "rfid": {"tagDetected": False},
    }
    if activity == "CHARGING":
        payload["rfid"] = {"tagId": CHARGER_TAG, "stationId": "ST-004",
                           "stationName": "Charging Station", "tagDetected": True}
    if battery is not None:
        payload["batteryLevel"] = battery
    return payload


def seed(db: Session, telemetry: TelemetryService, readings_per_vehicle: int = 10,
         rng: Optional[random.Random] = None) -> Dict[str, int]:
    """Replace all fleet data with the sample fleet. Returns row counts."""
    rng = rng or random.Random()
    vehicles = VehicleService()
    stations = StationService()

    db.query(TelemetryRecord).delete()
    db.query(Vehicle).delete()
    db.query(Station).delete()
    db.commit()

    for s in STATIONS:
        stations.create(db, s)

    accepted = 0
    start = utc_now() - dt.timedelta(seconds=readings_per_vehicle)
    for spec in VEHICLES:
        vehicles.create(db, VehicleCreate(
            vehicle_id=spec["vehicle_id"], name=spec["name"],
            model=spec["model"], serial_number=spec["serial_number"],
        ))
        for i in range(readings_per_vehicle):
            raw = generate_reading(
                spec["vehicle_id"], spec["activity"], rng,
                lat=spec["lat"], lon=spec["lon"], battery=spec["battery"],
                timestamp=start + dt.timedelta(seconds=i),
            )
            result = telemetry.submit_telemetry(db, spec["vehicle_id"], raw)
            if result.accepted:
                accepted += 1
            else:
                logger.warning("Seed reading rejected: %s", result.errors)

    return {"vehicles": len(VEHICLES), "stations": len(STATIONS), "telemetry": accepted}


def main(argv: Optional[List[str]] = None) -> None:
    from fleetwatch.config import settings
    from fleetwatch.db.session import Base, SessionLocal, engine
    from fleetwatch.deps import get_thresholds
    from fleetwatch.observability.logging import configure_logging
    from fleetwatch.policies.retention import horizon_from_days

    p = argparse.ArgumentParser(description="Seed the database with a sample forklift fleet")
    p.add_argument("--readings", type=int, default=10, help="telemetry readings per vehicle")
    p.add_argument("--seed", type=int, default=None, help="random seed for reproducible data")
    args = p.parse_args(argv)

    configure_logging()
    Base.metadata.create_all(bind=engine)
    telemetry = TelemetryService(get_thresholds(), retention=horizon_from_days(settings.telemetry_retention_days))
    db = SessionLocal()
    try:
        counts = seed(db, telemetry, readings_per_vehicle=args.readings, rng=random.Random(args.seed))
    finally:
        db.close()
    logger.info("Seeded %(vehicles)d vehicles, %(stations)d stations, %(telemetry)d telemetry records", counts)


if __name__ == "__main__":
    main()
