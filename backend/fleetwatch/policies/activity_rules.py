from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, FrozenSet, NamedTuple, Optional

import yaml
from pydantic import BaseModel, ConfigDict, model_validator

from fleetwatch.schemas.telemetry import ActivityState, TelemetryReading


# --- Classification thresholds (defaults; overridable per deployment) ---
MOVEMENT_SPEED_KMH = 0.5
VIBRATION_NOISE_FLOOR = 0.1  # g; below this the engine is considered off
FORK_RAISED_CM = 50.0
FORK_PALLET_CM = 10.0

# --- Battery bands (percent) ---
BATTERY_CRITICAL = 20.0  # critical below this
BATTERY_GOOD = 50.0  # good at or above this; warning in between
BATTERY_LOW_NOTIFY_MAX = 40.0  # low-battery notification up to and including this
PRODUCTIVITY_BATTERY_MIN = 60.0  # high-productivity notification above this


class ActivityThresholds(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    movement_speed_kmh: float = MOVEMENT_SPEED_KMH
    vibration_noise_floor: float = VIBRATION_NOISE_FLOOR
    fork_raised_cm: float = FORK_RAISED_CM
    fork_pallet_cm: float = FORK_PALLET_CM
    battery_critical: float = BATTERY_CRITICAL
    battery_good: float = BATTERY_GOOD
    battery_low_notify_max: float = BATTERY_LOW_NOTIFY_MAX
    productivity_battery_min: float = PRODUCTIVITY_BATTERY_MIN

    @model_validator(mode="after")
    def _check_ordering(self) -> "ActivityThresholds":
        if self.fork_pallet_cm > self.fork_raised_cm:
            raise ValueError("fork_pallet_cm must not exceed fork_raised_cm")
        if self.battery_critical > self.battery_good:
            raise ValueError("battery_critical must not exceed battery_good")
        return self


DEFAULT_THRESHOLDS = ActivityThresholds()


def load_thresholds(settings: Any, profile_path: Optional[str] = None) -> ActivityThresholds:
    """Build thresholds from Settings, then apply a YAML profile on top.

    The profile is a flat mapping of threshold names, e.g.::

        movement_speed_kmh: 1.0
        fork_raised_cm: 60
    """
    values: Dict[str, Any] = {
        name: getattr(settings, name)
        for name in ActivityThresholds.model_fields
        if hasattr(settings, name)
    }
    path = profile_path or getattr(settings, "thresholds_file", None)
    if path:
        with Path(path).open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
        if not isinstance(doc, dict):
            raise ValueError(f"thresholds profile {path} must be a mapping")
        values.update(doc.get("thresholds", doc))
    return ActivityThresholds(**values)


def fork_state_for(height: Optional[float], thresholds: ActivityThresholds = DEFAULT_THRESHOLDS) -> str:
    if height is None:
        return "UNKNOWN"
    if height >= thresholds.fork_raised_cm:
        return "RAISED"
    if height >= thresholds.fork_pallet_cm:
        return "PALLET_HEIGHT"
    return "DOWN"


class ChargingStations(NamedTuple):
    """RFID tag ids and station ids of the active charging stations."""

    tag_ids: FrozenSet[str] = frozenset()
    station_ids: FrozenSet[str] = frozenset()


NO_CHARGERS = ChargingStations()


def _at_charging_station(reading: TelemetryReading, chargers: ChargingStations) -> bool:
    rfid = reading.rfid
    if rfid is None or not rfid.tag_detected:
        return False
    return (rfid.tag_id is not None and rfid.tag_id in chargers.tag_ids) or (
        rfid.station_id is not None and rfid.station_id in chargers.station_ids
    )


def _engine_off(reading: TelemetryReading, speed: float, thresholds: ActivityThresholds) -> bool:
    # Requires a measured vibration below the noise floor; no evidence means "maybe on".
    acc = reading.accelerometer
    if acc is None or acc.vibration_magnitude is None:
        return False
    return (
        acc.vibration_magnitude < thresholds.vibration_noise_floor
        and not acc.movement_detected
        and speed <= thresholds.movement_speed_kmh
    )


def _state(name: str, fork_state: str, in_motion: bool) -> ActivityState:
    # engine_on is derived from the state alone: anything but PARKED runs the engine.
    return ActivityState(
        state=name,
        fork_state=fork_state,
        engine_on=name != "PARKED",
        in_motion=in_motion,
    )


def classify(
    reading: TelemetryReading,
    *,
    chargers: ChargingStations = NO_CHARGERS,
    thresholds: ActivityThresholds = DEFAULT_THRESHOLDS,
) -> ActivityState:
    """Derive the operating state of a vehicle from one normalized reading.

    Rules are evaluated in order and the first match wins:

    1. RFID tag of a charging station detected -> CHARGING
    2. engine off (still, below vibration floor) -> PARKED
    3. load on raised forks -> WORKING
    4. moving (GPS speed or accelerometer) -> DRIVING
    5. otherwise -> IDLE

    A reading with neither accelerometer data nor GPS speed carries no motion
    evidence and classifies as UNKNOWN unless it is at a charger. Never raises.
    """
    speed_raw = reading.gps.speed
    speed = float(speed_raw) if speed_raw is not None else 0.0
    moving = speed > thresholds.movement_speed_kmh

    acc = reading.accelerometer
    ultra = reading.ultrasonic
    height = ultra.fork_height if ultra is not None else None
    load_detected = bool(ultra is not None and ultra.load_detected)
    movement_detected = bool(acc is not None and acc.movement_detected)

    if _at_charging_station(reading, chargers):
        return _state("CHARGING", fork_state_for(height, thresholds), moving)

    if acc is None and speed_raw is None:
        return _state("UNKNOWN", fork_state_for(height, thresholds), False)

    if _engine_off(reading, speed, thresholds):
        return _state("PARKED", "DOWN", False)

    if load_detected and height is not None and height >= thresholds.fork_raised_cm:
        return _state("WORKING", "RAISED", moving)

    if moving or movement_detected:
        return _state("DRIVING", fork_state_for(height, thresholds), True)

    return _state("IDLE", fork_state_for(height, thresholds), False)
