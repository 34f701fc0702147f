from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel


ActivityName = Literal["PARKED", "IDLE", "DRIVING", "WORKING", "CHARGING", "UNKNOWN"]
ForkStateName = Literal["DOWN", "PALLET_HEIGHT", "RAISED", "UNKNOWN"]

ACTIVITY_STATES: tuple[str, ...] = ("PARKED", "IDLE", "DRIVING", "WORKING", "CHARGING", "UNKNOWN")
FORK_STATES: tuple[str, ...] = ("DOWN", "PALLET_HEIGHT", "RAISED", "UNKNOWN")


class _SensorBlock(BaseModel):
    # Device payloads are camelCase; snake_case is accepted too.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="forbid",
        frozen=True,
    )


class GpsFix(_SensorBlock):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    altitude: Optional[float] = None
    speed: Optional[float] = Field(None, ge=0.0, description="km/h")
    satellites: Optional[int] = Field(None, ge=0)
    valid: StrictBool = True


class AccelerometerSample(_SensorBlock):
    accel_x: Optional[float] = None
    accel_y: Optional[float] = None
    accel_z: Optional[float] = None
    gyro_x: Optional[float] = None
    gyro_y: Optional[float] = None
    gyro_z: Optional[float] = None
    temperature: Optional[float] = None
    vibration_magnitude: Optional[float] = Field(None, ge=0.0)
    tilt_angle: Optional[float] = None
    movement_detected: StrictBool = False


class UltrasonicSample(_SensorBlock):
    fork_height: Optional[float] = Field(None, ge=0.0, description="cm")
    load_distance: Optional[float] = None
    front_obstacle: Optional[float] = None
    rear_obstacle: Optional[float] = None
    load_detected: StrictBool = False
    front_warning: StrictBool = False
    front_danger: StrictBool = False
    rear_warning: StrictBool = False
    rear_danger: StrictBool = False


class RfidScan(_SensorBlock):
    tag_id: Optional[str] = None
    station_id: Optional[str] = None
    station_name: Optional[str] = None
    last_scan_time: Optional[dt.datetime] = None
    tag_detected: StrictBool = False


class TelemetryReading(_SensorBlock):
    """One canonical sensor report. Built only by the normalizer."""

    vehicle_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("vehicleId", "forkliftId", "vehicle_id"),
    )
    timestamp: dt.datetime
    gps: GpsFix
    accelerometer: Optional[AccelerometerSample] = None
    ultrasonic: Optional[UltrasonicSample] = None
    rfid: Optional[RfidScan] = None
    battery_level: Optional[float] = Field(None, ge=0.0, le=100.0)


class ActivityState(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: ActivityName = "UNKNOWN"
    fork_state: ForkStateName = "UNKNOWN"
    engine_on: bool = False
    in_motion: bool = False


class FieldError(BaseModel):
    field: str
    reason: str


class UnknownVehicleWarning(BaseModel):
    vehicle_id: str
    message: str


class SubmitResult(BaseModel):
    accepted: bool
    vehicle_id: Optional[str] = None
    errors: List[FieldError] = Field(default_factory=list)
    warnings: List[UnknownVehicleWarning] = Field(default_factory=list)
    activity: Optional[ActivityState] = None
    record_id: Optional[int] = None


class TelemetryRecordOut(BaseModel):
    id: int
    vehicle_id: str
    ts: dt.datetime
    reading: Dict[str, Any]
    activity: ActivityState
