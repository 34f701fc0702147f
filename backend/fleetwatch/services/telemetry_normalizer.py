from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from fleetwatch.errors import ValidationError
from fleetwatch.schemas.telemetry import FieldError, TelemetryReading, UnknownVehicleWarning
from fleetwatch.utils.time import as_utc, utc_now


VEHICLE_ID_KEYS = ("vehicleId", "forkliftId", "vehicle_id")

# Firmware may send its own activity estimate; the server always re-derives it.
IGNORED_KEYS = ("activity",)


@dataclass(frozen=True)
class NormalizedReading:
    reading: TelemetryReading
    warnings: List[UnknownVehicleWarning] = field(default_factory=list)


def _field_errors(exc: PydanticValidationError) -> List[FieldError]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        errors.append(FieldError(field=loc, reason=err.get("msg", "invalid value")))
    return errors


def _body_vehicle_id(data: Mapping[str, Any]) -> Any:
    for key in VEHICLE_ID_KEYS:
        if data.get(key) is not None:
            return data[key]
    return None


def normalize_reading(
    raw: Any,
    vehicle_exists: Callable[[str], bool],
    *,
    vehicle_id: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> NormalizedReading:
    """Validate and coerce a raw payload into a canonical TelemetryReading.

    `vehicle_id`, when given (e.g. from a URL path), must agree with any id in
    the payload. Unknown vehicles are not rejected; they produce an
    UnknownVehicleWarning so the caller can register them.

    Raises ValidationError listing every offending field.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError.single("body", "reading must be a JSON object")

    data = {k: v for k, v in raw.items() if k not in IGNORED_KEYS}

    body_id = _body_vehicle_id(data)
    if isinstance(body_id, str):
        body_id = body_id.strip()
    if vehicle_id is not None:
        if body_id not in (None, "") and body_id != vehicle_id:
            raise ValidationError.single(
                "vehicleId", f"payload vehicle id {body_id!r} does not match {vehicle_id!r}"
            )
        body_id = vehicle_id
    for key in VEHICLE_ID_KEYS:
        data.pop(key, None)
    if body_id is not None:
        data["vehicleId"] = body_id

    if data.get("timestamp") is None:
        data["timestamp"] = now or utc_now()

    try:
        reading = TelemetryReading.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc)) from exc

    reading = reading.model_copy(update={"timestamp": as_utc(reading.timestamp)})

    warnings: List[UnknownVehicleWarning] = []
    if not vehicle_exists(reading.vehicle_id):
        warnings.append(
            UnknownVehicleWarning(
                vehicle_id=reading.vehicle_id,
                message=f"vehicle {reading.vehicle_id} not registered; registering on first telemetry",
            )
        )
    return NormalizedReading(reading=reading, warnings=warnings)
