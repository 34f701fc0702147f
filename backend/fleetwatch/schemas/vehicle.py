from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field


VehicleStatus = Literal["active", "inactive", "maintenance"]


class Location(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class VehicleCreate(BaseModel):
    vehicle_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    model: Optional[str] = Field(None, max_length=200)
    serial_number: Optional[str] = Field(None, max_length=200)
    status: VehicleStatus = "active"


class VehicleUpdate(BaseModel):
    # Administrative fields only; activity/battery/location come from telemetry
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    model: Optional[str] = Field(None, max_length=200)
    serial_number: Optional[str] = Field(None, max_length=200)
    status: Optional[VehicleStatus] = None


class VehicleOut(BaseModel):
    vehicle_id: str
    name: str
    model: Optional[str] = None
    serial_number: Optional[str] = None
    status: str = "active"
    battery_level: Optional[float] = None
    current_activity: str = "UNKNOWN"
    current_location: Optional[Location] = None
    last_seen: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
