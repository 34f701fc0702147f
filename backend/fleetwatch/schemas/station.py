from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field


StationType = Literal["loading", "unloading", "storage", "charging", "maintenance", "production", "other"]


class StationLocation(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    floor: Optional[str] = None
    zone: Optional[str] = None
    description: Optional[str] = None


class StationCreate(BaseModel):
    station_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    type: StationType
    rfid_tag_id: Optional[str] = Field(None, min_length=1, max_length=64)
    location: Optional[StationLocation] = None
    active: bool = True


class StationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[StationType] = None
    rfid_tag_id: Optional[str] = Field(None, min_length=1, max_length=64)
    location: Optional[StationLocation] = None
    active: Optional[bool] = None


class StationOut(BaseModel):
    station_id: str
    name: str
    type: str
    rfid_tag_id: Optional[str] = None
    location: Optional[StationLocation] = None
    active: bool = True
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None
