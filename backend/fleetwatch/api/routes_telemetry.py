from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fleetwatch.api.routes_ws import FLEET_CHANNEL, hub
from fleetwatch.auth.jwt import get_current_user
from fleetwatch.config import settings
from fleetwatch.deps import get_db, get_thresholds
from fleetwatch.policies.retention import horizon_from_days
from fleetwatch.schemas.telemetry import SubmitResult, TelemetryRecordOut
from fleetwatch.services.telemetry_service import TelemetryService, record_to_out
from fleetwatch.services.vehicle_service import vehicle_to_out
from fleetwatch.utils.time import as_utc

router = APIRouter()
svc = TelemetryService(get_thresholds(), retention=horizon_from_days(settings.telemetry_retention_days))


async def _ingest(db: Session, vehicle_id: Optional[str], raw: Any) -> JSONResponse:
    result = svc.submit_telemetry(db, vehicle_id, raw)
    if not result.accepted:
        return JSONResponse(status_code=422, content=result.model_dump(mode="json"))

    v = svc.vehicles.get(db, result.vehicle_id)
    if v is not None:
        message = {"kind": "vehicle_state", "data": vehicle_to_out(v).model_dump(mode="json")}
        await hub.broadcast(FLEET_CHANNEL, message)
        await hub.broadcast(f"vehicle:{v.vehicle_id}", message)
    return JSONResponse(status_code=201, content=result.model_dump(mode="json"))


@router.post("/telemetry", response_model=SubmitResult, status_code=201)
async def submit_telemetry(
    raw: Any = Body(...),
    db: Session = Depends(get_db),
    user: dict | None = Depends(get_current_user),
):
    """Receive one sensor report. The vehicle id is taken from the payload."""
    return await _ingest(db, None, raw)


@router.post("/vehicles/{vehicle_id}/telemetry", response_model=SubmitResult, status_code=201)
async def submit_vehicle_telemetry(
    vehicle_id: str,
    raw: Any = Body(...),
    db: Session = Depends(get_db),
    user: dict | None = Depends(get_current_user),
):
    return await _ingest(db, vehicle_id, raw)


@router.get("/telemetry/{vehicle_id}/latest", response_model=TelemetryRecordOut)
def latest_telemetry(vehicle_id: str, db: Session = Depends(get_db)):
    row = svc.get_latest(db, vehicle_id)
    if not row:
        raise HTTPException(status_code=404, detail="No telemetry data found for this vehicle")
    return record_to_out(row)


@router.get("/telemetry/{vehicle_id}/history", response_model=List[TelemetryRecordOut])
def telemetry_history(
    vehicle_id: str,
    start: Optional[dt.datetime] = Query(None, description="Inclusive lower bound (ISO 8601)"),
    end: Optional[dt.datetime] = Query(None, description="Inclusive upper bound (ISO 8601)"),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    if start and end and as_utc(start) > as_utc(end):
        raise HTTPException(status_code=400, detail="start must not be after end")
    rows = svc.get_history(db, vehicle_id, start=start, end=end, limit=limit)
    return [record_to_out(r) for r in rows]
