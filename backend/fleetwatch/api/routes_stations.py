from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleetwatch.auth.jwt import require_role
from fleetwatch.deps import get_db
from fleetwatch.errors import ConflictError
from fleetwatch.schemas.station import StationCreate, StationOut, StationType, StationUpdate
from fleetwatch.services.station_service import StationService, station_to_out

router = APIRouter()
svc = StationService()


@router.get("/stations", response_model=List[StationOut])
def list_stations(
    type: Optional[StationType] = Query(None, description="Filter by station type"),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    return [station_to_out(s) for s in svc.list(db, station_type=type, active=active)]


@router.get("/stations/{station_id}", response_model=StationOut)
def get_station(station_id: str, db: Session = Depends(get_db)):
    s = svc.get(db, station_id)
    if not s:
        raise HTTPException(status_code=404, detail="Station not found")
    return station_to_out(s)


@router.post("/stations", response_model=StationOut, status_code=201)
def create_station(
    payload: StationCreate,
    db: Session = Depends(get_db),
    user: dict | None = Depends(require_role("admin", "operator")),
):
    try:
        s = svc.create(db, payload)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return station_to_out(s)


@router.patch("/stations/{station_id}", response_model=StationOut)
def update_station(
    station_id: str,
    payload: StationUpdate,
    db: Session = Depends(get_db),
    user: dict | None = Depends(require_role("admin", "operator")),
):
    try:
        s = svc.update(db, station_id, payload)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not s:
        raise HTTPException(status_code=404, detail="Station not found")
    return station_to_out(s)
