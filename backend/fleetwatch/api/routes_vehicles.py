from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleetwatch.auth.jwt import require_role
from fleetwatch.deps import get_db
from fleetwatch.errors import ConflictError
from fleetwatch.schemas.vehicle import VehicleCreate, VehicleOut, VehicleStatus, VehicleUpdate
from fleetwatch.services.vehicle_service import VehicleService, vehicle_to_out

router = APIRouter()
svc = VehicleService()


@router.get("/vehicles", response_model=List[VehicleOut])
def list_vehicles(
    status: Optional[VehicleStatus] = Query(None, description="Filter by status"),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return [vehicle_to_out(v) for v in svc.list(db, status=status, limit=limit, offset=offset)]


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db)):
    v = svc.get(db, vehicle_id)
    if not v:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle_to_out(v)


@router.post("/vehicles", response_model=VehicleOut, status_code=201)
def create_vehicle(
    payload: VehicleCreate,
    db: Session = Depends(get_db),
    user: dict | None = Depends(require_role("admin", "operator")),
):
    try:
        v = svc.create(db, payload)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return vehicle_to_out(v)


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleOut)
def update_vehicle(
    vehicle_id: str,
    payload: VehicleUpdate,
    db: Session = Depends(get_db),
    user: dict | None = Depends(require_role("admin", "operator")),
):
    v = svc.update(db, vehicle_id, payload)
    if not v:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle_to_out(v)
