from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetwatch.config import settings
from fleetwatch.deps import get_db, get_thresholds
from fleetwatch.policies.retention import horizon_from_days, retention_cutoff
from fleetwatch.schemas.fleet import FleetNotification, FleetSnapshot
from fleetwatch.services.fleet_service import FleetService

router = APIRouter()
svc = FleetService(get_thresholds())


@router.get("/fleet/snapshot", response_model=FleetSnapshot)
def fleet_snapshot(db: Session = Depends(get_db)):
    return svc.get_snapshot(db)


@router.get("/fleet/notifications", response_model=List[FleetNotification])
def fleet_notifications(db: Session = Depends(get_db)):
    return svc.get_snapshot(db).notifications


@router.get("/fleet/thresholds")
def fleet_thresholds():
    """Active classification and battery thresholds."""
    return svc.thresholds.model_dump()


@router.get("/retention")
def retention_policy():
    horizon = horizon_from_days(settings.telemetry_retention_days)
    return {
        "horizon_days": horizon.days,
        "cutoff": retention_cutoff(horizon=horizon).isoformat(),
        "sweep_enabled": settings.retention_sweep_enabled,
        "sweep_interval_s": settings.retention_sweep_interval_s,
    }
