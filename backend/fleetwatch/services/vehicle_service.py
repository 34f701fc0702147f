from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from fleetwatch.db.models import Vehicle
from fleetwatch.errors import ConflictError
from fleetwatch.schemas.vehicle import Location, VehicleCreate, VehicleOut, VehicleUpdate
from fleetwatch.utils.time import as_utc, utc_now

logger = logging.getLogger("fleetwatch.vehicles")


class VehicleService:
    # ── CRUD ─────────────────────────────────────────────────

    def create(self, db: Session, payload: VehicleCreate) -> Vehicle:
        if self.get(db, payload.vehicle_id) is not None:
            raise ConflictError(f"vehicle {payload.vehicle_id} already exists")
        v = Vehicle(
            vehicle_id=payload.vehicle_id,
            name=payload.name,
            model=payload.model,
            serial_number=payload.serial_number,
            status=payload.status,
            current_activity="UNKNOWN",
            created_at=utc_now(),
        )
        db.add(v)
        db.commit()
        db.refresh(v)
        logger.info("Vehicle created: %s", v.vehicle_id)
        return v

    def update(self, db: Session, vehicle_id: str, payload: VehicleUpdate) -> Vehicle | None:
        v = self.get(db, vehicle_id)
        if not v:
            return None
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in changes.items():
            setattr(v, key, value)
        if changes:
            v.updated_at = utc_now()
            db.commit()
            db.refresh(v)
            logger.info("Vehicle %s updated: %s", vehicle_id, ", ".join(changes))
        return v

    def list(
        self, db: Session, status: Optional[str] = None,
        limit: int = 200, offset: int = 0,
    ) -> List[Vehicle]:
        q = db.query(Vehicle)
        if status:
            q = q.filter(Vehicle.status == status)
        return q.order_by(Vehicle.vehicle_id.asc()).offset(offset).limit(limit).all()

    def all(self, db: Session) -> List[Vehicle]:
        return db.query(Vehicle).order_by(Vehicle.vehicle_id.asc()).all()

    def get(self, db: Session, vehicle_id: str) -> Vehicle | None:
        return db.query(Vehicle).filter(Vehicle.vehicle_id == vehicle_id).first()

    def exists(self, db: Session, vehicle_id: str) -> bool:
        return self.get(db, vehicle_id) is not None

    # ── telemetry-driven state ───────────────────────────────

    def register_if_absent(self, db: Session, vehicle_id: str) -> Tuple[Vehicle, bool]:
        """Return the vehicle, creating a placeholder row for unseen ids.

        Does not commit; the caller owns the transaction.
        """
        v = self.get(db, vehicle_id)
        if v is not None:
            return v, False
        v = Vehicle(
            vehicle_id=vehicle_id,
            name=vehicle_id,
            status="active",
            current_activity="UNKNOWN",
            created_at=utc_now(),
        )
        db.add(v)
        logger.info("Auto-registered vehicle %s on first telemetry", vehicle_id)
        return v, True

    def upsert_state(
        self,
        db: Session,
        vehicle_id: str,
        *,
        activity: str,
        battery_level: Optional[float],
        location: Optional[Tuple[float, float]],
        last_seen: dt.datetime,
    ) -> Vehicle:
        """Register-if-absent, then overwrite the telemetry-derived fields.

        Last writer wins: a reading older than the stored last_seen is still
        applied, only logged.
        """
        v, _ = self.register_if_absent(db, vehicle_id)
        if v.last_seen is not None and as_utc(v.last_seen) > last_seen:
            logger.warning(
                "Out-of-order telemetry for %s: %s older than last seen %s",
                vehicle_id, last_seen.isoformat(), as_utc(v.last_seen).isoformat(),
            )
        v.current_activity = activity
        if battery_level is not None:
            v.battery_level = battery_level
        if location is not None:
            v.latitude, v.longitude = location
        v.last_seen = last_seen
        return v


def vehicle_to_out(v: Vehicle) -> VehicleOut:
    location = None
    if v.latitude is not None and v.longitude is not None:
        location = Location(latitude=v.latitude, longitude=v.longitude)
    return VehicleOut(
        vehicle_id=v.vehicle_id,
        name=v.name,
        model=v.model,
        serial_number=v.serial_number,
        status=v.status,
        battery_level=v.battery_level,
        current_activity=v.current_activity or "UNKNOWN",
        current_location=location,
        last_seen=as_utc(v.last_seen) if v.last_seen else None,
        created_at=as_utc(v.created_at) if v.created_at else None,
        updated_at=as_utc(v.updated_at) if v.updated_at else None,
    )
