from __future__ import annotations

import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from fleetwatch.db.models import Station
from fleetwatch.errors import ConflictError
from fleetwatch.policies.activity_rules import ChargingStations
from fleetwatch.schemas.station import StationCreate, StationLocation, StationOut, StationUpdate
from fleetwatch.utils.time import as_utc, utc_now

logger = logging.getLogger("fleetwatch.stations")


class StationService:
    def _tag_taken(self, db: Session, tag_id: str, station_id: str) -> bool:
        q = db.query(Station).filter(Station.rfid_tag_id == tag_id, Station.station_id != station_id)
        return q.first() is not None

    def create(self, db: Session, payload: StationCreate) -> Station:
        if self.get(db, payload.station_id) is not None:
            raise ConflictError(f"station {payload.station_id} already exists")
        if payload.rfid_tag_id and self._tag_taken(db, payload.rfid_tag_id, payload.station_id):
            raise ConflictError(f"RFID tag {payload.rfid_tag_id} is assigned to another station")
        s = Station(
            station_id=payload.station_id,
            name=payload.name,
            type=payload.type,
            rfid_tag_id=payload.rfid_tag_id,
            location_json=json.dumps(payload.location.model_dump(), ensure_ascii=False) if payload.location else None,
            active=payload.active,
            created_at=utc_now(),
        )
        db.add(s)
        db.commit()
        db.refresh(s)
        logger.info("Station created: %s (%s)", s.station_id, s.type)
        return s

    def update(self, db: Session, station_id: str, payload: StationUpdate) -> Station | None:
        s = self.get(db, station_id)
        if not s:
            return None
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("rfid_tag_id") and self._tag_taken(db, changes["rfid_tag_id"], station_id):
            raise ConflictError(f"RFID tag {changes['rfid_tag_id']} is assigned to another station")
        if "location" in changes:
            loc = changes.pop("location")
            s.location_json = json.dumps(loc, ensure_ascii=False) if loc else None
        for key, value in changes.items():
            if value is None and key != "rfid_tag_id":
                continue
            setattr(s, key, value)
        s.updated_at = utc_now()
        db.commit()
        db.refresh(s)
        return s

    def list(
        self, db: Session, station_type: Optional[str] = None, active: Optional[bool] = None,
    ) -> List[Station]:
        q = db.query(Station)
        if station_type:
            q = q.filter(Station.type == station_type)
        if active is not None:
            q = q.filter(Station.active == active)
        return q.order_by(Station.name.asc()).all()

    def get(self, db: Session, station_id: str) -> Station | None:
        return db.query(Station).filter(Station.station_id == station_id).first()

    def charging_stations(self, db: Session) -> ChargingStations:
        """RFID tag ids and station ids of every active charging station."""
        rows = self.list(db, station_type="charging", active=True)
        return ChargingStations(
            tag_ids=frozenset(s.rfid_tag_id for s in rows if s.rfid_tag_id),
            station_ids=frozenset(s.station_id for s in rows),
        )


def station_to_out(s: Station) -> StationOut:
    return StationOut(
        station_id=s.station_id,
        name=s.name,
        type=s.type,
        rfid_tag_id=s.rfid_tag_id,
        location=StationLocation(**json.loads(s.location_json)) if s.location_json else None,
        active=bool(s.active),
        created_at=as_utc(s.created_at),
        updated_at=as_utc(s.updated_at) if s.updated_at else None,
    )
