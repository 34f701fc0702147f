from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetwatch.db.models import TelemetryRecord
from fleetwatch.errors import ValidationError
from fleetwatch.policies.activity_rules import ActivityThresholds, classify
from fleetwatch.policies.retention import TELEMETRY_RETENTION, retention_cutoff
from fleetwatch.schemas.telemetry import (
    ActivityState,
    SubmitResult,
    TelemetryReading,
    TelemetryRecordOut,
)
from fleetwatch.services.station_service import StationService
from fleetwatch.services.telemetry_normalizer import normalize_reading
from fleetwatch.services.vehicle_service import VehicleService
from fleetwatch.utils.time import as_utc

logger = logging.getLogger("fleetwatch.telemetry")


def record_to_out(row: TelemetryRecord) -> TelemetryRecordOut:
    return TelemetryRecordOut(
        id=row.id,
        vehicle_id=row.vehicle_id,
        ts=as_utc(row.ts),
        reading=json.loads(row.payload_json),
        activity=ActivityState(
            state=row.state,
            fork_state=row.fork_state,
            engine_on=row.engine_on,
            in_motion=row.in_motion,
        ),
    )


class TelemetryService:
    """Ingestion pipeline: normalize -> classify -> update vehicle -> append record.

    Telemetry rows are the raw history; the vehicle row only keeps the latest
    derived state. Both are written in one transaction per reading.
    """

    def __init__(
        self,
        thresholds: ActivityThresholds,
        *,
        retention: dt.timedelta = TELEMETRY_RETENTION,
        vehicles: Optional[VehicleService] = None,
        stations: Optional[StationService] = None,
    ):
        self.thresholds = thresholds
        self.retention = retention
        self.vehicles = vehicles or VehicleService()
        self.stations = stations or StationService()

    def submit_telemetry(self, db: Session, vehicle_id: Optional[str], raw: Any) -> SubmitResult:
        try:
            normalized = normalize_reading(
                raw,
                lambda vid: self.vehicles.exists(db, vid),
                vehicle_id=vehicle_id,
            )
        except ValidationError as exc:
            logger.warning("Rejected telemetry for %s: %s", vehicle_id or "?", exc)
            return SubmitResult(accepted=False, vehicle_id=vehicle_id, errors=exc.errors)

        reading = normalized.reading
        for w in normalized.warnings:
            logger.info(w.message)

        activity = classify(
            reading,
            chargers=self.stations.charging_stations(db),
            thresholds=self.thresholds,
        )

        # Fixes flagged invalid by the receiver do not move the vehicle
        location = (reading.gps.latitude, reading.gps.longitude) if reading.gps.valid else None
        try:
            self.vehicles.upsert_state(
                db,
                reading.vehicle_id,
                activity=activity.state,
                battery_level=reading.battery_level,
                location=location,
                last_seen=reading.timestamp,
            )
            record = self.append_record(db, reading, activity)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to store telemetry for %s", reading.vehicle_id)
            raise
        db.refresh(record)

        logger.debug(
            "Telemetry %s accepted: state=%s fork=%s", reading.vehicle_id, activity.state, activity.fork_state
        )
        return SubmitResult(
            accepted=True,
            vehicle_id=reading.vehicle_id,
            warnings=normalized.warnings,
            activity=activity,
            record_id=record.id,
        )

    def append_record(self, db: Session, reading: TelemetryReading, activity: ActivityState) -> TelemetryRecord:
        row = TelemetryRecord(
            vehicle_id=reading.vehicle_id,
            ts=reading.timestamp,
            payload_json=json.dumps(
                reading.model_dump(mode="json", by_alias=True, exclude_none=True), ensure_ascii=False
            ),
            state=activity.state,
            fork_state=activity.fork_state,
            engine_on=activity.engine_on,
            in_motion=activity.in_motion,
        )
        db.add(row)
        return row

    # ── reads (pass-through, bounded by the retention horizon) ─

    def get_latest(
        self, db: Session, vehicle_id: str, now: Optional[dt.datetime] = None,
    ) -> TelemetryRecord | None:
        cutoff = retention_cutoff(now, self.retention)
        return (
            db.query(TelemetryRecord)
            .filter(TelemetryRecord.vehicle_id == vehicle_id)
            .filter(TelemetryRecord.ts >= cutoff)
            .order_by(TelemetryRecord.ts.desc(), TelemetryRecord.id.desc())
            .first()
        )

    def get_history(
        self,
        db: Session,
        vehicle_id: str,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
        limit: int = 100,
        now: Optional[dt.datetime] = None,
    ) -> List[TelemetryRecord]:
        cutoff = retention_cutoff(now, self.retention)
        lower = max(as_utc(start), cutoff) if start else cutoff
        q = (
            db.query(TelemetryRecord)
            .filter(TelemetryRecord.vehicle_id == vehicle_id)
            .filter(TelemetryRecord.ts >= lower)
        )
        if end:
            q = q.filter(TelemetryRecord.ts <= as_utc(end))
        return q.order_by(TelemetryRecord.ts.desc(), TelemetryRecord.id.desc()).limit(limit).all()
