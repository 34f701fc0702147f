from __future__ import annotations

from sqlalchemy.orm import Session

from fleetwatch.policies.activity_rules import ActivityThresholds
from fleetwatch.schemas.fleet import FleetSnapshot
from fleetwatch.services.fleet_aggregator import aggregate
from fleetwatch.services.vehicle_service import VehicleService


class FleetService:
    """Reads every vehicle once and hands the rows to the aggregator.

    Snapshots are advisory and recomputed on every call; nothing is cached.
    """

    def __init__(self, thresholds: ActivityThresholds, vehicles: VehicleService | None = None):
        self.thresholds = thresholds
        self.vehicles = vehicles or VehicleService()

    def get_snapshot(self, db: Session) -> FleetSnapshot:
        return aggregate(self.vehicles.all(db), self.thresholds)
