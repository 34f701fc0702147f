from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


NotificationType = Literal["critical", "warning", "success", "info"]
NotificationKind = Literal["battery_critical", "battery_low", "idle", "high_productivity"]


class ActivityBucket(BaseModel):
    count: int = 0
    percentage: float = 0.0


class BatteryStats(BaseModel):
    reporting: int = 0
    average: float = 0.0  # unrounded; decisions use this
    average_display: int = 0
    lowest: Optional[float] = None
    highest: Optional[float] = None
    critical: int = 0
    warning: int = 0
    good: int = 0


class FleetNotification(BaseModel):
    id: str
    vehicle_id: str
    vehicle_name: str
    kind: NotificationKind
    type: NotificationType
    title: str
    message: str


class MostActiveVehicle(BaseModel):
    vehicle_id: str
    name: str
    activity: str


class FleetSnapshot(BaseModel):
    total_vehicles: int = 0
    degraded: bool = False
    activity_distribution: Dict[str, ActivityBucket] = Field(default_factory=dict)
    status_counts: Dict[str, int] = Field(default_factory=dict)
    utilization: int = 0
    utilization_rating: str = "unknown"
    battery: BatteryStats = Field(default_factory=BatteryStats)
    battery_rating: str = "unknown"
    notifications: List[FleetNotification] = Field(default_factory=list)
    most_active: Optional[MostActiveVehicle] = None
