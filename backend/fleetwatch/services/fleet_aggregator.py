"""
Fleet Aggregator
Point-in-time fleet metrics computed from the latest state of every vehicle.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

from fleetwatch.policies.activity_rules import DEFAULT_THRESHOLDS, ActivityThresholds
from fleetwatch.schemas.fleet import (
    ActivityBucket,
    BatteryStats,
    FleetNotification,
    FleetSnapshot,
    MostActiveVehicle,
)
from fleetwatch.schemas.telemetry import ACTIVITY_STATES

PRODUCTIVE_STATES = ("DRIVING", "WORKING")
VEHICLE_STATUSES = ("active", "inactive", "maintenance")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _activity_of(vehicle: Any) -> str:
    activity = getattr(vehicle, "current_activity", None)
    return activity if activity in ACTIVITY_STATES else "UNKNOWN"


def _battery_of(vehicle: Any) -> Optional[float]:
    level = getattr(vehicle, "battery_level", None)
    if level is None:
        return None
    try:
        value = float(level)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _name_of(vehicle: Any) -> str:
    return getattr(vehicle, "name", None) or getattr(vehicle, "vehicle_id", None) or "Unknown vehicle"


def utilization_rating(utilization: int) -> str:
    if utilization >= 70:
        return "excellent"
    if utilization >= 40:
        return "good"
    return "needs_attention"


def battery_rating(average: float) -> str:
    if average >= 70:
        return "excellent"
    if average >= 50:
        return "good"
    if average >= 30:
        return "fair"
    return "critical"


def _battery_stats(levels: List[float], t: ActivityThresholds) -> BatteryStats:
    if not levels:
        return BatteryStats()
    average = sum(levels) / len(levels)
    return BatteryStats(
        reporting=len(levels),
        average=average,
        average_display=_round_half_up(average),
        lowest=min(levels),
        highest=max(levels),
        critical=sum(1 for lvl in levels if lvl < t.battery_critical),
        warning=sum(1 for lvl in levels if t.battery_critical <= lvl < t.battery_good),
        good=sum(1 for lvl in levels if lvl >= t.battery_good),
    )


def notifications_for(vehicle: Any, t: ActivityThresholds = DEFAULT_THRESHOLDS) -> List[FleetNotification]:
    """Independent alert predicates; one vehicle can raise several at once."""
    vid = str(getattr(vehicle, "vehicle_id", "") or "")
    name = _name_of(vehicle)
    activity = _activity_of(vehicle)
    level = _battery_of(vehicle)
    out: List[FleetNotification] = []

    if level is not None and level < t.battery_critical:
        out.append(FleetNotification(
            id=f"battery-critical-{vid}",
            vehicle_id=vid,
            vehicle_name=name,
            kind="battery_critical",
            type="critical",
            title="Critical Battery Level",
            message=f"{name} battery at {level:.0f}%",
        ))
    elif level is not None and t.battery_critical <= level <= t.battery_low_notify_max:
        out.append(FleetNotification(
            id=f"battery-low-{vid}",
            vehicle_id=vid,
            vehicle_name=name,
            kind="battery_low",
            type="warning",
            title="Low Battery Warning",
            message=f"{name} battery at {level:.0f}%",
        ))

    if activity == "IDLE":
        out.append(FleetNotification(
            id=f"idle-{vid}",
            vehicle_id=vid,
            vehicle_name=name,
            kind="idle",
            type="warning",
            title="Vehicle Idle",
            message=f"{name} has been idle",
        ))

    if activity == "WORKING" and level is not None and level > t.productivity_battery_min:
        out.append(FleetNotification(
            id=f"productivity-{vid}",
            vehicle_id=vid,
            vehicle_name=name,
            kind="high_productivity",
            type="success",
            title="High Productivity",
            message=f"{name} is performing well",
        ))
    return out


def aggregate(
    vehicles: Sequence[Any],
    thresholds: ActivityThresholds = DEFAULT_THRESHOLDS,
) -> FleetSnapshot:
    """Combine the latest state of every vehicle into a FleetSnapshot.

    `vehicles` may be ORM rows or any objects exposing vehicle_id, name,
    status, current_activity and battery_level. Pure and deterministic; an
    empty fleet yields a degraded snapshot with zero values.
    """
    total = len(vehicles)
    counts: Dict[str, int] = {state: 0 for state in ACTIVITY_STATES}
    status_counts: Dict[str, int] = {status: 0 for status in VEHICLE_STATUSES}
    levels: List[float] = []
    notifications: List[FleetNotification] = []
    most_active: Optional[MostActiveVehicle] = None

    for v in vehicles:
        activity = _activity_of(v)
        counts[activity] += 1

        status = getattr(v, "status", None) or "active"
        status_counts[status] = status_counts.get(status, 0) + 1

        level = _battery_of(v)
        if level is not None:
            levels.append(level)

        notifications.extend(notifications_for(v, thresholds))

        # First productive vehicle in input order wins; no secondary ranking.
        if most_active is None and activity in PRODUCTIVE_STATES:
            most_active = MostActiveVehicle(
                vehicle_id=str(getattr(v, "vehicle_id", "")),
                name=_name_of(v),
                activity=activity,
            )

    distribution = {
        state: ActivityBucket(
            count=count,
            percentage=round(count * 100.0 / total, 1) if total else 0.0,
        )
        for state, count in counts.items()
    }

    productive = sum(counts[s] for s in PRODUCTIVE_STATES)
    utilization = _round_half_up(productive * 100.0 / total) if total else 0
    battery = _battery_stats(levels, thresholds)

    return FleetSnapshot(
        total_vehicles=total,
        degraded=total == 0,
        activity_distribution=distribution,
        status_counts=status_counts,
        utilization=utilization,
        utilization_rating=utilization_rating(utilization) if total else "unknown",
        battery=battery,
        battery_rating=battery_rating(battery.average) if battery.reporting else "unknown",
        notifications=notifications,
        most_active=most_active,
    )
