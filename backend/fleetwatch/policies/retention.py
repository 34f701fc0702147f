from __future__ import annotations

import datetime as dt
from typing import Optional

from fleetwatch.utils.time import as_utc, utc_now


# Raw telemetry older than this is eligible for deletion.
TELEMETRY_RETENTION = dt.timedelta(days=90)


def horizon_from_days(days: Optional[int]) -> dt.timedelta:
    if days is None:
        return TELEMETRY_RETENTION
    if days <= 0:
        raise ValueError("retention horizon must be a positive number of days")
    return dt.timedelta(days=days)


def retention_cutoff(
    now: Optional[dt.datetime] = None,
    horizon: dt.timedelta = TELEMETRY_RETENTION,
) -> dt.datetime:
    """Oldest timestamp still retained at `now`."""
    return as_utc(now or utc_now()) - horizon


def is_expired(
    timestamp: dt.datetime,
    now: Optional[dt.datetime] = None,
    horizon: dt.timedelta = TELEMETRY_RETENTION,
) -> bool:
    return as_utc(timestamp) < retention_cutoff(now, horizon)
