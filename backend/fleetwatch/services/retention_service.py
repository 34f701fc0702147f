from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetwatch.db.models import TelemetryRecord
from fleetwatch.policies.retention import TELEMETRY_RETENTION, retention_cutoff

logger = logging.getLogger("fleetwatch.retention")


class RetentionService:
    """Deletes telemetry records that fell behind the retention horizon."""

    def __init__(self, horizon: dt.timedelta = TELEMETRY_RETENTION):
        self.horizon = horizon

    def purge_expired(self, db: Session, now: Optional[dt.datetime] = None) -> int:
        cutoff = retention_cutoff(now, self.horizon)
        deleted = (
            db.query(TelemetryRecord)
            .filter(TelemetryRecord.ts < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
        if deleted:
            logger.info("Purged %d telemetry record(s) older than %s", deleted, cutoff.isoformat())
        return deleted


class RetentionSweeper:
    """Background task running purge_expired on a fixed interval.

    Each pass opens its own session; DB sessions are not shared with requests.
    """

    def __init__(
        self,
        service: RetentionService,
        session_factory: Callable[[], Session],
        interval_s: float = 3600.0,
    ):
        self.service = service
        self.session_factory = session_factory
        self.interval_s = interval_s
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        db = self.session_factory()
        try:
            return self.service.purge_expired(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Retention sweep failed")
            return 0
        finally:
            db.close()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info("Retention sweeper started (every %.0fs, horizon %s)", self.interval_s, self.service.horizon)

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def _loop(self) -> None:
        while not self._stop.is_set():
            self.sweep_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass
        logger.info("Retention sweeper stopped")
