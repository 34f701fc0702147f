from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetwatch.config import settings
from fleetwatch.deps import get_db

logger = logging.getLogger("fleetwatch.health")
router = APIRouter()

VERSION = "0.1.0"


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Health check endpoint with system status."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as exc:
        logger.warning("Health check database probe failed: %s", exc)
        database = "disconnected"
    return {
        "status": "ok" if database == "connected" else "degraded",
        "environment": settings.environment,
        "database": database,
        "version": VERSION,
    }
