from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleetwatch.config import settings
from fleetwatch.observability.logging import configure_logging
from fleetwatch.db.session import engine, Base, SessionLocal
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from fleetwatch.api.routes_health import VERSION, router as health_router
from fleetwatch.api.routes_telemetry import router as telemetry_router
from fleetwatch.api.routes_vehicles import router as vehicles_router
from fleetwatch.api.routes_stations import router as stations_router
from fleetwatch.api.routes_fleet import router as fleet_router
from fleetwatch.api.routes_ws import router as ws_router
from fleetwatch.auth.routes import router as auth_router
from fleetwatch.policies.retention import horizon_from_days
from fleetwatch.services.retention_service import RetentionService, RetentionSweeper

import fleetwatch.db.models  # noqa: F401  (registers tables on Base.metadata)

configure_logging()
logger = logging.getLogger("fleetwatch")


def init_database(max_retries: int = 5, retry_delay: int = 2):
    """
    Initialize database with retry logic.
    Managed databases may take a moment to be ready.
    """
    for attempt in range(max_retries):
        try:
            # Test connection
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            # Create all tables
            Base.metadata.create_all(bind=engine)
            logger.info("Database initialized")
            return True

        except SQLAlchemyError as e:
            logger.warning(f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}")
            if attempt < max_retries - 1:
                time.sleep(retry_delay)
            else:
                logger.error("Failed to connect to database after all retries")
                # Don't crash - allow app to start, health check will report it
                return False
    return False


sweeper = RetentionSweeper(
    RetentionService(horizon_from_days(settings.telemetry_retention_days)),
    SessionLocal,
    interval_s=settings.retention_sweep_interval_s,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting fleetwatch API")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   Retention: {settings.telemetry_retention_days} days")

    init_database()
    if settings.retention_sweep_enabled:
        sweeper.start()

    yield

    logger.info("Shutting down...")
    await sweeper.stop()


app = FastAPI(
    title="Fleetwatch API",
    version=VERSION,
    lifespan=lifespan
)


@app.get("/")
def root():
    return {
        "name": "Fleetwatch API",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "telemetry": "/telemetry",
            "vehicles": "/vehicles",
            "stations": "/stations",
            "fleet": "/fleet/snapshot",
        },
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(telemetry_router)
app.include_router(vehicles_router)
app.include_router(stations_router)
app.include_router(fleet_router)
app.include_router(ws_router)
