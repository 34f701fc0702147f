"""Test fixtures: in-memory SQLite database + FastAPI TestClient."""

from __future__ import annotations

import os

# Must be set before fleetwatch.config builds its Settings instance
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RETENTION_SWEEP_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleetwatch.db.models import Station, TelemetryRecord, Vehicle
from fleetwatch.db.session import Base
from fleetwatch.deps import get_db
from fleetwatch.main import app


# In-memory SQLite engine shared across a test session
_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSession = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def _override_get_db():
    db = _TestSession()
    try:
        yield db
    finally:
        db.close()


# Apply dependency override once
app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(scope="session", autouse=True)
def _create_tables():
    """Create all tables once before the test session."""
    Base.metadata.create_all(bind=_engine)
    yield
    Base.metadata.drop_all(bind=_engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Every test starts from an empty fleet."""
    yield
    db = _TestSession()
    try:
        for model in (TelemetryRecord, Vehicle, Station):
            db.query(model).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db():
    session = _TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return _TestSession
