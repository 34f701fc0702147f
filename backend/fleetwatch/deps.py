from __future__ import annotations

from functools import lru_cache
from typing import Iterator

from sqlalchemy.orm import Session

from fleetwatch.config import settings
from fleetwatch.db.session import SessionLocal
from fleetwatch.policies.activity_rules import ActivityThresholds, load_thresholds


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_thresholds() -> ActivityThresholds:
    """Thresholds from Settings plus the optional YAML profile, loaded once."""
    return load_thresholds(settings)
