from __future__ import annotations

import logging

from fleetwatch.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; later calls only adjust the level."""
    lvl = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger("fleetwatch").setLevel(lvl)
