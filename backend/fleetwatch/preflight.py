from __future__ import annotations

"""Preflight checks for container startup.

- ensures the directory of a file-backed SQLite database exists
- loads the threshold profile so a broken THRESHOLDS_FILE fails here
- prints config summary
"""

import os
from fleetwatch.config import settings
from fleetwatch.deps import get_thresholds


def _mask(db_url: str) -> str:
    # Hide password: show scheme + host only
    if "@" in db_url:
        parts = db_url.split("@")
        return parts[0].split("://")[0] + "://***@" + parts[-1]
    return db_url


def _sqlite_dir(db_url: str) -> str | None:
    prefix = "sqlite:///"
    if not db_url.startswith(prefix):
        return None
    directory = os.path.dirname(db_url[len(prefix):])
    return directory or None


def main():
    directory = _sqlite_dir(settings.database_url)
    if directory:
        os.makedirs(directory, exist_ok=True)
    thresholds = get_thresholds()
    print("Preflight OK")
    print(f"DATABASE_URL={_mask(settings.database_url)}")
    print(f"CORS_ORIGINS={settings.cors_origins}")
    print(f"TELEMETRY_RETENTION_DAYS={settings.telemetry_retention_days}")
    for name, value in thresholds.model_dump().items():
        print(f"{name.upper()}={value}")


if __name__ == "__main__":
    main()
