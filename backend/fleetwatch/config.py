from __future__ import annotations

import secrets
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def generate_secret() -> str:
    """Generate a secure random token."""
    return secrets.token_hex(32)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ------------------------------------------------------------
    # Server
    # ------------------------------------------------------------
    backend_host: str = "0.0.0.0"
    backend_port: int = 8080
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"

    # ------------------------------------------------------------
    # Database
    # ------------------------------------------------------------
    database_url: str = "sqlite:///./fleetwatch.db"

    # ------------------------------------------------------------
    # Authentication (JWT)
    # ------------------------------------------------------------
    # In production, MUST be set via env var JWT_SECRET
    jwt_secret: str = Field(default_factory=generate_secret)
    jwt_issuer: str = "fleetwatch"
    jwt_audience: str = "fleetwatch-ui"
    access_token_expire_minutes: int = 720
    jwt_algorithm: str = "HS256"

    # ------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------
    # Comma-separated origins, e.g.:
    # "http://localhost:3000,http://localhost:19006"
    cors_origins: str = "http://localhost:3000"

    # ------------------------------------------------------------
    # Activity classification
    # ------------------------------------------------------------
    movement_speed_kmh: float = 0.5
    vibration_noise_floor: float = 0.1  # g
    fork_raised_cm: float = 50.0
    fork_pallet_cm: float = 10.0

    # ------------------------------------------------------------
    # Battery bands / notifications
    # ------------------------------------------------------------
    battery_critical: float = 20.0
    battery_good: float = 50.0
    battery_low_notify_max: float = 40.0
    productivity_battery_min: float = 60.0

    # Optional YAML profile overriding any of the thresholds above
    thresholds_file: Optional[str] = None

    # ------------------------------------------------------------
    # Telemetry retention
    # ------------------------------------------------------------
    telemetry_retention_days: int = 90
    retention_sweep_enabled: bool = True
    retention_sweep_interval_s: float = 3600.0

    @property
    def cors_origins_list(self) -> List[str]:
        return [x.strip() for x in self.cors_origins.split(",") if x.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_runtime(self) -> None:
        """Fail fast on missing critical config in production."""
        import os
        if self.is_production:
            missing = []
            # Require explicitly-set secrets in production (not auto-generated)
            if not os.environ.get("JWT_SECRET"):
                missing.append("JWT_SECRET")
            if missing:
                raise RuntimeError(
                    f"Missing required environment variables in production: {', '.join(missing)}"
                )


settings = Settings()
settings.validate_runtime()
