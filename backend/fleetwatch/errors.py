from __future__ import annotations

from typing import Iterable, List

from fleetwatch.schemas.telemetry import FieldError


class ValidationError(ValueError):
    """A telemetry reading was rejected before classification."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors: List[FieldError] = list(errors)
        summary = "; ".join(f"{e.field}: {e.reason}" for e in self.errors)
        super().__init__(summary or "invalid telemetry reading")

    @classmethod
    def single(cls, field: str, reason: str) -> "ValidationError":
        return cls([FieldError(field=field, reason=reason)])


class ConflictError(Exception):
    """A unique key (vehicle id, station id, RFID tag) is already taken."""
