from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text, Index

from fleetwatch.db.session import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    vehicle_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    model = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active", index=True)  # active|inactive|maintenance

    # Written by the ingestion pipeline only
    battery_level = Column(Float, nullable=True)
    current_activity = Column(String, nullable=False, default="UNKNOWN")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    last_seen = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Station(Base):
    __tablename__ = "stations"

    station_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, index=True)
    # NULLs never collide in a unique index, so only present tags are unique
    rfid_tag_id = Column(String, nullable=True, unique=True, index=True)
    location_json = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class TelemetryRecord(Base):
    __tablename__ = "telemetry_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(String, index=True, nullable=False)
    ts = Column(DateTime(timezone=True), index=True, nullable=False)
    payload_json = Column(Text, nullable=False)

    state = Column(String, index=True, nullable=False)
    fork_state = Column(String, nullable=False)
    engine_on = Column(Boolean, nullable=False)
    in_motion = Column(Boolean, nullable=False)

    __table_args__ = (
        Index("ix_telemetry_vehicle_ts", "vehicle_id", "ts"),
    )
