"""Database models for monitoring stations and their sensors.

These tables are owned by the station/sensor management side of the system;
the alert services only read them to enrich alert listings.
"""
from __future__ import annotations

from sqlalchemy import Boolean, Enum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ecomonitor.db.base import Base
from ecomonitor.models.enums import SensorType


class MonitoringStation(Base):
    """Physical monitoring station hosting one or more sensors."""

    __tablename__ = "monitoring_stations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)


class Sensor(Base):
    """Sensor installed at a station."""

    __tablename__ = "sensors"

    id: Mapped[int] = mapped_column(primary_key=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("monitoring_stations.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    type: Mapped[SensorType] = mapped_column(Enum(SensorType, native_enum=False, length=32), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
