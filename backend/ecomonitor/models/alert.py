"""Database model for station alerts."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ecomonitor.core.clock import utcnow
from ecomonitor.db.base import Base
from ecomonitor.models.enums import AlertSeverity, SensorType


class StationAlert(Base):
    """Threshold breach raised for a station, optionally narrowed to one sensor.

    At most one active row exists per (station, sensor type, severity[, sensor]);
    repeated breaches refresh that row instead of inserting a new one. Station and
    sensor are referenced by id only; display details are joined at query time.
    """

    __tablename__ = "station_alerts"

    id: Mapped[int] = mapped_column(primary_key=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("monitoring_stations.id", ondelete="CASCADE"), nullable=False)
    sensor_id: Mapped[int | None] = mapped_column(ForeignKey("sensors.id", ondelete="SET NULL"), default=None)
    sensor_type: Mapped[SensorType] = mapped_column(Enum(SensorType, native_enum=False, length=32), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    threshold_value: Mapped[float] = mapped_column(Float, nullable=False)
    severity: Mapped[AlertSeverity] = mapped_column(Enum(AlertSeverity, native_enum=False, length=16), nullable=False)
    message: Mapped[str] = mapped_column(String(2048), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    acknowledged_by: Mapped[int | None] = mapped_column(Integer, default=None)  # user id, users live elsewhere
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_station_alerts_station_active_created", "station_id", "is_active", "created_at"),
        Index("ix_station_alerts_dedup", "station_id", "sensor_type", "severity", "is_active"),
    )
