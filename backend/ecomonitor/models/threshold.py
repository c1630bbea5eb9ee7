"""Database model for operator-defined sensor thresholds."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from ecomonitor.core.clock import utcnow
from ecomonitor.db.base import Base
from ecomonitor.models.enums import AlertSeverity, SensorType


class Threshold(Base):
    """Allowed value band for a sensor type; leaving it raises an alert of ``severity``."""

    __tablename__ = "thresholds"

    id: Mapped[int] = mapped_column(primary_key=True)
    sensor_type: Mapped[SensorType] = mapped_column(Enum(SensorType, native_enum=False, length=32), nullable=False)
    min_value: Mapped[float | None] = mapped_column(Float, default=None)
    max_value: Mapped[float | None] = mapped_column(Float, default=None)
    severity: Mapped[AlertSeverity] = mapped_column(Enum(AlertSeverity, native_enum=False, length=16), nullable=False)
    description: Mapped[str | None] = mapped_column(String(512), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
