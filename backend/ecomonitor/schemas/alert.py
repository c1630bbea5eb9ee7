"""Pydantic schemas for station alerts."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ecomonitor.core.clock import as_utc
from ecomonitor.models.enums import AlertSeverity, SensorType

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BreachPayload(CamelModel):
    """Breach decision handed over by the ingestion pipeline."""

    station_id: int = Field(..., ge=1)
    sensor_id: int | None = Field(default=None, ge=1)
    sensor_type: SensorType
    value: float = Field(..., allow_inf_nan=False)
    threshold_value: float = Field(..., allow_inf_nan=False)
    severity: AlertSeverity
    message: str | None = Field(default=None, max_length=2048)


class StationSummary(BaseModel):
    name: str
    latitude: float
    longitude: float

    model_config = ConfigDict(from_attributes=True)


class SensorSummary(CamelModel):
    name: str
    serial_number: str

    model_config = ConfigDict(from_attributes=True)


class AlertRead(CamelModel):
    id: int
    station_id: int
    sensor_id: int | None
    sensor_type: SensorType
    value: float
    threshold_value: float
    severity: AlertSeverity
    message: str
    is_active: bool
    acknowledged: bool
    acknowledged_by: int | None
    acknowledged_at: datetime | None
    resolved_at: datetime | None
    created_at: datetime
    station: StationSummary | None = None
    sensor: SensorSummary | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("acknowledged_at", "resolved_at", "created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class AlertQuery(CamelModel):
    """Filters, pagination and ordering for alert listings. Absent filters match everything."""

    station_id: int | None = None
    sensor_type: SensorType | None = None
    severity: AlertSeverity | None = None
    is_active: bool | None = None
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort: Literal["asc", "desc"] = "desc"

    @model_validator(mode="after")
    def _check_range(self) -> "AlertQuery":
        if self.from_ is not None and self.to is not None and as_utc(self.from_) > as_utc(self.to):
            raise ValueError("'from' must not be later than 'to'")
        return self


class AlertPage(CamelModel):
    items: list[AlertRead]
    total: int
    page: int
    limit: int
    total_pages: int


class AcknowledgeRequest(CamelModel):
    actor_id: int = Field(..., ge=1)


class PurgeRequest(CamelModel):
    older_than: datetime | None = None
    resolved_only: bool | None = True


class PurgeResult(CamelModel):
    deleted_count: int


class SweepResult(CamelModel):
    resolved_count: int
