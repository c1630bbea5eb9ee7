"""Pydantic schemas for sensor readings submitted for threshold evaluation."""
from __future__ import annotations

from pydantic import Field

from ecomonitor.schemas.alert import CamelModel


class ReadingIn(CamelModel):
    sensor_id: int = Field(..., ge=1)
    value: float = Field(..., allow_inf_nan=False)
