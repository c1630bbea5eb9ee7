"""Enumerations shared by models and schemas."""
from __future__ import annotations

import enum


class SensorType(str, enum.Enum):
    TEMPERATURE = "TEMPERATURE"
    HUMIDITY = "HUMIDITY"
    PRESSURE = "PRESSURE"
    AIR_QUALITY = "AIR_QUALITY"
    CO2 = "CO2"
    PM2_5 = "PM2_5"
    PM10 = "PM10"
    NOISE = "NOISE"
    WATER_QUALITY = "WATER_QUALITY"


class AlertSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
