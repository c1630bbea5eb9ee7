"""SQLAlchemy models exposed for metadata creation and imports."""
from .alert import StationAlert
from .enums import AlertSeverity, SensorType
from .station import MonitoringStation, Sensor
from .threshold import Threshold

__all__ = ["StationAlert", "MonitoringStation", "Sensor", "Threshold", "SensorType", "AlertSeverity"]
