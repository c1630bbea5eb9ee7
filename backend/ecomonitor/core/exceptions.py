"""Error types raised by the alert services.

Callers can tell "nothing to do" (not found) apart from "not allowed right now"
(invalid state) and "try again" (store failure). Each error carries the HTTP
status the API layer answers with.
"""
from __future__ import annotations


class AlertServiceError(Exception):
    """Base class for all alert service errors."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlertNotFoundError(AlertServiceError):
    """Raised when the referenced alert does not exist."""

    status_code = 404

    def __init__(self, alert_id: int) -> None:
        super().__init__(f"Alert with ID {alert_id} not found")
        self.alert_id = alert_id


class SensorNotFoundError(AlertServiceError):
    status_code = 404

    def __init__(self, sensor_id: int) -> None:
        super().__init__(f"Sensor with ID {sensor_id} not found or inactive")
        self.sensor_id = sensor_id


class InvalidAlertStateError(AlertServiceError):
    """Raised when an operation is not permitted in the alert's current state."""

    status_code = 400


class AlertValidationError(AlertServiceError):
    """Raised for malformed breach payloads, query filters or purge criteria."""

    status_code = 422


class AlertStoreError(AlertServiceError):
    """Raised when a store transaction fails, times out or loses its connection.

    The operation did not take effect and may be retried.
    """

    status_code = 503
    retryable = True
