"""Notification hook fired after alert state changes are committed.

Delivery channels (push, e-mail, chat webhooks) are not wired up; the default
provider only writes the notice to the log.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ecomonitor.core.config import get_settings
from ecomonitor.models.enums import AlertSeverity
from ecomonitor.schemas.alert import AlertRead

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when a notification attempt fails."""


@dataclass(slots=True)
class NotificationMessage:
    subject: str
    body: str
    metadata: dict[str, str] | None = None


class NotificationProvider(Protocol):
    async def send(self, message: NotificationMessage) -> None:
        ...


class LogNotificationProvider:
    """Write notifications to the application log."""

    _levels = {
        AlertSeverity.LOW.value: logging.INFO,
        AlertSeverity.MEDIUM.value: logging.INFO,
        AlertSeverity.HIGH.value: logging.WARNING,
        AlertSeverity.CRITICAL.value: logging.WARNING,
    }

    async def send(self, message: NotificationMessage) -> None:
        severity = (message.metadata or {}).get("severity", "")
        logger.log(self._levels.get(severity, logging.INFO), "%s: %s", message.subject, message.body)


_provider: NotificationProvider | None = None


def get_notification_provider() -> NotificationProvider:
    global _provider
    if _provider is None:
        _provider = LogNotificationProvider()
    return _provider


def set_notification_provider(provider: NotificationProvider | None) -> None:
    global _provider
    _provider = provider


async def notify(provider: NotificationProvider, message: NotificationMessage) -> None:
    try:
        await provider.send(message)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to deliver notification: %s", exc)
        raise NotificationError(str(exc)) from exc


def build_alert_message(alert: AlertRead, is_cleared: bool = False) -> NotificationMessage:
    station_label = alert.station.name if alert.station else f"station {alert.station_id}"
    type_label = alert.sensor_type.value.replace("_", " ").title()
    if is_cleared:
        subject = f"{type_label} Alert Resolved"
        body = f"Station: {station_label}"
    else:
        subject = f"{alert.severity.value} {type_label} Alert"
        body = f"Station: {station_label}\n\n{alert.message}"
    return NotificationMessage(
        subject=subject,
        body=body,
        metadata={
            "alert_id": str(alert.id),
            "station_id": str(alert.station_id),
            "severity": alert.severity.value,
            "is_cleared": str(is_cleared),
        },
    )


async def dispatch_alert_notification(alert: AlertRead, is_cleared: bool = False) -> None:
    """Hand a committed alert change to the notification provider.

    Delivery failures are logged; the alert change itself is already durable.
    """
    if not get_settings().alert_notifications_enabled:
        return
    try:
        await notify(get_notification_provider(), build_alert_message(alert, is_cleared=is_cleared))
    except NotificationError:
        logger.warning("Notification for alert %s was not delivered", alert.id)


async def dispatch_sweep_notification(resolved_count: int) -> None:
    if not resolved_count or not get_settings().alert_notifications_enabled:
        return
    message = NotificationMessage(
        subject="Stale Alerts Auto-Resolved",
        body=f"{resolved_count} alert(s) were resolved after no repeated breach within the staleness window.",
        metadata={"resolved_count": str(resolved_count), "is_cleared": "True"},
    )
    try:
        await notify(get_notification_provider(), message)
    except NotificationError:
        logger.warning("Auto-resolve notification was not delivered")
