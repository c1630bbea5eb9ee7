"""Alert lifecycle: deduplicating breach upsert, acknowledgement and resolution."""
from __future__ import annotations

import asyncio
import logging
import zlib
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ecomonitor.core.clock import utcnow
from ecomonitor.core.config import get_settings
from ecomonitor.core.exceptions import AlertNotFoundError, AlertStoreError, InvalidAlertStateError
from ecomonitor.db.session import read_transaction, store_transaction
from ecomonitor.models.alert import StationAlert
from ecomonitor.schemas.alert import AlertRead, BreachPayload
from ecomonitor.services.alert_queries import enrich_alerts
from ecomonitor.services.notifications import dispatch_alert_notification
from ecomonitor.services.validation import validate_input

logger = logging.getLogger(__name__)


def format_reading(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def default_alert_message(breach: BreachPayload) -> str:
    return (
        f"Sensor {breach.sensor_type.value} reading {format_reading(breach.value)} "
        f"exceeded threshold {format_reading(breach.threshold_value)}"
    )


def dedup_lock_key(breach: BreachPayload) -> int:
    """Stable lock id for the (station, sensor type, severity) tuple.

    The sensor is left out so a station-wide breach and a sensor-specific one
    for the same tuple also serialize against each other.
    """
    raw = f"{breach.station_id}:{breach.sensor_type.value}:{breach.severity.value}"
    return zlib.crc32(raw.encode("utf-8"))


async def record_breach(session: AsyncSession, payload: BreachPayload | dict[str, Any]) -> AlertRead:
    """Create the active alert for a breach, or refresh the one that already exists.

    Safe to call on every breach detection. Store failures and timeouts raise
    :class:`AlertStoreError`; nothing was written and the call can be retried.
    A breach naming an unknown station or sensor raises :class:`AlertValidationError`.
    """
    alert, _ = await save_breach(session, payload)
    return alert


async def save_breach(
    session: AsyncSession, payload: BreachPayload | dict[str, Any]
) -> tuple[AlertRead, bool]:
    """Same as :func:`record_breach`, also telling whether a new alert was created."""

    breach = validate_input(BreachPayload, payload)
    timeout = get_settings().alert_write_timeout_seconds
    try:
        alert, created = await asyncio.wait_for(_upsert_alert(session, breach), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise AlertStoreError(f"Recording breach for station {breach.station_id} timed out after {timeout}s") from exc

    if created:
        logger.info("Created new alert %s for station %s", alert.id, alert.station_id)
        await dispatch_alert_notification(alert)
    else:
        logger.info("Updated existing alert %s for station %s", alert.id, alert.station_id)
    return alert, created


async def _upsert_alert(session: AsyncSession, breach: BreachPayload) -> tuple[AlertRead, bool]:
    message = breach.message or default_alert_message(breach)

    async with store_transaction(session):
        await _lock_dedup_key(session, breach)

        stmt = select(StationAlert).where(
            StationAlert.station_id == breach.station_id,
            StationAlert.sensor_type == breach.sensor_type,
            StationAlert.severity == breach.severity,
            StationAlert.is_active.is_(True),
        )
        if breach.sensor_id is not None:
            stmt = stmt.where(StationAlert.sensor_id == breach.sensor_id)
        result = await session.execute(
            stmt.order_by(StationAlert.id).limit(1).with_for_update().execution_options(populate_existing=True)
        )
        alert = result.scalar_one_or_none()

        created = alert is None
        if alert is None:
            alert = StationAlert(
                station_id=breach.station_id,
                sensor_id=breach.sensor_id,
                sensor_type=breach.sensor_type,
                value=breach.value,
                threshold_value=breach.threshold_value,
                severity=breach.severity,
                message=message,
                is_active=True,
                acknowledged=False,
                resolved_at=None,
                created_at=utcnow(),
            )
            session.add(alert)
        else:
            alert.value = breach.value
            alert.threshold_value = breach.threshold_value
            alert.message = message
            alert.resolved_at = None
            # A renewed breach has to be acknowledged again.
            if alert.acknowledged:
                alert.acknowledged = False
                alert.acknowledged_by = None
                alert.acknowledged_at = None

        await session.flush()
        (read,) = await enrich_alerts(session, [alert])

    return read, created


async def _lock_dedup_key(session: AsyncSession, breach: BreachPayload) -> None:
    # SQLite transactions already hold the database write lock (BEGIN IMMEDIATE).
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": dedup_lock_key(breach)})


async def _get_alert_for_update(session: AsyncSession, alert_id: int) -> StationAlert:
    result = await session.execute(
        select(StationAlert)
        .where(StationAlert.id == alert_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    alert = result.scalar_one_or_none()
    if alert is None:
        raise AlertNotFoundError(alert_id)
    return alert


async def get_alert(session: AsyncSession, alert_id: int) -> AlertRead:
    async with read_transaction(session):
        alert = await session.get(StationAlert, alert_id, populate_existing=True)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        (read,) = await enrich_alerts(session, [alert])
    return read


async def acknowledge_alert(session: AsyncSession, alert_id: int, actor_id: int) -> AlertRead:
    """Mark an active alert as seen by ``actor_id``.

    Raises :class:`AlertNotFoundError` for unknown ids and
    :class:`InvalidAlertStateError` for resolved alerts, without changing anything.
    """
    async with store_transaction(session):
        alert = await _get_alert_for_update(session, alert_id)
        if not alert.is_active:
            raise InvalidAlertStateError("Cannot acknowledge a resolved alert")
        alert.acknowledged = True
        alert.acknowledged_by = actor_id
        alert.acknowledged_at = utcnow()
        await session.flush()
        (read,) = await enrich_alerts(session, [alert])

    logger.info("Alert %s acknowledged by user %s", alert_id, actor_id)
    return read


async def resolve_alert(session: AsyncSession, alert_id: int) -> AlertRead:
    """Close an alert manually. Resolving an already resolved alert refreshes ``resolved_at``."""

    async with store_transaction(session):
        alert = await _get_alert_for_update(session, alert_id)
        was_active = alert.is_active
        alert.is_active = False
        alert.resolved_at = utcnow()
        await session.flush()
        (read,) = await enrich_alerts(session, [alert])

    logger.info("Alert %s resolved", alert_id)
    if was_active:
        await dispatch_alert_notification(read, is_cleared=True)
    return read
