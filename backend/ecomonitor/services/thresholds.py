"""Threshold evaluation for incoming sensor readings.

A reading breaches a threshold when it falls strictly below ``min_value`` or
strictly above ``max_value``. Every breached threshold becomes one breach
payload for :func:`ecomonitor.services.alerts.record_breach`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecomonitor.core.exceptions import SensorNotFoundError
from ecomonitor.db.session import read_transaction
from ecomonitor.models.enums import AlertSeverity, SensorType
from ecomonitor.models.station import Sensor
from ecomonitor.models.threshold import Threshold
from ecomonitor.schemas.alert import AlertRead, BreachPayload
from ecomonitor.services.alerts import format_reading, record_breach

logger = logging.getLogger(__name__)

_SEVERITY_RANK = {severity: rank for rank, severity in enumerate(AlertSeverity)}


@dataclass(slots=True, frozen=True)
class ThresholdViolation:
    threshold_id: int
    severity: AlertSeverity
    min_value: float | None
    max_value: float | None
    description: str | None
    actual_value: float


def find_violations(thresholds: Iterable[Threshold], value: float) -> list[ThresholdViolation]:
    violations: list[ThresholdViolation] = []
    for threshold in thresholds:
        below = threshold.min_value is not None and value < threshold.min_value
        above = threshold.max_value is not None and value > threshold.max_value
        if below or above:
            violations.append(
                ThresholdViolation(
                    threshold_id=threshold.id,
                    severity=threshold.severity,
                    min_value=threshold.min_value,
                    max_value=threshold.max_value,
                    description=threshold.description,
                    actual_value=value,
                )
            )
    return violations


def exceeded_threshold_value(violation: ThresholdViolation, value: float) -> float:
    if violation.min_value is not None and value < violation.min_value:
        return violation.min_value
    if violation.max_value is not None and value > violation.max_value:
        return violation.max_value
    if violation.min_value is not None:
        return violation.min_value
    if violation.max_value is not None:
        return violation.max_value
    return value


def describe_violation(violation: ThresholdViolation, value: float, sensor_type: SensorType) -> str:
    type_words = sensor_type.value.lower().replace("_", " ", 1)
    suffix = violation.description or ""
    if violation.min_value is not None and value < violation.min_value:
        text = f"Sensor {type_words} reading {format_reading(value)} is below minimum threshold {format_reading(violation.min_value)}. {suffix}"
    elif violation.max_value is not None and value > violation.max_value:
        text = f"Sensor {type_words} reading {format_reading(value)} is above maximum threshold {format_reading(violation.max_value)}. {suffix}"
    else:
        text = f"Sensor {type_words} reading {format_reading(value)} exceeded threshold. {suffix}"
    return text.strip()


async def evaluate_reading(session: AsyncSession, sensor_type: SensorType, value: float) -> list[ThresholdViolation]:
    """Return the active thresholds for ``sensor_type`` that ``value`` breaches, mildest first."""

    async with read_transaction(session):
        result = await session.execute(
            select(Threshold)
            .where(Threshold.sensor_type == sensor_type, Threshold.is_active.is_(True))
            .order_by(Threshold.id)
        )
        thresholds = result.scalars().all()
    violations = find_violations(thresholds, value)
    return sorted(violations, key=lambda item: (_SEVERITY_RANK[item.severity], item.threshold_id))


async def process_reading(session: AsyncSession, sensor_id: int, value: float) -> list[AlertRead]:
    """Evaluate one reading of ``sensor_id`` and record an alert per breached threshold."""

    async with read_transaction(session):
        sensor = await session.get(Sensor, sensor_id)
    if sensor is None or not sensor.is_active:
        raise SensorNotFoundError(sensor_id)

    violations = await evaluate_reading(session, sensor.type, value)
    alerts: list[AlertRead] = []
    for violation in violations:
        payload = BreachPayload(
            station_id=sensor.station_id,
            sensor_id=sensor.id,
            sensor_type=sensor.type,
            value=value,
            threshold_value=exceeded_threshold_value(violation, value),
            severity=violation.severity,
            message=describe_violation(violation, value, sensor.type),
        )
        alerts.append(await record_breach(session, payload))
    if alerts:
        logger.info("Reading %s from sensor %s breached %d threshold(s)", value, sensor.serial_number, len(alerts))
    return alerts
