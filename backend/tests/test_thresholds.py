from __future__ import annotations

import pytest
import pytest_asyncio

from ecomonitor.core.exceptions import SensorNotFoundError
from ecomonitor.models import AlertSeverity, Sensor, SensorType, Threshold
from ecomonitor.services.thresholds import (
    ThresholdViolation,
    describe_violation,
    evaluate_reading,
    exceeded_threshold_value,
    find_violations,
    process_reading,
)


def _violation(min_value=None, max_value=None, description=None, value=0.0) -> ThresholdViolation:
    return ThresholdViolation(
        threshold_id=1,
        severity=AlertSeverity.MEDIUM,
        min_value=min_value,
        max_value=max_value,
        description=description,
        actual_value=value,
    )


@pytest_asyncio.fixture
async def thresholds(session):
    rows = [
        Threshold(sensor_type=SensorType.TEMPERATURE, max_value=35, severity=AlertSeverity.HIGH, description="Heat stress"),
        Threshold(sensor_type=SensorType.TEMPERATURE, max_value=30, severity=AlertSeverity.MEDIUM),
        Threshold(sensor_type=SensorType.TEMPERATURE, min_value=-10, severity=AlertSeverity.LOW),
        Threshold(sensor_type=SensorType.TEMPERATURE, max_value=20, severity=AlertSeverity.CRITICAL, is_active=False),
        Threshold(sensor_type=SensorType.HUMIDITY, max_value=10, severity=AlertSeverity.HIGH),
    ]
    session.add_all(rows)
    await session.commit()
    return rows


def test_find_violations_uses_strict_bounds():
    band = Threshold(id=1, sensor_type=SensorType.PM2_5, min_value=0, max_value=25, severity=AlertSeverity.MEDIUM)

    assert find_violations([band], 25) == []
    assert find_violations([band], 0) == []
    assert [v.threshold_id for v in find_violations([band], 25.1)] == [1]
    assert [v.threshold_id for v in find_violations([band], -0.5)] == [1]


def test_exceeded_threshold_value_picks_breached_bound():
    band = _violation(min_value=10, max_value=20)

    assert exceeded_threshold_value(band, 5) == 10
    assert exceeded_threshold_value(band, 25) == 20


@pytest.mark.parametrize(
    ("violation", "value", "expected"),
    [
        (
            _violation(max_value=35, description="Heat stress"),
            42.0,
            "Sensor temperature reading 42 is above maximum threshold 35. Heat stress",
        ),
        (_violation(min_value=-10), -12.5, "Sensor temperature reading -12.5 is below minimum threshold -10."),
    ],
)
def test_describe_violation(violation, value, expected):
    assert describe_violation(violation, value, SensorType.TEMPERATURE) == expected


def test_describe_violation_spells_out_multiword_types():
    text = describe_violation(_violation(max_value=1000), 1200, SensorType.AIR_QUALITY)

    assert text.startswith("Sensor air quality reading 1200")


@pytest.mark.asyncio
async def test_evaluate_reading_orders_by_severity(session, thresholds):
    violations = await evaluate_reading(session, SensorType.TEMPERATURE, 42)

    assert [v.severity for v in violations] == [AlertSeverity.MEDIUM, AlertSeverity.HIGH]


@pytest.mark.asyncio
async def test_reading_within_bounds_raises_nothing(session, sensor, thresholds):
    assert await process_reading(session, sensor.id, 25) == []


@pytest.mark.asyncio
async def test_process_reading_records_one_alert_per_breach(session, sensor, thresholds):
    alerts = await process_reading(session, sensor.id, 42)

    by_severity = {alert.severity: alert for alert in alerts}
    assert set(by_severity) == {AlertSeverity.MEDIUM, AlertSeverity.HIGH}
    high = by_severity[AlertSeverity.HIGH]
    assert high.threshold_value == 35
    assert high.sensor_id == sensor.id
    assert high.station_id == sensor.station_id
    assert high.message == "Sensor temperature reading 42 is above maximum threshold 35. Heat stress"
    assert by_severity[AlertSeverity.MEDIUM].threshold_value == 30

    again = await process_reading(session, sensor.id, 44)
    assert {alert.id for alert in again} == {alert.id for alert in alerts}


@pytest.mark.asyncio
async def test_unknown_sensor(session):
    with pytest.raises(SensorNotFoundError):
        await process_reading(session, 404, 42)


@pytest.mark.asyncio
async def test_inactive_sensor(session, station):
    sensor = Sensor(
        station_id=station.id,
        name="Retired",
        serial_number="TMP-OLD",
        type=SensorType.TEMPERATURE,
        is_active=False,
    )
    session.add(sensor)
    await session.commit()

    with pytest.raises(SensorNotFoundError):
        await process_reading(session, sensor.id, 42)
