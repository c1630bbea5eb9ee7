"""Filtered, paginated listings of active and historical alerts."""
from __future__ import annotations

import logging
import math
from typing import Any, Sequence

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecomonitor.core.clock import as_utc
from ecomonitor.core.config import get_settings
from ecomonitor.db.session import read_transaction
from ecomonitor.models.alert import StationAlert
from ecomonitor.models.station import MonitoringStation, Sensor
from ecomonitor.schemas.alert import AlertPage, AlertQuery, AlertRead, SensorSummary, StationSummary
from ecomonitor.services.validation import validate_input

logger = logging.getLogger(__name__)


async def list_active_alerts(session: AsyncSession, query: AlertQuery | dict[str, Any] | None = None) -> AlertPage:
    """List unresolved alerts; any ``is_active`` filter from the caller is overridden."""

    query = validate_input(AlertQuery, query).model_copy(update={"is_active": True})
    return await _list_alerts(session, query)


async def list_alert_history(session: AsyncSession, query: AlertQuery | dict[str, Any] | None = None) -> AlertPage:
    """List active and resolved alerts, honouring an explicit ``is_active`` filter."""

    query = validate_input(AlertQuery, query)
    return await _list_alerts(session, query)


async def enrich_alerts(session: AsyncSession, alerts: Sequence[StationAlert]) -> list[AlertRead]:
    """Convert alerts to their read model with station and sensor display details.

    Missing stations or sensors, or a failing lookup, leave the details empty
    rather than failing the caller.
    """
    station_ids = {alert.station_id for alert in alerts}
    sensor_ids = {alert.sensor_id for alert in alerts if alert.sensor_id is not None}
    stations: dict[int, MonitoringStation] = {}
    sensors: dict[int, Sensor] = {}

    if alerts:
        try:
            async with session.begin_nested():
                result = await session.execute(
                    select(MonitoringStation).where(MonitoringStation.id.in_(station_ids))
                )
                stations = {station.id: station for station in result.scalars()}
                if sensor_ids:
                    result = await session.execute(select(Sensor).where(Sensor.id.in_(sensor_ids)))
                    sensors = {sensor.id: sensor for sensor in result.scalars()}
        except SQLAlchemyError as exc:
            logger.warning("Could not load station/sensor details for %d alert(s): %s", len(alerts), exc)
            stations, sensors = {}, {}

    items: list[AlertRead] = []
    for alert in alerts:
        station = stations.get(alert.station_id)
        sensor = sensors.get(alert.sensor_id) if alert.sensor_id is not None else None
        read = AlertRead.model_validate(alert)
        items.append(
            read.model_copy(
                update={
                    "station": StationSummary.model_validate(station) if station else None,
                    "sensor": SensorSummary.model_validate(sensor) if sensor else None,
                }
            )
        )
    return items


def _build_conditions(query: AlertQuery) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if query.station_id is not None:
        conditions.append(StationAlert.station_id == query.station_id)
    if query.sensor_type is not None:
        conditions.append(StationAlert.sensor_type == query.sensor_type)
    if query.severity is not None:
        conditions.append(StationAlert.severity == query.severity)
    if query.is_active is not None:
        conditions.append(StationAlert.is_active.is_(query.is_active))
    if query.from_ is not None:
        conditions.append(StationAlert.created_at >= as_utc(query.from_))
    if query.to is not None:
        upper = as_utc(query.to)
        if get_settings().date_range_end_inclusive:
            conditions.append(StationAlert.created_at <= upper)
        else:
            conditions.append(StationAlert.created_at < upper)
    return conditions


async def _list_alerts(session: AsyncSession, query: AlertQuery) -> AlertPage:
    conditions = _build_conditions(query)
    if query.sort == "asc":
        ordering = (StationAlert.created_at.asc(), StationAlert.id.asc())
    else:
        ordering = (StationAlert.created_at.desc(), StationAlert.id.desc())

    async with read_transaction(session):
        total = await session.scalar(select(func.count()).select_from(StationAlert).where(*conditions))
        result = await session.execute(
            select(StationAlert)
            .where(*conditions)
            .order_by(*ordering)
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
            .execution_options(populate_existing=True)
        )
        alerts = result.scalars().all()
        items = await enrich_alerts(session, alerts)

    total = total or 0
    return AlertPage(
        items=items,
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit),
    )
