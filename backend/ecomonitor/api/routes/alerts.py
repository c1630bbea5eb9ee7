"""Station alert endpoints."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ecomonitor.core.config import get_settings
from ecomonitor.core.dependencies import get_db
from ecomonitor.models.enums import AlertSeverity, SensorType
from ecomonitor.schemas.alert import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AcknowledgeRequest,
    AlertPage,
    AlertQuery,
    AlertRead,
    BreachPayload,
    PurgeRequest,
    PurgeResult,
    SweepResult,
)
from ecomonitor.schemas.reading import ReadingIn
from ecomonitor.services import alert_maintenance, alert_queries, alerts as alert_service, thresholds
from ecomonitor.services.notifications import dispatch_sweep_notification
from ecomonitor.services.validation import validate_input

router = APIRouter(prefix="/alerts", tags=["alerts"])


def _alert_query(
    station_id: int | None = Query(default=None, alias="stationId"),
    sensor_type: SensorType | None = Query(default=None, alias="sensorType"),
    severity: AlertSeverity | None = Query(default=None),
    from_: datetime | None = Query(default=None, alias="from"),
    to: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: Literal["asc", "desc"] = Query(default="desc"),
) -> dict:
    return {
        "station_id": station_id,
        "sensor_type": sensor_type,
        "severity": severity,
        "from": from_,
        "to": to,
        "page": page,
        "limit": limit,
        "sort": sort,
    }


@router.get("/active", response_model=AlertPage)
async def list_active_alerts(
    filters: dict = Depends(_alert_query),
    session: AsyncSession = Depends(get_db),
) -> AlertPage:
    return await alert_queries.list_active_alerts(session, validate_input(AlertQuery, filters))


@router.get("/history", response_model=AlertPage)
async def list_alert_history(
    filters: dict = Depends(_alert_query),
    is_active: bool | None = Query(default=None, alias="isActive"),
    session: AsyncSession = Depends(get_db),
) -> AlertPage:
    query = validate_input(AlertQuery, {**filters, "is_active": is_active})
    return await alert_queries.list_alert_history(session, query)


@router.post("/breaches", response_model=AlertRead, status_code=status.HTTP_201_CREATED)
async def record_breach(
    payload: BreachPayload,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> AlertRead:
    """Record a threshold breach reported by the ingestion pipeline.

    Answers 201 when a new alert was opened and 200 when an active one was refreshed.
    """
    alert, created = await alert_service.save_breach(session, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
    return alert


@router.post("/readings", response_model=list[AlertRead])
async def evaluate_reading(
    payload: ReadingIn,
    session: AsyncSession = Depends(get_db),
) -> list[AlertRead]:
    """Evaluate a sensor reading against active thresholds and record any breaches."""
    return await thresholds.process_reading(session, payload.sensor_id, payload.value)


@router.get("/{alert_id}", response_model=AlertRead)
async def get_alert(
    alert_id: int,
    session: AsyncSession = Depends(get_db),
) -> AlertRead:
    return await alert_service.get_alert(session, alert_id)


@router.patch("/{alert_id}/acknowledge", response_model=AlertRead)
async def acknowledge_alert(
    alert_id: int,
    payload: AcknowledgeRequest,
    session: AsyncSession = Depends(get_db),
) -> AlertRead:
    return await alert_service.acknowledge_alert(session, alert_id, payload.actor_id)


@router.patch("/{alert_id}/resolve", response_model=AlertRead)
async def resolve_alert(
    alert_id: int,
    session: AsyncSession = Depends(get_db),
) -> AlertRead:
    return await alert_service.resolve_alert(session, alert_id)


@router.delete("/history", response_model=PurgeResult)
async def purge_history(
    payload: PurgeRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> PurgeResult:
    """Permanently delete alerts; resolved ones only unless ``resolvedOnly`` says otherwise."""
    payload = payload or PurgeRequest()
    deleted = await alert_maintenance.purge_alert_history(
        session, older_than=payload.older_than, resolved_only=payload.resolved_only
    )
    return PurgeResult(deleted_count=deleted)


@router.post("/sweep", response_model=SweepResult)
async def sweep_stale_alerts(session: AsyncSession = Depends(get_db)) -> SweepResult:
    """Run the stale alert auto-resolution immediately."""
    settings = get_settings()
    resolved = await alert_maintenance.auto_resolve_stale_alerts(
        session, stale_after=timedelta(minutes=settings.auto_resolve_after_minutes)
    )
    await dispatch_sweep_notification(resolved)
    return SweepResult(resolved_count=resolved)
