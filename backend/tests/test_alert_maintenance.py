from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from ecomonitor.core.clock import as_utc
from ecomonitor.core.exceptions import AlertValidationError
from ecomonitor.models import StationAlert
from ecomonitor.services.alert_maintenance import auto_resolve_stale_alerts, purge_alert_history

from .conftest import BASE_TIME, fetch_alert, make_alert

WINDOW = timedelta(minutes=5)


async def _remaining_ids(session_factory) -> set[int]:
    async with session_factory() as session:
        result = await session.execute(select(StationAlert.id))
        return set(result.scalars())


@pytest.mark.asyncio
async def test_sweep_resolves_only_alerts_past_the_window(session, session_factory, station):
    fresh = await make_alert(session, station_id=station.id, created_at=BASE_TIME - WINDOW + timedelta(seconds=1))
    stale = await make_alert(session, station_id=station.id, created_at=BASE_TIME - WINDOW - timedelta(seconds=1))
    already_resolved = await make_alert(
        session, station_id=station.id, created_at=BASE_TIME - timedelta(days=1), is_active=False
    )

    resolved = await auto_resolve_stale_alerts(session, WINDOW, now=BASE_TIME)

    assert resolved == 1
    stored_fresh = await fetch_alert(session_factory, fresh.id)
    stored_stale = await fetch_alert(session_factory, stale.id)
    stored_old = await fetch_alert(session_factory, already_resolved.id)
    assert stored_fresh.is_active is True
    assert stored_fresh.resolved_at is None
    assert stored_stale.is_active is False
    assert as_utc(stored_stale.resolved_at) == BASE_TIME
    assert as_utc(stored_old.resolved_at) == as_utc(already_resolved.resolved_at)


@pytest.mark.asyncio
async def test_sweep_twice_resolves_nothing_new(session, station):
    await make_alert(session, station_id=station.id, created_at=BASE_TIME - timedelta(hours=1))

    assert await auto_resolve_stale_alerts(session, WINDOW, now=BASE_TIME) == 1
    assert await auto_resolve_stale_alerts(session, WINDOW, now=BASE_TIME) == 0


@pytest.mark.asyncio
async def test_sweep_ignores_acknowledgement(session, session_factory, station):
    alert = await make_alert(
        session, station_id=station.id, created_at=BASE_TIME - timedelta(hours=1), acknowledged=True, acknowledged_by=5
    )

    await auto_resolve_stale_alerts(session, WINDOW, now=BASE_TIME)

    stored = await fetch_alert(session_factory, alert.id)
    assert stored.is_active is False
    assert stored.acknowledged is True


@pytest.mark.asyncio
@pytest.mark.parametrize("window", [timedelta(0), timedelta(minutes=-1)])
async def test_sweep_rejects_non_positive_window(session, window):
    with pytest.raises(AlertValidationError):
        await auto_resolve_stale_alerts(session, window)


@pytest.mark.asyncio
async def test_purge_defaults_to_resolved_alerts(session, session_factory, station):
    active = await make_alert(session, station_id=station.id)
    await make_alert(session, station_id=station.id, is_active=False)

    deleted = await purge_alert_history(session)

    assert deleted == 1
    assert await _remaining_ids(session_factory) == {active.id}


@pytest.mark.asyncio
async def test_purge_by_age(session, session_factory, station):
    old_resolved = await make_alert(session, station_id=station.id, created_at=BASE_TIME - timedelta(days=100), is_active=False)
    old_active = await make_alert(session, station_id=station.id, created_at=BASE_TIME - timedelta(days=100))
    recent_resolved = await make_alert(session, station_id=station.id, created_at=BASE_TIME, is_active=False)
    cutoff = BASE_TIME - timedelta(days=90)

    deleted = await purge_alert_history(session, older_than=cutoff)

    assert deleted == 1
    assert await _remaining_ids(session_factory) == {old_active.id, recent_resolved.id}
    assert old_resolved.id not in await _remaining_ids(session_factory)


@pytest.mark.asyncio
async def test_purge_by_age_regardless_of_state(session, session_factory, station):
    await make_alert(session, station_id=station.id, created_at=BASE_TIME - timedelta(days=100), is_active=False)
    await make_alert(session, station_id=station.id, created_at=BASE_TIME - timedelta(days=100))
    recent = await make_alert(session, station_id=station.id, created_at=BASE_TIME)

    deleted = await purge_alert_history(session, older_than=BASE_TIME - timedelta(days=90), resolved_only=None)

    assert deleted == 2
    assert await _remaining_ids(session_factory) == {recent.id}


@pytest.mark.asyncio
async def test_purge_active_only(session, session_factory, station):
    await make_alert(session, station_id=station.id)
    resolved = await make_alert(session, station_id=station.id, is_active=False)

    deleted = await purge_alert_history(session, resolved_only=False)

    assert deleted == 1
    assert await _remaining_ids(session_factory) == {resolved.id}


@pytest.mark.asyncio
async def test_purge_without_filters_is_refused(session, session_factory, station):
    alert = await make_alert(session, station_id=station.id, is_active=False)

    with pytest.raises(AlertValidationError):
        await purge_alert_history(session, older_than=None, resolved_only=None)

    assert await _remaining_ids(session_factory) == {alert.id}


@pytest.mark.asyncio
async def test_purge_with_nothing_matching(session):
    assert await purge_alert_history(session) == 0
