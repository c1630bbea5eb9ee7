from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import ecomonitor.models  # noqa: F401  registers tables on Base.metadata
from ecomonitor.core.dependencies import get_db
from ecomonitor.db.base import Base
from ecomonitor.db.session import build_engine
from ecomonitor.main import app
from ecomonitor.models import AlertSeverity, MonitoringStation, Sensor, SensorType, StationAlert
from ecomonitor.services import notifications

BASE_TIME = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite per test so concurrent sessions get separate connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'alerts.db'}", timeout=10)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def station(session) -> MonitoringStation:
    return await make_station(session, "Riverside")


@pytest_asyncio.fixture
async def sensor(session, station) -> Sensor:
    return await make_sensor(session, station.id, "TMP-0001", name="Roof thermometer")


@pytest.fixture(autouse=True)
def notification_recorder():
    """Capture notifications instead of logging them."""
    sent: list[notifications.NotificationMessage] = []

    class _Recorder:
        async def send(self, message: notifications.NotificationMessage) -> None:
            sent.append(message)

    notifications.set_notification_provider(_Recorder())
    yield SimpleNamespace(sent=sent)
    notifications.set_notification_provider(None)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the application with the test database."""

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def session_scope(session_factory):
    """Patch target for code that opens its own sessions via ``get_session``."""

    @asynccontextmanager
    async def _scope():
        async with session_factory() as session:
            yield session

    return _scope


async def make_station(session: AsyncSession, name: str) -> MonitoringStation:
    station = MonitoringStation(name=name, latitude=50.45, longitude=30.52)
    session.add(station)
    await session.commit()
    return station


async def make_sensor(
    session: AsyncSession, station_id: int, serial_number: str, name: str = "Thermometer", **overrides
) -> Sensor:
    sensor = Sensor(
        station_id=station_id,
        name=name,
        serial_number=serial_number,
        type=overrides.pop("type", SensorType.TEMPERATURE),
        **overrides,
    )
    session.add(sensor)
    await session.commit()
    return sensor


async def make_alert(session: AsyncSession, **overrides) -> StationAlert:
    values = {
        "station_id": 1,
        "sensor_id": None,
        "sensor_type": SensorType.TEMPERATURE,
        "value": 42.0,
        "threshold_value": 35.0,
        "severity": AlertSeverity.HIGH,
        "message": "Sensor TEMPERATURE reading 42 exceeded threshold 35",
        "is_active": True,
        "acknowledged": False,
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    if not values["is_active"] and "resolved_at" not in overrides:
        values["resolved_at"] = values["created_at"] + timedelta(minutes=1)
    alert = StationAlert(**values)
    session.add(alert)
    await session.commit()
    return alert


async def fetch_alert(session_factory, alert_id: int) -> StationAlert | None:
    async with session_factory() as session:
        return await session.get(StationAlert, alert_id)
