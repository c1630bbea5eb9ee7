"""Bulk maintenance of the alert table: stale alert auto-resolution and history purge.

Both operations are one conditional UPDATE/DELETE each; they never lock the
whole table or walk rows one by one.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecomonitor.core.clock import as_utc, utcnow
from ecomonitor.core.exceptions import AlertValidationError
from ecomonitor.db.session import store_transaction
from ecomonitor.models.alert import StationAlert

logger = logging.getLogger(__name__)


async def auto_resolve_stale_alerts(
    session: AsyncSession,
    stale_after: timedelta,
    now: datetime | None = None,
) -> int:
    """Resolve active alerts created more than ``stale_after`` before ``now``.

    This goes by alert age only: an alert that has not been re-created within the
    window is assumed to have cleared. Live readings are not re-checked.
    """
    if stale_after <= timedelta(0):
        raise AlertValidationError("Staleness window must be positive")
    now = as_utc(now) if now is not None else utcnow()
    cutoff = now - stale_after

    async with store_transaction(session):
        result = await session.execute(
            update(StationAlert)
            .where(StationAlert.is_active.is_(True), StationAlert.created_at < cutoff)
            .values(is_active=False, resolved_at=now)
            .execution_options(synchronize_session=False)
        )
    resolved = result.rowcount or 0
    if resolved:
        logger.info("Auto-resolved %d alert(s) created before %s", resolved, cutoff.isoformat())
    return resolved


async def purge_alert_history(
    session: AsyncSession,
    older_than: datetime | None = None,
    resolved_only: bool | None = True,
) -> int:
    """Permanently delete alerts matching the age and resolution filters.

    ``resolved_only=True`` (the default) limits the purge to resolved alerts,
    ``False`` to active ones, and an explicit ``None`` drops the resolution filter.
    A purge with neither an age cutoff nor a resolution filter is refused.
    """
    if older_than is None and resolved_only is None:
        raise AlertValidationError("Refusing to purge alert history without an age or resolution filter")

    stmt = delete(StationAlert)
    if older_than is not None:
        stmt = stmt.where(StationAlert.created_at < as_utc(older_than))
    if resolved_only is not None:
        stmt = stmt.where(StationAlert.is_active.is_(not resolved_only))

    async with store_transaction(session):
        result = await session.execute(stmt.execution_options(synchronize_session=False))
    deleted = result.rowcount or 0
    logger.info(
        "Purged %d alert(s) (older_than=%s, resolved_only=%s)",
        deleted,
        older_than.isoformat() if older_than else None,
        resolved_only,
    )
    return deleted
