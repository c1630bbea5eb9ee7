"""Background scheduler for alert auto-resolution and history retention."""
from __future__ import annotations

import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ecomonitor.core.clock import utcnow
from ecomonitor.core.config import get_settings
from ecomonitor.core.exceptions import AlertStoreError
from ecomonitor.db.session import get_session
from ecomonitor.services.alert_maintenance import auto_resolve_stale_alerts, purge_alert_history
from ecomonitor.services.notifications import dispatch_sweep_notification

logger = logging.getLogger(__name__)

AUTO_RESOLVE_JOB_ID = "auto-resolve-alerts"
RETENTION_JOB_ID = "purge-alert-history"

_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


def start_scheduler() -> None:
    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def schedule_auto_resolve_job() -> None:
    settings = get_settings()
    trigger = IntervalTrigger(seconds=settings.auto_resolve_interval_seconds)
    get_scheduler().add_job(
        _auto_resolve_alerts,
        trigger=trigger,
        id=AUTO_RESOLVE_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        "Scheduled alert auto-resolve every %s seconds (window %s minutes)",
        settings.auto_resolve_interval_seconds,
        settings.auto_resolve_after_minutes,
    )


def schedule_retention_job() -> None:
    settings = get_settings()
    trigger = IntervalTrigger(seconds=settings.retention_purge_interval_seconds)
    get_scheduler().add_job(
        _purge_expired_history,
        trigger=trigger,
        id=RETENTION_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info("Scheduled alert history purge (retention %s days)", settings.history_retention_days)


async def _auto_resolve_alerts() -> None:
    settings = get_settings()
    async with get_session() as session:
        try:
            resolved = await auto_resolve_stale_alerts(
                session, stale_after=timedelta(minutes=settings.auto_resolve_after_minutes)
            )
        except AlertStoreError:
            logger.exception("Alert auto-resolve failed; retrying on next run")
            return
    await dispatch_sweep_notification(resolved)


async def _purge_expired_history() -> None:
    settings = get_settings()
    cutoff = utcnow() - timedelta(days=settings.history_retention_days)
    async with get_session() as session:
        try:
            await purge_alert_history(session, older_than=cutoff, resolved_only=True)
        except AlertStoreError:
            logger.exception("Alert history purge failed; retrying on next run")
