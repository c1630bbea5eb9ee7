"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import ecomonitor.models  # noqa: F401  registers tables on Base.metadata
from ecomonitor.api import api_router
from ecomonitor.core.config import get_settings
from ecomonitor.core.exceptions import AlertServiceError, AlertStoreError
from ecomonitor.db.base import Base
from ecomonitor.db.session import engine
from ecomonitor.services.scheduler import (
    get_scheduler,
    schedule_auto_resolve_job,
    schedule_retention_job,
    start_scheduler,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.scheduler_enabled:
        start_scheduler()
        schedule_auto_resolve_job()
        schedule_retention_job()

    try:
        yield
    finally:
        scheduler = get_scheduler()
        if scheduler.running:
            scheduler.shutdown(wait=False)
        await engine.dispose()


async def alert_service_error_handler(request: Request, exc: AlertServiceError) -> JSONResponse:
    if isinstance(exc, AlertStoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(AlertServiceError, alert_service_error_handler)

app.include_router(api_router)
