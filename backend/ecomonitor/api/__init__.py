"""API router aggregator."""
from fastapi import APIRouter

from ecomonitor.api.routes import alerts

api_router = APIRouter(prefix="/api")
api_router.include_router(alerts.router)

__all__ = ["api_router"]
