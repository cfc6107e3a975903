"""Root router that aggregates all endpoint modules."""
from fastapi import APIRouter

from freeswitch_exporter.api.routes import health, metrics

api_router = APIRouter()
api_router.include_router(metrics.router, tags=["metrics"])
api_router.include_router(health.router, tags=["health"])
