"""Health check endpoint."""
from fastapi import APIRouter, Depends

from freeswitch_exporter.api.dependencies import get_health_service
from freeswitch_exporter.services.health_service import HealthService

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check(
    health_service: HealthService = Depends(get_health_service),
) -> dict:
    return health_service.check()
