"""FastAPI dependency providers."""
from fastapi import Depends, Request

from freeswitch_exporter.core.metrics import ExporterMetrics
from freeswitch_exporter.services.gateway_status_service import GatewayStatusService
from freeswitch_exporter.services.health_service import HealthService
from freeswitch_exporter.services.registry import ServiceRegistry


def get_service_registry(request: Request) -> ServiceRegistry:
    """Return the service registry stored on the FastAPI application state."""

    registry = getattr(request.app.state, "services", None)
    if not isinstance(registry, ServiceRegistry):
        raise RuntimeError("Service registry not initialised")
    return registry


def get_exporter_metrics(registry: ServiceRegistry = Depends(get_service_registry)) -> ExporterMetrics:
    return registry.metrics


def get_gateway_status_service(
    registry: ServiceRegistry = Depends(get_service_registry),
) -> GatewayStatusService:
    return registry.gateway_status_service


def get_health_service(registry: ServiceRegistry = Depends(get_service_registry)) -> HealthService:
    return registry.health_service
