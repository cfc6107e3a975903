"""Health check service."""
from datetime import datetime, timezone

from freeswitch_exporter.core.event_socket import EventSocketClient
from freeswitch_exporter.core.metrics import GatewayMetricsCollector


class HealthService:
    """Encapsulates health check logic for the API layer."""

    def __init__(self, client: EventSocketClient, gateways: GatewayMetricsCollector) -> None:
        self._client = client
        self._gateways = gateways

    def check(self) -> dict:
        connected = self._client.is_connected()
        return {
            "status": "healthy" if connected else "degraded",
            "connected": connected,
            "address": self._client.address,
            "known_gateways": len(self._gateways.known_gateways()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
