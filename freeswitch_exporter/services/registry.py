"""Service registry that wires the exporter services together."""
import asyncio
import logging
from typing import Optional

from freeswitch_exporter.core.config import Settings
from freeswitch_exporter.core.event_socket import EventSocketClient
from freeswitch_exporter.core.metrics import ExporterMetrics
from freeswitch_exporter.core.logging import request_context
from freeswitch_exporter.services.gateway_status_service import GatewayStatusService
from freeswitch_exporter.services.health_service import HealthService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Container object for dependency injection.

    One registry owns one control-channel connection and one metrics
    registry; the FastAPI app keeps it on ``app.state.services``.
    """

    def __init__(self, settings: Settings, *, client: Optional[EventSocketClient] = None) -> None:
        self.settings = settings
        self.client = client or EventSocketClient(
            settings.esl_host,
            settings.esl_port,
            settings.esl_password,
            connect_timeout=settings.connect_timeout,
            command_timeout=settings.command_timeout,
        )
        self.metrics = ExporterMetrics(process_metrics=settings.expose_process_metrics)
        self.gateway_status_service = GatewayStatusService(self.client, self.metrics)
        self.health_service = HealthService(self.client, self.metrics.gateways)
        self._lifecycle_lock = asyncio.Lock()

    async def startup(self) -> None:
        """Open the control channel; failure here is fatal for the process."""

        async with self._lifecycle_lock:
            with request_context("bg:startup"):
                if self.settings.uses_default_password:
                    logger.warning("Using the default Event Socket password")
                logger.info("Connect to %s using password", self.client.address)
                await self.client.connect()

    async def shutdown(self) -> None:
        async with self._lifecycle_lock:
            with request_context("bg:shutdown"):
                await self.client.close()
