"""Poll the switch for gateway status and publish it as metrics."""
from __future__ import annotations

import logging
import time

from freeswitch_exporter.core.event_socket import EventSocketClient
from freeswitch_exporter.core.exceptions import EventSocketError, GatewayStatusParseError
from freeswitch_exporter.core.metrics import ExporterMetrics
from freeswitch_exporter.models import GatewayStatusReport
from freeswitch_exporter.services.parsers.gateway_parser import GatewayStatusParser
from freeswitch_exporter.services.utils.errors import normalize_status_error

logger = logging.getLogger(__name__)

STATUS_COMMAND = "sofia xmlstatus gateway"


class GatewayStatusService:
    """Runs one status command per scrape and updates the registry."""

    def __init__(
        self,
        client: EventSocketClient,
        metrics: ExporterMetrics,
        parser: GatewayStatusParser | None = None,
    ) -> None:
        self._client = client
        self._metrics = metrics
        self._parser = parser or GatewayStatusParser()

    async def fetch(self) -> GatewayStatusReport:
        body = await self._client.api(STATUS_COMMAND)
        return self._parser.parse(body)

    async def collect(self) -> GatewayStatusReport:
        """Fetch, decode and publish; the registry is untouched on failure.

        Raises:
            ServiceUnavailableError: the switch could not be queried or its
                reply could not be decoded.
        """

        start = time.perf_counter()
        try:
            report = await self.fetch()
        except (EventSocketError, GatewayStatusParseError) as exc:
            self._metrics.scrape_errors.inc()
            logger.warning("Gateway status poll failed: %s", exc.detail)
            raise normalize_status_error(exc) from exc

        self._metrics.gateways.publish(report)
        duration = time.perf_counter() - start
        self._metrics.scrape_duration.set(duration)
        logger.debug("Published %d gateway(s) in %.3fs", report.count, duration)
        return report
