"""Prometheus registry holding the published gateway series."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator

from prometheus_client import (
    CollectorRegistry,
    Counter,
    GCCollector,
    Gauge,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.core import GaugeMetricFamily, Metric, UnknownMetricFamily
from prometheus_client.registry import Collector

from freeswitch_exporter.models import GatewayRecord, GatewayStatusReport

GATEWAY_LABEL = "gw"


@dataclass(frozen=True)
class GatewaySeries:
    name: str
    documentation: str
    kind: str
    value: Callable[[GatewayRecord], float]


GATEWAY_SERIES: tuple[GatewaySeries, ...] = (
    GatewaySeries(
        "freeswitch_gateway_status",
        "Gateway status (1 = up, 0 = down)",
        "gauge",
        lambda gw: float(gw.status.value),
    ),
    GatewaySeries(
        "freeswitch_gateway_ping_delay",
        "Round-trip time of the last gateway ping",
        "gauge",
        lambda gw: gw.ping_time,
    ),
    GatewaySeries(
        "freeswitch_gateway_ping_timestamp",
        "Switch timestamp of the last gateway ping",
        "counter",
        lambda gw: gw.ping_timestamp,
    ),
    GatewaySeries(
        "freeswitch_gateway_uptime",
        "Gateway uptime in microseconds",
        "counter",
        lambda gw: gw.uptime_usec,
    ),
    GatewaySeries(
        "freeswitch_gateway_calls_in",
        "Inbound calls through the gateway",
        "counter",
        lambda gw: gw.calls_in,
    ),
    GatewaySeries(
        "freeswitch_gateway_calls_out",
        "Outbound calls through the gateway",
        "counter",
        lambda gw: gw.calls_out,
    ),
    GatewaySeries(
        "freeswitch_gateway_fail_in",
        "Failed inbound calls through the gateway",
        "counter",
        lambda gw: gw.failed_calls_in,
    ),
    GatewaySeries(
        "freeswitch_gateway_fail_out",
        "Failed outbound calls through the gateway",
        "counter",
        lambda gw: gw.failed_calls_out,
    ),
)


class GatewayMetricsCollector(Collector):
    """Custom collector exposing the last published record of every gateway.

    Gateways are only ever added or overwritten; one that vanishes from a
    later poll keeps its last values until the process restarts.
    """

    def __init__(self) -> None:
        self._gateways: Dict[str, GatewayRecord] = {}
        self._lock = threading.Lock()

    def publish(self, report: GatewayStatusReport) -> None:
        with self._lock:
            for record in report.gateways:
                self._gateways[record.name] = record

    def known_gateways(self) -> list[str]:
        with self._lock:
            return sorted(self._gateways)

    def describe(self) -> Iterable[Metric]:
        return list(self._families({}))

    def collect(self) -> Iterable[Metric]:
        with self._lock:
            snapshot = dict(self._gateways)
        return list(self._families(snapshot))

    @staticmethod
    def _families(snapshot: Dict[str, GatewayRecord]) -> Iterator[Metric]:
        for series in GATEWAY_SERIES:
            # A typed counter family would rename its samples to <name>_total.
            family_cls = GaugeMetricFamily if series.kind == "gauge" else UnknownMetricFamily
            family = family_cls(series.name, series.documentation, labels=[GATEWAY_LABEL])
            for name in sorted(snapshot):
                family.add_metric([name], series.value(snapshot[name]))
            yield family


class ExporterMetrics:
    """Registry owned by one application instance."""

    def __init__(self, *, process_metrics: bool = True) -> None:
        self.registry = CollectorRegistry()
        self.gateways = GatewayMetricsCollector()
        self.registry.register(self.gateways)
        self.scrape_errors = Counter(
            "freeswitch_exporter_scrape_errors",
            "Scrapes that failed to fetch or decode gateway status",
            registry=self.registry,
        )
        self.scrape_duration = Gauge(
            "freeswitch_exporter_scrape_duration_seconds",
            "Duration of the last gateway status poll",
            registry=self.registry,
        )
        if process_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

    def render(self) -> bytes:
        return generate_latest(self.registry)
