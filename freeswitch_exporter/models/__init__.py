"""Domain models."""
from freeswitch_exporter.models.gateway import GatewayRecord, GatewayStatus, GatewayStatusReport

__all__ = ["GatewayRecord", "GatewayStatus", "GatewayStatusReport"]
