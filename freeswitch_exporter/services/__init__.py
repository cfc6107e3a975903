"""Application services."""
from freeswitch_exporter.services.registry import ServiceRegistry

__all__ = ["ServiceRegistry"]
