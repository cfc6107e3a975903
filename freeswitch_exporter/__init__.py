"""Prometheus exporter for FreeSWITCH gateway status."""

__version__ = "1.0.0"
