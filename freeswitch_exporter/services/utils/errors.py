"""Service error normalization helpers."""
from __future__ import annotations

from freeswitch_exporter.core.exceptions import (
    DomainError,
    EventSocketError,
    GatewayStatusParseError,
    ServiceUnavailableError,
)

STATUS_ERROR_PREFIX = "Error getting gw status from server"


def normalize_status_error(exc: Exception) -> DomainError:
    """Wrap a transport or decode failure into a 503 for the scrape handler."""

    if isinstance(exc, (EventSocketError, GatewayStatusParseError)):
        reason = exc.detail
    else:
        reason = str(exc) or exc.__class__.__name__
    return ServiceUnavailableError(
        f"{STATUS_ERROR_PREFIX}: {reason}",
        extra={"reason": getattr(exc, "error_code", "unknown")},
    )
