"""Common exception helpers for the exporter."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for application specific errors."""

    status_code = 500
    error_code = "app_error"
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class EventSocketError(AppError):
    """Base class for control-channel failures."""

    error_code = "event_socket_error"
    default_detail = "Event Socket failure."


class EventSocketConnectionError(EventSocketError):
    """Raised when the connection cannot be opened or has been lost."""

    error_code = "event_socket_connection"
    default_detail = "connection closed"


class EventSocketAuthError(EventSocketError):
    """Raised when the switch rejects the shared secret."""

    error_code = "event_socket_auth"
    default_detail = "authentication failed"


class EventSocketCommandError(EventSocketError):
    """Raised when the switch answers a command with ``-ERR``."""

    error_code = "event_socket_command"
    default_detail = "command failed"


class GatewayStatusParseError(AppError):
    """Raised when a gateway status reply cannot be decoded."""

    error_code = "gateway_status_parse"
    default_detail = "malformed gateway status reply"


class DomainError(AppError):
    """Normalized domain error surfaced to API handlers."""


class ServiceUnavailableError(DomainError):
    status_code = 503
    error_code = "service_unavailable"
    default_detail = "Service unavailable."


class InternalError(DomainError):
    status_code = 500
    error_code = "internal_error"
    default_detail = "Internal server error."
