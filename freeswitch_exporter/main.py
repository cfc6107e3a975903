"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from freeswitch_exporter import __version__
from freeswitch_exporter.api.error_handlers import register_exception_handlers
from freeswitch_exporter.api.router import api_router
from freeswitch_exporter.core.config import Settings, get_settings
from freeswitch_exporter.core.event_socket import EventSocketClient
from freeswitch_exporter.core.exceptions import EventSocketError
from freeswitch_exporter.core.logging import LOGGER_NAME, clear_request_id, set_request_id
from freeswitch_exporter.services import ServiceRegistry

logger = logging.getLogger(LOGGER_NAME)

SLOW_REQUEST_MS = 2000


class RequestIdMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        path = scope.get("path") or ""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        set_request_id(request_id)
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            if duration_ms >= SLOW_REQUEST_MS:
                logger.warning("Slow request %s took %d ms (status %d)", path, duration_ms, status_code)
            else:
                logger.debug("%s %s -> %d in %d ms", request.method, path, status_code, duration_ms)
            clear_request_id()


def create_app(
    settings: Optional[Settings] = None,
    *,
    client: Optional[EventSocketClient] = None,
) -> FastAPI:
    """Build the exporter app.

    Args:
        settings: Resolved settings; defaults to the environment.
        client: Control-channel client to use instead of dialing
            ``settings.esl_address``.
    """

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the control channel before serving and close it on exit."""

        registry = ServiceRegistry(settings, client=client)
        app.state.services = registry

        try:
            await registry.startup()
        except EventSocketError as exc:
            logger.error("Server connection error: %s", exc.detail)
            raise
        try:
            yield
        finally:
            await registry.shutdown()

    app = FastAPI(
        title="FreeSWITCH Gateway Exporter",
        description="Prometheus exporter for FreeSWITCH sofia gateway status",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_router)
    register_exception_handlers(app)
    return app
