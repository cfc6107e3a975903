"""Command-line entry point running the exporter under uvicorn."""

from __future__ import annotations

from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError

from freeswitch_exporter import __version__
from freeswitch_exporter.core.config import (
    DEFAULT_ESL_ADDRESS,
    DEFAULT_LISTEN_PORT,
    Settings,
)
from freeswitch_exporter.core.logging import configure_logging
from freeswitch_exporter.main import create_app

app = typer.Typer(
    name="freeswitch-exporter",
    help="Export FreeSWITCH gateway status as Prometheus metrics.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        print(f"freeswitch-exporter {__version__}")
        raise typer.Exit()


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def build_settings(**overrides: object) -> Settings:
    """Resolve settings from the environment with CLI values taking precedence."""

    given = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**given)
    except ValidationError as exc:
        raise typer.BadParameter(_format_validation_error(exc)) from exc


@app.command()
def serve(
    address: Optional[str] = typer.Option(
        None, "--address", "-a",
        help="host w/port of the Event Socket to connect to.",
        show_default=DEFAULT_ESL_ADDRESS,
    ),
    password: Optional[str] = typer.Option(
        None, "--password", "-p",
        help="Event Socket password.",
        show_default=False,
    ),
    listen_host: Optional[str] = typer.Option(
        None, "--listen-host", help="Address to serve /metrics on.", show_default="0.0.0.0",
    ),
    listen_port: Optional[int] = typer.Option(
        None, "--listen-port", help="Port to serve /metrics on.", show_default=str(DEFAULT_LISTEN_PORT),
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Root logging level.", show_default="INFO",
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """Connect to FreeSWITCH and serve gateway metrics until interrupted."""

    settings = build_settings(
        esl_address=address,
        esl_password=password,
        host=listen_host,
        port=listen_port,
        log_level=log_level,
    )
    configure_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=2,
        access_log=False,
    )


def main() -> None:
    app()
