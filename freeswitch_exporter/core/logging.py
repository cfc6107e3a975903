"""Logging utilities for the FreeSWITCH exporter.

Every record carries a ``request_id`` attribute: the ``X-Request-ID`` of
the HTTP request being served, a ``bg:*`` label for lifecycle work, or
``system`` otherwise.
"""
from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from freeswitch_exporter.core.config import Settings

LOGGER_NAME = "freeswitch_exporter"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    return _request_id.get()


def clear_request_id() -> None:
    _request_id.set(None)


@contextmanager
def request_context(label: str) -> Iterator[None]:
    token = _request_id.set(label)
    try:
        yield
    finally:
        _request_id.reset(token)


def configure_logging(
    settings: Settings, *,
    logger_name: str = LOGGER_NAME,
) -> logging.Logger:
    """Configure the root logger and return the application logger.

    Args:
        settings: Exporter settings containing log-level information.
        logger_name: Name of the logger to retrieve.

    Returns:
        Configured logger instance.
    """

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - request_id=%(request_id)s - %(message)s"
        ),
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    old_factory = logging.getLogRecordFactory()
    if not getattr(old_factory, "injects_request_id", False):

        def record_factory(*args, **kwargs) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            record.request_id = get_request_id() or "system"
            return record

        record_factory.injects_request_id = True
        logging.setLogRecordFactory(record_factory)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    logger.debug("Logging configured with level %s", logging.getLevelName(log_level))
    return logger
