"""Async client for the FreeSWITCH Event Socket control channel.

The protocol is line oriented: every frame is a block of ``Name: value``
headers terminated by an empty line, optionally followed by a body whose
size is given by ``Content-Length``. After the TCP dial the switch sends an
``auth/request`` frame, the client answers with ``auth <password>`` and gets
a ``command/reply`` back. API commands are answered with ``api/response``
frames carrying the command output as body.

Only one command may be in flight on a connection, so all round-trips are
serialized with ``_op_lock``. A lost connection is never re-established;
callers get :class:`EventSocketConnectionError` until the client is
discarded.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Optional

from freeswitch_exporter.core.exceptions import (
    EventSocketAuthError,
    EventSocketCommandError,
    EventSocketConnectionError,
)

logger = logging.getLogger(__name__)

CONTENT_AUTH_REQUEST = "auth/request"
CONTENT_COMMAND_REPLY = "command/reply"
CONTENT_API_RESPONSE = "api/response"
CONTENT_DISCONNECT_NOTICE = "text/disconnect-notice"


@dataclass
class EventSocketFrame:
    """One decoded Event Socket frame."""

    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def reply_text(self) -> str:
        return self.headers.get("Reply-Text", "")


class EventSocketClient:
    """Single persistent Event Socket connection."""

    def __init__(
        self,
        host: str,
        port: int,
        password: str,
        *,
        connect_timeout: float = 5.0,
        command_timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self._password = password
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._op_lock = asyncio.Lock()
        self._connected = False

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    # -------------------------
    # Connection lifecycle
    # -------------------------
    async def connect(self) -> None:
        """Dial the switch and authenticate within ``connect_timeout``."""

        if self.is_connected():
            return
        try:
            await asyncio.wait_for(self._handshake(), timeout=self.connect_timeout)
        except asyncio.TimeoutError as exc:
            await self._abort()
            raise EventSocketConnectionError(
                f"connect to {self.address} timed out after {self.connect_timeout:g}s"
            ) from exc
        except (EventSocketAuthError, EventSocketConnectionError):
            await self._abort()
            raise
        except OSError as exc:
            await self._abort()
            raise EventSocketConnectionError(f"dial {self.address}: {exc}") from exc
        logger.info("Connected to Event Socket at %s", self.address)

    async def _handshake(self) -> None:
        self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        self._connected = True

        greeting = await self._read_frame()
        if greeting.content_type != CONTENT_AUTH_REQUEST:
            raise EventSocketConnectionError(
                f"unexpected greeting from {self.address}: {greeting.content_type or 'empty'}"
            )

        await self._write(f"auth {self._password}")
        reply = await self._await_reply(CONTENT_COMMAND_REPLY)
        if not reply.reply_text.startswith("+OK"):
            raise EventSocketAuthError(reply.reply_text or "authentication rejected")

    def is_connected(self) -> bool:
        return self._connected and self._writer is not None and not self._writer.is_closing()

    async def close(self) -> None:
        """Say goodbye to the switch and drop the stream."""

        if self.is_connected():
            with contextlib.suppress(OSError, asyncio.TimeoutError):
                self._writer.write(b"exit\n\n")
                await asyncio.wait_for(self._writer.drain(), timeout=1.0)
        await self._abort()
        logger.info("Event Socket connection to %s closed", self.address)

    async def _abort(self) -> None:
        self._connected = False
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        with contextlib.suppress(OSError, asyncio.TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout=1.0)

    # -------------------------
    # Commands
    # -------------------------
    async def api(self, command: str) -> str:
        """Run ``api <command>`` and return the response body.

        Raises:
            EventSocketConnectionError: the connection is closed, lost while
                waiting, or the optional command timeout expired.
            EventSocketCommandError: the switch answered with ``-ERR``.
        """

        async with self._op_lock:
            if not self.is_connected():
                raise EventSocketConnectionError("connection closed")
            try:
                if self.command_timeout is None:
                    reply = await self._round_trip(f"api {command}", CONTENT_API_RESPONSE)
                else:
                    reply = await asyncio.wait_for(
                        self._round_trip(f"api {command}", CONTENT_API_RESPONSE),
                        timeout=self.command_timeout,
                    )
            except asyncio.TimeoutError as exc:
                # The reply may still arrive later, so the stream can no longer be trusted.
                await self._abort()
                raise EventSocketConnectionError(
                    f"no reply to {command!r} within {self.command_timeout:g}s"
                ) from exc

        if reply.body.startswith("-ERR"):
            raise EventSocketCommandError(reply.body.strip())
        return reply.body

    async def _round_trip(self, line: str, content_type: str) -> EventSocketFrame:
        await self._write(line)
        return await self._await_reply(content_type)

    async def _write(self, line: str) -> None:
        if self._writer is None:
            raise EventSocketConnectionError("connection closed")
        logger.debug("SENDING: %s", line.split(" ", 1)[0])
        try:
            self._writer.write(f"{line}\n\n".encode())
            await self._writer.drain()
        except OSError as exc:
            await self._abort()
            raise EventSocketConnectionError(f"write failed: {exc}") from exc

    async def _await_reply(self, content_type: str) -> EventSocketFrame:
        while True:
            frame = await self._read_frame()
            if frame.content_type == content_type:
                return frame
            if frame.content_type == CONTENT_DISCONNECT_NOTICE:
                await self._abort()
                detail = frame.body.strip().splitlines()
                raise EventSocketConnectionError(
                    f"disconnected by server: {detail[0] if detail else 'no reason given'}"
                )
            logger.debug("Skipping unexpected %s frame", frame.content_type or "untyped")

    async def _read_frame(self) -> EventSocketFrame:
        if self._reader is None:
            raise EventSocketConnectionError("connection closed")

        frame = EventSocketFrame()
        try:
            while True:
                raw = await self._reader.readline()
                if not raw:
                    await self._abort()
                    raise EventSocketConnectionError("connection closed by server")
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line:
                    if frame.headers:
                        break
                    continue
                name, sep, value = line.partition(":")
                if sep:
                    frame.headers[name.strip()] = value.strip()

            length_text = frame.headers.get("Content-Length")
            if length_text:
                try:
                    length = int(length_text)
                except ValueError:
                    raise EventSocketConnectionError(
                        f"invalid Content-Length {length_text!r}"
                    ) from None
                if length > 0:
                    payload = await self._reader.readexactly(length)
                    frame.body = payload.decode("utf-8", errors="replace")
        except asyncio.IncompleteReadError as exc:
            await self._abort()
            raise EventSocketConnectionError("connection closed by server") from exc
        except OSError as exc:
            await self._abort()
            raise EventSocketConnectionError(f"read failed: {exc}") from exc
        return frame
