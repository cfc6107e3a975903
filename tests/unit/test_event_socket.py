"""Tests for the Event Socket client against an in-process fake switch."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import pytest

from freeswitch_exporter.core.event_socket import EventSocketClient
from freeswitch_exporter.core.exceptions import (
    EventSocketAuthError,
    EventSocketCommandError,
    EventSocketConnectionError,
)

PASSWORD = "ClueCon"


class FakeSwitch:
    """Minimal Event Socket server speaking the inbound protocol."""

    def __init__(
        self,
        *,
        password: str = PASSWORD,
        greet: bool = True,
        on_api: Optional[Callable[[str, asyncio.StreamWriter], Awaitable[Optional[str]]]] = None,
    ) -> None:
        self.password = password
        self.greet = greet
        self.on_api = on_api
        self.commands: list[str] = []
        self.port = 0
        self._server: Optional[asyncio.Server] = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _read_command(self, reader: asyncio.StreamReader) -> Optional[str]:
        lines: list[str] = []
        while True:
            raw = await reader.readline()
            if not raw:
                return None
            line = raw.decode().rstrip("\r\n")
            if not line:
                if lines:
                    return lines[0]
                continue
            lines.append(line)

    @staticmethod
    def _reply(writer: asyncio.StreamWriter, text: str) -> None:
        writer.write(f"Content-Type: command/reply\nReply-Text: {text}\n\n".encode())

    @staticmethod
    def api_response(writer: asyncio.StreamWriter, body: str) -> None:
        payload = body.encode()
        writer.write(
            f"Content-Type: api/response\nContent-Length: {len(payload)}\n\n".encode() + payload
        )

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.append(writer)
        try:
            if self.greet:
                writer.write(b"Content-Type: auth/request\n\n")
                await writer.drain()
            while True:
                command = await self._read_command(reader)
                if command is None:
                    break
                self.commands.append(command)
                if command.startswith("auth "):
                    if command[5:] == self.password:
                        self._reply(writer, "+OK accepted")
                    else:
                        self._reply(writer, "-ERR invalid")
                        await writer.drain()
                        break
                elif command.startswith("api "):
                    api_command = command[4:]
                    if self.on_api is not None:
                        body = await self.on_api(api_command, writer)
                    else:
                        body = f"+OK {api_command}"
                    if body is None:
                        break
                    self.api_response(writer, body)
                elif command == "exit":
                    self._reply(writer, "+OK bye")
                    writer.write(
                        b"Content-Type: text/disconnect-notice\nContent-Length: 10\n\nbye bye!\n\n"
                    )
                    await writer.drain()
                    break
                await writer.drain()
        except (ConnectionError, asyncio.CancelledError):
            pass
        finally:
            writer.close()


@pytest.fixture
async def switch():
    servers: list[FakeSwitch] = []

    async def factory(**kwargs) -> FakeSwitch:
        server = FakeSwitch(**kwargs)
        await server.start()
        servers.append(server)
        return server

    yield factory
    for server in servers:
        await server.stop()


def make_client(port: int, **kwargs) -> EventSocketClient:
    kwargs.setdefault("connect_timeout", 2.0)
    return EventSocketClient("127.0.0.1", port, kwargs.pop("password", PASSWORD), **kwargs)


class TestConnect:
    async def test_authenticates(self, switch):
        server = await switch()
        client = make_client(server.port)
        await client.connect()
        try:
            assert client.is_connected()
            assert server.commands == [f"auth {PASSWORD}"]
        finally:
            await client.close()
        assert not client.is_connected()

    async def test_wrong_password(self, switch):
        server = await switch()
        client = make_client(server.port, password="wrong")
        with pytest.raises(EventSocketAuthError, match="-ERR invalid"):
            await client.connect()
        assert not client.is_connected()

    async def test_connection_refused(self, switch):
        server = await switch()
        port = server.port
        await server.stop()
        client = make_client(port)
        with pytest.raises(EventSocketConnectionError, match="dial 127.0.0.1"):
            await client.connect()

    async def test_handshake_timeout(self, switch):
        server = await switch(greet=False)
        client = make_client(server.port, connect_timeout=0.2)
        with pytest.raises(EventSocketConnectionError, match="timed out"):
            await client.connect()
        assert not client.is_connected()

    def test_address_formatting(self):
        assert EventSocketClient("fs", 8021, "x").address == "fs:8021"
        assert EventSocketClient("::1", 8021, "x").address == "[::1]:8021"


class TestApi:
    async def test_returns_body(self, switch):
        async def on_api(command, writer):
            return "<gateways>\n</gateways>\n"

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        try:
            body = await client.api("sofia xmlstatus gateway")
        finally:
            await client.close()
        assert body == "<gateways>\n</gateways>\n"
        assert "api sofia xmlstatus gateway" in server.commands

    async def test_multibyte_body_uses_byte_length(self, switch):
        async def on_api(command, writer):
            return "<name>шлюз</name>"

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        try:
            assert await client.api("anything") == "<name>шлюз</name>"
            assert await client.api("again") == "<name>шлюз</name>"
        finally:
            await client.close()

    async def test_err_reply(self, switch):
        async def on_api(command, writer):
            return "-ERR sofia Command not found!\n"

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        try:
            with pytest.raises(EventSocketCommandError, match="Command not found"):
                await client.api("sofia bogus")
            assert client.is_connected()
        finally:
            await client.close()

    async def test_concurrent_commands_are_serialized(self, switch):
        async def on_api(command, writer):
            await asyncio.sleep(0.01)
            return f"reply to {command}"

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        try:
            replies = await asyncio.gather(*(client.api(f"cmd{i}") for i in range(5)))
        finally:
            await client.close()
        assert replies == [f"reply to cmd{i}" for i in range(5)]

    async def test_server_drops_connection(self, switch):
        async def on_api(command, writer):
            return None

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        with pytest.raises(EventSocketConnectionError, match="closed by server"):
            await client.api("sofia xmlstatus gateway")
        assert not client.is_connected()

        with pytest.raises(EventSocketConnectionError, match="connection closed"):
            await client.api("sofia xmlstatus gateway")

    async def test_disconnect_notice(self, switch):
        async def on_api(command, writer):
            writer.write(
                b"Content-Type: text/disconnect-notice\nContent-Length: 21\n\n"
                b"Disconnected, goodbye"
            )
            await writer.drain()
            return None

        server = await switch(on_api=on_api)
        client = make_client(server.port)
        await client.connect()
        with pytest.raises(EventSocketConnectionError, match="Disconnected, goodbye"):
            await client.api("status")
        assert not client.is_connected()

    async def test_command_timeout_closes_connection(self, switch):
        async def on_api(command, writer):
            await asyncio.sleep(1.0)
            return "too late"

        server = await switch(on_api=on_api)
        client = make_client(server.port, command_timeout=0.1)
        await client.connect()
        with pytest.raises(EventSocketConnectionError, match="no reply"):
            await client.api("sofia xmlstatus gateway")
        assert not client.is_connected()

    async def test_api_before_connect(self):
        client = EventSocketClient("127.0.0.1", 1, PASSWORD)
        with pytest.raises(EventSocketConnectionError, match="connection closed"):
            await client.api("status")

    async def test_close_sends_exit(self, switch):
        server = await switch()
        client = make_client(server.port)
        await client.connect()
        await client.close()
        await asyncio.sleep(0.05)
        assert server.commands[-1] == "exit"

    async def test_close_survives_stalled_goodbye(self, switch, monkeypatch):
        server = await switch()
        client = make_client(server.port)
        await client.connect()

        async def stalled_drain():
            raise asyncio.TimeoutError

        monkeypatch.setattr(client._writer, "drain", stalled_drain)
        await client.close()
        assert not client.is_connected()
