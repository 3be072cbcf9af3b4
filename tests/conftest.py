"""Shared fixtures: a fake HTTP/ICY stream server on localhost."""

import asyncio
from typing import AsyncIterator, Awaitable, Callable

import pytest

ICY_RESPONSE = (
    "ICY 200 OK\r\n"
    "icy-name: Test Radio\r\n"
    "icy-br: 128\r\n"
    "icy-metaint: 8192\r\n"
    "Content-Type: audio/mpeg\r\n"
    "Content-Length: 5000000\r\n"
    "\r\n"
)

Responder = Callable[[str, int], str]  # (request, port) -> raw response head


class FakeStreamServer:
    """Local TCP server answering each request with a canned response."""

    def __init__(self, respond: Responder) -> None:
        self._respond = respond
        self._server: asyncio.AbstractServer | None = None
        self.requests: list[str] = []
        self.port = 0

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    def url(self, path: str = "/live") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        data = await reader.readuntil(b"\r\n\r\n")
        request = data.decode("utf-8")
        self.requests.append(request)
        writer.write(self._respond(request, self.port).encode("iso-8859-1"))
        # Some audio after the headers
        writer.write(b"\xff\xfb" * 64)
        try:
            await writer.drain()
        except ConnectionError:
            pass  # Client hung up after reading headers
        writer.close()


@pytest.fixture
async def stream_server() -> AsyncIterator[Callable[..., Awaitable[FakeStreamServer]]]:
    """Factory starting FakeStreamServers that are stopped after the test."""
    servers: list[FakeStreamServer] = []

    async def start(respond: Responder = lambda request, port: ICY_RESPONSE) -> FakeStreamServer:
        server = FakeStreamServer(respond)
        await server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        await server.stop()


@pytest.fixture
def icy_response() -> str:
    """Response head of a typical ICY radio stream."""
    return ICY_RESPONSE
