"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Dict, Optional, Tuple

from kvhttp.cache.store import KVStore
from kvhttp.network.http_server import KVHTTPServer
from kvhttp.protocol.handler import RequestHandler
from kvhttp.protocol.parser import HTTPParser


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Store and Handler Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore instance."""
    return KVStore()


@pytest.fixture
def parser() -> HTTPParser:
    """Create an HTTPParser instance."""
    return HTTPParser()


@pytest.fixture
def handler(store: KVStore) -> RequestHandler:
    """Create a RequestHandler bound to the store fixture."""
    return RequestHandler(store)


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[KVHTTPServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVHTTPServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = KVHTTPServer(host='127.0.0.1', port=server_port, max_workers=8)

    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

class HTTPResponse:
    """Status, headers and body of a response read by AsyncClient."""

    def __init__(self, status: int, headers: Dict[str, str], body: bytes):
        self.status = status
        self.headers = headers
        self.body = body

    @property
    def text(self) -> str:
        return self.body.decode()


class AsyncClient:
    """
    Helper class for testing server interactions.

    Keeps one persistent HTTP/1.1 connection open and sends requests on it.

    Usage:
        async with AsyncClient('127.0.0.1', port) as client:
            response = await client.request("PUT", "/key", b"value")
            assert response.status == 201
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None

    async def connect(self) -> None:
        """Establish connection to server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port
        )

    async def disconnect(self) -> None:
        """Close connection to server."""
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except OSError:
                pass

    async def send_raw(self, data: bytes) -> HTTPResponse:
        """Send raw bytes and read one response."""
        self.writer.write(data)
        await self.writer.drain()
        return await self.read_response()

    async def read_response(self) -> HTTPResponse:
        """Read one response framed by Content-Length."""
        head = await self.reader.readuntil(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        status = int(lines[0].split(" ")[1])
        headers = {}
        for line in lines[1:]:
            if line:
                name, _, value = line.partition(":")
                headers[name.strip().lower()] = value.strip()
        body = await self.reader.readexactly(int(headers.get("content-length", "0")))
        return HTTPResponse(status, headers, body)

    async def request(
            self,
            method: str,
            target: str,
            body: Optional[bytes] = None,
            headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        """Send a request and read its response."""
        lines = [f"{method} {target} HTTP/1.1", f"Host: {self.host}"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        if body is not None:
            lines.append(f"Content-Length: {len(body)}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + (body or b"")
        return await self.send_raw(raw)

    async def get(self, key: str) -> HTTPResponse:
        return await self.request("GET", f"/{key}")

    async def put(self, key: str, value: str) -> HTTPResponse:
        return await self.request("PUT", f"/{key}", value.encode())

    async def delete(self, key: str) -> HTTPResponse:
        return await self.request("DELETE", f"/{key}")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create test clients.

    Usage:
        async def test_something(server, client_factory):
            async with client_factory() as client:
                response = await client.get("key")
    """
    def factory() -> AsyncClient:
        return AsyncClient('127.0.0.1', server_port)
    return factory


@pytest_asyncio.fixture
async def client_reader_writer(
    server: KVHTTPServer,
    server_port: int
) -> AsyncGenerator[Tuple[asyncio.StreamReader, asyncio.StreamWriter], None]:
    """
    Create a raw reader/writer pair connected to the server.

    Useful for low-level protocol testing.
    """
    reader, writer = await asyncio.open_connection('127.0.0.1', server_port)

    yield reader, writer

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
