"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator

from kvpserver.network.tcp_server import KVPServer
from kvpserver.protocol.dispatcher import CommandDispatcher
from kvpserver.protocol.grammar import KeyValueParser
from kvpserver.registry.loader import load_registry
from kvpserver.registry.store import RegistryStore, UpdatePolicy


SAMPLE_REGISTRY = b"hungary Budapest\naustria Vienna\n\nfrance Paris\r\n"


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Registry Fixtures
# ============================================================================

@pytest.fixture
def store() -> RegistryStore:
    """Create an empty registry that allows overwriting keys."""
    return RegistryStore(policy=UpdatePolicy.ALLOW_OVERWRITE)


@pytest.fixture
def strict_store() -> RegistryStore:
    """Create an empty registry that rejects updates of existing keys."""
    return RegistryStore(policy=UpdatePolicy.REJECT_DUPLICATE)


@pytest.fixture
def registry_file(tmp_path):
    """Write the sample registry file and return its path."""
    path = tmp_path / "capitals.txt"
    path.write_bytes(SAMPLE_REGISTRY)
    return str(path)


@pytest.fixture
def write_registry(tmp_path):
    """
    Factory fixture writing registry files with the given content.

    Usage:
        path = write_registry(b"key value\\n")
    """
    def factory(content: bytes, name: str = "registry.txt") -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)
    return factory


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> KeyValueParser:
    """Create a KeyValueParser with the default limits (16/32)."""
    return KeyValueParser(max_key_length=16, max_value_length=32)


@pytest.fixture
def dispatcher(store: RegistryStore) -> CommandDispatcher:
    """Create a dispatcher over the overwriting registry."""
    return CommandDispatcher(store)


@pytest.fixture
def strict_dispatcher(strict_store: RegistryStore) -> CommandDispatcher:
    """Create a dispatcher over the strict registry."""
    return CommandDispatcher(strict_store)


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


async def _start_in_background(srv: KVPServer) -> asyncio.Task:
    """Start a server in a background task and wait until it listens."""
    server_task = asyncio.create_task(srv.start())

    for _ in range(100):
        if srv.is_running():
            break
        await asyncio.sleep(0.01)

    return server_task


async def _shutdown(srv: KVPServer, server_task: asyncio.Task) -> None:
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


@pytest_asyncio.fixture
async def server(server_port: int, registry_file: str) -> AsyncGenerator[KVPServer, None]:
    """
    Create and start a server loaded from the sample registry.

    This fixture:
    1. Loads the sample registry into an overwriting store
    2. Starts a KVPServer on a free port in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    registry = RegistryStore(policy=UpdatePolicy.ALLOW_OVERWRITE)
    load_registry(registry_file, registry)
    srv = KVPServer(host='127.0.0.1', port=server_port, store=registry)

    server_task = await _start_in_background(srv)
    yield srv
    await _shutdown(srv, server_task)


@pytest_asyncio.fixture
async def strict_server(server_port: int, registry_file: str) -> AsyncGenerator[KVPServer, None]:
    """Same as ``server`` but with updates of existing keys rejected."""
    registry = RegistryStore(policy=UpdatePolicy.REJECT_DUPLICATE)
    load_registry(registry_file, registry)
    srv = KVPServer(host='127.0.0.1', port=server_port, store=registry)

    server_task = await _start_in_background(srv)
    yield srv
    await _shutdown(srv, server_task)


# ============================================================================
# Client Fixtures
# ============================================================================

class AsyncClient:
    """
    Helper class for testing server interactions.

    Every command is sent with a single write, so the server sees it
    in one read.

    Usage:
        async with AsyncClient('127.0.0.1', 5555) as client:
            response = await client.send_command("GET hungary")
            assert response == "[hungary] => [Budapest]"
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
            except Exception:
                pass

    async def send_raw(self, data: bytes) -> None:
        """Write bytes to the server in one write."""
        self.writer.write(data)
        await self.writer.drain()

    async def send_command(self, command: str) -> str:
        """
        Send a command and receive the response.

        Args:
            command: Command string (newline will be added if missing)

        Returns:
            Response line without its trailing newline
        """
        if not command.endswith('\n'):
            command += '\n'

        await self.send_raw(command.encode())

        response = await asyncio.wait_for(self.reader.readline(), timeout=5)
        return response.decode().rstrip('\n')

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
                response = await client.send_command("GET key")
    """
    def factory() -> AsyncClient:
        return AsyncClient('127.0.0.1', server_port)
    return factory


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
