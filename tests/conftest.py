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

from respkv.cache.store import KVStore
from respkv.client import async_request
from respkv.network.dispatcher import CommandDispatcher
from respkv.network.tcp_server import KVServer
from respkv.persistence.snapshot import Snapshot
from respkv.protocol.codec import decode, encode
from respkv.protocol.parser import ProtocolParser
from respkv.protocol.values import WireValue


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore instance."""
    return KVStore()


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


# ============================================================================
# Snapshot / Dispatcher Fixtures
# ============================================================================

@pytest.fixture
def snapshot_path(tmp_path):
    """Path for a snapshot file inside the test's temp directory."""
    return tmp_path / "respkv.snapshot"


@pytest.fixture
def snapshot(snapshot_path) -> Snapshot:
    return Snapshot(snapshot_path)


@pytest.fixture
def dispatcher(store: KVStore, snapshot: Snapshot) -> CommandDispatcher:
    """Dispatcher over the store fixture, with a temp snapshot file."""
    return CommandDispatcher(store, snapshot)


@pytest.fixture
def run(dispatcher: CommandDispatcher):
    """
    Execute a command line through the dispatcher.

    Usage:
        def test_something(run):
            assert run("SET key value") == OK
    """
    def execute(command: str) -> WireValue:
        return dispatcher.dispatch(decode(encode(command)))
    return execute


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int, snapshot: Snapshot) -> AsyncGenerator[KVServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = KVServer(host='127.0.0.1', port=server_port, snapshot=snapshot)

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

class AsyncClient:
    """
    Helper class for testing server interactions.

    The server closes each connection after one reply, so every command
    goes out on its own connection.

    Usage:
        client = AsyncClient('127.0.0.1', port)
        reply = await client.send_command("SET key value")
        assert reply == OK
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    async def send_command(self, command: str) -> WireValue:
        """Send a command and return the decoded reply."""
        return await async_request(self.host, self.port, command)

    async def send_raw(self, data: bytes) -> bytes:
        """Send raw bytes and return everything the server writes back."""
        reader, writer = await asyncio.open_connection(self.host, self.port)
        try:
            writer.write(data)
            await writer.drain()
            return await reader.read()
        finally:
            writer.close()
            await writer.wait_closed()


@pytest.fixture
def client(server_port: int) -> AsyncClient:
    """
    Client for the server fixture.

    Usage:
        async def test_something(server, client):
            reply = await client.send_command("GET key")
    """
    return AsyncClient('127.0.0.1', server_port)


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
