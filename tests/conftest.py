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

from vadmin.protocol.codec import ProtocolCodec
from tests.admin_server import AdminServer

SECRET = "opensesame\n"


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


def make_reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    """Build a StreamReader preloaded with data. Call from a running loop."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def codec() -> ProtocolCodec:
    """Create a ProtocolCodec instance."""
    return ProtocolCodec()


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


async def _serve(srv: AdminServer) -> AsyncGenerator[AdminServer, None]:
    server_task = asyncio.create_task(srv.start())

    # Wait for the listening socket
    await asyncio.wait_for(srv.ready.wait(), timeout=5)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[AdminServer, None]:
    """Admin server that does not require authentication."""
    async for srv in _serve(AdminServer(host='127.0.0.1', port=server_port)):
        yield srv


@pytest_asyncio.fixture
async def secured_server(server_port: int) -> AsyncGenerator[AdminServer, None]:
    """Admin server that requires S/PSK authentication with SECRET."""
    async for srv in _serve(AdminServer(host='127.0.0.1', port=server_port, secret=SECRET)):
        yield srv


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
