"""
Shared fixtures for unit tests.

Sessions are built around a mocked UDPTransport so no sockets are opened.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from gree_lan.devices import DeviceSession
from gree_lan.structs import SessionConfig
from gree_lan.transport import UDPTransport
from tests.helpers.datagrams import complete_handshake


@pytest.fixture
def mock_transport() -> MagicMock:
    """Mock UDPTransport that records sends."""
    transport = MagicMock(spec=UDPTransport)
    transport.bind = AsyncMock()
    transport.send = MagicMock()
    transport.set_broadcast = MagicMock()
    transport.close = MagicMock()
    transport.on_message = None
    return transport


@pytest.fixture
def session_config() -> SessionConfig:
    """Config targeting 10.0.0.5 with short timers."""
    return SessionConfig(host="10.0.0.5", local_port=0, device_port=7000, reconnect_delay=0.01, poll_interval=30)


@pytest.fixture
def session(session_config: SessionConfig, mock_transport: MagicMock) -> DeviceSession:
    """DeviceSession with mocked callbacks and transport."""
    return DeviceSession(
        session_config,
        transport=mock_transport,
        on_status=MagicMock(),
        on_update=MagicMock(),
        on_connected=MagicMock(),
    )


@pytest_asyncio.fixture
async def bound_session(session: DeviceSession):
    """A session that has completed discovery and binding under v1."""
    await session.start()
    complete_handshake(session)
    yield session
    await session.close()
