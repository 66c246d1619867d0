"""Unit tests for TCPConnection socket abstraction.

Tests cover:
- Connection lifecycle (connect, send, recv, close)
- Error mapping (timeouts, refused connections, resets)
- Cleanup operations
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tests.helpers.expectations import expect_async_exception
from yeelight_lan.protocol.messages import DeviceAddress
from yeelight_lan.transport.exceptions import ConnectFailedError, ConnectionClosedError, TransportTimeoutError
from yeelight_lan.transport.socket_abstraction import TCPConnection


@pytest.fixture
def tcp_connection():
    """Create TCPConnection instance for testing."""
    return TCPConnection(DeviceAddress("127.0.0.1", 8080), connect_timeout=0.1, io_timeout=0.1)


def _connected(conn: TCPConnection) -> tuple[MagicMock, MagicMock]:
    reader = MagicMock()
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    conn.reader = reader
    conn.writer = writer
    conn._connected = True
    return reader, writer


@pytest.mark.asyncio
async def test_connect_success(tcp_connection):
    with patch("asyncio.open_connection") as mock_open:
        mock_reader = AsyncMock()
        mock_writer = AsyncMock()
        mock_open.return_value = (mock_reader, mock_writer)

        await tcp_connection.connect()

        assert tcp_connection.is_connected
        assert tcp_connection.reader is mock_reader
        assert tcp_connection.writer is mock_writer
        mock_open.assert_called_once_with("127.0.0.1", 8080)


@pytest.mark.asyncio
async def test_connect_timeout(tcp_connection):
    with patch("asyncio.open_connection") as mock_open:

        async def slow_connect(*_args, **_kwargs):
            await asyncio.sleep(1.0)
            return (AsyncMock(), AsyncMock())

        mock_open.side_effect = slow_connect

        err = await expect_async_exception(tcp_connection.connect(), TransportTimeoutError)

        assert err.phase == "connect"
        assert err.timeout_seconds == 0.1
        assert err.address == "127.0.0.1:8080"
        assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_connect_refused(tcp_connection):
    with patch("asyncio.open_connection") as mock_open:
        cause = ConnectionRefusedError("Connection refused")
        mock_open.side_effect = cause

        err = await expect_async_exception(tcp_connection.connect(), ConnectFailedError)

        assert err.__cause__ is cause
        assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_send_success(tcp_connection):
    _, writer = _connected(tcp_connection)

    await tcp_connection.send(b"payload\r\n")

    writer.write.assert_called_once_with(b"payload\r\n")
    writer.drain.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_not_connected(tcp_connection):
    _ = await expect_async_exception(tcp_connection.send(b"x"), ConnectionClosedError)


@pytest.mark.asyncio
async def test_send_timeout(tcp_connection):
    _, writer = _connected(tcp_connection)

    async def slow_drain():
        await asyncio.sleep(1.0)

    writer.drain = slow_drain

    err = await expect_async_exception(tcp_connection.send(b"x"), TransportTimeoutError)

    assert err.phase == "write"


@pytest.mark.asyncio
async def test_send_reset(tcp_connection):
    _, writer = _connected(tcp_connection)
    writer.drain = AsyncMock(side_effect=ConnectionResetError("reset"))

    _ = await expect_async_exception(tcp_connection.send(b"x"), ConnectionClosedError)

    assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_recv_success(tcp_connection):
    reader, _ = _connected(tcp_connection)
    reader.read = AsyncMock(return_value=b"data")

    assert await tcp_connection.recv() == b"data"
    reader.read.assert_awaited_once_with(4096)


@pytest.mark.asyncio
async def test_recv_eof_marks_disconnected(tcp_connection):
    reader, _ = _connected(tcp_connection)
    reader.read = AsyncMock(return_value=b"")

    assert await tcp_connection.recv() == b""
    assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_recv_timeout_uses_override(tcp_connection):
    reader, _ = _connected(tcp_connection)

    async def slow_read(_n):
        await asyncio.sleep(1.0)
        return b""

    reader.read = slow_read

    err = await expect_async_exception(tcp_connection.recv(timeout=0.05), TransportTimeoutError)

    assert err.phase == "read"
    assert err.timeout_seconds == 0.05
    assert tcp_connection.is_connected


@pytest.mark.asyncio
async def test_recv_not_connected(tcp_connection):
    _ = await expect_async_exception(tcp_connection.recv(), ConnectionClosedError)


@pytest.mark.asyncio
async def test_close_suppresses_oserror(tcp_connection):
    _, writer = _connected(tcp_connection)
    writer.wait_closed = AsyncMock(side_effect=OSError("already gone"))

    await tcp_connection.close()

    writer.close.assert_called_once()
    assert tcp_connection.writer is None
    assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_close_without_connect(tcp_connection):
    await tcp_connection.close()

    assert not tcp_connection.is_connected


@pytest.mark.asyncio
async def test_context_manager_closes(tcp_connection):
    with patch("asyncio.open_connection") as mock_open:
        mock_writer = MagicMock()
        mock_writer.wait_closed = AsyncMock()
        mock_open.return_value = (AsyncMock(), mock_writer)

        async with tcp_connection as conn:
            assert conn.is_connected

        mock_writer.close.assert_called_once()
        assert not tcp_connection.is_connected


def test_repr(tcp_connection):
    assert repr(tcp_connection) == "TCPConnection(127.0.0.1:8080, disconnected)"
