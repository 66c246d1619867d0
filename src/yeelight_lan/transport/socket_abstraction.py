"""Asyncio TCP socket abstraction with deadlines and instrumentation."""

from __future__ import annotations

import asyncio
import time
from types import TracebackType
from typing import Self, override

from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.metrics import registry
from yeelight_lan.protocol.messages import DeviceAddress
from yeelight_lan.transport.exceptions import (
    ConnectFailedError,
    ConnectionClosedError,
    TransportTimeoutError,
)

logger = get_logger(__name__)


class TCPConnection:
    """Async TCP connection with bounded connect/write/read.

    Every failure raises a TransportError subclass; nothing returns None.
    Usable as an async context manager, which guarantees close() on exit.
    """

    def __init__(
        self,
        address: DeviceAddress,
        connect_timeout: float = 3.0,
        io_timeout: float = 2.0,
        max_read_size: int = 4096,
    ) -> None:
        """
        Initialize TCP connection parameters.

        Args:
            address: Target device address
            connect_timeout: Connection timeout in seconds
            io_timeout: Default read/write timeout in seconds
            max_read_size: Maximum bytes to read in one operation
        """
        self.address = address
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.max_read_size = max_read_size
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self._connected = False

    @property
    def _label(self) -> str:
        return str(self.address)

    async def connect(self) -> None:
        """
        Establish TCP connection with timeout.

        Raises:
            TransportTimeoutError: Connection attempt exceeded connect_timeout
            ConnectFailedError: Connection refused or host unreachable
        """
        start_time = time.perf_counter()
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.address.host, self.address.port),
                timeout=self.connect_timeout,
            )
        except TimeoutError as e:
            registry.record_connection_error(self._label, TransportTimeoutError.kind)
            logger.warning(
                "Connection to %s timed out after %.1fms",
                self._label,
                (time.perf_counter() - start_time) * 1000,
                extra={"address": self._label, "timeout": self.connect_timeout},
            )
            raise TransportTimeoutError("connect", self.connect_timeout, self._label) from e
        except OSError as e:
            registry.record_connection_error(self._label, ConnectFailedError.kind)
            logger.warning(
                "Connection to %s failed: %s",
                self._label,
                e,
                extra={"address": self._label, "error": str(e)},
            )
            msg = f"could not connect: {e}"
            raise ConnectFailedError(msg, self._label) from e

        self._connected = True
        logger.debug(
            "Connected to %s in %.1fms",
            self._label,
            (time.perf_counter() - start_time) * 1000,
            extra={"address": self._label},
        )

    async def send(self, data: bytes) -> None:
        """
        Write data and wait for the transport buffer to drain.

        Raises:
            ConnectionClosedError: Not connected, or the peer reset the connection
            TransportTimeoutError: Drain exceeded io_timeout
        """
        if not self._connected or self.writer is None:
            raise ConnectionClosedError("cannot send: not connected", self._label)

        logger.debug("Sending %d bytes to %s", len(data), self._label, extra={"bytes": len(data)})
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.io_timeout)
        except TimeoutError as e:
            registry.record_connection_error(self._label, TransportTimeoutError.kind)
            raise TransportTimeoutError("write", self.io_timeout, self._label) from e
        except OSError as e:
            self._connected = False
            registry.record_connection_error(self._label, ConnectionClosedError.kind)
            msg = f"send failed: {e}"
            raise ConnectionClosedError(msg, self._label) from e

    async def recv(self, max_bytes: int | None = None, timeout: float | None = None) -> bytes:
        """
        Receive up to max_bytes with timeout.

        Args:
            max_bytes: Maximum bytes to read (default: self.max_read_size)
            timeout: Read deadline in seconds (default: self.io_timeout)

        Returns:
            Received bytes; ``b""`` once the peer has closed the stream

        Raises:
            ConnectionClosedError: Not connected, or the peer reset the connection
            TransportTimeoutError: Nothing arrived before the deadline
        """
        if not self._connected or self.reader is None:
            raise ConnectionClosedError("cannot receive: not connected", self._label)

        deadline = self.io_timeout if timeout is None else timeout
        try:
            data = await asyncio.wait_for(
                self.reader.read(max_bytes or self.max_read_size),
                timeout=deadline,
            )
        except TimeoutError as e:
            raise TransportTimeoutError("read", deadline, self._label) from e
        except OSError as e:
            self._connected = False
            registry.record_connection_error(self._label, ConnectionClosedError.kind)
            msg = f"receive failed: {e}"
            raise ConnectionClosedError(msg, self._label) from e

        if not data:
            logger.debug("Connection closed by %s", self._label, extra={"address": self._label})
            self._connected = False
        return data

    async def close(self) -> None:
        """Close the connection (best effort, never raises OSError)."""
        if self.writer is None:
            self._connected = False
            return
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(
                "Error closing connection to %s: %s",
                self._label,
                e,
                extra={"address": self._label, "error_type": type(e).__name__},
            )
        finally:
            self._connected = False
            self.writer = None
            self.reader = None

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        """Check if connection is active."""
        return self._connected

    @override
    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"TCPConnection({self._label}, {status})"
