"""Per-command request/response exchange with a single device.

CommandTransport opens a fresh TCP connection for every command, writes one
framed request, reads exactly one framed response and closes the connection
before returning. Concurrent callers are serialized so only one exchange is
ever in flight against a device.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, override

from yeelight_lan.const import YEELIGHT_CONNECT_TIMEOUT, YEELIGHT_LISTEN_POLL_INTERVAL, YEELIGHT_READ_TIMEOUT
from yeelight_lan.correlation import correlation_context
from yeelight_lan.instrumentation import timed_async
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.metrics import registry
from yeelight_lan.protocol.exceptions import FramingError, MalformedResponseError
from yeelight_lan.protocol.framing import MessageFramer, decode_response, encode_command
from yeelight_lan.protocol.messages import Command, DeviceAddress, Response
from yeelight_lan.protocol.methods import Method
from yeelight_lan.transport.exceptions import (
    ConnectionClosedError,
    DeviceRejectedError,
    TransportError,
    TransportTimeoutError,
)
from yeelight_lan.transport.socket_abstraction import TCPConnection

if TYPE_CHECKING:
    from yeelight_lan.transport.listener import NotificationListener

logger = get_logger(__name__)

ConnectionFactory = Callable[[DeviceAddress, float, float], TCPConnection]


def _default_connection_factory(address: DeviceAddress, connect_timeout: float, io_timeout: float) -> TCPConnection:
    return TCPConnection(address, connect_timeout=connect_timeout, io_timeout=io_timeout)


class CommandTransport:
    """Executes command exchanges against one device address.

    **Concurrency**: `_lock` (asyncio.Lock) is held for the whole
    connect -> write -> read -> close sequence of one exchange, so commands
    from different tasks reach the device one at a time, in lock
    acquisition order.

    **Request ids**: drawn from a per-transport counter. Only one request is
    ever outstanding on a freshly opened connection, so the id just has to
    match the echo on that connection.

    Usage:
        >>> transport = CommandTransport("192.168.1.50")
        >>> await transport.send(SET_POWER, "on", "smooth", 500)
        ['ok']

    Attributes:
        address: Device address (read-only after construction)
        connect_timeout: Connection attempt deadline in seconds
        read_timeout: Deadline for the response (and the request write)

    """

    def __init__(
        self,
        address: DeviceAddress | str,
        connect_timeout: float = YEELIGHT_CONNECT_TIMEOUT,
        read_timeout: float = YEELIGHT_READ_TIMEOUT,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        """Initialize CommandTransport.

        Args:
            address: DeviceAddress or ``host[:port]`` string (port defaults to 55443)
            connect_timeout: Connection attempt deadline in seconds
            read_timeout: Response deadline in seconds
            connection_factory: Builds the per-command connection (tests inject fakes)

        """
        self._address = address if isinstance(address, DeviceAddress) else DeviceAddress.parse(address)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._connection_factory = connection_factory or _default_connection_factory
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)

    @property
    def address(self) -> DeviceAddress:
        """Device address this transport talks to."""
        return self._address

    @property
    def busy(self) -> bool:
        """True while an exchange holds the lock."""
        return self._lock.locked()

    def next_request_id(self) -> int:
        """Return the next request identifier."""
        return next(self._ids)

    async def send(self, method: Method | str, *params: Any) -> list[Any]:
        """Send a command and return the device's ``result`` list.

        Params are written in the given order without interpretation.

        Raises:
            ConnectFailedError: Connection could not be established
            TransportTimeoutError: Connect, write or read deadline exceeded
            ConnectionClosedError: Peer closed before a full response arrived
            MalformedResponseError: Response is not valid JSON or echoes another id
            DeviceRejectedError: Device returned an error object
            CommandEncodeError: Params are not JSON-serializable

        """
        response = await self.exchange(method, *params)
        return list(response.result or [])

    @timed_async("command_exchange")
    async def exchange(self, method: Method | str, *params: Any) -> Response:
        """Send a command and return the full decoded Response.

        Same error contract as send().
        """
        label = str(self._address)
        async with self._lock:
            command = Command(id=self.next_request_id(), method=method, params=tuple(params))
            payload = encode_command(command)
            with correlation_context():
                start_time = time.perf_counter()
                try:
                    response = await self._round_trip(command, payload)
                except TransportError as e:
                    registry.record_command(label, str(method), e.kind)
                    raise
                except MalformedResponseError as e:
                    registry.record_command(label, str(method), "malformed")
                    registry.record_decode_error(label, e.reason)
                    raise
                finally:
                    registry.record_command_latency(label, time.perf_counter() - start_time)

                if response.error is not None:
                    registry.record_command(label, str(method), "rejected")
                    logger.warning(
                        "%s rejected %s: %s (code %d)",
                        label,
                        method,
                        response.error.message,
                        response.error.code,
                        extra={"address": label, "method": str(method), "request_id": command.id},
                    )
                    raise DeviceRejectedError(response.error.code, response.error.message, label, str(method))

                registry.record_command(label, str(method), "ok")
                return response

    async def _round_trip(self, command: Command, payload: bytes) -> Response:
        label = str(self._address)
        conn = self._connection_factory(self._address, self.connect_timeout, self.read_timeout)
        logger.debug(
            "→ %s %s%s",
            label,
            command.method,
            list(command.params),
            extra={"address": label, "request_id": command.id},
        )
        try:
            await conn.connect()
            await conn.send(payload)
            frame = await self._read_frame(conn)
        finally:
            await conn.close()

        try:
            response = decode_response(frame)
        except MalformedResponseError as e:
            raise MalformedResponseError(e.reason, frame, label) from e

        if response.id != command.id:
            logger.warning(
                "%s answered request %d with id %d",
                label,
                command.id,
                response.id,
                extra={"address": label, "request_id": command.id, "response_id": response.id},
            )
            raise MalformedResponseError("id_mismatch", frame, label)

        logger.debug("← %s %s", label, frame.decode("utf-8", "replace"), extra={"request_id": command.id})
        return response

    async def _read_frame(self, conn: TCPConnection) -> bytes:
        """Read until one complete frame arrives or the read deadline passes."""
        label = str(self._address)
        framer = MessageFramer()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.read_timeout
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TransportTimeoutError("read", self.read_timeout, label)
            data = await conn.recv(timeout=remaining)
            if not data:
                leftover = framer.flush()
                if leftover is not None:
                    return leftover
                raise ConnectionClosedError("connection closed before a response arrived", label)
            try:
                frames = framer.feed(data)
            except FramingError as e:
                raise MalformedResponseError(e.reason, data, label) from e
            if frames:
                return frames[0]

    async def listen(
        self,
        cancel: asyncio.Event | None = None,
        buffer_size: int = 1,
        poll_interval: float = YEELIGHT_LISTEN_POLL_INTERVAL,
    ) -> NotificationListener:
        """Start a NotificationListener on a separate connection to this device.

        Connection errors surface here, before any notification is read.
        """
        from yeelight_lan.transport.listener import NotificationListener

        listener = NotificationListener(
            self._address,
            cancel=cancel,
            connect_timeout=self.connect_timeout,
            poll_interval=poll_interval,
            buffer_size=buffer_size,
        )
        await listener.start()
        return listener

    @override
    def __str__(self) -> str:
        return str(self._address)

    @override
    def __repr__(self) -> str:
        return f"CommandTransport({self._address})"


def new_transport(address: DeviceAddress | str, **kwargs: Any) -> CommandTransport:
    """Create a CommandTransport for ``address`` (``host[:port]`` or DeviceAddress)."""
    return CommandTransport(address, **kwargs)
