"""Long-lived notification stream from a single device.

A device pushes ``{"method": "props", "params": {...}}`` frames whenever its
state changes. NotificationListener keeps one connection open, reads those
frames on a background task and hands them to the consumer through an async
iterator.

Backpressure: notifications pass through a bounded asyncio.Queue (capacity 1
by default). When it is full the reader task blocks, so a consumer that stops
iterating stalls the reader; it never drops notifications. Devices have no
flow control, so a consumer that must not stall the reader should raise
``buffer_size``.
"""

from __future__ import annotations

import asyncio
import contextlib
from types import TracebackType
from typing import Self, override

from yeelight_lan.const import YEELIGHT_CONNECT_TIMEOUT, YEELIGHT_LISTEN_POLL_INTERVAL
from yeelight_lan.correlation import correlation_context
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.metrics import registry
from yeelight_lan.protocol.exceptions import FramingError, MalformedResponseError
from yeelight_lan.protocol.framing import MessageFramer, decode_notification
from yeelight_lan.protocol.messages import DeviceAddress, Notification
from yeelight_lan.transport.exceptions import TransportError, TransportTimeoutError
from yeelight_lan.transport.socket_abstraction import TCPConnection

logger = get_logger(__name__)

ENDED_CANCELLED = "cancelled"
ENDED_CLOSED = "closed"
ENDED_ERROR = "error"


class NotificationListener:
    """Streams Notifications from one device until cancelled or disconnected.

    Usage:
        >>> async with NotificationListener(address) as listener:
        ...     async for notification in listener:
        ...         print(notification.params)

    The cancellation signal is an asyncio.Event, checked once per read
    iteration; reads are bounded by ``poll_interval`` so the check happens at
    least that often. ``stop()`` sets the event and waits for the reader to
    close the connection.

    Attributes:
        address: Device address
        ended_by: None while running, then "cancelled", "closed" or "error"
        error: TransportError that ended the stream, if any

    """

    def __init__(
        self,
        address: DeviceAddress | str,
        cancel: asyncio.Event | None = None,
        connect_timeout: float = YEELIGHT_CONNECT_TIMEOUT,
        poll_interval: float = YEELIGHT_LISTEN_POLL_INTERVAL,
        buffer_size: int = 1,
    ) -> None:
        """Initialize the listener (no I/O until start()).

        Args:
            address: DeviceAddress or ``host[:port]`` string
            cancel: External cancellation signal (one is created if omitted)
            connect_timeout: Connection attempt deadline in seconds
            poll_interval: Per-read deadline; bounds cancellation latency
            buffer_size: Queue capacity between reader and consumer (>= 1)

        """
        if buffer_size < 1:
            msg = "buffer_size must be at least 1"
            raise ValueError(msg)
        self.address = address if isinstance(address, DeviceAddress) else DeviceAddress.parse(address)
        self.poll_interval = poll_interval
        self._cancel = cancel or asyncio.Event()
        self._conn = TCPConnection(self.address, connect_timeout=connect_timeout, io_timeout=poll_interval)
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=buffer_size)
        self._done = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.ended_by: str | None = None
        self.error: TransportError | None = None

    @property
    def running(self) -> bool:
        """True while the reader task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        """True once the cancellation signal has fired."""
        return self._cancel.is_set()

    async def start(self) -> None:
        """Open the connection and spawn the reader task.

        Raises:
            ConnectFailedError: Connection could not be established
            TransportTimeoutError: Connection attempt exceeded connect_timeout
            RuntimeError: If the listener was already started

        """
        if self._task is not None:
            msg = "listener already started"
            raise RuntimeError(msg)
        await self._conn.connect()
        registry.record_listener_started(str(self.address))
        logger.info("Listening for notifications from %s", self.address, extra={"address": str(self.address)})
        self._task = asyncio.create_task(self._run(), name=f"yeelight-listener-{self.address}")

    def cancel(self) -> None:
        """Fire the cancellation signal without waiting."""
        self._cancel.set()

    async def stop(self) -> None:
        """Fire the cancellation signal and wait until the connection is closed."""
        self._cancel.set()
        if self._task is None:
            return
        # Unblocks a reader parked on a full queue or a pending read
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def wait_closed(self) -> None:
        """Wait for the reader to finish, without cancelling it."""
        await self._done.wait()

    async def _run(self) -> None:
        label = str(self.address)
        framer = MessageFramer()
        with correlation_context():
            try:
                while not self._cancel.is_set():
                    try:
                        data = await self._conn.recv(timeout=self.poll_interval)
                    except TransportTimeoutError:
                        continue
                    if not data:
                        leftover = framer.flush()
                        notification = self._decode(leftover) if leftover is not None else None
                        if notification is not None:
                            await self._publish(notification)
                        self.ended_by = ENDED_CLOSED
                        break
                    try:
                        frames = framer.feed(data)
                    except FramingError as e:
                        registry.record_decode_error(label, e.reason)
                        continue
                    for frame in frames:
                        notification = self._decode(frame)
                        if notification is not None and not await self._publish(notification):
                            break
            except asyncio.CancelledError:
                self.ended_by = ENDED_CANCELLED
                raise
            except TransportError as e:
                self.ended_by = ENDED_ERROR
                self.error = e
                logger.warning("Notification stream from %s lost: %s", label, e, extra={"address": label})
            finally:
                if self.ended_by is None:
                    self.ended_by = ENDED_CANCELLED
                await self._conn.close()
                registry.record_listener_stopped(label)
                self._done.set()
                logger.info(
                    "Stopped listening to %s (%s)",
                    label,
                    self.ended_by,
                    extra={"address": label, "ended_by": self.ended_by},
                )

    async def _publish(self, notification: Notification) -> bool:
        """Hand a notification to the consumer, blocking while the queue is full.

        Returns False if the cancellation signal fired first.
        """
        if not self._queue.full():
            self._queue.put_nowait(notification)
            return True
        putter = asyncio.ensure_future(self._queue.put(notification))
        canceller = asyncio.ensure_future(self._cancel.wait())
        try:
            await asyncio.wait({putter, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            canceller.cancel()
            if not putter.done():
                putter.cancel()
        return putter.done() and not putter.cancelled()

    def _decode(self, frame: bytes) -> Notification | None:
        label = str(self.address)
        try:
            notification = decode_notification(frame)
        except MalformedResponseError as e:
            registry.record_decode_error(label, e.reason)
            logger.debug(
                "Skipping undecodable frame from %s: %s",
                label,
                e.reason,
                extra={"address": label, "preview": e.data_preview},
            )
            return None
        registry.record_notification(label, notification.method)
        return notification

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> Notification:
        """Return the next notification, or stop once cancelled or the reader is done.

        A notification already taken off the queue when the cancellation
        signal fires is still returned; iteration stops on the following call.
        """
        while True:
            if self._cancel.is_set():
                raise StopAsyncIteration
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._done.is_set():
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._queue.get())
            waiters = {
                getter,
                asyncio.ensure_future(self._done.wait()),
                asyncio.ensure_future(self._cancel.wait()),
            }
            try:
                finished, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    if waiter is not getter or not getter.done():
                        waiter.cancel()
            if getter in finished:
                return getter.result()

    async def __aenter__(self) -> Self:
        if self._task is None:
            await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    @override
    def __repr__(self) -> str:
        state = "running" if self.running else (self.ended_by or "idle")
        return f"NotificationListener({self.address}, {state})"
