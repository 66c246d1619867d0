"""Multicast discovery of Yeelight devices on the local network.

A single M-SEARCH datagram is sent to 239.255.255.250:1982 and the first reply
is parsed. Replies look like an HTTP response:

    HTTP/1.1 200 OK
    Cache-Control: max-age=3600
    Location: yeelight://192.168.1.239:55443
    id: 0x000000000015243f
    model: color
    fw_ver: 18
    support: get_prop set_default set_power toggle set_bright ...
    power: on
    bright: 100

Only the first responder is used; the rest of the network is not waited for.
"""

from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass, field

from yeelight_lan.const import (
    DISCOVERY_MESSAGE,
    SSDP_HOST,
    SSDP_PORT,
    YEELIGHT_DISCOVERY_TIMEOUT,
    YEELIGHT_LOCATION_SCHEME,
)
from yeelight_lan.instrumentation import timed_async
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.metrics import registry
from yeelight_lan.protocol.exceptions import DATA_PREVIEW_LENGTH, YeelightError
from yeelight_lan.protocol.messages import DeviceAddress
from yeelight_lan.protocol.methods import Method
from yeelight_lan.transport.exceptions import ConnectFailedError

logger = get_logger(__name__)

_MULTICAST_TTL = 2


class DiscoveryError(YeelightError):
    """Base class for discovery failures."""


class NoDeviceFoundError(DiscoveryError):
    """No device answered the search before the deadline.

    Attributes:
        timeout_seconds: How long the search waited

    """

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds: float = timeout_seconds
        super().__init__(f"no device answered within {timeout_seconds:.1f}s")


class MalformedDiscoveryReplyError(DiscoveryError):
    """A device answered, but the reply carries no usable address.

    Attributes:
        reason: Specific failure reason
        data_preview: First bytes of the reply

    """

    def __init__(self, reason: str, data: bytes = b"") -> None:
        self.reason: str = reason
        self.data_preview: bytes = data[:DATA_PREVIEW_LENGTH]
        super().__init__(f"malformed discovery reply: {reason}")


@dataclass(frozen=True)
class DiscoveryReply:
    """Parsed discovery answer from one device."""

    address: DeviceAddress
    status: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def device_id(self) -> str | None:
        return self.headers.get("id")

    @property
    def model(self) -> str | None:
        return self.headers.get("model")

    @property
    def firmware_version(self) -> str | None:
        return self.headers.get("fw_ver")

    @property
    def supported_methods(self) -> tuple[Method, ...]:
        """Methods the device advertises in its ``support`` header."""
        return tuple(Method(name) for name in self.headers.get("support", "").split())

    @property
    def power(self) -> str | None:
        return self.headers.get("power")

    @property
    def brightness(self) -> int | None:
        raw = self.headers.get("bright")
        if raw is None or not raw.strip().isdigit():
            return None
        return int(raw)

    @property
    def name(self) -> str | None:
        return self.headers.get("name") or None


def parse_discovery_reply(payload: bytes | str) -> DiscoveryReply:
    """Parse a discovery datagram into a DiscoveryReply.

    Header names are matched case-insensitively and the
    ``yeelight://`` scheme is stripped from ``Location``.

    Raises:
        MalformedDiscoveryReplyError: No HTTP status line, or no usable Location

    """
    raw = payload.encode("utf-8") if isinstance(payload, str) else payload
    text = raw.decode("utf-8", "replace")
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines or not lines[0].upper().startswith("HTTP/"):
        raise MalformedDiscoveryReplyError("missing_status_line", raw)

    headers: dict[str, str] = {}
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        headers[name.strip().lower()] = value.strip()

    location = headers.get("location", "")
    if location.lower().startswith(YEELIGHT_LOCATION_SCHEME):
        location = location[len(YEELIGHT_LOCATION_SCHEME) :]
    elif "://" in location:
        raise MalformedDiscoveryReplyError("invalid_location", raw)
    location = location.rstrip("/")
    if not location:
        raise MalformedDiscoveryReplyError("missing_location", raw)
    try:
        address = DeviceAddress.parse(location)
    except ValueError as e:
        raise MalformedDiscoveryReplyError("invalid_location", raw) from e

    return DiscoveryReply(address=address, status=lines[0], headers=headers)


class _DiscoveryProtocol(asyncio.DatagramProtocol):
    """Resolves a future with the first datagram received."""

    def __init__(self, reply: asyncio.Future[tuple[bytes, tuple[str, int]]]) -> None:
        self.reply = reply

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if not self.reply.done():
            self.reply.set_result((data, addr))

    def error_received(self, exc: Exception) -> None:
        # ICMP errors for the multicast send are not fatal; keep waiting
        logger.debug("Discovery socket error: %s", exc, extra={"error": str(exc)})


@timed_async("discovery")
async def discover_reply(
    timeout: float = YEELIGHT_DISCOVERY_TIMEOUT,
    target: tuple[str, int] = (SSDP_HOST, SSDP_PORT),
) -> DiscoveryReply:
    """Search the network and return the first device's full reply.

    Args:
        timeout: Seconds to wait for the first answer
        target: Where to send the search (the multicast group by default)

    Raises:
        ConnectFailedError: The UDP socket could not be created or used
        NoDeviceFoundError: Nothing answered before the deadline
        MalformedDiscoveryReplyError: The first answer has no usable address

    """
    loop = asyncio.get_running_loop()
    reply: asyncio.Future[tuple[bytes, tuple[str, int]]] = loop.create_future()
    try:
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _DiscoveryProtocol(reply),
            family=socket.AF_INET,
            local_addr=("0.0.0.0", 0),
        )
    except OSError as e:
        registry.record_discovery("error")
        msg = f"could not open discovery socket: {e}"
        raise ConnectFailedError(msg, f"{target[0]}:{target[1]}") from e

    try:
        sock = transport.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, _MULTICAST_TTL)
        logger.debug("Sending discovery search to %s:%d", target[0], target[1])
        transport.sendto(DISCOVERY_MESSAGE, target)
        try:
            data, addr = await asyncio.wait_for(reply, timeout=timeout)
        except TimeoutError as e:
            registry.record_discovery("not_found")
            logger.info("No device answered discovery within %.1fs", timeout, extra={"timeout": timeout})
            raise NoDeviceFoundError(timeout) from e
    except OSError as e:
        registry.record_discovery("error")
        msg = f"discovery send failed: {e}"
        raise ConnectFailedError(msg, f"{target[0]}:{target[1]}") from e
    finally:
        transport.close()

    try:
        parsed = parse_discovery_reply(data)
    except MalformedDiscoveryReplyError as e:
        registry.record_discovery("malformed")
        logger.warning(
            "Discovery reply from %s is unusable: %s",
            addr[0],
            e.reason,
            extra={"sender": addr[0], "reason": e.reason},
        )
        raise

    registry.record_discovery("found")
    logger.info(
        "Discovered %s at %s",
        parsed.model or "device",
        parsed.address,
        extra={"address": str(parsed.address), "device_id": parsed.device_id, "model": parsed.model},
    )
    return parsed


async def discover(
    timeout: float = YEELIGHT_DISCOVERY_TIMEOUT,
    target: tuple[str, int] = (SSDP_HOST, SSDP_PORT),
) -> DeviceAddress:
    """Return the address of the first device that answers discovery.

    Same error contract as discover_reply().
    """
    reply = await discover_reply(timeout=timeout, target=target)
    return reply.address
