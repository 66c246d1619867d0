"""Typed bulb operations built on top of CommandTransport.

The transport passes params through untouched; this layer is where
out-of-range values are clamped to what devices accept.
"""

from __future__ import annotations

import asyncio
from typing import Any, override

from yeelight_lan.const import YEELIGHT_DISCOVERY_TIMEOUT, YEELIGHT_LISTEN_POLL_INTERVAL
from yeelight_lan.discovery import discover
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.protocol.exceptions import MalformedResponseError
from yeelight_lan.protocol.messages import DeviceAddress
from yeelight_lan.protocol.methods import (
    ADJUST_BRIGHT,
    ADJUST_CT,
    GET_PROP,
    SET_BRIGHT,
    SET_CT_ABX,
    SET_HSV,
    SET_POWER,
    SET_RGB,
    TOGGLE,
)
from yeelight_lan.transport.command_transport import CommandTransport
from yeelight_lan.transport.listener import NotificationListener

logger = get_logger(__name__)

MIN_BRIGHTNESS = 1
MAX_BRIGHTNESS = 100
MIN_COLOR_TEMPERATURE = 1700
MAX_COLOR_TEMPERATURE = 6500
MAX_CHANNEL = 255
MAX_HUE = 359
MAX_SATURATION = 100
MAX_ADJUST_PERCENT = 100
MIN_ADJUST_DURATION_MS = 30


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


class YeelightBulb:
    """A single bulb reachable over the LAN.

    Every operation is one command exchange; state is never cached locally.
    """

    def __init__(self, transport: CommandTransport) -> None:
        self.transport = transport
        self.lp = f"{transport.address}:"

    @property
    def address(self) -> DeviceAddress:
        return self.transport.address

    async def turn_on(self) -> None:
        await self.transport.send(SET_POWER, "on")

    async def turn_off(self) -> None:
        await self.transport.send(SET_POWER, "off")

    async def toggle(self) -> None:
        await self.transport.send(TOGGLE)

    async def set_brightness(self, brightness: int) -> None:
        """Set brightness in percent (clamped to 1..100)."""
        await self.transport.send(SET_BRIGHT, _clamp(brightness, MIN_BRIGHTNESS, MAX_BRIGHTNESS))

    async def set_color_temperature(self, kelvin: int) -> None:
        """Set white color temperature (clamped to 1700..6500 K)."""
        value = _clamp(kelvin, MIN_COLOR_TEMPERATURE, MAX_COLOR_TEMPERATURE)
        if value != kelvin:
            logger.debug("%s color temperature %d clamped to %d", self.lp, kelvin, value)
        await self.transport.send(SET_CT_ABX, value)

    async def set_rgb(self, red: int, green: int, blue: int) -> None:
        """Set color from 8-bit channels, packed as ``r << 16 | g << 8 | b``."""
        r, g, b = (_clamp(channel, 0, MAX_CHANNEL) for channel in (red, green, blue))
        await self.transport.send(SET_RGB, (r << 16) | (g << 8) | b)

    async def set_hsv(self, hue: int, saturation: int) -> None:
        await self.transport.send(SET_HSV, _clamp(hue, 0, MAX_HUE), _clamp(saturation, 0, MAX_SATURATION))

    async def adjust_brightness(self, percentage: int, duration_ms: int = MIN_ADJUST_DURATION_MS) -> None:
        """Change brightness by a relative percentage over ``duration_ms`` (min 30)."""
        await self.transport.send(ADJUST_BRIGHT, *self._adjust_params(percentage, duration_ms))

    async def adjust_color_temperature(self, percentage: int, duration_ms: int = MIN_ADJUST_DURATION_MS) -> None:
        """Change color temperature by a relative percentage over ``duration_ms`` (min 30)."""
        await self.transport.send(ADJUST_CT, *self._adjust_params(percentage, duration_ms))

    @staticmethod
    def _adjust_params(percentage: int, duration_ms: int) -> tuple[int, int]:
        return _clamp(percentage, -MAX_ADJUST_PERCENT, MAX_ADJUST_PERCENT), max(duration_ms, MIN_ADJUST_DURATION_MS)

    async def is_power_on(self) -> bool:
        """Query the ``power`` property.

        Raises:
            MalformedResponseError: If the device returned an empty result

        """
        result = await self.transport.send(GET_PROP, "power")
        if not result:
            raise MalformedResponseError("invalid_result", address=str(self.address))
        return result[0] == "on"

    async def get_properties(self, *names: str) -> dict[str, Any]:
        """Query properties by name; values come back in request order.

        Raises:
            MalformedResponseError: If fewer values than names came back

        """
        result = await self.transport.send(GET_PROP, *names)
        if len(result) < len(names):
            raise MalformedResponseError("invalid_result", address=str(self.address))
        return dict(zip(names, result, strict=False))

    async def listen(
        self,
        cancel: asyncio.Event | None = None,
        buffer_size: int = 1,
        poll_interval: float = YEELIGHT_LISTEN_POLL_INTERVAL,
    ) -> NotificationListener:
        """Start streaming state-change notifications from this bulb."""
        return await self.transport.listen(cancel=cancel, buffer_size=buffer_size, poll_interval=poll_interval)

    @override
    def __str__(self) -> str:
        return str(self.address)

    @override
    def __repr__(self) -> str:
        return f"YeelightBulb({self.address})"


def connect_bulb(address: DeviceAddress | str, **kwargs: Any) -> YeelightBulb:
    """Create a bulb for a known address; no I/O happens until the first command."""
    return YeelightBulb(CommandTransport(address, **kwargs))


async def discover_bulb(timeout: float = YEELIGHT_DISCOVERY_TIMEOUT, **kwargs: Any) -> YeelightBulb:
    """Discover the first bulb on the network and return a handle to it."""
    address = await discover(timeout=timeout)
    return connect_bulb(address, **kwargs)
