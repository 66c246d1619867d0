"""Unit tests for the typed bulb layer (clamping and result handling)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tests.helpers.expectations import expect_async_exception
from yeelight_lan.devices.bulb import YeelightBulb, connect_bulb, discover_bulb
from yeelight_lan.protocol.exceptions import MalformedResponseError
from yeelight_lan.protocol.messages import DeviceAddress
from yeelight_lan.transport.command_transport import CommandTransport


@pytest.fixture
def transport():
    """CommandTransport with send() mocked out."""
    mock = MagicMock(spec=CommandTransport)
    mock.address = DeviceAddress("192.168.1.50")
    mock.send = AsyncMock(return_value=["ok"])
    mock.listen = AsyncMock()
    return mock


@pytest.fixture
def bulb(transport):
    return YeelightBulb(transport)


class TestPower:
    async def test_turn_on(self, bulb, transport):
        await bulb.turn_on()

        transport.send.assert_awaited_once_with("set_power", "on")

    async def test_turn_off(self, bulb, transport):
        await bulb.turn_off()

        transport.send.assert_awaited_once_with("set_power", "off")

    async def test_toggle(self, bulb, transport):
        await bulb.toggle()

        transport.send.assert_awaited_once_with("toggle")

    @pytest.mark.parametrize(("result", "expected"), [(["on"], True), (["off"], False)])
    async def test_is_power_on(self, bulb, transport, result, expected):
        transport.send.return_value = result

        assert await bulb.is_power_on() is expected
        transport.send.assert_awaited_once_with("get_prop", "power")

    async def test_is_power_on_empty_result(self, bulb, transport):
        transport.send.return_value = []

        err = await expect_async_exception(bulb.is_power_on(), MalformedResponseError)

        assert err.reason == "invalid_result"


class TestClamping:
    @pytest.mark.parametrize(("value", "sent"), [(0, 1), (1, 1), (50, 50), (100, 100), (150, 100), (-3, 1)])
    async def test_brightness(self, bulb, transport, value, sent):
        await bulb.set_brightness(value)

        transport.send.assert_awaited_once_with("set_bright", sent)

    @pytest.mark.parametrize(("value", "sent"), [(1000, 1700), (1700, 1700), (4000, 4000), (9000, 6500)])
    async def test_color_temperature(self, bulb, transport, value, sent):
        await bulb.set_color_temperature(value)

        transport.send.assert_awaited_once_with("set_ct_abx", sent)

    async def test_rgb_packing(self, bulb, transport):
        await bulb.set_rgb(255, 128, 1)

        transport.send.assert_awaited_once_with("set_rgb", 0xFF8001)

    async def test_rgb_channels_clamped(self, bulb, transport):
        await bulb.set_rgb(300, -1, 0)

        transport.send.assert_awaited_once_with("set_rgb", 0xFF0000)

    async def test_hsv(self, bulb, transport):
        await bulb.set_hsv(400, -5)

        transport.send.assert_awaited_once_with("set_hsv", 359, 0)

    @pytest.mark.parametrize(
        ("percentage", "duration", "sent"),
        [(50, 500, (50, 500)), (150, 10, (100, 30)), (-150, 30, (-100, 30))],
    )
    async def test_adjust_brightness(self, bulb, transport, percentage, duration, sent):
        await bulb.adjust_brightness(percentage, duration)

        transport.send.assert_awaited_once_with("adjust_bright", *sent)

    async def test_adjust_color_temperature(self, bulb, transport):
        await bulb.adjust_color_temperature(-200, 0)

        transport.send.assert_awaited_once_with("adjust_ct", -100, 30)


class TestProperties:
    async def test_get_properties(self, bulb, transport):
        transport.send.return_value = ["on", "80", ""]

        props = await bulb.get_properties("power", "bright", "name")

        assert props == {"power": "on", "bright": "80", "name": ""}
        transport.send.assert_awaited_once_with("get_prop", "power", "bright", "name")

    async def test_get_properties_short_result(self, bulb, transport):
        transport.send.return_value = ["on"]

        _ = await expect_async_exception(bulb.get_properties("power", "bright"), MalformedResponseError)


class TestConstruction:
    def test_str(self, bulb):
        assert str(bulb) == "192.168.1.50:55443"
        assert repr(bulb) == "YeelightBulb(192.168.1.50:55443)"

    async def test_listen_delegates(self, bulb, transport):
        cancel = asyncio.Event()

        await bulb.listen(cancel, poll_interval=0.25)

        transport.listen.assert_awaited_once_with(cancel=cancel, buffer_size=1, poll_interval=0.25)

    def test_connect_bulb(self):
        bulb = connect_bulb("192.168.1.51:1234", read_timeout=1.0)

        assert bulb.address == DeviceAddress("192.168.1.51", 1234)
        assert bulb.transport.read_timeout == 1.0

    async def test_discover_bulb(self):
        with patch("yeelight_lan.devices.bulb.discover", AsyncMock(return_value=DeviceAddress("10.0.0.4"))) as mock:
            bulb = await discover_bulb(timeout=0.5)

        mock.assert_awaited_once_with(timeout=0.5)
        assert bulb.address == DeviceAddress("10.0.0.4")
