"""Fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from tests.helpers.fake_device import FakeDevice


@pytest.fixture
async def fake_device() -> AsyncGenerator[FakeDevice]:
    """Running fake device (RESPOND mode; tests switch modes as needed)."""
    device = FakeDevice()
    await device.start()
    try:
        yield device
    finally:
        await device.stop()
