"""Typed device handles."""

from yeelight_lan.devices.bulb import YeelightBulb, connect_bulb, discover_bulb

__all__ = ["YeelightBulb", "connect_bulb", "discover_bulb"]
