"""Client engine for the Yeelight LAN control protocol.

Provides per-command request/response exchange, the long-lived notification
listener, and SSDP-style multicast discovery for smart bulbs on the local
network.
"""

__version__ = "0.3.0"

from yeelight_lan.devices.bulb import YeelightBulb, connect_bulb, discover_bulb
from yeelight_lan.discovery import DiscoveryError, DiscoveryReply, NoDeviceFoundError, discover, discover_reply
from yeelight_lan.protocol.exceptions import YeelightError
from yeelight_lan.protocol.messages import Command, DeviceAddress, Notification, Response, ResponseError
from yeelight_lan.protocol.methods import Method
from yeelight_lan.transport.command_transport import CommandTransport, new_transport
from yeelight_lan.transport.listener import NotificationListener

__all__ = [
    "Command",
    "CommandTransport",
    "DeviceAddress",
    "DiscoveryError",
    "DiscoveryReply",
    "Method",
    "Notification",
    "NoDeviceFoundError",
    "NotificationListener",
    "Response",
    "ResponseError",
    "YeelightBulb",
    "YeelightError",
    "__version__",
    "connect_bulb",
    "discover",
    "discover_bulb",
    "discover_reply",
    "new_transport",
]
