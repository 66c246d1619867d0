"""Transport layer: TCP connections, command exchange, and notification stream."""

from yeelight_lan.transport.command_transport import CommandTransport, new_transport
from yeelight_lan.transport.exceptions import (
    ConnectFailedError,
    ConnectionClosedError,
    DeviceRejectedError,
    TransportError,
    TransportTimeoutError,
)
from yeelight_lan.transport.listener import NotificationListener
from yeelight_lan.transport.socket_abstraction import TCPConnection

__all__ = [
    "CommandTransport",
    "ConnectFailedError",
    "ConnectionClosedError",
    "DeviceRejectedError",
    "NotificationListener",
    "TCPConnection",
    "TransportError",
    "TransportTimeoutError",
    "new_transport",
]
