"""Exception types for transport-layer errors.

This module defines the exception hierarchy for connection, timeout and
device-side failures, extending the protocol exceptions. Every error carries
the device address so callers can log or react without extra bookkeeping.
"""

from __future__ import annotations

from yeelight_lan.protocol.exceptions import YeelightError


class TransportError(YeelightError):
    """The connection to a device could not be used.

    Attributes:
        reason: Specific failure reason
        address: Device address (``host:port``)

    """

    kind: str = "transport"

    def __init__(self, reason: str, address: str) -> None:
        self.reason: str = reason
        self.address: str = address
        super().__init__(f"[{address}] {reason}")


class ConnectFailedError(TransportError):
    """TCP connection (or UDP socket) could not be established.

    Raised when:
    - The device refused the connection
    - The host or network is unreachable
    - A local socket could not be created

    """

    kind = "connect_failed"


class TransportTimeoutError(TransportError):
    """A deadline elapsed while connecting, writing or reading.

    Distinct from protocol errors so callers can choose to retry.

    Attributes:
        phase: "connect", "write" or "read"
        timeout_seconds: Deadline that was exceeded

    """

    kind = "timeout"

    def __init__(self, phase: str, timeout_seconds: float, address: str) -> None:
        self.phase: str = phase
        self.timeout_seconds: float = timeout_seconds
        super().__init__(f"{phase} timed out after {timeout_seconds:.1f}s", address)


class ConnectionClosedError(TransportError):
    """Peer closed or reset the connection before a complete message arrived."""

    kind = "closed"


class DeviceRejectedError(YeelightError):
    """Device answered with an ``error`` object instead of a result.

    Attributes:
        code: Device error code
        message: Device error message
        address: Device address
        method: Method of the rejected command

    """

    def __init__(self, code: int, message: str, address: str, method: str = "") -> None:
        self.code: int = code
        self.message: str = message
        self.address: str = address
        self.method: str = method
        super().__init__(f"[{address}] device rejected {method or 'command'}: {message} (code {code})")
