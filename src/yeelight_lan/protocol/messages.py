"""Message and address types exchanged with Yeelight devices.

These are plain dataclasses built fresh per exchange; nothing here is
persisted or shared between connections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, override

from yeelight_lan.const import DEFAULT_PORT
from yeelight_lan.protocol.methods import Method

_MAX_PORT = 65535


@dataclass(frozen=True)
class DeviceAddress:
    """Host and TCP port of a controllable device.

    Attributes:
        host: IP address or hostname (IPv6 literals without brackets)
        port: TCP control port, 55443 unless the device says otherwise

    """

    host: str
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not self.host:
            msg = "device address has an empty host"
            raise ValueError(msg)
        if not 0 < self.port <= _MAX_PORT:
            msg = f"device port out of range: {self.port}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, address: str, default_port: int = DEFAULT_PORT) -> DeviceAddress:
        """Parse ``host``, ``host:port`` or ``[v6-host]:port``.

        A bare IPv6 literal (more than one colon, no brackets) is treated as a
        host without a port.

        Raises:
            ValueError: If the host is empty or the port is not a valid number

        """
        text = address.strip()
        if not text:
            msg = "empty device address"
            raise ValueError(msg)

        port_text: str | None
        if text.startswith("["):
            host, sep, rest = text[1:].partition("]")
            if not sep or (rest and not rest.startswith(":")):
                msg = f"invalid bracketed address: {address!r}"
                raise ValueError(msg)
            port_text = rest[1:] if rest else None
        elif text.count(":") == 1:
            host, port_text = text.split(":")
        else:
            host, port_text = text, None

        if port_text is None:
            return cls(host=host, port=default_port)
        if not port_text.isdigit():
            msg = f"invalid port in address {address!r}"
            raise ValueError(msg)
        return cls(host=host, port=int(port_text))

    @override
    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Command:
    """A single request: id chosen by the sender, method, ordered params."""

    id: int
    method: Method | str
    params: tuple[Any, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready mapping written to the device."""
        return {"id": self.id, "method": str(self.method), "params": list(self.params)}


@dataclass(frozen=True)
class ResponseError:
    """Error object a device returns instead of a result."""

    code: int
    message: str


@dataclass(frozen=True)
class Response:
    """Reply to one Command, correlated by ``id``."""

    id: int
    result: list[Any] | None = None
    error: ResponseError | None = None

    @property
    def ok(self) -> bool:
        """True when the device did not report an error."""
        return self.error is None


@dataclass(frozen=True)
class Notification:
    """Unsolicited state-change event; carries no request id."""

    method: Method
    params: dict[str, str] = field(default_factory=dict)
