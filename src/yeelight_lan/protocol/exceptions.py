"""Exception types for Yeelight protocol errors.

Errors raise exceptions instead of returning None. Every error raised by this
package derives from YeelightError so callers can catch them all at once.
"""

from __future__ import annotations

# Bytes kept from an offending frame for diagnostics
DATA_PREVIEW_LENGTH = 64


class YeelightError(Exception):
    """Base exception for all yeelight-lan errors."""


class CommandEncodeError(YeelightError):
    """Command cannot be serialized (non-JSON params, NaN, etc.).

    This is a programmer error and is raised before any I/O happens.

    Attributes:
        method: Method name of the command that failed to encode

    """

    def __init__(self, method: str, detail: str) -> None:
        self.method: str = method
        super().__init__(f"Cannot encode {method!r} command: {detail}")


class MalformedResponseError(YeelightError):
    """Bytes read from a device do not form the expected JSON message.

    Raised when a frame is not JSON, is not an object, lacks required fields,
    or echoes a request id other than the one sent.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_json", "id_mismatch")
        data_preview: First DATA_PREVIEW_LENGTH bytes of the frame
        address: Device address when known

    """

    def __init__(self, reason: str, data: bytes = b"", address: str | None = None) -> None:
        self.reason: str = reason
        self.data_preview: bytes = data[:DATA_PREVIEW_LENGTH] if data else b""
        self.address: str | None = address
        where = f"[{address}] " if address else ""
        super().__init__(f"{where}Malformed response: {reason}")


class FramingError(YeelightError):
    """TCP stream framing error.

    Raised by MessageFramer when the buffer outgrows MAX_FRAME_SIZE without
    a line terminator.

    Attributes:
        reason: Specific failure reason
        buffer_size: Size of buffer when error occurred

    """

    def __init__(self, reason: str, buffer_size: int = 0) -> None:
        self.reason: str = reason
        self.buffer_size: int = buffer_size
        super().__init__(f"Framing failed: {reason}")
