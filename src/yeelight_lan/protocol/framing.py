r"""Wire framing for the Yeelight LAN protocol.

Every message is one JSON object on its own line. Commands are written with an
explicit ``\r\n`` terminator; devices terminate their responses and
notifications the same way. MessageFramer splits a TCP byte stream back into
those per-message frames.
"""

from __future__ import annotations

import json
import math
from typing import Any

from yeelight_lan.const import CRLF
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.protocol.exceptions import CommandEncodeError, FramingError, MalformedResponseError
from yeelight_lan.protocol.messages import Command, Notification, Response, ResponseError
from yeelight_lan.protocol.methods import Method

logger = get_logger(__name__)

_LINE_FEED = b"\n"


def encode_command(command: Command) -> bytes:
    """Serialize a command to the exact bytes written to the device.

    Raises:
        CommandEncodeError: If a param is not JSON-serializable or not finite

    """
    try:
        body = json.dumps(command.to_wire(), separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CommandEncodeError(str(command.method), str(e)) from e
    return body.encode("utf-8") + CRLF


def _load_object(frame: bytes) -> dict[str, Any]:
    try:
        text = frame.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedResponseError("invalid_encoding", frame) from e
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError("invalid_json", frame) from e
    if not isinstance(payload, dict):
        raise MalformedResponseError("not_an_object", frame)
    return payload


def decode_response(frame: bytes) -> Response:
    """Decode one response frame.

    Trailing ``\r\n`` and surrounding whitespace are tolerated.

    Raises:
        MalformedResponseError: If the frame is not a well-formed response

    """
    payload = _load_object(frame)

    msg_id = payload.get("id")
    if isinstance(msg_id, bool) or not isinstance(msg_id, int):
        raise MalformedResponseError("missing_id", frame)

    result = payload.get("result")
    if result is not None and not isinstance(result, list):
        raise MalformedResponseError("invalid_result", frame)

    error: ResponseError | None = None
    raw_error = payload.get("error")
    if raw_error is not None:
        if not isinstance(raw_error, dict):
            raise MalformedResponseError("invalid_error", frame)
        code = raw_error.get("code", 0)
        if isinstance(code, bool) or not isinstance(code, int):
            raise MalformedResponseError("invalid_error", frame)
        error = ResponseError(code=code, message=str(raw_error.get("message", "")))

    return Response(id=msg_id, result=result, error=error)


def _render_param(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int) or (isinstance(value, float) and math.isfinite(value)):
        return str(value)
    raise TypeError(type(value).__name__)


def decode_notification(frame: bytes) -> Notification:
    """Decode one notification frame.

    Scalar param values are rendered as strings; nested values are rejected.

    Raises:
        MalformedResponseError: If the frame is not a well-formed notification

    """
    payload = _load_object(frame)

    method = payload.get("method")
    if not isinstance(method, str) or not method:
        raise MalformedResponseError("missing_method", frame)

    raw_params = payload.get("params")
    if not isinstance(raw_params, dict):
        raise MalformedResponseError("invalid_params", frame)

    try:
        params = {str(key): _render_param(value) for key, value in raw_params.items()}
    except TypeError as e:
        raise MalformedResponseError("invalid_params", frame) from e

    return Notification(method=Method(method), params=params)


class MessageFramer:
    r"""Extract complete message frames from a TCP byte stream.

    TCP reads may return a partial message, several messages, or exact
    boundaries. The framer buffers incoming bytes and cuts a frame at each
    line feed; the ``\r`` before it and any blank lines are dropped.

    Security: a buffer that grows past MAX_FRAME_SIZE without a line feed is
    discarded and FramingError is raised, so a misbehaving peer cannot grow
    it without bound.

    Example:
        framer = MessageFramer()
        assert framer.feed(b'{"id":1,"res') == []
        assert framer.feed(b'ult":["ok"]}\r\n') == [b'{"id":1,"result":["ok"]}']

    """

    MAX_FRAME_SIZE: int = 16 * 1024

    def __init__(self) -> None:
        """Initialize framer with empty buffer."""
        self.buffer: bytearray = bytearray()

    def feed(self, data: bytes) -> list[bytes]:
        """Add data to buffer and return list of complete frames.

        Raises:
            FramingError: If an unterminated frame exceeds MAX_FRAME_SIZE

        """
        self.buffer.extend(data)
        frames: list[bytes] = []
        while True:
            end = self.buffer.find(_LINE_FEED)
            if end < 0:
                break
            line = bytes(self.buffer[:end]).strip()
            del self.buffer[: end + 1]
            if line:
                frames.append(line)

        if len(self.buffer) > self.MAX_FRAME_SIZE:
            size = len(self.buffer)
            logger.warning(
                "Discarding %d buffered bytes without a line terminator (max %d)",
                size,
                self.MAX_FRAME_SIZE,
                extra={"buffer_size": size},
            )
            self.buffer = bytearray()
            raise FramingError("frame_too_large", buffer_size=size)

        return frames

    def flush(self) -> bytes | None:
        """Return the unterminated remainder (if any) and clear the buffer.

        Used at end-of-stream, when a peer closes without a final newline.
        """
        remainder = bytes(self.buffer).strip()
        self.buffer = bytearray()
        return remainder or None

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet returned as a frame."""
        return len(self.buffer)
