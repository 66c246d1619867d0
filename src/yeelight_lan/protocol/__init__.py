"""Yeelight protocol package - message types, method names, and framing.

Pure encode/decode code; nothing in this package performs I/O.
"""

from yeelight_lan.protocol.exceptions import (
    CommandEncodeError,
    FramingError,
    MalformedResponseError,
    YeelightError,
)
from yeelight_lan.protocol.framing import (
    MessageFramer,
    decode_notification,
    decode_response,
    encode_command,
)
from yeelight_lan.protocol.messages import (
    Command,
    DeviceAddress,
    Notification,
    Response,
    ResponseError,
)
from yeelight_lan.protocol.methods import (
    ADJUST_BRIGHT,
    ADJUST_CT,
    GET_PROP,
    KNOWN_METHODS,
    PROPS,
    SET_BRIGHT,
    SET_CT_ABX,
    SET_HSV,
    SET_POWER,
    SET_RGB,
    TOGGLE,
    Method,
)

__all__ = [
    "ADJUST_BRIGHT",
    "ADJUST_CT",
    "GET_PROP",
    "KNOWN_METHODS",
    "PROPS",
    "SET_BRIGHT",
    "SET_CT_ABX",
    "SET_HSV",
    "SET_POWER",
    "SET_RGB",
    "TOGGLE",
    "Command",
    "CommandEncodeError",
    "DeviceAddress",
    "FramingError",
    "MalformedResponseError",
    "MessageFramer",
    "Method",
    "Notification",
    "Response",
    "ResponseError",
    "YeelightError",
    "decode_notification",
    "decode_response",
    "encode_command",
]
