"""Method names understood by Yeelight devices.

Method is an open string type: the constants below cover what this package
uses, and any other string can be passed to CommandTransport.send unchanged.
"""

from __future__ import annotations

from typing import override


class Method(str):
    """Protocol method name sent in the ``method`` field of a frame."""

    __slots__ = ()

    @override
    def __repr__(self) -> str:
        return f"Method({str.__repr__(self)})"


SET_CT_ABX = Method("set_ct_abx")
SET_RGB = Method("set_rgb")
SET_HSV = Method("set_hsv")
SET_BRIGHT = Method("set_bright")
SET_POWER = Method("set_power")
TOGGLE = Method("toggle")
GET_PROP = Method("get_prop")
PROPS = Method("props")  # notification method for property changes
ADJUST_BRIGHT = Method("adjust_bright")
ADJUST_CT = Method("adjust_ct")

KNOWN_METHODS: frozenset[Method] = frozenset(
    {
        SET_CT_ABX,
        SET_RGB,
        SET_HSV,
        SET_BRIGHT,
        SET_POWER,
        TOGGLE,
        GET_PROP,
        PROPS,
        ADJUST_BRIGHT,
        ADJUST_CT,
    },
)
