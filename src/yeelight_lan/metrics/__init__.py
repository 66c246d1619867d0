"""Metrics module."""

from . import registry
from .registry import (
    record_command,
    record_command_latency,
    record_connection_error,
    record_decode_error,
    record_discovery,
    record_notification,
    start_metrics_server,
)

__all__ = [
    "record_command",
    "record_command_latency",
    "record_connection_error",
    "record_decode_error",
    "record_discovery",
    "record_notification",
    "registry",
    "start_metrics_server",
]
