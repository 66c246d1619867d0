"""Prometheus metrics registry for device communication."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

yeelight_command_total: Final = Counter(  # type: ignore[assignment]
    "yeelight_command_total",
    "Total command exchanges by outcome",
    ["address", "method", "outcome"],
)

yeelight_command_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "yeelight_command_latency_seconds",
    "Command round-trip latency (connect, write, read) in seconds",
    ["address"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

yeelight_notification_total: Final = Counter(  # type: ignore[assignment]
    "yeelight_notification_total",
    "Total notifications received",
    ["address", "method"],
)

yeelight_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "yeelight_decode_errors_total",
    "Total frames that could not be decoded",
    ["address", "reason"],
)

yeelight_connection_errors_total: Final = Counter(  # type: ignore[assignment]
    "yeelight_connection_errors_total",
    "Total transport failures by kind",
    ["address", "kind"],
)

yeelight_listener_active: Final = Gauge(  # type: ignore[assignment]
    "yeelight_listener_active",
    "Number of running notification listeners",
    ["address"],
)

yeelight_discovery_total: Final = Counter(  # type: ignore[assignment]
    "yeelight_discovery_total",
    "Total discovery probes by outcome",
    ["outcome"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> bool:
    """Start Prometheus HTTP metrics server (idempotent).

    Returns:
        True if this call started the server, False if it was already running

    """
    with _server_lock:
        if _server_state["started"]:
            return False
        start_http_server(port)  # type: ignore[no-untyped-call]
        _server_state["started"] = True
        return True


def record_command(address: str, method: str, outcome: str) -> None:
    """Record a finished command exchange."""
    yeelight_command_total.labels(address=address, method=method, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_command_latency(address: str, latency_seconds: float) -> None:
    """Record command round-trip latency."""
    yeelight_command_latency_seconds.labels(address=address).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_notification(address: str, method: str) -> None:
    """Record a received notification."""
    yeelight_notification_total.labels(address=address, method=method).inc()  # type: ignore[no-untyped-call]


def record_decode_error(address: str, reason: str) -> None:
    """Record a frame that failed to decode."""
    yeelight_decode_errors_total.labels(address=address, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connection_error(address: str, kind: str) -> None:
    """Record a transport failure (connect_failed, timeout, closed)."""
    yeelight_connection_errors_total.labels(address=address, kind=kind).inc()  # type: ignore[no-untyped-call]


def record_listener_started(address: str) -> None:
    """Record a listener going live."""
    yeelight_listener_active.labels(address=address).inc()  # type: ignore[no-untyped-call]


def record_listener_stopped(address: str) -> None:
    """Record a listener shutting down."""
    yeelight_listener_active.labels(address=address).dec()  # type: ignore[no-untyped-call]


def record_discovery(outcome: str) -> None:
    """Record a discovery probe outcome (found, not_found, malformed, error)."""
    yeelight_discovery_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]
