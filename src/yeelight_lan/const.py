import os

from yeelight_lan import __version__

__all__ = [
    "CRLF",
    "DEFAULT_PORT",
    "DISCOVERY_MESSAGE",
    "SSDP_HOST",
    "SSDP_PORT",
    "YEELIGHT_CONNECT_TIMEOUT",
    "YEELIGHT_DEBUG",
    "YEELIGHT_DISCOVERY_TIMEOUT",
    "YEELIGHT_LISTEN_POLL_INTERVAL",
    "YEELIGHT_LOCATION_SCHEME",
    "YEELIGHT_LOG_FORMAT",
    "YEELIGHT_LOG_HUMAN_OUTPUT",
    "YEELIGHT_LOG_JSON_FILE",
    "YEELIGHT_METRICS_PORT",
    "YEELIGHT_PERF_THRESHOLD_MS",
    "YEELIGHT_PERF_TRACKING",
    "YEELIGHT_PORT",
    "YEELIGHT_READ_TIMEOUT",
    "YEELIGHT_VERSION",
    "YES_ANSWER",
    "runtime_settings",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
YEELIGHT_VERSION: str = __version__


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Wire protocol
CRLF: bytes = b"\r\n"
DEFAULT_PORT: int = 55443
SSDP_HOST: str = "239.255.255.250"
SSDP_PORT: int = 1982
YEELIGHT_LOCATION_SCHEME: str = "yeelight://"
DISCOVERY_MESSAGE: bytes = (
    b"M-SEARCH * HTTP/1.1\r\n"
    b" HOST:239.255.255.250:1982\r\n"
    b' MAN:"ssdp:discover"\r\n'
    b" ST:wifi_bulb\r\n"
)

YEELIGHT_PORT: int = _env_int("YEELIGHT_PORT", DEFAULT_PORT)

# Timeouts (seconds)
YEELIGHT_CONNECT_TIMEOUT: float = _env_float("YEELIGHT_CONNECT_TIMEOUT", 3.0)
YEELIGHT_READ_TIMEOUT: float = _env_float("YEELIGHT_READ_TIMEOUT", 2.0)
YEELIGHT_LISTEN_POLL_INTERVAL: float = _env_float("YEELIGHT_LISTEN_POLL_INTERVAL", 1.0)
YEELIGHT_DISCOVERY_TIMEOUT: float = _env_float("YEELIGHT_DISCOVERY_TIMEOUT", 3.0)

YEELIGHT_DEBUG: bool = os.environ.get("YEELIGHT_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
YEELIGHT_LOG_FORMAT: str = os.environ.get("YEELIGHT_LOG_FORMAT", "human")  # "json", "human", or "both"
YEELIGHT_LOG_JSON_FILE: str | None = os.environ.get("YEELIGHT_LOG_JSON_FILE") or None
YEELIGHT_LOG_HUMAN_OUTPUT: str = os.environ.get("YEELIGHT_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path

# Performance Instrumentation
YEELIGHT_PERF_TRACKING: bool = os.environ.get("YEELIGHT_PERF_TRACKING", "true").casefold() in YES_ANSWER
YEELIGHT_PERF_THRESHOLD_MS: int = _env_int("YEELIGHT_PERF_THRESHOLD_MS", 500)

YEELIGHT_METRICS_PORT: int = _env_int("YEELIGHT_METRICS_PORT", 9400)


def runtime_settings() -> dict[str, float]:
    """Re-read the port, timeout and poll variables (after a ``.env`` file has been loaded)."""
    return {
        "port": _env_int("YEELIGHT_PORT", DEFAULT_PORT),
        "connect_timeout": _env_float("YEELIGHT_CONNECT_TIMEOUT", 3.0),
        "read_timeout": _env_float("YEELIGHT_READ_TIMEOUT", 2.0),
        "discovery_timeout": _env_float("YEELIGHT_DISCOVERY_TIMEOUT", 3.0),
        "poll_interval": _env_float("YEELIGHT_LISTEN_POLL_INTERVAL", 1.0),
    }
