"""Command line entry point: ``yeelight-lan``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import dotenv
import uvloop

from yeelight_lan.config import ConfigError, load_device_config
from yeelight_lan.const import YEELIGHT_VERSION, YES_ANSWER, runtime_settings
from yeelight_lan.correlation import correlation_context
from yeelight_lan.devices.bulb import YeelightBulb, connect_bulb
from yeelight_lan.discovery import NoDeviceFoundError, discover_reply
from yeelight_lan.logging_abstraction import get_logger, set_global_level
from yeelight_lan.metrics import start_metrics_server
from yeelight_lan.protocol.exceptions import YeelightError
from yeelight_lan.protocol.messages import DeviceAddress

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_DEVICE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yeelight-lan", description="Control Yeelight bulbs on the local network")
    parser.add_argument("--version", action="version", version=f"%(prog)s {YEELIGHT_VERSION}")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    _ = parser.add_argument("--env", help="Path to an environment file", default=None, type=Path)
    _ = parser.add_argument("--config", help="Path to a YAML device file", default=None, type=Path)
    _ = parser.add_argument("--metrics-port", help="Expose Prometheus metrics on this port", default=None, type=int)

    target = parser.add_mutually_exclusive_group()
    _ = target.add_argument("--host", help="Device address as HOST[:PORT]")
    _ = target.add_argument("--device", help="Device name from the config file")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("discover", help="Find the first device on the network")
    commands.add_parser("on", help="Turn the bulb on")
    commands.add_parser("off", help="Turn the bulb off")
    commands.add_parser("toggle", help="Toggle power")

    brightness = commands.add_parser("brightness", help="Set brightness (1-100)")
    brightness.add_argument("value", type=int)

    ct = commands.add_parser("ct", help="Set color temperature in kelvin (1700-6500)")
    ct.add_argument("kelvin", type=int)

    rgb = commands.add_parser("rgb", help="Set RGB color (0-255 per channel)")
    rgb.add_argument("red", type=int)
    rgb.add_argument("green", type=int)
    rgb.add_argument("blue", type=int)

    hsv = commands.add_parser("hsv", help="Set hue (0-359) and saturation (0-100)")
    hsv.add_argument("hue", type=int)
    hsv.add_argument("saturation", type=int)

    get = commands.add_parser("get", help="Read properties")
    get.add_argument("props", nargs="+")

    send = commands.add_parser("send", help="Send a raw method with JSON params")
    send.add_argument("method")
    send.add_argument("params", nargs="*", help="Each param is parsed as JSON, falling back to a plain string")

    listen = commands.add_parser("listen", help="Print notifications as they arrive")
    listen.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")

    return parser


def _load_env(env_file: Path) -> None:
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return
    if dotenv.load_dotenv(env_path, override=True):
        logger.info("Environment variables loaded", extra={"source": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)

    if args.env:
        _load_env(args.env)

    if args.debug or os.environ.get("YEELIGHT_DEBUG", "0").casefold() in YES_ANSWER:
        set_global_level(logging.DEBUG)
        logger.debug("Debug logging enabled")

    return args


def parse_param(raw: str) -> Any:
    """Decode a CLI param as JSON; anything that is not JSON stays a string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _emit(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload) + "\n")
    sys.stdout.flush()


async def _resolve_bulb(args: argparse.Namespace, settings: dict[str, float]) -> YeelightBulb:
    timeouts = {"connect_timeout": settings["connect_timeout"], "read_timeout": settings["read_timeout"]}
    port = int(settings["port"])
    if args.host:
        try:
            address = DeviceAddress.parse(args.host, default_port=port)
        except ValueError as e:
            msg = f"invalid --host {args.host!r}: {e}"
            raise ConfigError(msg) from e
        return connect_bulb(address, **timeouts)
    if args.device:
        devices = load_device_config(args.config, default_port=port) if args.config else {}
        if args.device not in devices:
            msg = f"unknown device {args.device!r}"
            raise ConfigError(msg)
        return connect_bulb(devices[args.device], **timeouts)
    reply = await discover_reply(timeout=settings["discovery_timeout"])
    return connect_bulb(reply.address, **timeouts)


async def _listen(bulb: YeelightBulb, duration: float | None, poll_interval: float) -> None:
    cancel = asyncio.Event()
    if duration is not None:
        asyncio.get_running_loop().call_later(duration, cancel.set)
    listener = await bulb.listen(cancel=cancel, poll_interval=poll_interval)
    try:
        async for notification in listener:
            _emit({"address": str(bulb), "method": str(notification.method), "params": notification.params})
    finally:
        await listener.stop()
    if listener.error is not None:
        raise listener.error


async def run_command(args: argparse.Namespace) -> None:
    """Execute one parsed command, writing its JSON result to stdout."""
    settings = runtime_settings()

    if args.command == "discover":
        reply = await discover_reply(timeout=settings["discovery_timeout"])
        _emit(
            {
                "address": str(reply.address),
                "id": reply.device_id,
                "model": reply.model,
                "fw_ver": reply.firmware_version,
                "power": reply.power,
                "bright": reply.brightness,
                "name": reply.name,
                "support": [str(method) for method in reply.supported_methods],
            },
        )
        return

    bulb = await _resolve_bulb(args, settings)
    match args.command:
        case "on":
            await bulb.turn_on()
        case "off":
            await bulb.turn_off()
        case "toggle":
            await bulb.toggle()
        case "brightness":
            await bulb.set_brightness(args.value)
        case "ct":
            await bulb.set_color_temperature(args.kelvin)
        case "rgb":
            await bulb.set_rgb(args.red, args.green, args.blue)
        case "hsv":
            await bulb.set_hsv(args.hue, args.saturation)
        case "get":
            _emit({"address": str(bulb), "properties": await bulb.get_properties(*args.props)})
            return
        case "send":
            result = await bulb.transport.send(args.method, *(parse_param(p) for p in args.params))
            _emit({"address": str(bulb), "result": result})
            return
        case "listen":
            await _listen(bulb, args.duration, settings["poll_interval"])
            return
    _emit({"address": str(bulb), "ok": True})


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the yeelight-lan CLI."""
    args = parse_cli(argv)

    if args.metrics_port is not None:
        start_metrics_server(args.metrics_port)

    with correlation_context():
        try:
            uvloop.run(run_command(args))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
            return EXIT_OK
        except NoDeviceFoundError as e:
            _emit({"ok": False, "error": {"type": type(e).__name__, "message": str(e)}})
            return EXIT_NO_DEVICE
        except YeelightError as e:
            logger.debug("Command failed: %s", e, extra={"command": args.command})
            _emit({"ok": False, "error": {"type": type(e).__name__, "message": str(e)}})
            return EXIT_ERROR
    return EXIT_OK
