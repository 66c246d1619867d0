"""Named device addresses loaded from a YAML file.

Example file:

    devices:
      desk: 192.168.1.50
      hallway: "192.168.1.51:55443"
"""

from __future__ import annotations

from pathlib import Path

import yaml

from yeelight_lan.const import YEELIGHT_PORT
from yeelight_lan.logging_abstraction import get_logger
from yeelight_lan.protocol.exceptions import YeelightError
from yeelight_lan.protocol.messages import DeviceAddress

logger = get_logger(__name__)


class ConfigError(YeelightError):
    """Device config file exists but cannot be used."""


def load_device_config(config_file: Path | str, default_port: int = YEELIGHT_PORT) -> dict[str, DeviceAddress]:
    """Parse a YAML device file and return ``{name: DeviceAddress}``.

    A missing file yields an empty mapping. Entries without a port get ``default_port``.

    Raises:
        ConfigError: If the file is not valid YAML or an entry is not an address

    """
    path = Path(config_file).expanduser()
    if not path.exists():
        logger.debug("Device config file not found: %s", path)
        return {}

    logger.debug("Parsing device config file: %s", path)
    try:
        with path.open() as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        msg = f"cannot read {path}: {e}"
        raise ConfigError(msg) from e

    if not config_data:
        return {}
    if not isinstance(config_data, dict) or not isinstance(config_data.get("devices", {}), dict):
        msg = f"{path}: expected a 'devices' mapping"
        raise ConfigError(msg)

    devices: dict[str, DeviceAddress] = {}
    for name, raw in (config_data.get("devices") or {}).items():
        try:
            devices[str(name)] = DeviceAddress.parse(str(raw), default_port=default_port)
        except ValueError as e:
            msg = f"{path}: device {name!r} has an invalid address: {raw!r}"
            raise ConfigError(msg) from e

    logger.info("Loaded %d device(s) from %s", len(devices), path, extra={"path": str(path)})
    return devices
