"""
fwtool configuration.

Configuration is a YAML file:

    devices:
      spi: /var/lib/fwtool/bios.bin
      ec: /var/lib/fwtool/ec.bin
    identity:
      root: /proc/device-tree/firmware/chromeos
    vbnv:
      section: RW_NVRAM

Environment variables FWTOOL_SPI_IMAGE, FWTOOL_EC_IMAGE and
FWTOOL_IDENTITY_ROOT override the matching file values.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # pip install pyyaml

from fwtool.core.errors import ConfigError
from fwtool.identity import DEFAULT_IDENTITY_ROOT

logger = logging.getLogger(__name__)

DEVICE_ENV_VARS = {
    "spi": "FWTOOL_SPI_IMAGE",
    "ec": "FWTOOL_EC_IMAGE",
}


@dataclass
class FwtoolConfig:
    """Resolved configuration for one run."""
    devices: Dict[str, Path] = field(default_factory=dict)
    identity_root: Path = DEFAULT_IDENTITY_ROOT
    nvram_section: str = "RW_NVRAM"
    source: Optional[Path] = None


def config_search_paths() -> List[Path]:
    """Return the ordered list of paths checked for the config file.

    - If FWTOOL_CONFIG_FILE is set, only that single path is considered.
    - Otherwise ${XDG_CONFIG_HOME:-~/.config}/fwtool/config.yml, then
      /etc/fwtool/config.yml.
    """
    env_file = os.environ.get("FWTOOL_CONFIG_FILE")
    if env_file:
        return [Path(env_file).expanduser()]

    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    user_cfg = (Path(xdg_home) if xdg_home else Path.home() / ".config") / "fwtool" / "config.yml"
    return [user_cfg, Path("/etc/fwtool/config.yml")]


def _section(data: Dict[str, Any], key: str, source: Path) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{source}: '{key}' must be a mapping")
    return value


def parse_config(data: Any, source: Path) -> FwtoolConfig:
    """Build a FwtoolConfig from parsed YAML."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: top level must be a mapping")

    cfg = FwtoolConfig(source=source)
    for name, path in _section(data, "devices", source).items():
        if not isinstance(path, str):
            raise ConfigError(f"{source}: devices.{name} must be a path")
        cfg.devices[str(name)] = Path(path).expanduser()

    identity = _section(data, "identity", source)
    if "root" in identity:
        cfg.identity_root = Path(str(identity["root"])).expanduser()

    vbnv = _section(data, "vbnv", source)
    if "section" in vbnv:
        cfg.nvram_section = str(vbnv["section"])
    return cfg


def load_config(path: Optional[Path] = None) -> FwtoolConfig:
    """
    Load configuration from ``path`` or the first existing search path.

    An explicit path must exist; search paths that do not exist are skipped.
    Environment overrides are applied last.

    Raises:
        ConfigError: If the file cannot be read or is malformed.
    """
    candidates = [path] if path is not None else config_search_paths()
    cfg = FwtoolConfig()
    for candidate in candidates:
        if path is None and not candidate.is_file():
            continue
        try:
            data = yaml.safe_load(candidate.read_text())
        except OSError as e:
            raise ConfigError(f"Cannot read config {candidate}: {e}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {candidate}: {e}")
        cfg = parse_config(data, candidate)
        logger.debug(f"Loaded config from {candidate}")
        break

    for name, var in DEVICE_ENV_VARS.items():
        value = os.environ.get(var)
        if value:
            cfg.devices[name] = Path(value).expanduser()
    identity_root = os.environ.get("FWTOOL_IDENTITY_ROOT")
    if identity_root:
        cfg.identity_root = Path(identity_root).expanduser()
    return cfg
