"""
Firmware identity lookup from a device-tree directory.

The firmware publishes its identity as device-tree properties, e.g.
/proc/device-tree/firmware/chromeos/hardware-id. Each property file holds a
NUL-terminated string.
"""

import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_ROOT = Path("/proc/device-tree/firmware/chromeos")

# Property naming the slot the main firmware booted from ("A", "B" or "R").
MAIN_FIRMWARE_KEY = "active-main-firmware"


class DeviceTreeIdentity:
    """Reads string properties below ``root``."""

    def __init__(self, root: Union[str, Path] = DEFAULT_IDENTITY_ROOT):
        self.root = Path(root)

    def read_string(self, key: str) -> Optional[str]:
        """Property value as text, or None when it does not exist or cannot be read."""
        path = self.root / key
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            logger.debug(f"Identity property {key} not present under {self.root}")
            return None
        except OSError as e:
            logger.warning(f"Cannot read identity property {path}: {e}")
            return None
        return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")

    def main_firmware_slot(self) -> str:
        """Single character naming the active main firmware, '?' if unknown."""
        value = self.read_string(MAIN_FIRMWARE_KEY)
        if not value:
            return "?"
        return value[0]
