"""
Device handle cache.

A DeviceRegistry owns every flash handle opened during one run. Handles are
opened on first use, reused afterwards, and closed exactly once when the
registry is released:

    with DeviceRegistry(backend) as devices:
        spi = devices.acquire("spi")
        ...
    # every acquired handle is closed here
"""

import logging
from typing import Dict, List

from fwtool.core.errors import DeviceUnavailable, FlashError
from fwtool.core.interfaces import FlashBackend, FlashDevice

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Memoizing owner of open flash device handles."""

    def __init__(self, backend: FlashBackend):
        self.backend = backend
        self._handles: Dict[str, FlashDevice] = {}

    @property
    def opened(self) -> List[str]:
        """Names of devices currently open, in acquisition order."""
        return list(self._handles)

    def acquire(self, name: str) -> FlashDevice:
        """
        Return the handle for ``name``, opening it on first use.

        Raises:
            DeviceUnavailable: If the backend cannot open the device.
        """
        handle = self._handles.get(name)
        if handle is not None:
            return handle

        try:
            handle = self.backend.open(name)
        except (FlashError, OSError) as e:
            logger.debug(f"Opening {name} failed: {e}")
            raise DeviceUnavailable(name, str(e)) from e

        logger.debug(f"Opened device {name}")
        self._handles[name] = handle
        return handle

    def release_all(self) -> None:
        """Close every acquired handle. Safe to call repeatedly."""
        while self._handles:
            name, handle = self._handles.popitem()
            try:
                handle.close()
                logger.debug(f"Closed device {name}")
            except (FlashError, OSError) as e:
                logger.warning(f"Closing {name} failed: {e}")

    def __enter__(self) -> "DeviceRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()
