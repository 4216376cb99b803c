"""
Firmware update orchestrator.

Writes a main firmware image onto the "spi" device and an EC image onto the
"ec" device. Regions holding device-specific state (the VBNV record, VPD,
and any area flagged PRESERVE in the current FMAP) are carried over from the
flash into the new image before it is written.
"""

import errno
import logging
from pathlib import Path
from typing import Optional

from fwtool.core.devices import DeviceRegistry
from fwtool.core.errors import DeviceUnavailable, FlashError, UpdateError
from fwtool.fmap import FMAP_AREA_PRESERVE, locate_fmap

logger = logging.getLogger(__name__)

PRESERVED_SECTIONS = ("RW_NVRAM", "RO_VPD", "RW_VPD")


def merge_preserved(current: bytes, image: bytes) -> bytes:
    """Copy preserved regions of ``current`` into ``image``."""
    fmap = locate_fmap(current)
    if fmap is None:
        return image
    merged = bytearray(image)
    for area in fmap.areas:
        if area.name in PRESERVED_SECTIONS or area.flags & FMAP_AREA_PRESERVE:
            end = area.offset + area.size
            if end > len(merged):
                raise UpdateError(f"Preserved area {area.name} lies outside the new image")
            merged[area.offset:end] = current[area.offset:end]
            logger.debug(f"Preserving {area.name} @0x{area.offset:x}")
    return bytes(merged)


class ImageUpdater:
    """Applies firmware images through the run's device registry."""

    def __init__(self, devices: DeviceRegistry):
        self.devices = devices

    def _flash(self, device_name: str, image_path: str, force: bool) -> None:
        path = Path(image_path)
        try:
            image = path.read_bytes()
        except OSError as e:
            raise UpdateError(f"Cannot read {device_name} image {path}: {e}")

        device = self.devices.acquire(device_name)
        if len(image) != device.size:
            raise UpdateError(
                f"{device_name} image is {len(image)} bytes, flash is {device.size} bytes"
            )

        current = device.read(0, device.size)
        image = merge_preserved(current, image)
        if image == current and not force:
            logger.info(f"{device_name}: already up to date")
            return
        device.write(0, image)
        logger.info(f"{device_name}: wrote {len(image)} bytes from {path}")

    def apply(self, main_image: str, ec_image: str, force: bool) -> int:
        """
        Flash both images.

        Returns:
            0 on success, a negative errno when an image could not be applied.
        """
        status: Optional[int] = None
        for device_name, image_path in (("spi", main_image), ("ec", ec_image)):
            try:
                self._flash(device_name, image_path, force)
            except DeviceUnavailable as e:
                logger.error(str(e))
                status = -errno.ENODEV
            except (UpdateError, FlashError) as e:
                logger.error(str(e))
                status = -errno.EIO
            if status is not None:
                return status
        return 0
