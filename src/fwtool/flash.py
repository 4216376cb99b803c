"""
Image-file flash backend.

Maps device names ("spi", "ec") to firmware image files and exposes them as
flash devices with positional read/write. Useful against dumped images,
emulator backing files, or MTD character devices that support seek.

Example:
    backend = ImageFileBackend({"spi": Path("bios.bin")})
    device = backend.open("spi")
    header = device.read(0, 64)
    device.close()
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Dict, Mapping, Optional, Union

from fwtool.core.errors import FlashError

logger = logging.getLogger(__name__)


class ImageFileDevice:
    """Flash device backed by a file."""

    def __init__(self, name: str, path: Path, writable: bool = True):
        self.name = name
        self.path = path
        self.writable = writable
        self._fh: Optional[BinaryIO] = None
        self._size = 0

    def open(self) -> None:
        """
        Open the backing file.

        A writable device whose file only permits reading is opened
        read-only; writes then raise FlashError.

        Raises:
            FlashError: If the file cannot be opened
        """
        try:
            if self.writable:
                try:
                    self._fh = open(self.path, "r+b")
                except PermissionError:
                    logger.debug(f"{self.name}: {self.path} is not writable, opening read-only")
                    self.writable = False
            if self._fh is None:
                self._fh = open(self.path, "rb")
            self._size = os.fstat(self._fh.fileno()).st_size
        except OSError as e:
            raise FlashError(f"Cannot open {self.name} image {self.path}: {e}")
        logger.debug(f"{self.name}: opened {self.path} ({self._size} bytes)")

    @property
    def size(self) -> int:
        return self._size

    def _require_open(self) -> BinaryIO:
        if self._fh is None:
            raise FlashError(f"{self.name}: device not open")
        return self._fh

    def _check_range(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > self._size:
            raise FlashError(
                f"{self.name}: access 0x{offset:x}+0x{length:x} outside device (0x{self._size:x})"
            )

    def read(self, offset: int, size: int) -> bytes:
        fh = self._require_open()
        self._check_range(offset, size)
        try:
            fh.seek(offset)
            data = fh.read(size)
        except OSError as e:
            raise FlashError(f"{self.name}: read failed at 0x{offset:x}: {e}")
        if len(data) != size:
            raise FlashError(
                f"{self.name}: short read at 0x{offset:x}: {len(data)}/{size} bytes"
            )
        return data

    def write(self, offset: int, data: bytes) -> None:
        fh = self._require_open()
        if not self.writable:
            raise FlashError(f"{self.name}: device opened read-only")
        self._check_range(offset, len(data))
        try:
            fh.seek(offset)
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        except OSError as e:
            raise FlashError(f"{self.name}: write failed at 0x{offset:x}: {e}")
        logger.debug(f"{self.name}: wrote {len(data)} bytes at 0x{offset:x}")

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.debug(f"{self.name}: closed {self.path}")


class ImageFileBackend:
    """Opens flash devices from a name -> image path mapping."""

    def __init__(self, images: Mapping[str, Union[str, Path]], writable: bool = True):
        self.images: Dict[str, Path] = {name: Path(p) for name, p in images.items()}
        self.writable = writable

    def open(self, name: str) -> ImageFileDevice:
        path = self.images.get(name)
        if path is None:
            raise FlashError(f"No image configured for device '{name}'")
        device = ImageFileDevice(name, path, writable=self.writable)
        device.open()
        return device
