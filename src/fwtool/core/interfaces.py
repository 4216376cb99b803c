"""
Collaborator interfaces consumed by the command layer.

Concrete implementations live in fwtool.flash, fwtool.identity and
fwtool.update; tests substitute fakes that satisfy the same protocols.
"""

from typing import Optional, Protocol


class FlashDevice(Protocol):
    """An open connection to one flash-like device."""

    name: str

    @property
    def size(self) -> int:
        ...

    def read(self, offset: int, size: int) -> bytes:
        ...

    def write(self, offset: int, data: bytes) -> None:
        ...

    def close(self) -> None:
        ...


class FlashBackend(Protocol):
    """Opens named flash devices ("spi", "ec")."""

    def open(self, name: str) -> FlashDevice:
        ...


class IdentitySource(Protocol):
    """Device-tree style key/value lookup for firmware identity fields."""

    def read_string(self, key: str) -> Optional[str]:
        ...

    def main_firmware_slot(self) -> str:
        ...


class Updater(Protocol):
    """Firmware update orchestrator."""

    def apply(self, main_image: str, ec_image: str, force: bool) -> int:
        ...
