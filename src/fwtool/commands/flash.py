"""
flash: read/write/dump the main (SPI) flash.
"""

from typing import Sequence

from fwtool.commands.common import acquire, dump_flash_layout, print_lines
from fwtool.core.commands import Leaf, group
from fwtool.core.context import CommandContext
from fwtool.core.status import Status

FIRMWARE_ID_SECTIONS = ("RO_FRID", "RW_FWID_A", "RW_FWID_B")


def cmd_flash_fmap(ctx: CommandContext, args: Sequence[str]) -> int:
    if args:
        print_lines(ctx, ["Usage: fwtool flash fmap"])
        return Status.INVALID_ARGUMENT

    spi = acquire(ctx, "spi")
    if spi is None:
        return Status.DEVICE_UNAVAILABLE

    if not dump_flash_layout(ctx, spi, FIRMWARE_ID_SECTIONS):
        return Status.IO_ERROR
    return Status.OK


FLASH = group(
    "flash", "Read/Write/Dump flash",
    Leaf("flash_fmap", "Dump FMAP information", cmd_flash_fmap),
)
