"""
ec: embedded controller commands.

The EC image carries its own FMAP with RO_FRID / RW_FWID version strings.
"""

from typing import Sequence

from fwtool.commands.common import acquire, dump_flash_layout, print_error, print_lines
from fwtool.core.commands import Leaf, group
from fwtool.core.context import CommandContext
from fwtool.core.errors import FlashError, FmapError
from fwtool.core.status import Status
from fwtool.fmap import read_section, section_text

EC_ID_SECTIONS = ("RO_FRID", "RW_FWID")


def _no_args(ctx: CommandContext, args: Sequence[str], word: str) -> bool:
    if args:
        print_lines(ctx, [f"Usage: fwtool ec {word}"])
        return False
    return True


def cmd_ec_info(ctx: CommandContext, args: Sequence[str]) -> int:
    if not _no_args(ctx, args, "info"):
        return Status.INVALID_ARGUMENT

    ec = acquire(ctx, "ec")
    if ec is None:
        return Status.DEVICE_UNAVAILABLE

    active = ctx.identity.read_string("active-ec-firmware")
    ctx.echo(f"EC: {active if active is not None else '(null)'}")
    ctx.echo(f"Flash size: 0x{ec.size:x}")
    return Status.OK


def cmd_ec_fmap(ctx: CommandContext, args: Sequence[str]) -> int:
    if not _no_args(ctx, args, "fmap"):
        return Status.INVALID_ARGUMENT

    ec = acquire(ctx, "ec")
    if ec is None:
        return Status.DEVICE_UNAVAILABLE

    if not dump_flash_layout(ctx, ec, EC_ID_SECTIONS):
        return Status.IO_ERROR
    return Status.OK


def cmd_ec_version(ctx: CommandContext, args: Sequence[str]) -> int:
    if not _no_args(ctx, args, "version"):
        return Status.INVALID_ARGUMENT

    ec = acquire(ctx, "ec")
    if ec is None:
        return Status.DEVICE_UNAVAILABLE

    for label, section in (("RO", "RO_FRID"), ("RW", "RW_FWID")):
        try:
            found = read_section(ec, section)
        except (FlashError, FmapError) as e:
            print_error(ctx, str(e))
            return Status.IO_ERROR
        version = section_text(found[0]) if found else "(none)"
        ctx.echo(f"{label} version: {version}")
    return Status.OK


EC = group(
    "ec", "Send commands directly to the EC",
    Leaf("ec_info", "Show EC identity and flash size", cmd_ec_info),
    Leaf("ec_fmap", "Dump EC FMAP information", cmd_ec_fmap),
    Leaf("ec_version", "Show EC RO/RW versions", cmd_ec_version),
)
