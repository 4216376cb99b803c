"""
vbnv / mark_boot: verified-boot non-volatile flag commands.

Every handler validates its arguments before acquiring the SPI device, so a
malformed command line never opens flash.
"""

from typing import Sequence

from fwtool.commands.common import print_error, print_lines
from fwtool.core.commands import Leaf, group
from fwtool.core.context import CommandContext
from fwtool.core.errors import (
    DeviceUnavailable,
    InvalidFlagValue,
    PartialStateTransition,
    ReadOnlyFlag,
    UnknownFlag,
    VbnvError,
    VbnvIoError,
)
from fwtool.core.parsing import parse_int
from fwtool.core.status import Status
from fwtool.vbnv.fields import usage_lines
from fwtool.vbnv.store import mark_boot_success


def _flag_usage(ctx: CommandContext, synopsis: str, writable: bool) -> None:
    print_lines(ctx, [
        f"Usage: fwtool vbnv {synopsis}",
        "where <flag> is one of the following:",
        *usage_lines(writable),
    ])


def cmd_vbnv_read(ctx: CommandContext, args: Sequence[str]) -> int:
    if len(args) != 1:
        _flag_usage(ctx, "read <flag>", writable=False)
        return Status.INVALID_ARGUMENT

    name = args[0]
    try:
        store = ctx.open_flag_store()
        value = store.get_flag(name)
    except DeviceUnavailable as e:
        print_error(ctx, str(e))
        return Status.DEVICE_UNAVAILABLE
    except UnknownFlag as e:
        print_error(ctx, str(e))
        return Status.INVALID_ARGUMENT
    except VbnvIoError as e:
        print_error(ctx, str(e))
        return Status.IO_ERROR

    ctx.echo(f"{name} = {value}")
    return Status.OK


def cmd_vbnv_write(ctx: CommandContext, args: Sequence[str]) -> int:
    if len(args) != 2:
        _flag_usage(ctx, "write <flag> <val>", writable=True)
        return Status.INVALID_ARGUMENT

    name = args[0]
    try:
        value = parse_int(args[1], label="flag value")
    except ValueError as e:
        print_error(ctx, str(e))
        return Status.INVALID_ARGUMENT

    try:
        store = ctx.open_flag_store()
        store.set_flag(name, value)
    except DeviceUnavailable as e:
        print_error(ctx, str(e))
        return Status.DEVICE_UNAVAILABLE
    except (UnknownFlag, ReadOnlyFlag, InvalidFlagValue) as e:
        print_error(ctx, str(e))
        return Status.INVALID_ARGUMENT
    except VbnvIoError as e:
        print_error(ctx, str(e))
        return Status.IO_ERROR
    return Status.OK


def cmd_mark_boot(ctx: CommandContext, args: Sequence[str]) -> int:
    if len(args) != 1 or args[0] != "success":
        if len(args) == 1:
            print_error(ctx, f"Invalid arg '{args[0]}'")
        print_lines(ctx, [
            "Usage: fwtool mark_boot <status>",
            "    where status can be:",
            "    success: This boot was successful.",
        ])
        return Status.INVALID_ARGUMENT

    try:
        mark_boot_success(ctx.open_flag_store())
    except DeviceUnavailable as e:
        print_error(ctx, str(e))
        return Status.DEVICE_UNAVAILABLE
    except PartialStateTransition as e:
        print_error(ctx, str(e))
        ctx.error("Boot state is partially updated; run 'fwtool mark_boot success' again.")
        return Status.IO_ERROR
    except VbnvIoError as e:
        print_error(ctx, str(e))
        return Status.IO_ERROR
    except VbnvError as e:
        print_error(ctx, str(e))
        return Status.INVALID_ARGUMENT
    return Status.OK


VBNV = group(
    "vbnv", "Vboot NvStorage",
    Leaf("vbnv_read", "Read flag from NvStorage", cmd_vbnv_read),
    Leaf("vbnv_write", "Write flag from NvStorage", cmd_vbnv_write),
)
MARK_BOOT = Leaf("mark_boot", "Mark boot result", cmd_mark_boot)
