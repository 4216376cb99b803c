"""
update / vboot: whole-firmware commands.
"""

import logging
from typing import Sequence

from fwtool.commands.common import print_lines
from fwtool.core.commands import Leaf
from fwtool.core.context import CommandContext
from fwtool.core.status import Status

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = (
    ("HWID", "hardware-id"),
    ("Version", "firmware-version"),
    ("RO Version", "readonly-firmware-version"),
    ("FW Type", "firmware-type"),
    ("EC", "active-ec-firmware"),
)


def cmd_update(ctx: CommandContext, args: Sequence[str]) -> int:
    """
    Flash both firmware images in force mode.

    Always returns Status.NOT_FOUND once the orchestrator returns; its own
    status is only logged.
    """
    if len(args) != 2:
        print_lines(ctx, ["Usage: fwtool update <main-image> <ec-image>"])
        return Status.INVALID_ARGUMENT

    main_image, ec_image = args
    ctx.echo(f"Updating using images main:{main_image} and ec:{ec_image} ...")
    result = ctx.updater.apply(main_image, ec_image, force=True)
    logger.info(f"Update orchestrator returned {result}")
    ctx.echo("Done.")
    return Status.NOT_FOUND


def cmd_vboot(ctx: CommandContext, args: Sequence[str]) -> int:
    for label, key in IDENTITY_FIELDS:
        value = ctx.identity.read_string(key)
        ctx.echo(f"{label}: {value if value is not None else '(null)'}")
    ctx.echo(f"FW partition: {ctx.identity.main_firmware_slot()}")
    return Status.OK


UPDATE = Leaf("update", "Update the firmwares", cmd_update)
VBOOT = Leaf("vboot", "dump VBoot information", cmd_vboot)
