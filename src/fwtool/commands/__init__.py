"""
fwtool command tree.

    fwtool ec info|fmap|version
    fwtool flash fmap
    fwtool update <main-image> <ec-image>
    fwtool vboot
    fwtool vbnv read <flag>
    fwtool vbnv write <flag> <value>
    fwtool mark_boot success
"""

from fwtool.core.commands import Group

from .ec import EC
from .firmware import UPDATE, VBOOT
from .flash import FLASH
from .vbnv import MARK_BOOT, VBNV


def build_command_tree() -> Group:
    """Root command table, in display order."""
    return Group(
        name="",
        help="Firmware debug tool",
        commands=(EC, FLASH, UPDATE, VBOOT, VBNV, MARK_BOOT),
    )


__all__ = ["build_command_tree"]
