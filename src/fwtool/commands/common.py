"""
Output and device helpers shared by leaf commands.
"""

from typing import Optional, Sequence

from fwtool.core.context import CommandContext
from fwtool.core.errors import DeviceUnavailable, FlashError, FmapError
from fwtool.core.interfaces import FlashDevice
from fwtool.fmap import find_fmap, format_fmap, read_section, section_text


def print_error(ctx: CommandContext, text: str) -> None:
    ctx.error(f"Error: {text}", style="red")


def print_lines(ctx: CommandContext, lines: Sequence[str]) -> None:
    """Usage text goes to the error console."""
    for line in lines:
        ctx.error(line)


def acquire(ctx: CommandContext, name: str) -> Optional[FlashDevice]:
    """Acquire ``name`` through the registry, reporting failure instead of raising."""
    try:
        return ctx.devices.acquire(name)
    except DeviceUnavailable as e:
        print_error(ctx, str(e))
        return None


def dump_fmap(ctx: CommandContext, device: FlashDevice) -> None:
    """
    Print the FMAP header and areas of ``device``; nothing if it has none.

    Raises:
        FlashError: If the device cannot be read
    """
    fmap = find_fmap(device)
    if fmap is None:
        return
    for line in format_fmap(fmap):
        ctx.echo(line)


def dump_section(ctx: CommandContext, device: FlashDevice, name: str) -> None:
    """
    Print ``[NAME]@offset={text}`` for one FMAP region; nothing if absent.

    Raises:
        FlashError: If the device cannot be read
        FmapError: If the region lies outside the device
    """
    found = read_section(device, name)
    if found is None:
        return
    content, offset = found
    ctx.echo(f"[{name}]@{offset:x}={{{section_text(content)}}}")


def dump_flash_layout(ctx: CommandContext, device: FlashDevice, sections: Sequence[str]) -> bool:
    """FMAP followed by the given sections. Returns False on read failure."""
    try:
        dump_fmap(ctx, device)
        for name in sections:
            dump_section(ctx, device, name)
    except (FlashError, FmapError) as e:
        print_error(ctx, str(e))
        return False
    return True
