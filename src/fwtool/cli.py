"""
fwtool CLI

Command-line utility to exercise firmware interfaces: flash layout, firmware
identity, firmware update and verified-boot NV flags.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler

from fwtool.commands import build_command_tree
from fwtool.config import FwtoolConfig, load_config
from fwtool.core.context import CommandContext
from fwtool.core.devices import DeviceRegistry
from fwtool.core.dispatch import dispatch
from fwtool.core.errors import ConfigError
from fwtool.core.interfaces import FlashBackend
from fwtool.core.status import Status, exit_code
from fwtool.flash import ImageFileBackend
from fwtool.identity import DeviceTreeIdentity
from fwtool.update import ImageUpdater

PROG_NAME = "fwtool"
BANNER = "Firmware debug Tool"

logger = logging.getLogger("fwtool")

# Setup Rich consoles
console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Firmware debug tool", add_completion=False)


def setup_logging(verbose: bool = False) -> None:
    """Route fwtool logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def run(
    argv: Sequence[str],
    cfg: FwtoolConfig,
    backend: Optional[FlashBackend] = None,
    out: Optional[Console] = None,
    err: Optional[Console] = None,
) -> int:
    """
    Execute one command line.

    Every device opened while the command runs is closed before this
    returns, whatever the outcome.

    Args:
        argv: Full argument vector, argv[0] being the program name
        cfg: Resolved configuration
        backend: Flash backend; defaults to the configured image files
        out: Console for regular output
        err: Console for usage and diagnostics

    Returns:
        Status of the dispatched command.
    """
    out = out or console
    err = err or err_console
    out.print(BANNER, markup=False, highlight=False)

    if backend is None:
        backend = ImageFileBackend(cfg.devices)

    with DeviceRegistry(backend) as devices:
        ctx = CommandContext(
            devices=devices,
            identity=DeviceTreeIdentity(cfg.identity_root),
            updater=ImageUpdater(devices),
            out=out,
            err=err,
            nvram_section=cfg.nvram_section,
        )
        status = dispatch(build_command_tree(), list(argv), ctx)
        logger.debug(f"Command finished with status {status}, open devices: {devices.opened}")
    return status


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def fwtool(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (YAML)"
    ),
) -> None:
    """
    Run a firmware command, e.g. 'fwtool vbnv read try_count'.

    Run without a command to list the available ones.
    """
    setup_logging(verbose)

    try:
        cfg = load_config(config)
    except ConfigError as e:
        err_console.print(f"Error: {e}", style="red", markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(code=exit_code(Status.INVALID_ARGUMENT))

    words: List[str] = list(ctx.args)
    status = run([PROG_NAME, *words], cfg)
    raise typer.Exit(code=exit_code(status))


def main() -> None:
    app(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
