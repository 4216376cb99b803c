"""
Per-run context handed to the dispatcher and every leaf command.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console

from fwtool.core.devices import DeviceRegistry
from fwtool.core.interfaces import FlashDevice, IdentitySource, Updater
from fwtool.vbnv.store import FlagStore, VbnvStore


@dataclass
class CommandContext:
    """
    Everything a leaf command may touch.

    Attributes:
        devices: Device registry owning all flash handles for this run
        identity: Firmware identity lookup
        updater: Firmware update orchestrator
        out: Console for regular output
        err: Console for usage and diagnostics
        nvram_section: FMAP region holding the VBNV record
        flag_store: Factory building a flag store over an open device
    """
    devices: DeviceRegistry
    identity: IdentitySource
    updater: Updater
    out: Console = field(default_factory=Console)
    err: Console = field(default_factory=lambda: Console(stderr=True))
    nvram_section: str = "RW_NVRAM"
    flag_store: Callable[[FlashDevice, str], FlagStore] = VbnvStore

    def open_flag_store(self) -> FlagStore:
        """Flag store over the "spi" device, acquiring it if needed."""
        return self.flag_store(self.devices.acquire("spi"), self.nvram_section)

    def echo(self, text: str) -> None:
        """Print plain text, without rich markup or highlighting."""
        self.out.print(text, markup=False, highlight=False, soft_wrap=True)

    def error(self, text: str, style: Optional[str] = None) -> None:
        """Print plain text to the error console."""
        self.err.print(text, markup=False, highlight=False, soft_wrap=True, style=style)
