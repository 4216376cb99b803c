"""
fwtool - diagnostic and maintenance commands for verified-boot firmware

Dumps the flash layout and firmware identity, flashes new firmware images,
and reads or writes the VBNV boot-state flags consulted by the bootloader.
"""

__version__ = "0.1.0"

from fwtool.commands import build_command_tree
from fwtool.core.dispatch import dispatch
from fwtool.core.status import Status
from fwtool.vbnv.store import BootResult, VbnvStore

__all__ = [
    "build_command_tree",
    "dispatch",
    "Status",
    "BootResult",
    "VbnvStore",
    "__version__",
]
