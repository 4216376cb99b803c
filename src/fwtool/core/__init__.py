"""
Core module for fwtool.

This module provides:
- Command tree nodes (commands.py)
- Recursive command dispatch (dispatch.py)
- Device handle cache (devices.py)
- Per-run command context (context.py)
- Status codes and exceptions (status.py, errors.py)
- Argument parsing helpers (parsing.py)
"""

from .commands import Command, Group, Leaf, group
from .context import CommandContext
from .devices import DeviceRegistry
from .dispatch import dispatch, format_usage
from .errors import (
    FwtoolError,
    CommandTreeError,
    ConfigError,
    DeviceUnavailable,
    FlashError,
    FmapError,
    VbnvError,
    UnknownFlag,
    ReadOnlyFlag,
    InvalidFlagValue,
    VbnvIoError,
    PartialStateTransition,
    UpdateError,
)
from .parsing import parse_int
from .status import Status, exit_code

__all__ = [
    # Tree
    "Command",
    "Group",
    "Leaf",
    "group",
    # Dispatch
    "CommandContext",
    "DeviceRegistry",
    "dispatch",
    "format_usage",
    # Errors
    "FwtoolError",
    "CommandTreeError",
    "ConfigError",
    "DeviceUnavailable",
    "FlashError",
    "FmapError",
    "VbnvError",
    "UnknownFlag",
    "ReadOnlyFlag",
    "InvalidFlagValue",
    "VbnvIoError",
    "PartialStateTransition",
    "UpdateError",
    # Status
    "Status",
    "exit_code",
    "parse_int",
]
