"""
Status codes returned by the dispatcher and leaf commands.

Values are negative errno codes. The process exit code is the positive
errno (see :func:`exit_code`).
"""

import errno
from enum import IntEnum


class Status(IntEnum):
    """Result of a command invocation."""
    OK = 0
    NOT_FOUND = -errno.ENOENT
    # The dispatcher reports an unresolved command path with the same code.
    NO_COMMAND = -errno.ENOENT
    INVALID_ARGUMENT = -errno.EINVAL
    DEVICE_UNAVAILABLE = -errno.ENODEV
    IO_ERROR = -errno.EIO


def exit_code(status: int) -> int:
    """Map a (negative) status to a process exit code."""
    return abs(int(status))
