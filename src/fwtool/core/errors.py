"""
Exception hierarchy for fwtool.

Collaborators (flash backends, FMAP parser, VBNV store, updater) raise these;
leaf commands catch the expected ones and turn them into a Status code.
"""


class FwtoolError(Exception):
    """Base exception for all fwtool errors."""


class CommandTreeError(FwtoolError):
    """Raised when a static command table violates its construction rules."""


class ConfigError(FwtoolError):
    """Raised when the configuration file cannot be loaded or is malformed."""


class FlashError(FwtoolError):
    """Raised by flash backends when a device cannot be opened, read or written."""


class DeviceUnavailable(FwtoolError):
    """Raised when a named device cannot be opened."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        message = f"Device '{name}' unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FmapError(FwtoolError):
    """Raised when an FMAP is malformed or a section does not exist."""


class VbnvError(FwtoolError):
    """Base exception for VBNV flag store errors."""


class UnknownFlag(VbnvError):
    """Flag name is not part of the VBNV namespace."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown VBNV flag '{name}'")


class ReadOnlyFlag(VbnvError):
    """Flag exists but cannot be written from userspace."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"VBNV flag '{name}' is read-only")


class InvalidFlagValue(VbnvError):
    """Value does not fit the flag's field."""


class VbnvIoError(VbnvError):
    """Reading or writing the VBNV record failed."""


class PartialStateTransition(VbnvIoError):
    """
    A compound flag transition failed after its first write succeeded.

    Storage is left in an intermediate state. The only recovery path is to
    retry the whole transition.
    """

    def __init__(self, completed: str, failed: str, cause: Exception):
        self.completed = completed
        self.failed = failed
        self.cause = cause
        super().__init__(
            f"'{completed}' was written but '{failed}' failed: {cause}"
        )


class UpdateError(FwtoolError):
    """Raised by the update orchestrator when an image cannot be applied."""
