"""
Command tree nodes.

A command tree is a forest of two node kinds:

- Leaf: runs a handler with the residual argument words.
- Group: holds an ordered tuple of child commands.

Children are named with their parent's namespace ("flash_fmap" under
"flash"); the dispatcher strips the ancestor prefix when matching and when
printing usage, so users type ``fwtool flash fmap``.

Construction rules are checked when a Group is built, so a malformed table
fails at import time instead of during dispatch.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence, Tuple, Union

from fwtool.core.errors import CommandTreeError

if TYPE_CHECKING:
    from fwtool.core.context import CommandContext

Handler = Callable[["CommandContext", Sequence[str]], int]


@dataclass(frozen=True)
class Leaf:
    """Command that executes an action."""
    name: str
    help: str
    handler: Handler


@dataclass(frozen=True)
class Group:
    """Command that groups further sub-commands."""
    name: str
    help: str
    commands: Tuple["Command", ...]

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple.
        object.__setattr__(self, "commands", tuple(self.commands))
        seen = set()
        for command in self.commands:
            if not isinstance(command, (Leaf, Group)):
                raise CommandTreeError(
                    f"{self.name or '<root>'}: {command!r} is not a Leaf or Group"
                )
            if not command.name:
                raise CommandTreeError(f"{self.name or '<root>'}: command with empty name")
            if command.name in seen:
                raise CommandTreeError(
                    f"{self.name or '<root>'}: duplicate command '{command.name}'"
                )
            seen.add(command.name)

    def names(self, prefix: int = 0) -> Tuple[str, ...]:
        """Child names as displayed below a namespace of ``prefix`` characters."""
        return tuple(command.name[prefix:] for command in self.commands)


Command = Union[Leaf, Group]


def group(name: str, help: str, *commands: Command) -> Group:
    """Shorthand for building a Group from positional children."""
    return Group(name=name, help=help, commands=commands)
