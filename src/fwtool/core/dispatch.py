"""
Recursive-descent command dispatcher.

Resolves an argument vector against a command tree one word per level and
runs the matched leaf with the words that follow it.

    argv = ["fwtool", "vbnv", "read", "try_count"]
    dispatch(root, argv, ctx)   # runs vbnv_read with ["try_count"]
"""

import logging
from typing import Sequence

from fwtool.core.commands import Group, Leaf
from fwtool.core.context import CommandContext
from fwtool.core.status import Status

logger = logging.getLogger(__name__)


def format_usage(table: Group, argv: Sequence[str], index: int, prefix: int) -> str:
    """Usage text for ``table`` reached through ``argv[:index + 1]``."""
    path = " ".join(argv[: index + 1])
    lines = [f"Usage: {path}"]
    for name, command in zip(table.names(prefix), table.commands):
        lines.append(f"\t\t{name:<12}: {command.help}")
    return "\n".join(lines)


def print_usage(
    ctx: CommandContext,
    table: Group,
    argv: Sequence[str],
    index: int,
    prefix: int,
) -> None:
    ctx.error(format_usage(table, argv, index, prefix))


def dispatch(
    table: Group,
    argv: Sequence[str],
    ctx: CommandContext,
    index: int = 0,
    prefix: int = 0,
) -> int:
    """
    Resolve ``argv`` against ``table`` and run the matched leaf.

    Args:
        table: Command group for the current tree level
        argv: Full argument vector, argv[0] being the program name
        ctx: Per-run command context
        index: Position in argv consumed as the command path so far
        prefix: Namespace characters stripped from child names at this level

    Returns:
        The leaf handler's status, or Status.NO_COMMAND when the path does
        not resolve (usage for the deepest matched table is printed).
    """
    if len(argv) <= index + 1:
        print_usage(ctx, table, argv, index, prefix)
        return Status.NO_COMMAND

    word = argv[index + 1]
    for command in table.commands:
        if command.name[prefix:] != word:
            continue
        if isinstance(command, Group):
            logger.debug(f"Entering command group {command.name}")
            return dispatch(
                command,
                argv,
                ctx,
                index=index + 1,
                prefix=prefix + len(command.name) + 1,
            )
        if isinstance(command, Leaf):
            args = list(argv[index + 2:])
            logger.debug(f"Running {command.name} with {args}")
            return command.handler(ctx, args)

    logger.debug(f"No command '{word}' below '{' '.join(argv[:index + 1])}'")
    print_usage(ctx, table, argv, index, prefix)
    return Status.NO_COMMAND
