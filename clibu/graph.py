"""
clibu command graph.

Overview
- build(config): convert the nested command declarations of a Config into an
  immutable tree of CommandNode (roots at depth 0, children at parent depth + 1).
- resolve(graph, parts): greedy, longest-prefix walk of path tokens from the
  roots down; never backtracks.

Failure
- resolve() raises CommandNotFoundError carrying the consumed prefix plus the
  first failing token, or the ("<empty>",) sentinel for an empty path. A
  "did you mean" hint is attached when a sibling name is close enough.
"""
import difflib
import logging
from types import MappingProxyType
from typing import NamedTuple

from .config import define_config
from .faults import CommandNotFoundError

logger = logging.getLogger(__name__)

EMPTY = ("<empty>",)


class CommandNode(NamedTuple):
    """
    One registered command.

    `children` is a read-only mapping of subcommand nodes and `definition`
    is the CommandDef the node was built from.
    """
    name: str
    definition: object
    children: MappingProxyType
    depth: int

    @property
    def description(self):
        return self.definition.description

    @property
    def options(self):
        return self.definition.options

    @property
    def inherit_global(self):
        return self.definition.inherit_global

    @property
    def run(self):
        return self.definition.run


class ResolvedCommand(NamedTuple):
    """Outcome of a successful resolution: root-to-target nodes and the target."""
    path: tuple
    target: CommandNode

    @property
    def names(self):
        return tuple(node.name for node in self.path)


def build(config, /):
    """
    Build the command graph (read-only mapping of root nodes) from a config.
    """
    config = define_config(config)

    def convert(name, definition, depth):
        return CommandNode(
            name,
            definition,
            MappingProxyType({
                child: convert(child, declaration, depth + 1)
                for child, declaration in definition.commands.items()
            }),
            depth,
        )

    return MappingProxyType({name: convert(name, definition, 0) for name, definition in config.commands.items()})


def resolve(graph, parts, /):
    """
    Resolve path tokens to a command.

    Matches parts[0] against the roots, then each following token against the
    children of the previous match, stopping at the first unmatched token.

    Raises
    - CommandNotFoundError: a token could not be matched (path = consumed
      prefix + failing token) or parts is empty (path = ("<empty>",)).
    """
    parts = tuple(parts)
    path = []
    candidates = graph
    for part in parts:
        if (node := candidates.get(part)) is None:
            break
        path.append(node)
        candidates = node.children

    if len(path) < len(parts):
        failing = parts[:len(path) + 1]
        logger.debug("unable to resolve %r (stopped at %r)", parts, failing[-1])
        hint = None
        if matches := difflib.get_close_matches(failing[-1], list(candidates), n=1):
            hint = f"did you mean {" ".join(failing[:-1] + (matches[0],))!r}?"
        raise CommandNotFoundError(failing, hint=hint)
    if not path:
        raise CommandNotFoundError(EMPTY)

    logger.debug("resolved %r to %r", parts, path[-1].name)
    return ResolvedCommand(tuple(path), path[-1])


__all__ = (
    "CommandNode",
    "ResolvedCommand",
    "build",
    "resolve",
)
