"""
clibu execution context.

build_context(config, argv) orchestrates the schema, graph, parser and
validator into the immutable ExecutionContext handed to command handlers:

 1. relaxed parse of the whole argv against the global options;
 2. build the command graph;
 3. an empty argv fails with CommandNotFoundError(("<empty>",));
 4. collect the command path: leading tokens are appended while they do not
    start with "-" and the extended path still resolves;
 5. resolve that path (CommandNotFoundError propagates); when nothing
    resolved and argv starts with a non-option token, that token is reported;
 6. the tail is everything after the path;
 7. merged record = global overlaid by command options when the target
    inherits globals, command options alone otherwise;
 8. strict parse of the tail against the merged record;
 9. global values seen by the relaxed pass are kept only when inheriting,
    and strict values win over them;
10. values are partitioned into global_options and command_options, and the
    final options are the global ones overlaid by the command ones;
11. globals are validated (when inheriting and declared), then command values;
12. positional args are the tail minus its leading option-shaped tokens;
13. the context is returned along with the relaxed parse result.
"""
import logging
import os
from types import MappingProxyType
from typing import NamedTuple

from .config import define_config
from .graph import EMPTY, ResolvedCommand, build, resolve
from .faults import CommandNotFoundError
from .logger import get_logger
from .parser import ParsedArgv, parse_argv, parse_options, count_option_tokens
from .validate import validate_options

logger = logging.getLogger(__name__)


class ExecutionContext(NamedTuple):
    """
    Everything a command handler receives.

    - argv: raw input tokens.
    - command: the ResolvedCommand (path and target node).
    - args: positional arguments following the options.
    - options: merged final option values (command values win).
    - global_options / command_options: values split by declaring scope.
    - env: read-only snapshot of the process environment.
    - logger: the CLI logger ("clibu.<name>").
    - parsed: relaxed parse result, kept for diagnostics.
    """
    argv: tuple
    command: ResolvedCommand
    args: tuple
    options: MappingProxyType
    global_options: MappingProxyType
    command_options: MappingProxyType
    env: MappingProxyType
    logger: logging.Logger
    parsed: ParsedArgv


def discover(graph, argv, /):
    """
    Return the longest leading run of argv tokens that resolves to a command.

    Stops at the first token starting with "-" or at the first token that
    does not extend the path. Never backtracks.
    """
    parts = ()
    for token in argv:
        if token.startswith("-"):
            break
        try:
            resolve(graph, parts + (token,))
        except CommandNotFoundError:
            break
        parts += (token,)
    return parts


def build_context(config, argv, /):
    """
    Build the ExecutionContext for argv.

    Raises
    - CommandNotFoundError: empty argv or unresolvable command path.
    - ParsingError: malformed option tokens (relaxed or strict pass).
    - ValidationError: a value violates its declaration.
    """
    config = define_config(config)
    argv = tuple(argv)

    parsed = parse_argv(argv, config.options)
    graph = build(config)
    if not argv:
        raise CommandNotFoundError(EMPTY)

    parts = discover(graph, argv)
    if not parts and not argv[0].startswith("-"):
        # report the unknown leading command instead of the empty sentinel
        parts = argv[:1]
    resolved = resolve(graph, parts)
    target = resolved.target
    tail = argv[len(parts):]

    inherit = target.inherit_global
    globals_ = config.options
    commands_ = target.options
    merged = dict(globals_) | dict(commands_) if inherit else dict(commands_)

    strict = parse_options(tail, merged)
    early = {name: value for name, value in parsed.options.items() if name not in strict} if inherit else {}

    global_options = {}
    if inherit:
        for name in globals_:
            if name in early:
                global_options[name] = early[name]
            elif name in strict:
                global_options[name] = strict[name]
    command_options = {name: strict[name] for name in commands_ if name in strict}
    options = global_options | command_options

    if inherit and globals_:
        validate_options(globals_, global_options)
    if commands_:
        validate_options(commands_, command_options)

    args = tail[count_option_tokens(tail):]
    logger.debug("built context for %r (args=%r, options=%r)", resolved.names, args, options)

    return ExecutionContext(
        argv=argv,
        command=resolved,
        args=args,
        options=MappingProxyType(options),
        global_options=MappingProxyType(global_options),
        command_options=MappingProxyType(command_options),
        env=MappingProxyType(dict(os.environ)),
        logger=get_logger(config.name),
        parsed=parsed,
    )


__all__ = (
    "ExecutionContext",
    "build_context",
)
