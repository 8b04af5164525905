"""
clibu runtime (CLI surface).

Overview
- check_conflicts(config): construction-time validation of option declarations
  across scopes. Runs once per CLI, never per invocation.
- CLI: binds a configuration, hooks and presentation flags; invoke() is the
  asynchronous entry point, run() drives it with asyncio.run().
- create_cli(config, **options): convenience constructor.

Invocation flow
1. tokens are taken from sys.argv[1:], a shell-like string (shlex.split) or
   an iterable of strings;
2. --help/-h anywhere prints help for the command path preceding it (root help
   when that path does not resolve) and returns 0;
3. --version/-V anywhere prints "<name> <version or (no version)>" and returns 0;
4. the ExecutionContext is built; any CommandException is surfaced through
   clibu.faults.trigger() and 1 is returned;
5. a target without handler reports the problem and returns 1;
6. hooks and the handler are awaited; a non-None result is printed; 0 is returned.
   An exception escaping them is reported as a HandlerError and 1 is returned.

Presentation flags
- shell (default True): faults are printed to stderr and mapped to exit code 1.
  With shell=False faults propagate to the caller instead.
- fancy: faults and help render inside panels.
- colorful: enable styles (rich still strips them when not writing to a terminal).
"""
import asyncio
import inspect
import logging
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .config import define_config
from .context import build_context
from .faults import CommandException, CommandNotFoundError, HandlerError, OptionConflictError, trigger
from .faults import console as errors
from .graph import build
from .help import render_help, render_command_help, format_help
from .hooks import HookManager
from .logger import install
from .utils import *

logger = logging.getLogger(__name__)

console = Console()


def _check_record(record, where, /):
    """
    Reject one alias bound to two options of the same record.
    """
    seen = {}
    for name, schema in record.items():
        for alias in schema.alias:
            if (other := seen.setdefault(alias, name)) != name:
                raise OptionConflictError(name, f"alias '-{alias}' already bound to '{other}' in {where}")


def check_conflicts(config, /):
    """
    Validate option declarations of a configuration.

    For every command (at any depth) that inherits globals and declares options:
    - same name with a different kind than the global option -> kind mismatch;
    - an alias bound to a different global option name -> alias collision
      (an alias shared with the same global option name is accepted).
    Every record must also bind each alias to at most one option.

    Raises
    - OptionConflictError: first conflict found.
    """
    config = define_config(config)
    _check_record(config.options, "global options")
    aliases = {alias: name for name, schema in config.options.items() for alias in schema.alias}

    def visit(commands, prefix):
        for name, definition in commands.items():
            route = " ".join(prefix + (name,))
            _check_record(definition.options, f"command '{route}'")
            if definition.inherit_global:
                for option, schema in definition.options.items():
                    if (declared := config.options.get(option)) is not None and declared.kind != schema.kind:
                        raise OptionConflictError(option, f"kind mismatch in command '{route}'")
                    for alias in schema.alias:
                        if (existing := aliases.get(alias)) is not None and existing != option:
                            raise OptionConflictError(option, f"alias '-{alias}' collides with global option '{existing}'")
            visit(definition.commands, prefix + (name,))

    visit(config.commands, ())


def _tokens(prompt, /):
    """
    Normalize a prompt (Unset, str or Iterable[str]) into a tuple of tokens.
    """
    if prompt is Unset:
        return tuple(sys.argv[1:])
    if isinstance(prompt, str):
        return tuple(shlex.split(prompt))
    if isinstance(prompt, Iterable):
        tokens = tuple(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("invoke() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("invoke() argument must be a string or an iterable of strings")


class CLI:
    """
    A runnable command-line interface.

    Construction normalizes the configuration, lets hooks extend it, runs the
    option-conflict check, builds the command graph and emits on_register.
    Instances hold no per-invocation state and can be invoked repeatedly.
    """

    config = mirror("config")
    graph = mirror("graph")
    hooks = mirror("hooks")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __init__(self, config, /, *, hooks=(), shell=True, fancy=False, colorful=True):
        self._hooks = HookManager(hooks)
        config = self._hooks.extend(define_config(config))
        check_conflicts(config)
        self._config = config
        self._graph = build(config)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        if self._shell:
            install()
        self._hooks.emit_register(config)
        logger.debug("registered CLI %r (%d root commands)", config.name, len(self._graph))

    @property
    def name(self):
        return self._config.name

    def __repr__(self):
        return f"CLI(name={self.name!r}, version={self._config.version!r})"

    def help(self, path=(), /):
        """Return the plain-text help for path (root help when empty)."""
        return format_help(self._config, path)

    def _help(self, argv, /):
        path = []
        for token in argv:
            if token.startswith("-"):
                break
            path.append(token)
        renderable = render_help(self._config, colorful=self._colorful, fancy=self._fancy)
        if path:
            try:
                renderable = render_command_help(self._config, path, colorful=self._colorful, fancy=self._fancy)
            except CommandNotFoundError:
                logger.debug("help requested for unknown path %r, showing root help", path)
        console.print(renderable, soft_wrap=True)

    def _report(self, fault, /):
        trigger(fault, tool=self, shell=self._shell, fancy=self._fancy, colorful=self._colorful)

    async def invoke(self, prompt=Unset, /):
        """
        Run one invocation and return its exit status (0 or 1).

        Raises
        - TypeError: prompt is not Unset, a string or an iterable of strings.
        - CommandException: only when shell=False.
        - Exception: whatever the handler or a run hook raised, only when shell=False.
        """
        argv = _tokens(prompt)

        if "--help" in argv or "-h" in argv:
            self._help(argv)
            return 0
        if "--version" in argv or "-V" in argv:
            console.print(f"{self.name} {self._config.version or "(no version)"}", markup=False, highlight=False)
            return 0

        try:
            await self._hooks.emit_parse(argv)
            context = build_context(self._config, argv)
        except CommandException as fault:
            self._report(fault)
            return 1

        if (handler := context.command.target.run) is None:
            errors.print("Command has no run() handler.", markup=False, highlight=False)
            return 1

        try:
            await self._hooks.emit_before_run(context)
            result = handler(context)
            if inspect.isawaitable(result):
                result = await result
            await self._hooks.emit_after_run(context, result)
        except CommandException as fault:
            self._report(fault)
            return 1
        except Exception as exception:
            if not self._shell:
                raise
            logger.debug("handler of %r raised", context.command.names, exc_info=True)
            self._report(HandlerError(
                f"Command '{" ".join(context.command.names)}' failed: {type(exception).__name__}: {exception}",
                hint="check additional logs for more details",
                exception=exception,
            ))
            return 1

        if result is not None:
            console.print(result, markup=False, highlight=False, soft_wrap=True)
        return 0

    def run(self, prompt=Unset, /):
        """Synchronous wrapper around invoke()."""
        return asyncio.run(self.invoke(prompt))


def create_cli(config, /, **options):
    """
    Create a CLI for config.

    Options
    - hooks: iterable of clibu.hooks.Hook instances.
    - shell, fancy, colorful: presentation flags (see CLI).

    Raises
    - OptionConflictError: conflicting option declarations.
    """
    return CLI(config, **options)


__all__ = (
    "CLI",
    "create_cli",
    "check_conflicts",
)
