"""
clibu declarative configuration.

Scope
- Config: the top-level description of a CLI (name, version, global options,
  root commands).
- CommandDef: one command (description, own options, nested commands,
  inheritance of globals, run handler).
- define_config(): turn nested plain mappings (or already built objects) into
  an immutable Config tree.

Behavior
- Every option record is normalized through clibu.schema.normalize(), so
  mapping-form option declarations are accepted anywhere.
- Command names must be non-empty strings that do not start with '-' and do
  not contain whitespace; a path token starting with '-' could never reach them.
- run, when given, must be callable (plain function or coroutine function).
- Objects are immutable: fields are exposed through read-only properties and
  copy.replace() builds a new, re-validated object.

Quick example:
    >>> from clibu import define_config, flag
    >>> config = define_config({
    ...     "name": "mycli",
    ...     "version": "0.0.1",
    ...     "options": {"verbose": flag(alias="v")},
    ...     "commands": {"hello": {"description": "Greet user", "run": print}},
    ... })
    >>> config.commands["hello"].inherit_global
    True
"""
import functools
import operator
import re
from collections.abc import Mapping
from types import MappingProxyType

from .schema import normalize
from .utils import *


def _sanitize_commands(owner, commands, /):
    """
    Internal: validate command names and coerce nested declarations.

    Returns a read-only mapping name -> CommandDef preserving declaration order.
    """
    if commands is None:
        return MappingProxyType({})
    if not isinstance(commands, Mapping):
        raise TypeError(f"{owner} 'commands' must be a mapping")

    sanitized = {}
    for name, declaration in commands.items():
        if not isinstance(name, str):
            raise TypeError(f"{owner} command names must be strings")
        elif not name or name.startswith("-") or re.search(r"\s", name):
            raise ValueError(f"{owner} command name {name!r} must be non-empty, must not start with '-' and must not contain whitespace")
        sanitized[name] = declaration if isinstance(declaration, CommandDef) else CommandDef.from_mapping(declaration)
    return MappingProxyType(sanitized)


class _Declarative:
    """
    Internal base providing the representation, equality and replacement
    protocol shared by Config and CommandDef.
    """
    __introspectable__ = ()

    def __repr__(self):
        return f"{type(self).__name__}({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in type(self).__introspectable__)

    __hash__ = None

    def __replace__(self, /, **overrides):
        return type(self)(**{name: getattr(self, name) for name in type(self).__introspectable__} | overrides)


class CommandDef(_Declarative):
    """
    A single command of the graph.

    Fields
    - description: short help text or None.
    - options: normalized OptionRecord of the command's own options.
    - commands: read-only mapping of subcommands.
    - inherit_global: when False the command ignores the global options.
    - run: handler receiving the ExecutionContext, or None.
    """
    __introspectable__ = (
        "description",
        "options",
        "commands",
        "inherit_global",
        "run",
    )

    description = mirror("description")
    options = mirror("options")
    commands = mirror("commands")
    inherit_global = mirror("inherit_global")
    run = mirror("run")

    def __init__(self, description=None, options=None, commands=None, inherit_global=True, run=None):
        if not isinstance(description, str | None):
            raise TypeError("command 'description' must be a string")
        if not isinstance(inherit_global, bool):
            raise TypeError("command 'inherit_global' must be a boolean")
        if run is not None and not callable(run):
            raise TypeError("command 'run' must be callable")
        self._description = description
        self._options = normalize(options)
        self._commands = _sanitize_commands("command", commands)
        self._inherit_global = inherit_global
        self._run = run

    @classmethod
    def from_mapping(cls, declaration, /):
        """
        Build a CommandDef from its mapping form.

        Recognized keys: description, options, commands, inherit_global
        (or inheritGlobal), run. Unknown keys raise TypeError.
        """
        if not isinstance(declaration, Mapping):
            raise TypeError("command declaration must be a mapping or a CommandDef")
        fields = dict(declaration)
        if "inheritGlobal" in fields:
            fields["inherit_global"] = fields.pop("inheritGlobal")
        return cls(**fields)


class Config(_Declarative):
    """
    Top-level CLI configuration.

    Fields
    - name: program name (non-empty string), used by help and version output.
    - version: version string or None.
    - options: normalized OptionRecord of the global options.
    - commands: read-only mapping of root commands.
    """
    __introspectable__ = (
        "name",
        "version",
        "options",
        "commands",
    )

    name = mirror("name")
    version = mirror("version")
    options = mirror("options")
    commands = mirror("commands")

    def __init__(self, name, version=None, options=None, commands=None):
        if not isinstance(name, str):
            raise TypeError("config 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("config 'name' cannot be empty")
        if not isinstance(version, str | None):
            raise TypeError("config 'version' must be a string")
        self._name = name
        self._version = version
        self._options = normalize(options)
        self._commands = _sanitize_commands("config", commands)


def define_config(config, /):
    """
    Build (or pass through) an immutable Config.

    Accepts a Config instance (returned unchanged) or a mapping with the keys
    name, version, options and commands; nested command declarations may be
    plain mappings or CommandDef objects.
    """
    if isinstance(config, Config):
        return config
    if not isinstance(config, Mapping):
        raise TypeError("define_config() argument must be a Config or a mapping")
    return Config(**config)


__all__ = (
    "Config",
    "CommandDef",
    "define_config",
)
