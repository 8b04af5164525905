"""
clibu faults (errors) and rendering.

Scope
- FaultCode: canonical, stable string identifiers for every user-facing error.
  Callers switch on these codes instead of on message text.
- CommandException: base type carrying message + options that knows how to
  render itself (rich) and how to surface itself (raise vs print).
- ParsingError / ValidationError / CommandNotFoundError / OptionConflictError:
  the four error kinds produced by the engine.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Propagation
- The engine never recovers from a fault locally: parse/validate/resolve calls
  raise and the runtime decides how to present the failure.
- In non-shell mode trigger() re-raises; in shell mode the fault is rendered
  to stderr through rich and the caller chooses the exit status.

UX
- Plain rendering is "[E_PARSE] message" followed by an optional hint line.
- Fancy rendering wraps message and hint in a titled panel.
- Host applications can restyle output via __styles__ and relabel codes via
  __codes__ in __main__ (see FaultCode.normalize()).
"""
import copy
from collections import defaultdict
from enum import StrEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(StrEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping
    - E_PARSE: malformed token stream (unknown/duplicate options, bad values).
    - E_VALIDATE: a parsed value violates a declared constraint.
    - E_COMMAND_NOT_FOUND: the argument path does not reach a registered command.
    - E_OPTION_CONFLICT: construction-time clash between option declarations.
    - E_HANDLER: a command handler or run hook raised an unexpected exception.

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    PARSE = "E_PARSE"
    VALIDATE = "E_VALIDATE"
    COMMAND_NOT_FOUND = "E_COMMAND_NOT_FOUND"
    OPTION_CONFLICT = "E_OPTION_CONFLICT"
    HANDLER = "E_HANDLER"

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__
        to override the stable labels with friendlier ones. when no mapping
        is present, the code value itself is returned.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base class for every fault raised by the engine.

    attributes
    - message: one-sentence description of what went wrong.
    - options: read-only mapping of rendering/context options (hint, shell,
      fancy, colorful, tool, ...). merged through copy.replace(fault, **options).
    - code: the FaultCode of the concrete subclass.
    """
    code = Unset
    title = "error"

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)
        self._arguments = (message,)

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        code = self.code.normalize()
        message = text(self.message, styler("error-message"))

        renders = []
        if self.hint:
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.hint, styler("hint"))))

        if fancy:
            tool = self.options.get("tool")
            prog = getattr(main, "__prog__", getattr(tool, "name", "clibu"))
            header = Text.assemble(
                "[ ",
                text(prog, styler("prog-name")),
                " — ",
                text(code, styler("code")),
                " | ",
                text(self.title.title(), styler("error-title")),
                " ]"
            )
            return Panel(Group(message, *renders), title=header, title_align="left")

        line = Text.assemble("[", text(code, styler("code")), "] ", message)
        return Group(line, *renders)

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(*self._arguments, **{**self.options, **overrides})


class ParsingError(CommandException):
    """malformed token stream (unknown option/alias, duplicate, bad or missing value)."""
    code = FaultCode.PARSE
    title = "parse error"


class ValidationError(CommandException):
    """a value is present but violates the constraint declared by its option."""
    code = FaultCode.VALIDATE
    title = "validation error"


class CommandNotFoundError(CommandException):
    """
    the argument path does not resolve to a registered command.

    `path` holds the consumed prefix plus the first failing token, or the
    ("<empty>",) sentinel when nothing was given.
    """
    code = FaultCode.COMMAND_NOT_FOUND
    title = "command not found"

    def __init__(self, path, /, **options):
        path = tuple(path)
        super().__init__("Command not found: %s" % " ".join(path), **options)
        self.path = path
        self._arguments = (path,)


class OptionConflictError(CommandException):
    """construction-time clash between a command option and a global one."""
    code = FaultCode.OPTION_CONFLICT
    title = "option conflict"

    def __init__(self, option, detail=None, /, **options):
        message = "Option conflict %r" % option
        if detail:
            message += ": %s" % detail
        super().__init__(message, **options)
        self.option = option
        self.detail = detail
        self._arguments = (option, detail)


class HandlerError(CommandException):
    """
    a command handler (or a before/after run hook) raised an exception.

    the original exception is kept in `exception` so shell output stays short
    while logs keep the traceback.
    """
    code = FaultCode.HANDLER
    title = "handler error"

    @property
    def exception(self):
        return self.options.get("exception")


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - outside shell mode the (merged) fault is raised; in shell mode it is printed.

    typical options
    - tool, shell, fancy, colorful, hint.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode members and values are short documentation strings.
    returns None when no documentation is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "ParsingError",
    "ValidationError",
    "CommandNotFoundError",
    "OptionConflictError",
    "HandlerError",
    "trigger",
    "getdoc",
)
