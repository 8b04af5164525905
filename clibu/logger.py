"""
clibu logging setup.

- get_logger(name): the per-CLI logger handed to command handlers, named
  "clibu.<name>" so it sits below the package logger.
- install(level=None): attach a single rich.logging.RichHandler (stderr) to the
  "clibu" logger. Calling it again only updates the level. The level defaults
  to the CLIBU_LOG_LEVEL environment variable, then WARNING.

Library modules log through logging.getLogger(__name__) and never configure
handlers themselves; the runtime calls install() in shell mode only.
"""
import logging
import os

from rich.logging import RichHandler

from .faults import console

ROOT = "clibu"
DEFAULT_LEVEL = "WARNING"


def get_logger(name, /):
    """Return the logger for the CLI called name."""
    return logging.getLogger(f"{ROOT}.{name}")


def level(value=None, /):
    """
    Resolve a logging level from a name/number, CLIBU_LOG_LEVEL or the default.

    Unknown names fall back to the default level.
    """
    if value is None:
        value = os.environ.get("CLIBU_LOG_LEVEL", DEFAULT_LEVEL)
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).strip().upper())
    return resolved if isinstance(resolved, int) else logging.getLevelName(DEFAULT_LEVEL)


def install(value=None, /):
    """
    Attach the rich handler to the package logger (idempotent) and set its level.
    """
    root = logging.getLogger(ROOT)
    root.setLevel(level(value))
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))
    return root


__all__ = (
    "get_logger",
    "install",
)
