"""
clibu configuration discovery.

load_config(directory) looks for the first existing candidate in
CANDIDATES and returns it as a Config:

- clibu.config.py: executed as an isolated module; the exported object is the
  module attribute `config` when present, else `default`.
- clibu.config.json: parsed with the json module; a top-level "config" or
  "default" key is honored the same way, otherwise the document itself is
  the configuration. Options use the mapping form ({"kind": "flag", ...}).

None is returned when no candidate exists. Nothing is cached.
"""
import importlib.util
import json
import logging
import os
from collections.abc import Mapping

from .config import define_config

logger = logging.getLogger(__name__)

CANDIDATES = (
    "clibu.config.py",
    "clibu.config.json",
)


def pick_export(module, /):
    """
    Return the configuration exported by a loaded module or JSON document.

    Prefers a non-None `config`, then a non-None `default`; otherwise the
    object itself.
    """
    if isinstance(module, Mapping):
        for key in ("config", "default"):
            if module.get(key) is not None:
                return module[key]
        return module
    for key in ("config", "default"):
        if getattr(module, key, None) is not None:
            return getattr(module, key)
    return module


def _load_python(path, /):
    specification = importlib.util.spec_from_file_location("clibu_config", path)
    module = importlib.util.module_from_spec(specification)
    specification.loader.exec_module(module)
    return module


def _load_json(path, /):
    with open(path, encoding="utf-8") as file:
        return json.load(file)


def load_config(directory=None, /):
    """
    Discover and load the configuration from directory (default: cwd).

    Raises
    - TypeError/ValueError: the exported object is not a valid configuration.
    - OSError, json.JSONDecodeError, or whatever the Python config raises
      while executing.
    """
    directory = os.getcwd() if directory is None else os.fspath(directory)
    for candidate in CANDIDATES:
        path = os.path.join(directory, candidate)
        if not os.path.isfile(path):
            continue
        logger.debug("loading configuration from %s", path)
        if candidate.endswith(".json"):
            exported = pick_export(_load_json(path))
        else:
            exported = pick_export(_load_python(path))
        return define_config(exported)
    logger.debug("no configuration found in %s", directory)
    return None


def sample_config_hint():
    """
    Human-friendly hint listing the supported file names and a minimal example.
    """
    return """No configuration file found.
Create one of the following in the project root:
  - clibu.config.py (recommended, expose `config`)
  - clibu.config.json
Minimal example (Python):

from clibu import define_config, flag

config = define_config({
    "name": "mycli",
    "version": "0.0.1",
    "options": {
        "verbose": flag("Verbose output", alias="v"),
    },
    "commands": {
        "hello": {
            "description": "Greet user",
            "run": lambda context: "hello " + " ".join(context.args),
        },
    },
})
"""


__all__ = (
    "load_config",
    "pick_export",
    "sample_config_hint",
)
