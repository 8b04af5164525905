"""
clibu lifecycle hooks.

A Hook observes (and may augment the configuration of) a CLI at well-defined
points without altering the outcome of parsing or validation:

- on_register(config): the configuration was registered with a CLI.
- extend_config(config): return an augmented Config (or None to keep it).
- on_parse(argv): an invocation starts, before the context is built.
- on_before_run(context): right before the command handler.
- on_after_run(context, result): right after the command handler returned.

on_register and extend_config run while the CLI is constructed and must be
synchronous. The per-invocation events may be coroutine functions; HookManager
awaits results that are awaitable. Hooks run in registration order.
"""
import inspect
import logging

from .config import Config

logger = logging.getLogger(__name__)


class Hook:
    """
    Base class for lifecycle hooks. Every method is a no-op by default.
    """
    name = None
    version = None

    def on_register(self, config):
        pass

    def on_parse(self, argv):
        pass

    def on_before_run(self, context):
        pass

    def on_after_run(self, context, result):
        pass

    def extend_config(self, config):
        return None


async def _settle(result, /):
    if inspect.isawaitable(result):
        return await result
    return result


class HookManager:
    """Stores hooks and emits lifecycle events to them in registration order."""

    def __init__(self, hooks=()):
        self._hooks = []
        for hook in hooks:
            self.register(hook)

    @property
    def hooks(self):
        return tuple(self._hooks)

    def register(self, hook, /):
        if not isinstance(hook, Hook):
            raise TypeError("register() argument must be a Hook")
        self._hooks.append(hook)
        return hook

    def extend(self, config, /):
        """
        Let every hook extend the configuration in turn (synchronously).
        """
        for hook in self._hooks:
            extended = hook.extend_config(config)
            if extended is None:
                continue
            if not isinstance(extended, Config):
                raise TypeError(f"{type(hook).__name__}.extend_config() must return a Config or None")
            logger.debug("configuration extended by %s", type(hook).__name__)
            config = extended
        return config

    def emit_register(self, config, /):
        for hook in self._hooks:
            hook.on_register(config)

    async def emit_parse(self, argv, /):
        for hook in self._hooks:
            await _settle(hook.on_parse(argv))

    async def emit_before_run(self, context, /):
        for hook in self._hooks:
            await _settle(hook.on_before_run(context))

    async def emit_after_run(self, context, result, /):
        for hook in self._hooks:
            await _settle(hook.on_after_run(context, result))


__all__ = (
    "Hook",
    "HookManager",
)
