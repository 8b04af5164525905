"""
clibu utilities

- Unset: sentinel for "not provided" where None already means something
  (a relaxed parse that found no usable value, an invoke() without prompt).
- rename("name"): give generated callables stable names for tracebacks and reprs.
- mirror("attr"): read-only property over the private field self._attr.
"""
import functools
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel: a falsey singleton printed as "Unset".
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def rename(name, /):
    """
    Decorator setting __name__ and __qualname__ of the decorated callable.
    """
    if not isinstance(name, str):
        raise TypeError("@rename() argument must be a string")

    def wrapper(callable):
        callable.__qualname__ = name
        callable.__name__ = name
        return callable

    return wrapper


def mirror(name, /):
    """
    Define a read-only property returning self._<name>.

    Owners store immutable values (tuples, MappingProxyType), so the getter
    hands them out directly.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return getattr(self, "_" + name)

    return property(getter)


Unset = UnsetType()


__all__ = (
    "rename",
    "mirror",
    "UnsetType",
    "Unset",
)
