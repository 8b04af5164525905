r"""
clibu option schemas and option-record normalization.

Overview
- Schemas
  • FlagOption: boolean switch (--name / --no-name / -x).
  • StringOption: free-form text with optional length and pattern constraints.
  • NumberOption: numeric value (int when integral, float otherwise) with optional bounds.
  • EnumOption: string value drawn from a closed, ordered set of choices.

- Builders
  • flag(), string(), number(), enum(): thin, total constructors that always
    populate every field of the corresponding schema.
  • from_mapping(): build a schema from its mapping form ({"kind": "flag", ...}),
    as found in JSON configurations.

- Records
  • normalize(record): canonical, read-only OptionRecord (name -> schema) in
    which every alias is a tuple of single characters.
  • alias_table(record): short alias -> option name lookup.

Introspection & representation
- OptionType metaclass derives __typename__ from the class name (camel-case split
  with hyphens), exposes every field listed in __introspectable__ as a read-only
  property, and provides __repr__/__rich_repr__, value equality, hashing and
  copy.replace() support (the replaced schema is sanitized again).

Validation highlights (raised at definition time)
- TypeError: wrong field types (non-bool flags, non-string descriptions, defaults of
  the wrong kind, etc.).
- ValueError: malformed values (multi-character or duplicate aliases, empty/duplicate
  enum choices, min > max, min_length > max_length, NaN numbers, empty descriptions).
- Option names must match r"[^\W\d_](-?[^\W_]+)*" (shell-style, unicode allowed).

Quick example:
    >>> from clibu.schema import flag, number, enum, normalize
    >>> record = normalize({
    ...     "verbose": flag("Verbose output", alias="v"),
    ...     "threads": number(min=1, max=8, integer=True),
    ...     "mode": {"kind": "enum", "choices": ["dev", "prod"]},
    ... })
    >>> record["verbose"].alias
    ('v',)
"""
import functools
import math
import operator
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .utils import *

KINDS = ("flag", "string", "number", "enum")

# camelCase spellings accepted in mapping-form declarations (JSON configurations).
_SPELLINGS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "caseSensitive": "case_sensitive",
}


class OptionType(type):
    """
    Metaclass shared by every option schema.

    Responsibilities
    - Derive __typename__ from the class name for consistent messaging.
    - Expose the names listed in __introspectable__ as read-only properties
      mirroring the sanitized private fields.
    - Provide __repr__/__rich_repr__, __eq__/__hash__ and __replace__.
    - Seal concrete schema classes (final=True) against subclassing so the
      set of kinds stays closed.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__eq__")
        def __eq__(self, other):
            if type(other) is not type(self):
                return NotImplemented
            return all(getattr(self, name) == getattr(other, name) for name in type(self).__introspectable__)
        self.__eq__ = __eq__

        @rename("__hash__")
        def __hash__(self):
            return hash((type(self), *(getattr(self, name) for name in type(self).__introspectable__)))
        self.__hash__ = __hash__

        @rename("__replace__")
        def __replace__(self, /, **overrides):
            return type(self)(**{name: getattr(self, name) for name in type(self).__introspectable__} | overrides)
        self.__replace__ = __replace__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the fields shared by every kind.

    - description: None or a non-empty string (trimmed).
    - required: coerced to bool.
    - alias: None, a single character, or an iterable of single characters;
      normalized to a tuple without duplicates. '-' and whitespace are rejected.

    The metadata dict is mutated in place.
    """
    if not isinstance(description := metadata["description"], str | None):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")
    elif isinstance(description, str) and not (description := description.strip()):
        raise ValueError(f"{cls.__typename__} 'description' cannot be empty")
    metadata["description"] = description

    metadata["required"] = bool(metadata["required"])

    alias = metadata["alias"]
    if alias is None:
        alias = ()
    elif isinstance(alias, str):
        alias = (alias,)
    elif not isinstance(alias, Iterable):
        raise TypeError(f"{cls.__typename__} 'alias' must be a character or an iterable of characters")

    sanitized = []
    for character in alias:
        if not isinstance(character, str):
            raise TypeError(f"{cls.__typename__} 'alias' entries must be strings")
        elif len(character) != 1 or character == "-" or character.isspace():
            raise ValueError(f"{cls.__typename__} 'alias' entries must be single non-blank characters")
        elif character in sanitized:
            raise ValueError(f"{cls.__typename__} 'alias' cannot contain duplicates")
        sanitized.append(character)
    metadata["alias"] = tuple(sanitized)


def _sanitize_bound(cls, metadata, field, /, number=False):
    """
    Internal: validate an optional numeric bound (None, int or float; never bool).
    Length bounds (number=False) must additionally be non-negative integers.
    """
    if (bound := metadata[field]) is None:
        return
    if number:
        if isinstance(bound, bool) or not isinstance(bound, int | float):
            raise TypeError(f"{cls.__typename__} {field!r} must be a number")
        if isinstance(bound, float) and math.isnan(bound):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be NaN")
    else:
        if isinstance(bound, bool) or not isinstance(bound, int):
            raise TypeError(f"{cls.__typename__} {field!r} must be an integer")
        if bound < 0:
            raise ValueError(f"{cls.__typename__} {field!r} must be non-negative")


class OptionSchema(metaclass=OptionType):
    """
    Common base of the four option kinds (not instantiable by itself).

    Every schema carries
    - kind: "flag" | "string" | "number" | "enum" (class-level discriminator).
    - description: short help text or None.
    - required: whether validation rejects an absent value.
    - alias: tuple of single-character short forms (may be empty).
    """
    kind = None

    __introspectable__ = (
        "description",
        "required",
        "alias",
    )

    def __new__(cls, *args, **kwargs):
        raise TypeError(f"cannot create {cls.__name__!r} instances")

    @classmethod
    def _create(cls, metadata, /):
        self = object.__new__(cls)
        for name, object_ in metadata.items():
            setattr(self, "_" + name, object_)
        return self


class FlagOption(OptionSchema, final=True):
    """
    Boolean switch.

    - default: value reported by help (the parser never injects it; an absent
      flag stays absent).
    - negate: when True, --no-<name> yields False.
    """
    kind = "flag"

    __introspectable__ = (
        "description",
        "required",
        "alias",
        "default",
        "negate",
    )

    def __new__(cls, *, description=None, required=False, alias=(), default=False, negate=True):
        metadata = {
            "description": description,
            "required": required,
            "alias": alias,
            "default": default,
            "negate": negate,
        }
        _sanitize_metadata(cls, metadata)
        if not isinstance(default, bool):
            raise TypeError(f"{cls.__typename__} 'default' must be a boolean")
        if not isinstance(negate, bool):
            raise TypeError(f"{cls.__typename__} 'negate' must be a boolean")
        return cls._create(metadata)


class StringOption(OptionSchema, final=True):
    """
    Free-form text.

    - default: used when the option is given without an inline value.
    - min_length / max_length: inclusive length bounds.
    - pattern: regular expression (search semantics), stored compiled.
    """
    kind = "string"

    __introspectable__ = (
        "description",
        "required",
        "alias",
        "default",
        "min_length",
        "max_length",
        "pattern",
    )

    def __new__(cls, *, description=None, required=False, alias=(), default=None,
                min_length=None, max_length=None, pattern=None):
        metadata = {
            "description": description,
            "required": required,
            "alias": alias,
            "default": default,
            "min_length": min_length,
            "max_length": max_length,
            "pattern": pattern,
        }
        _sanitize_metadata(cls, metadata)
        if not isinstance(default, str | None):
            raise TypeError(f"{cls.__typename__} 'default' must be a string")
        _sanitize_bound(cls, metadata, "min_length")
        _sanitize_bound(cls, metadata, "max_length")
        if min_length is not None and max_length is not None and min_length > max_length:
            raise ValueError(f"{cls.__typename__} 'min_length' cannot exceed 'max_length'")

        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as error:
                raise ValueError(f"{cls.__typename__} 'pattern' is not a valid regular expression: {error}") from None
        elif not isinstance(pattern, re.Pattern | None):
            raise TypeError(f"{cls.__typename__} 'pattern' must be a string or a compiled regular expression")
        metadata["pattern"] = pattern
        return cls._create(metadata)


class NumberOption(OptionSchema, final=True):
    """
    Numeric value.

    - default: int or float, kept with its type when injected by the parser.
    - min / max: inclusive bounds checked by validation.
    - integer: reject values with a fractional part.
    """
    kind = "number"

    __introspectable__ = (
        "description",
        "required",
        "alias",
        "default",
        "min",
        "max",
        "integer",
    )

    def __new__(cls, *, description=None, required=False, alias=(), default=None,
                min=None, max=None, integer=False):
        metadata = {
            "description": description,
            "required": required,
            "alias": alias,
            "default": default,
            "min": min,
            "max": max,
            "integer": integer,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_bound(cls, metadata, "default", number=True)
        _sanitize_bound(cls, metadata, "min", number=True)
        _sanitize_bound(cls, metadata, "max", number=True)
        if min is not None and max is not None and min > max:
            raise ValueError(f"{cls.__typename__} 'min' cannot exceed 'max'")
        if not isinstance(integer, bool):
            raise TypeError(f"{cls.__typename__} 'integer' must be a boolean")
        return cls._create(metadata)


class EnumOption(OptionSchema, final=True):
    """
    String value from a closed set.

    - choices: ordered, non-empty tuple of distinct strings.
    - default: one of the choices, or None.
    - case_sensitive: when False (default), membership is checked case-insensitively
      and the value is stored as typed by the user.
    """
    kind = "enum"

    __introspectable__ = (
        "description",
        "required",
        "alias",
        "default",
        "choices",
        "case_sensitive",
    )

    def __new__(cls, *, choices, description=None, required=False, alias=(), default=None,
                case_sensitive=False):
        metadata = {
            "description": description,
            "required": required,
            "alias": alias,
            "default": default,
            "choices": choices,
            "case_sensitive": case_sensitive,
        }
        _sanitize_metadata(cls, metadata)
        if not isinstance(case_sensitive, bool):
            raise TypeError(f"{cls.__typename__} 'case_sensitive' must be a boolean")

        if isinstance(choices, str) or not isinstance(choices, Iterable):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        sanitized = []
        for choice in choices:
            if not isinstance(choice, str):
                raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
            elif not choice:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain empty-strings")
            elif choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        if not sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot be empty")
        metadata["choices"] = tuple(sanitized)

        if not isinstance(default, str | None):
            raise TypeError(f"{cls.__typename__} 'default' must be a string")
        if default is not None and not matches(metadata["choices"], default, case_sensitive):
            raise ValueError(f"{cls.__typename__} 'default' must be one of its choices")
        return cls._create(metadata)


def matches(choices, value, case_sensitive=False, /):
    """
    Return whether value belongs to choices (case-folded unless case_sensitive).
    """
    if case_sensitive:
        return value in choices
    return value.casefold() in (choice.casefold() for choice in choices)


def flag(description=None, /, **fields):
    """
    Build a FlagOption.

    Example: flag("Verbose output", alias="v")
    """
    return FlagOption(description=description, **fields)


def string(description=None, /, **fields):
    """Build a StringOption (fields: required, alias, default, min_length, max_length, pattern)."""
    return StringOption(description=description, **fields)


def number(description=None, /, **fields):
    """Build a NumberOption (fields: required, alias, default, min, max, integer)."""
    return NumberOption(description=description, **fields)


def enum(choices, description=None, /, **fields):
    """
    Build an EnumOption. choices is mandatory.

    Example: enum(["dev", "prod"], "Build mode", required=True)
    """
    return EnumOption(choices=choices, description=description, **fields)


def from_mapping(declaration, /):
    """
    Build a schema from its mapping form.

    The mapping must carry a "kind" key ("flag", "string", "number" or "enum");
    every other key is forwarded as a field. camelCase spellings used by JSON
    configurations (minLength, maxLength, caseSensitive) are accepted.

    Raises
    - TypeError: declaration is not a mapping, or carries unknown fields.
    - ValueError: unknown kind.
    """
    if not isinstance(declaration, Mapping):
        raise TypeError("option declaration must be a mapping")
    fields = {_SPELLINGS.get(key, key): value for key, value in declaration.items()}
    match fields.pop("kind", None):
        case "flag":
            return FlagOption(**fields)
        case "string":
            return StringOption(**fields)
        case "number":
            return NumberOption(**fields)
        case "enum":
            return EnumOption(**fields)
        case kind:
            raise ValueError(f"option 'kind' must be one of {", ".join(KINDS)} (got {kind!r})")


def coerce(declaration, /):
    """
    Return declaration as a schema, converting the mapping form when needed.
    """
    if isinstance(declaration, OptionSchema):
        return declaration
    if isinstance(declaration, Mapping):
        return from_mapping(declaration)
    raise TypeError("option declaration must be an option schema or a mapping")


def normalize(record, /):
    """
    Canonicalize an OptionRecord.

    Accepts None (empty record) or a mapping of option names to schemas or
    mapping-form declarations. Returns a read-only mapping preserving the
    declaration order in which every value is a schema whose alias is a tuple.

    The function is idempotent: normalize(normalize(record)) == normalize(record).
    """
    if record is None:
        return MappingProxyType({})
    if isinstance(record, MappingProxyType) and all(isinstance(schema, OptionSchema) for schema in record.values()):
        return record
    if not isinstance(record, Mapping):
        raise TypeError("option record must be a mapping")

    normalized = {}
    for name, declaration in record.items():
        if not isinstance(name, str):
            raise TypeError("option names must be strings")
        elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"option name {name!r} must be a valid shell-style name (unicodes are allowed)")
        normalized[name] = coerce(declaration)
    return MappingProxyType(normalized)


def alias_table(record, /):
    """
    Build a short alias -> option name lookup for a normalized record.

    When two options of the same record declare one alias, the first
    declaration wins (the construction-time conflict check reports it).
    """
    table = {}
    for name, schema in record.items():
        for character in schema.alias:
            table.setdefault(character, name)
    return MappingProxyType(table)


__all__ = (
    # Classes (schemas)
    "OptionSchema",
    "FlagOption",
    "StringOption",
    "NumberOption",
    "EnumOption",

    # Builders
    "flag",
    "string",
    "number",
    "enum",
    "from_mapping",

    # Records
    "normalize",
    "alias_table",
)
