"""
clibu token parser.

Two passes share one coercion core:

- parse_argv(argv, record): relaxed scan of the whole vector against the
  global options only. Unknown long options and unknown short aliases are
  skipped, value options given without a value and without a default are
  skipped, non-option tokens become positionals and a bare "--" turns every
  remaining token into a positional. A lone "-" is a positional.
- parse_options(tokens, record): strict scan of the tokens that follow the
  resolved command path against the merged record. Unknown options fail and
  the first non-option token (or "--") ends the scan.

Token grammar
- --name            flag -> True; string -> default or ""; number/enum -> default
- --name=value      inline value coerced per kind
- --no-name         False for flags declaring negate=True (an option literally
                    named "no-name" is matched first)
- -x / -xyz         each character resolved through the alias table

Both passes reject an option given twice ("Duplicate option").

Implementation
- _scan() yields (name, value, spelling) events; positionals are reported with
  name None. _fold() reduces the events into a fresh immutable ParsedArgv, so
  no accumulator is shared between calls.
"""
import difflib
import functools
import logging
import math
from types import MappingProxyType
from typing import NamedTuple

from .faults import ParsingError
from .schema import FlagOption, StringOption, NumberOption, EnumOption, normalize, alias_table, matches
from .utils import Unset

logger = logging.getLogger(__name__)


class ParsedArgv(NamedTuple):
    """Result of a parse pass: the raw input, positionals and coerced option values."""
    argv: tuple
    positionals: tuple
    options: MappingProxyType


def _number(literal, /):
    """
    Coerce a literal to int (integral values) or float.

    Rejects empty strings, digit separators, NaN, infinities (including literals
    too long for int()) and anything float() refuses.
    """
    text = literal.strip()
    if not text or "_" in text:
        raise ParsingError(f"Value is not a number: {literal}")
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        raise ParsingError(f"Value is not a number: {literal}") from None
    if not math.isfinite(value):
        raise ParsingError(f"Value is not a number: {literal}")
    return int(value) if value.is_integer() else value


def _derive(name, schema, inline, negated, strict, /):
    """
    Coerce one occurrence of an option.

    Returns Unset when the relaxed pass meets a value option that has neither
    an inline value nor a default.
    """
    match schema:
        case FlagOption():
            if negated:
                return False
            return True if inline is None else inline != "false"
        case StringOption():
            if inline is None:
                return schema.default if schema.default is not None else ""
            return inline
        case NumberOption():
            if inline is None:
                if schema.default is None:
                    if not strict:
                        return Unset
                    raise ParsingError(f"Option --{name} requires a number value")
                return schema.default
            return _number(inline)
        case EnumOption():
            if inline is None:
                if schema.default is None:
                    if not strict:
                        return Unset
                    raise ParsingError(f"Enum option requires a value: {",".join(schema.choices)}")
                return schema.default
            if not matches(schema.choices, inline, schema.case_sensitive):
                hint = None
                if suggestions := difflib.get_close_matches(inline, schema.choices, n=1):
                    hint = f"did you mean {suggestions[0]!r}?"
                raise ParsingError(f"Value not in enum choices: {inline}", hint=hint)
            return inline
        case _:
            raise TypeError(f"unsupported option schema: {schema!r}")


def _lookup(name, record, /):
    """
    Map a long option name to (option, negated), or None when unknown.
    """
    if name in record:
        return name, False
    if name.startswith("no-") and isinstance(schema := record.get(name[3:]), FlagOption) and schema.negate:
        return name[3:], True
    return None


def _unknown(name, record, /):
    hint = None
    if suggestions := difflib.get_close_matches(name, list(record), n=1):
        hint = f"did you mean '--{suggestions[0]}'?"
    return ParsingError(f"Unknown option: --{name}", hint=hint)


def _scan(tokens, record, strict, /):
    """
    Yield (name, value, spelling) events for the given tokens.

    Positionals are yielded as (None, token, token). In strict mode the scan
    stops at the first non-option token or at "--".
    """
    aliases = alias_table(record)
    for index, token in enumerate(tokens):
        if token == "--":
            if not strict:
                for positional in tokens[index + 1:]:
                    yield None, positional, positional
            return

        if token.startswith("--"):
            name, separator, inline = token[2:].partition("=")
            if (found := _lookup(name, record)) is None:
                if strict:
                    raise _unknown(name, record)
                logger.debug("relaxed pass skipped unknown option --%s", name)
                continue
            option, negated = found
            value = _derive(option, record[option], inline if separator else None, negated, strict)
            if value is Unset:
                logger.debug("relaxed pass skipped --%s (no value)", option)
                continue
            yield option, value, "--" + option
            continue

        if token.startswith("-") and token != "-":
            for character in token[1:]:
                if (option := aliases.get(character)) is None:
                    if strict:
                        raise ParsingError(f"Unknown short alias: -{character}")
                    logger.debug("relaxed pass skipped unknown alias -%s", character)
                    continue
                value = _derive(option, record[option], None, False, strict)
                if value is Unset:
                    continue
                yield option, value, "-" + character
            continue

        if strict:
            return
        yield None, token, token


def _fold(state, event, /):
    """
    Reduce one event into a new (positionals, options) state.
    """
    positionals, options = state
    name, value, spelling = event
    if name is None:
        return positionals + (value,), options
    if name in options:
        if spelling.startswith("--"):
            raise ParsingError(f"Duplicate option: {spelling}")
        raise ParsingError(f"Duplicate option (alias): {spelling}")
    return positionals, MappingProxyType(dict(options) | {name: value})


def _parse(tokens, record, strict, /):
    tokens = tuple(tokens)
    positionals, options = functools.reduce(
        _fold,
        _scan(tokens, normalize(record), strict),
        ((), MappingProxyType({})),
    )
    return ParsedArgv(tokens, positionals, options)


def parse_argv(argv, record=None, /):
    """
    Relaxed parse of the whole argv against the global option record.

    Returns a ParsedArgv whose positionals include the command path tokens.
    Coercion failures of known options and duplicates still raise ParsingError.
    """
    return _parse(argv, record, False)


def parse_options(tokens, record=None, /):
    """
    Strict parse of the tokens following the command path.

    Returns the read-only mapping of option name -> coerced value.

    Raises
    - ParsingError: unknown option or alias, duplicate, missing or malformed value.
    """
    return _parse(tokens, record, True).options


def count_option_tokens(tokens, /):
    """
    Count the leading option-shaped tokens ("--x", "-x"), including a terminating "--".
    """
    count = 0
    for token in tokens:
        if token == "--":
            return count + 1
        if token.startswith("--") or (token.startswith("-") and token != "-"):
            count += 1
            continue
        break
    return count


__all__ = (
    "ParsedArgv",
    "parse_argv",
    "parse_options",
    "count_option_tokens",
)
