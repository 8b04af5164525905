"""
clibu value validation.

validate_options(record, values) walks the declared options in declaration
order and fails fast with ValidationError on the first violation:

- a required option without a value -> "Required option missing: --name"
- an absent, optional option is skipped (defaults are never injected here)
- present values are checked against the constraints of their kind
"""
import math
import re

from .faults import ValidationError
from .schema import FlagOption, StringOption, NumberOption, EnumOption, normalize, matches


def _validate_flag(name, schema, value, /):
    if not isinstance(value, bool):
        raise ValidationError(f"Option --{name} must be boolean")


def _validate_string(name, schema, value, /):
    if not isinstance(value, str):
        raise ValidationError(f"Option --{name} must be a string")
    if schema.min_length is not None and len(value) < schema.min_length:
        raise ValidationError(f"String --{name} length < minLength {schema.min_length}")
    if schema.max_length is not None and len(value) > schema.max_length:
        raise ValidationError(f"String --{name} length > maxLength {schema.max_length}")
    if schema.pattern is not None and not re.search(schema.pattern, value):
        raise ValidationError(f"String --{name} does not match pattern {schema.pattern.pattern}")


def _validate_number(name, schema, value, /):
    if isinstance(value, bool) or not isinstance(value, int | float) or isinstance(value, float) and math.isnan(value):
        raise ValidationError(f"Option --{name} must be a number")
    if schema.integer and isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Option --{name} must be an integer")
    if schema.min is not None and value < schema.min:
        raise ValidationError(f"Value for --{name} < min {schema.min}")
    if schema.max is not None and value > schema.max:
        raise ValidationError(f"Value for --{name} > max {schema.max}")


def _validate_enum(name, schema, value, /):
    if not isinstance(value, str):
        raise ValidationError(f"Enum option --{name} must be a string")
    if not matches(schema.choices, value, schema.case_sensitive):
        raise ValidationError(
            f"Value for --{name} is not in enum choices: {value}",
            hint=f"expected one of {"|".join(schema.choices)}"
        )


def validate_options(record, values, /):
    """
    Validate option values against their declarations.

    Parameters
    - record: OptionRecord (normalized or not).
    - values: mapping of option name -> parsed value. Names absent from the
      record are ignored.

    Raises
    - ValidationError: first violation found, in declaration order.
    """
    for name, schema in normalize(record).items():
        if name not in values:
            if schema.required:
                raise ValidationError(f"Required option missing: --{name}")
            continue
        value = values[name]
        match schema:
            case FlagOption():
                _validate_flag(name, schema, value)
            case StringOption():
                _validate_string(name, schema, value)
            case NumberOption():
                _validate_number(name, schema, value)
            case EnumOption():
                _validate_enum(name, schema, value)


__all__ = (
    "validate_options",
)
