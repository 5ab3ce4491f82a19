# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Value coercion utilities for Argchain flag resolution.

Turns raw token or environment strings into the value a flag declares:
`FlagType` members, Python types (`int`, `Path`, `Enum`, `Literal`, unions,
`datetime`) and plain coercion callables.

Functions:
- coerce_bool: Convert a string to a boolean (`true`, `yes`, `1` are truthy).
- coerce_number: Convert a string to an `int` or `float`.
- coerce_array: Wrap a scalar into a list.
- coerce_object: Convert a JSON object or `key=value` pairs into a dict.
- coerce_enum: Convert a string or raw value to an Enum instance.
- coerce_value: General-purpose coercion to a declared flag type.
"""
import json
import re
import types
from datetime import datetime
from enum import EnumMeta
from typing import Any, Literal, Union, get_args, get_origin

from dateutil import parser as date_parser

from argchain.flag_type import FlagType

TRUTHY_PATTERN = re.compile(r"true|yes|1", re.IGNORECASE)


def coerce_bool(value: Any) -> bool:
    """
    Convert a value to a boolean.

    Real booleans pass through. Strings are truthy when they match `true`,
    `yes` or `1` case-insensitively; any other string is `False`.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return TRUTHY_PATTERN.fullmatch(value.strip()) is not None
    return bool(value)


def coerce_number(value: Any) -> int | float:
    """
    Convert a value to a number, preferring `int` for integral input.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"'{value}' is not a valid number")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number") from None


def coerce_array(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def coerce_object(value: Any) -> dict[str, Any]:
    """
    Convert a value to a dict.

    Accepts dicts, JSON object strings (`{"a": 1}`) and comma separated
    `key=value` pairs (`a=1,b=2`).

    Raises:
        ValueError: If the value cannot be read as a mapping.
    """
    if isinstance(value, dict):
        return value
    text = str(value).strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as error:
            raise ValueError(f"'{value}' is not a valid JSON object: {error}") from error
        if not isinstance(parsed, dict):
            raise ValueError(f"'{value}' is not a JSON object")
        return parsed
    result: dict[str, Any] = {}
    for pair in filter(None, (part.strip() for part in text.split(","))):
        key, separator, item = pair.partition("=")
        if not separator or not key:
            raise ValueError(f"'{value}' should be a JSON object or key=value pairs")
        result[key.strip()] = item.strip()
    return result


def coerce_enum(value: Any, enum_type: EnumMeta) -> Any:
    """
    Convert a raw value or string to an Enum instance.

    Tries to resolve by name, value, or coerced base type.

    Raises:
        ValueError: If the value cannot be resolved to a valid Enum member.
    """
    if isinstance(value, enum_type):
        return value

    if isinstance(value, str):
        try:
            return enum_type[value]
        except KeyError:
            pass

    base_type = type(next(iter(enum_type)).value)
    try:
        coerced_value = base_type(value)
        return enum_type(coerced_value)
    except (ValueError, TypeError):
        values = [str(enum.value) for enum in enum_type]
        raise ValueError(f"'{value}' should be one of {{{', '.join(values)}}}") from None


_FLAG_TYPE_COERCERS = {
    FlagType.STRING: lambda value: value if isinstance(value, str) else str(value),
    FlagType.NUMBER: coerce_number,
    FlagType.BOOLEAN: coerce_bool,
    FlagType.ARRAY: coerce_array,
    FlagType.OBJECT: coerce_object,
}


def coerce_value(value: Any, target_type: Any) -> Any:
    """
    Convert a raw value to the given flag type.

    Handles `FlagType` members as well as complex typing constructs such as
    Union, Literal, Enum and datetime. Any other callable is invoked with the
    raw value.

    Raises:
        ValueError: If conversion fails or the value is invalid.
    """
    if isinstance(target_type, FlagType):
        return _FLAG_TYPE_COERCERS[target_type](value)

    origin = get_origin(target_type)
    args = get_args(target_type)

    if origin is Literal:
        if value not in args:
            raise ValueError(
                f"Value '{value}' is not a valid literal for type {target_type}"
            )
        return value

    if isinstance(target_type, types.UnionType) or origin is Union:
        for arg in args:
            try:
                return coerce_value(value, arg)
            except (ValueError, TypeError):
                continue
        raise ValueError(f"Value '{value}' could not be coerced to any of {args}")

    if isinstance(target_type, EnumMeta):
        return coerce_enum(value, target_type)

    if target_type is bool:
        return coerce_bool(value)

    if target_type is datetime:
        if isinstance(value, datetime):
            return value
        try:
            return date_parser.parse(value)
        except (ValueError, OverflowError) as error:
            raise ValueError(f"Value '{value}' could not be parsed as a datetime") from error

    return target_type(value)
