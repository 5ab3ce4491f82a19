# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `FlagType`, the enum of built-in value types a flag can declare.

A flag's `type` may be one of these members, one of their string names or
aliases, a builtin Python type with an obvious counterpart (`str`, `bool`,
`list`, `dict`), or any other callable that turns the raw string into a value.

Example:
    FlagType("bool")   → FlagType.BOOLEAN (via alias)
    FlagType("number") → FlagType.NUMBER
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class FlagType(Enum):
    """
    Built-in flag value types.

    Members:
        STRING: Keep the raw string.
        NUMBER: Parse to `int` when integral, otherwise `float`.
        BOOLEAN: `true`, `yes` or `1` (case-insensitive) are truthy.
        ARRAY: Wrap a scalar into a list.
        OBJECT: Parse a JSON object or `key=value` pairs into a dict.

    Aliases:
        "str" → "string", "int" / "float" → "number", "bool" → "boolean",
        "list" → "array", "dict" → "object"
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def choices(cls) -> list[FlagType]:
        """Return a list of all flag types."""
        return list(cls)

    @classmethod
    def _get_alias(cls, value: str) -> str:
        aliases = {
            "str": "string",
            "int": "number",
            "float": "number",
            "bool": "boolean",
            "list": "array",
            "dict": "object",
        }
        return aliases.get(value, value)

    @classmethod
    def _missing_(cls, value: object) -> FlagType:
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        normalized = value.strip().lower()
        alias = cls._get_alias(normalized)
        for member in cls:
            if member.value == alias:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Must be one of: {valid}")

    def __str__(self) -> str:
        return self.value


_BUILTIN_TYPES: dict[Any, FlagType] = {
    str: FlagType.STRING,
    bool: FlagType.BOOLEAN,
    list: FlagType.ARRAY,
    dict: FlagType.OBJECT,
}


def normalize_flag_type(value: Any) -> Any:
    """
    Normalize a declared flag type.

    Strings and builtin containers collapse to `FlagType` members; every other
    callable (`int`, `float`, `Path`, an `Enum`, a user function) is kept as-is.

    Raises:
        ValueError: If the value is neither a known type name nor callable.
    """
    if value is None:
        return FlagType.STRING
    if isinstance(value, FlagType):
        return value
    if isinstance(value, str):
        return FlagType(value)
    if isinstance(value, type) and value in _BUILTIN_TYPES:
        return _BUILTIN_TYPES[value]
    if callable(value):
        return value
    raise ValueError(f"Flag type must be a FlagType, a type name or a callable: {value!r}")


def type_name(value: Any) -> str:
    """Human readable name of a declared flag type."""
    if isinstance(value, FlagType):
        return value.value
    return getattr(value, "__name__", None) or "custom function"
