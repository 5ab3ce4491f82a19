# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines the policy enums used by Argchain:

- `ErrorMode`: how `ArgParser.parse` propagates errors.
- `FlagInheritance`: which ancestor flags a sub-command receives.
"""
from __future__ import annotations

from enum import Enum


class ErrorMode(Enum):
    """
    MANAGED: catch parse errors, print them and exit with a non-zero status.
    UNMANAGED: re-raise parse errors to the caller untouched.
    """

    MANAGED = "managed"
    UNMANAGED = "unmanaged"

    @classmethod
    def _missing_(cls, value: object) -> ErrorMode:
        if isinstance(value, bool):
            return cls.MANAGED if value else cls.UNMANAGED
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Must be one of: {valid}")

    def __str__(self) -> str:
        return self.value


class FlagInheritance(Enum):
    """
    NONE: the sub-command keeps only its own flags.
    DIRECT_PARENT_ONLY: copy the parent's flags once, when the sub-command is
        attached. Later additions to the parent are not seen.
    ALL_PARENTS: copy the flags of every ancestor and keep following them, so
        the result does not depend on the order the tree was built in.

    Aliases:
        True → "direct-parent-only", False → "none",
        "direct" → "direct-parent-only", "all" → "all-parents"
    """

    NONE = "none"
    DIRECT_PARENT_ONLY = "direct-parent-only"
    ALL_PARENTS = "all-parents"

    @classmethod
    def _get_alias(cls, value: str) -> str:
        aliases = {
            "direct": "direct-parent-only",
            "direct_parent_only": "direct-parent-only",
            "all": "all-parents",
            "all_parents": "all-parents",
        }
        return aliases.get(value, value)

    @classmethod
    def _missing_(cls, value: object) -> FlagInheritance:
        if isinstance(value, bool):
            return cls.DIRECT_PARENT_ONLY if value else cls.NONE
        if value is None:
            return cls.NONE
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        alias = cls._get_alias(value.strip().lower())
        for member in cls:
            if member.value == alias:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Must be one of: {valid}")

    def __str__(self) -> str:
        return self.value
