# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `FlagRegistry`, the per-command store of `Flag` declarations.

The registry keeps flags in registration order, maps every option string back
to its flag, and detects collisions on both names and options. What happens on
a collision is a node-level policy: raise `FlagAlreadyExistsError`, or log a
warning and let the newer declaration win.

Inherited flags (copied from ancestor nodes per `inherit_parent_flags`) are
tracked separately so a node can tell which flags it declares itself.
"""
from __future__ import annotations

from typing import Any, Iterable, Iterator

from pydantic import ValidationError as PydanticValidationError

from argchain.exceptions import FlagAlreadyExistsError, InvalidFlagError
from argchain.flag import Flag
from argchain.logger import logger


def build_flag(flag: Flag | dict[str, Any]) -> Flag:
    """Validate a raw declaration into a `Flag`."""
    if isinstance(flag, Flag):
        return flag
    if not isinstance(flag, dict):
        raise InvalidFlagError(
            f"Flags must be Flag instances or dicts, got {type(flag).__name__}"
        )
    try:
        return Flag.model_validate(flag)
    except PydanticValidationError as error:
        name = flag.get("name", "<unnamed>")
        raise InvalidFlagError(f"Invalid flag '{name}': {error}") from error


class FlagRegistry:
    """
    Stores the flags of one command node.

    Methods:
        add(flag): Register a flag, applying the duplicate policy.
        add_many(flags): Register several flags in order.
        remove(name): Drop a flag and its option mappings.
        has(name): Whether a flag with that name exists.
        get(name): Look a flag up by name.
        find_by_option(option): Look a flag up by one of its option strings.
        inherit(flag): Add a parent's flag unless this node declares the name.
    """

    def __init__(
        self,
        flags: Iterable[Flag | dict[str, Any]] | None = None,
        throw_for_duplicate_flags: bool = False,
    ) -> None:
        self.throw_for_duplicate_flags = throw_for_duplicate_flags
        self._flags: dict[str, Flag] = {}
        self._option_map: dict[str, str] = {}
        self._inherited: set[str] = set()
        if flags:
            self.add_many(flags)

    def add(self, flag: Flag | dict[str, Any]) -> Flag:
        flag = build_flag(flag)
        if flag.name in self._flags and flag.name not in self._inherited:
            if self.throw_for_duplicate_flags:
                raise FlagAlreadyExistsError(f"Flag with name '{flag.name}' already exists")
            logger.warning("Flag '%s' is being overwritten", flag.name)

        for option in flag.options:
            existing = self._option_map.get(option)
            if existing and existing != flag.name and existing not in self._inherited:
                if self.throw_for_duplicate_flags:
                    raise FlagAlreadyExistsError(
                        f"Option '{option}' is already used by flag '{existing}'"
                    )
                logger.warning(
                    "Option '%s' is already used by flag '%s'. Reassigning to '%s'",
                    option,
                    existing,
                    flag.name,
                )

        previous = self._flags.get(flag.name)
        if previous:
            self._drop_options(previous)
        self._inherited.discard(flag.name)
        self._flags[flag.name] = flag
        self._claim_options(flag)
        return flag

    def add_many(self, flags: Iterable[Flag | dict[str, Any]]) -> list[Flag]:
        return [self.add(flag) for flag in flags]

    def inherit(self, flag: Flag) -> bool:
        """
        Add a parent's flag unless a flag with the same name already exists.

        Returns:
            bool: True if the flag was added.
        """
        if flag.name in self._flags:
            return False
        self._flags[flag.name] = flag
        self._inherited.add(flag.name)
        for option in flag.options:
            self._option_map.setdefault(option, flag.name)
        return True

    def remove(self, name: str) -> bool:
        flag = self._flags.pop(name, None)
        if flag is None:
            return False
        self._inherited.discard(name)
        self._drop_options(flag)
        return True

    def _claim_options(self, flag: Flag) -> None:
        for option in flag.options:
            displaced = self._option_map.get(option)
            if displaced and displaced != flag.name and displaced in self._inherited:
                self._flags.pop(displaced, None)
                self._inherited.discard(displaced)
            self._option_map[option] = flag.name

    def _drop_options(self, flag: Flag) -> None:
        for option in flag.options:
            if self._option_map.get(option) == flag.name:
                del self._option_map[option]

    def has(self, name: str) -> bool:
        return name in self._flags

    def get(self, name: str) -> Flag | None:
        return self._flags.get(name)

    def find_by_option(self, option: str) -> Flag | None:
        name = self._option_map.get(option)
        return self._flags.get(name) if name else None

    def is_inherited(self, name: str) -> bool:
        return name in self._inherited

    def declares(self, name: str) -> bool:
        """Whether the node declares this flag itself rather than inheriting it."""
        return name in self._flags and name not in self._inherited

    @property
    def flags(self) -> list[Flag]:
        return list(self._flags.values())

    @property
    def names(self) -> list[str]:
        return list(self._flags)

    @property
    def options(self) -> list[str]:
        return list(self._option_map)

    def to_definition_list(self) -> list[dict[str, Any]]:
        """
        Convert flag metadata into a serializable list of dicts.

        Returns:
            List of definitions for use in documentation, export or introspection.
        """
        return [
            {
                "name": flag.name,
                "options": list(flag.options),
                "type": flag.type_name,
                "mandatory": (
                    "dynamic" if flag.is_dynamic_mandatory else bool(flag.mandatory)
                ),
                "allow_multiple": flag.allow_multiple,
                "flag_only": flag.flag_only,
                "enum": list(flag.enum) if flag.enum else None,
                "default": flag.default,
                "env": list(flag.env),
                "positional": flag.positional,
                "dynamic_register": flag.dynamic_register is not None,
                "description": flag.description,
                "inherited": flag.name in self._inherited,
            }
            for flag in self._flags.values()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __iter__(self) -> Iterator[Flag]:
        return iter(list(self._flags.values()))

    def __len__(self) -> int:
        return len(self._flags)

    def __str__(self) -> str:
        return (
            f"FlagRegistry(flags={len(self._flags)}, options={len(self._option_map)}, "
            f"inherited={len(self._inherited)})"
        )

    def __repr__(self) -> str:
        return str(self)
