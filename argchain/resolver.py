# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Implements `ValueResolver`, which fills in each flag's final value for one
command level.

Priority, highest first:

1. A value matched from the command line. It is then written to every
   environment alias the flag declares.
2. The first environment alias that is defined, coerced like a CLI value.
   Its raw text is copied to the aliases that are still undefined.
3. The declared default. Defaults are never written to the environment.

The source of every resolved value is recorded on the level so merging and
debug output can tell them apart.
"""
from __future__ import annotations

import json
from typing import Any

from argchain.environment import EnvironmentPort, OsEnvironment
from argchain.exceptions import ValidationError
from argchain.flag import HELP_FLAG_NAME, Flag
from argchain.logger import logger
from argchain.matcher import check_value
from argchain.parse_context import (
    SOURCE_CLI,
    SOURCE_DEFAULT,
    SOURCE_ENV,
    UNSET,
    LevelResult,
)


def stringify_env_value(value: Any) -> str:
    """Render a resolved value as environment variable text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_env_value(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def has_value(flag: Flag, value: Any) -> bool:
    if value is UNSET:
        return False
    if flag.allow_multiple:
        return bool(value)
    return True


class ValueResolver:
    """
    Applies environment fallback, defaults and reverse sync to a level.

    Args:
        environment (EnvironmentPort | None): Where aliases are read and
            written. Defaults to the real process environment.
    """

    def __init__(self, environment: EnvironmentPort | None = None) -> None:
        self.environment: EnvironmentPort = environment or OsEnvironment()

    def resolve(self, level: LevelResult, command_chain: list[str]) -> LevelResult:
        for flag in level.node.flags:
            if flag.name == HELP_FLAG_NAME:
                continue
            value = level.values.get(flag.name, UNSET)
            if has_value(flag, value):
                level.sources[flag.name] = SOURCE_CLI
                self.sync_to_env(flag, value)
                continue

            resolved = self._from_env(flag, level.values, command_chain)
            if resolved is not None:
                alias, value = resolved
                level.values[flag.name] = value
                level.sources[flag.name] = f"{SOURCE_ENV}:{alias}"
                continue

            if flag.default is not None:
                level.values[flag.name] = flag.default_value()
                level.sources[flag.name] = SOURCE_DEFAULT
        return level

    def _from_env(
        self, flag: Flag, parsed: dict[str, Any], command_chain: list[str]
    ) -> tuple[str, Any] | None:
        for alias in flag.env:
            raw = self.environment.get(alias)
            if raw is None:
                continue
            known = {name: value for name, value in parsed.items() if value is not UNSET}
            try:
                if flag.allow_multiple:
                    value = [
                        check_value(flag, item, known, command_chain)
                        for item in raw.split(",")
                        if item != ""
                    ]
                else:
                    value = check_value(flag, raw, known, command_chain)
            except ValidationError as error:
                logger.warning(
                    "Ignoring environment variable '%s' for flag '%s': %s",
                    alias,
                    flag.name,
                    error,
                )
                continue
            self._fill_missing_aliases(flag, raw)
            logger.debug("Flag '%s' resolved from environment '%s'", flag.name, alias)
            return alias, value
        return None

    def _fill_missing_aliases(self, flag: Flag, raw: str) -> None:
        for alias in flag.env:
            if self.environment.get(alias) is None:
                self.environment.set(alias, raw)

    def sync_to_env(self, flag: Flag, value: Any) -> None:
        """Write a command-line value to every alias of the flag."""
        if not flag.env or value is None:
            return
        text = stringify_env_value(value)
        for alias in flag.env:
            self.environment.set(alias, text)
        logger.debug("Synced flag '%s' to %s", flag.name, flag.env)
