# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines all custom exception classes used in the Argchain CLI framework.

Runtime errors raised while resolving a token stream carry the command chain
that was active when they happened, so a managed `ArgParser` can point the
user at the right `--help` page.

Exception Hierarchy:
- ArgChainError
    ├── ParseError
    │     ├── UnknownCommandError
    │     └── UnknownFlagError
    ├── ValidationError
    ├── HandlerError
    ├── ConfigError
    ├── InvalidFlagError
    ├── FlagAlreadyExistsError
    └── CommandAlreadyExistsError
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MissingFlag:
    """A mandatory flag with no resolved value."""

    name: str
    node_name: str
    command_chain: tuple[str, ...] = field(default_factory=tuple)


class ArgChainError(Exception):
    """Base exception for the Argchain framework."""

    def __init__(self, message: str, command_chain: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.command_chain: list[str] = list(command_chain or [])


class ParseError(ArgChainError):
    """Raised when tokens are left over after matching a command level."""

    def __init__(
        self, message: str, token: str, command_chain: list[str] | None = None
    ) -> None:
        super().__init__(message, command_chain)
        self.token = token


class UnknownCommandError(ParseError):
    """Raised when a leftover token is not a known sub-command."""


class UnknownFlagError(ParseError):
    """Raised when a leftover token looks like an option nobody declared."""


class ValidationError(ArgChainError):
    """
    Raised when a resolved value is rejected.

    Covers missing mandatory flags (batched across the whole chain), enum
    mismatches, custom `validate` failures and type-coercion failures.
    """

    def __init__(
        self,
        message: str,
        command_chain: list[str] | None = None,
        flag_name: str | None = None,
        missing: list[MissingFlag] | None = None,
    ) -> None:
        super().__init__(message, command_chain)
        self.flag_name = flag_name
        self.missing: list[MissingFlag] = list(missing or [])

    @property
    def flag_names(self) -> list[str]:
        if self.missing:
            return [flag.name for flag in self.missing]
        return [self.flag_name] if self.flag_name else []


class HandlerError(ArgChainError):
    """Raised when a command handler fails, synchronously or when awaited."""


class ConfigError(ArgChainError):
    """Raised when a configuration file cannot be turned into a flat map."""


class InvalidFlagError(ArgChainError):
    """Raised when a flag declaration is malformed."""


class FlagAlreadyExistsError(ArgChainError):
    """Raised when a flag name or option is registered twice on one node."""


class CommandAlreadyExistsError(ArgChainError):
    """Raised when a sub-command name is registered twice on one node."""
