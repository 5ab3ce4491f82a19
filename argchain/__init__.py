"""
Argchain CLI Framework

Copyright (c) 2025 rtj.dev LLC.
Licensed under the MIT License. See LICENSE file for details.
"""

from .command import CommandNode
from .dispatcher import HandlerContext, ParseResult, PendingCompletion
from .dynamic import DynamicRegisterContext
from .environment import EnvironmentPort, MemoryEnvironment, OsEnvironment
from .exceptions import (
    ArgChainError,
    CommandAlreadyExistsError,
    ConfigError,
    FlagAlreadyExistsError,
    HandlerError,
    InvalidFlagError,
    MissingFlag,
    ParseError,
    UnknownCommandError,
    UnknownFlagError,
    ValidationError,
)
from .flag import Flag
from .flag_type import FlagType
from .logger import logger
from .mode import ErrorMode, FlagInheritance
from .parser import ArgParser


__all__ = [
    "ArgParser",
    "CommandNode",
    "Flag",
    "FlagType",
    "ErrorMode",
    "FlagInheritance",
    "DynamicRegisterContext",
    "HandlerContext",
    "ParseResult",
    "PendingCompletion",
    "EnvironmentPort",
    "MemoryEnvironment",
    "OsEnvironment",
    "ArgChainError",
    "ParseError",
    "UnknownCommandError",
    "UnknownFlagError",
    "ValidationError",
    "MissingFlag",
    "HandlerError",
    "ConfigError",
    "InvalidFlagError",
    "FlagAlreadyExistsError",
    "CommandAlreadyExistsError",
]
