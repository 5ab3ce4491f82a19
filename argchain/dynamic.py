# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Dynamic flag registration.

A flag declaring `dynamic_register` can add more flags to its command node
while the node's tokens are being parsed, for example loading flag
declarations from a file named on the command line.

Before a level is matched, its option tokens are matched against the flags
that declare a callback. Each callback whose flag is present receives a
`DynamicRegisterContext` and may register flags through
`ctx.register_flags(...)` or by returning them. The level is then matched
again with the extended flag set.

Flags added this way are dropped at the start of the next parse
(`CommandNode.reset_dynamic_flags`).

Example:
    def load_plugin_flags(ctx):
        return [{"name": "plugin-mode", "options": ["--plugin-mode"]}]

    root.add_flag(name="plugin", options=["--plugin"], dynamic_register=load_plugin_flags)
"""
from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

from argchain.exceptions import ArgChainError
from argchain.flag import Flag
from argchain.flag_registry import FlagRegistry
from argchain.logger import logger
from argchain.matcher import FlagMatcher
from argchain.parse_context import UNSET

if TYPE_CHECKING:
    from argchain.command import CommandNode


class DynamicRegisterContext(BaseModel):
    """
    Passed to a flag's `dynamic_register` callback.

    Attributes:
        value (Any): The flag's matched value.
        args_so_far (dict): Values of the other callback flags on this level.
        node (CommandNode): The node being parsed.
        tokens (list[str]): The node's token slice.
        for_help (bool): True when the flags are only needed for help output.
        register_flags (Callable): Registers flags on `node`.
    """

    value: Any = None
    args_so_far: dict[str, Any] = Field(default_factory=dict)
    node: Any
    tokens: list[str] = Field(default_factory=list)
    for_help: bool = False
    register_flags: Callable[[Iterable[Flag | dict[str, Any]]], list[str]]

    model_config = ConfigDict(arbitrary_types_allowed=True)


def _is_present(flag: Flag, value: Any) -> bool:
    if flag.allow_multiple:
        return bool(value)
    return value is not UNSET


def register_dynamic_flags(
    node: CommandNode,
    tokens: list[str],
    command_chain: list[str] | None = None,
    *,
    for_help: bool = False,
) -> list[str]:
    """
    Run the `dynamic_register` callbacks of the flags present in `tokens`.

    Returns:
        list[str]: Names of the flags that were added to `node`.

    Raises:
        ArgChainError: If a callback returns an awaitable.
        ValidationError: If a callback flag's value fails its checks.
    """
    candidates = [flag for flag in node.flags if flag.dynamic_register is not None]
    if not candidates:
        return []

    match = FlagMatcher(FlagRegistry(candidates), command_chain).match(
        tokens, positional=False
    )
    known = {name: value for name, value in match.values.items() if value is not UNSET}
    added: list[str] = []

    def register(flags: Iterable[Flag | dict[str, Any]]) -> list[str]:
        names = node.register_dynamic_flags(flags)
        added.extend(names)
        return names

    for flag in candidates:
        value = match.values[flag.name]
        if not _is_present(flag, value):
            continue
        ctx = DynamicRegisterContext(
            value=value,
            args_so_far=known,
            node=node,
            tokens=list(tokens),
            for_help=for_help,
            register_flags=register,
        )
        logger.debug("Running dynamic_register for flag '%s'", flag.name)
        returned = flag.dynamic_register(ctx)
        if inspect.isawaitable(returned):
            if inspect.iscoroutine(returned):
                returned.close()
            raise ArgChainError(
                f"dynamic_register for flag '{flag.name}' must return flags, not an awaitable",
                command_chain,
            )
        if returned:
            register(returned)
    return added


__all__ = ["DynamicRegisterContext", "register_dynamic_flags"]
