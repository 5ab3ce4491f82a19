# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
State models used while resolving one token stream.

- `UNSET`: Marker for a flag that has no value yet. `None` is a legitimate
  value for custom coercion callables, so it cannot double as "missing".
- `MatchResult`: What the matcher produced for one command level.
- `LevelResult`: A command level together with its token slice and values.
- `ParseContext`: The transient state of one `parse` call.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from argchain.command import CommandNode


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __copy__(self) -> _Unset:
        return self

    def __deepcopy__(self, memo: dict) -> _Unset:
        return self


UNSET: Any = _Unset()


def is_unset(value: Any) -> bool:
    return value is UNSET


@dataclass
class MatchResult:
    """Values matched on one command level."""

    values: dict[str, Any]
    first_unconsumed_index: int
    consumed: set[int] = field(default_factory=set)
    token_count: int = 0

    @property
    def fully_consumed(self) -> bool:
        return self.first_unconsumed_index >= self.token_count

    def unconsumed_indices(self) -> list[int]:
        return [index for index in range(self.token_count) if index not in self.consumed]


@dataclass
class LevelResult:
    """A command level, the tokens it owned and the values resolved for it."""

    node: CommandNode
    tokens: list[str]
    match: MatchResult
    values: dict[str, Any] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)


@dataclass
class ParseContext:
    """
    Transient state of one `parse` call.

    Attributes:
        tokens (list[str]): The remaining tokens still to be assigned.
        consumed (set[int]): Indices consumed on the current level.
        command_chain (list[str]): Sub-command names discovered so far.
        node_chain (list[CommandNode]): Nodes discovered so far, root first.
        levels (list[LevelResult]): Per-level match and resolution output.
    """

    tokens: list[str]
    consumed: set[int] = field(default_factory=set)
    command_chain: list[str] = field(default_factory=list)
    node_chain: list[CommandNode] = field(default_factory=list)
    levels: list[LevelResult] = field(default_factory=list)

    @property
    def terminal(self) -> CommandNode:
        return self.node_chain[-1]

    @property
    def terminal_level(self) -> LevelResult:
        return self.levels[-1]

    def merged_values(self) -> dict[str, Any]:
        """Merge level values top-down; deeper levels override parents."""
        return merge_levels(self.levels)

    def parent_values(self) -> dict[str, Any]:
        """Merged values of every level above the terminal one."""
        return merge_levels(self.levels[:-1])


SOURCE_CLI = "cli"
SOURCE_ENV = "env"
SOURCE_DEFAULT = "default"

_SOURCE_RANK = {SOURCE_CLI: 3, SOURCE_ENV: 2, SOURCE_DEFAULT: 1}


def source_rank(source: str | None) -> int:
    if not source:
        return 0
    return _SOURCE_RANK.get(source.split(":", 1)[0], 0)


def merge_levels(levels: list[LevelResult]) -> dict[str, Any]:
    """
    Merge the values of several levels, root first.

    A deeper level overrides an earlier one unless its value came from a
    weaker source: a default applied on an inheriting child never replaces a
    value the parent read from the command line or the environment.
    """
    merged: dict[str, Any] = {}
    ranks: dict[str, int] = {}
    for level in levels:
        for name, value in level.values.items():
            rank = source_rank(level.sources.get(name))
            if name not in merged or rank >= ranks[name]:
                merged[name] = value
                ranks[name] = rank
    return merged
