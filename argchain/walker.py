# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Implements `CommandTreeWalker`, which splits a token stream across the
levels of a command tree.

At every level the walker looks for the first token naming a child of the
current node. Tokens before it belong to the current level and are matched
against that level's flags; the child then receives the tokens after its name.
A token that names a child is treated as a sub-command even when it could have
been the value of a preceding option.

Flags with a `dynamic_register` callback get to extend a level's flags before
the level is matched.

Any token a level leaves unclaimed aborts the walk: tokens starting with `-`
raise `UnknownFlagError`, anything else raises `UnknownCommandError`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from argchain.dynamic import register_dynamic_flags
from argchain.exceptions import UnknownCommandError, UnknownFlagError
from argchain.logger import logger
from argchain.matcher import FlagMatcher, looks_like_option
from argchain.parse_context import LevelResult, ParseContext

if TYPE_CHECKING:
    from argchain.command import CommandNode
    from argchain.resolver import ValueResolver


@dataclass
class CommandPath:
    """The nodes a token stream selects, without matching any flags."""

    node_chain: list[CommandNode]
    command_chain: list[str] = field(default_factory=list)
    split_indices: list[int] = field(default_factory=list)

    @property
    def terminal(self) -> CommandNode:
        return self.node_chain[-1]

    def level_start(self, depth: int) -> int:
        """Index of the first token owned by the level at `depth`."""
        return 0 if depth == 0 else self.split_indices[depth - 1] + 1

    def level_tokens(self, tokens: list[str], depth: int) -> list[str]:
        """The token slice matched by the level at `depth`."""
        end = self.split_indices[depth] if depth < len(self.split_indices) else len(tokens)
        return tokens[self.level_start(depth) : end]


def find_subcommand_index(node: CommandNode, tokens: list[str]) -> int | None:
    for index, token in enumerate(tokens):
        if node.has_subcommand(token):
            return index
    return None


class CommandTreeWalker:
    """
    Walks a command tree level by level.

    Args:
        resolver (ValueResolver | None): Applied to every level after its
            tokens are matched, before the walk descends.
    """

    def __init__(self, resolver: ValueResolver | None = None) -> None:
        self.resolver = resolver

    def identify(self, root: CommandNode, tokens: list[str]) -> CommandPath:
        """Follow sub-command names only. Never raises."""
        path = CommandPath(node_chain=[root])
        node = root
        offset = 0
        remaining = list(tokens)
        while True:
            index = find_subcommand_index(node, remaining)
            if index is None:
                return path
            name = remaining[index]
            node = node.get_subcommand(name)
            path.node_chain.append(node)
            path.command_chain.append(name)
            path.split_indices.append(offset + index)
            offset += index + 1
            remaining = remaining[index + 1 :]

    def walk(
        self,
        root: CommandNode,
        tokens: list[str],
        context: ParseContext | None = None,
    ) -> ParseContext:
        """
        Match every level of the chain the tokens select.

        Pass a `context` to keep the levels matched before a failure.

        Raises:
            UnknownFlagError: If a level leaves a dash-prefixed token unclaimed.
            UnknownCommandError: If a level leaves any other token unclaimed.
            ValidationError: If a matched value fails coercion or checks.
        """
        if context is None:
            context = ParseContext(tokens=list(tokens), node_chain=[root])
        self._walk_level(root, list(tokens), context)
        return context

    def _walk_level(
        self, node: CommandNode, tokens: list[str], context: ParseContext
    ) -> None:
        index = find_subcommand_index(node, tokens)
        level_tokens = tokens if index is None else tokens[:index]
        logger.debug(
            "Matching level '%s' with tokens %s", node.name or "<root>", level_tokens
        )

        register_dynamic_flags(node, level_tokens, context.command_chain)
        matcher = FlagMatcher(node.flags, context.command_chain)
        match = matcher.match(level_tokens)
        context.consumed = set(match.consumed)
        if not match.fully_consumed:
            token = level_tokens[match.first_unconsumed_index]
            if looks_like_option(token):
                raise UnknownFlagError(
                    f"Unknown flag: {token}", token=token, command_chain=context.command_chain
                )
            raise UnknownCommandError(
                f"Unknown command: {token}", token=token, command_chain=context.command_chain
            )

        level = LevelResult(node=node, tokens=level_tokens, match=match)
        level.values = dict(match.values)
        context.levels.append(level)
        if self.resolver is not None:
            self.resolver.resolve(level, context.command_chain)

        if index is None:
            context.tokens = []
            return
        name = tokens[index]
        child = node.get_subcommand(name)
        context.command_chain.append(name)
        context.node_chain.append(child)
        context.tokens = tokens[index + 1 :]
        self._walk_level(child, tokens[index + 1 :], context)
