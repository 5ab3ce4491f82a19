# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `CommandNode`, one level of an Argchain command tree.

A node owns its `FlagRegistry`, its child nodes (keyed by sub-command name)
and an optional handler. Each child keeps a weak back-reference to its parent
so the chain from any node up to the root can be recovered; the parent link
is never used for ownership or iteration.

A node's `inherit_parent_flags` mode (`FlagInheritance`) decides which
ancestor flags it receives. Inherited flags are copies and never replace a
flag the node declares itself. `True` copies the parent's flags once, when the
node is attached. `"all-parents"` copies every ancestor's flags and follows
later additions, so trees can be assembled in any order.

Example:
    root = CommandNode("deploy")
    root.add_flag(name="verbose", options=["-v", "--verbose"], flag_only=True)
    root.add_subcommand(
        CommandNode("push", inherit_parent_flags=True).set_handler(push)
    )
"""
from __future__ import annotations

import weakref
from typing import Any, Callable, Iterable, Iterator

from argchain.exceptions import ArgChainError, CommandAlreadyExistsError
from argchain.flag import Flag, help_flag
from argchain.flag_registry import FlagRegistry, build_flag
from argchain.logger import logger
from argchain.mode import FlagInheritance


def _validate_handler(handler: Any) -> Any:
    if handler is None or callable(handler) or callable(getattr(handler, "invoke", None)):
        return handler
    raise ArgChainError(
        f"Handler must be callable or define invoke(ctx), got {type(handler).__name__}"
    )


class CommandNode:
    """
    One level of the command tree.

    Args:
        name (str): Sub-command name used to select this node.
        description (str): Short description for help output.
        flags (Iterable[Flag | dict]): Initial flag declarations.
        handler (Callable | Handler | None): Invoked when this node is terminal.
        subcommands (Iterable[CommandNode]): Initial child nodes.
        inherit_parent_flags (FlagInheritance | str | bool): Which ancestor
            flags to inherit. `True` means `DIRECT_PARENT_ONLY`.
        throw_for_duplicate_flags (bool): Raise instead of warn on collisions.
    """

    def __init__(
        self,
        name: str = "",
        description: str = "",
        *,
        flags: Iterable[Flag | dict[str, Any]] | None = None,
        handler: Callable[..., Any] | Any | None = None,
        subcommands: Iterable[CommandNode] | None = None,
        inherit_parent_flags: FlagInheritance | str | bool = False,
        throw_for_duplicate_flags: bool = False,
    ) -> None:
        self.name: str = name
        self.description: str = description
        self.flag_inheritance = FlagInheritance(inherit_parent_flags)
        self.flags: FlagRegistry = FlagRegistry(
            throw_for_duplicate_flags=throw_for_duplicate_flags
        )
        self.flags.add(help_flag())
        self.handler = _validate_handler(handler)
        self._children: dict[str, CommandNode] = {}
        self._parent: weakref.ReferenceType[CommandNode] | None = None
        self._dynamic_flag_names: set[str] = set()
        if flags:
            self.add_flags(flags)
        for subcommand in subcommands or []:
            self.add_subcommand(subcommand)

    def add_flag(self, flag: Flag | dict[str, Any] | None = None, **kwargs: Any) -> CommandNode:
        """Register a flag from a `Flag`, a dict, or keyword arguments."""
        if flag is None:
            flag = kwargs
        elif kwargs:
            raise ArgChainError("Pass either a flag declaration or keyword arguments, not both")
        self.flags.add(flag)
        self._cascade_inheritance()
        return self

    def add_flags(self, flags: Iterable[Flag | dict[str, Any]]) -> CommandNode:
        for flag in flags:
            self.flags.add(flag)
        self._cascade_inheritance()
        return self

    def register_dynamic_flags(self, flags: Iterable[Flag | dict[str, Any]]) -> list[str]:
        """
        Add flags for the current parse only.

        Returns:
            list[str]: Names that did not exist before and will be dropped by
            `reset_dynamic_flags`.
        """
        added = []
        for declaration in flags:
            flag = build_flag(declaration)
            existed_before = self.flags.has(flag.name)
            self.flags.add(flag)
            if not existed_before:
                self._dynamic_flag_names.add(flag.name)
                added.append(flag.name)
        if added:
            logger.debug("Registered dynamic flags %s on '%s'", added, self.name)
        return added

    def reset_dynamic_flags(self) -> None:
        """Drop dynamically registered flags from this node and its descendants."""
        for node in self.walk():
            for name in node._dynamic_flag_names:
                node.flags.remove(name)
            node._dynamic_flag_names.clear()

    def has_flag(self, name: str) -> bool:
        return self.flags.has(name)

    def get_flag(self, name: str) -> Flag | None:
        return self.flags.get(name)

    def set_handler(self, handler: Callable[..., Any] | Any) -> CommandNode:
        self.handler = _validate_handler(handler)
        return self

    def add_subcommand(
        self, node: CommandNode | str, name: str | None = None, **kwargs: Any
    ) -> CommandNode:
        """
        Attach a child node.

        Args:
            node (CommandNode | str): The child, or the name of a new
                `CommandNode` built from `kwargs`. Must not already be attached.
            name (str | None): Sub-command name; defaults to `node.name`.

        Raises:
            CommandAlreadyExistsError: If the name is taken on this node.
            ArgChainError: If the child is attached elsewhere or is an ancestor.
        """
        if isinstance(node, str):
            node = CommandNode(node, **kwargs)
        elif kwargs:
            raise ArgChainError("Keyword arguments are only accepted with a sub-command name")
        if not isinstance(node, CommandNode):
            raise ArgChainError(
                f"Sub-command must be a CommandNode, got {type(node).__name__}"
            )
        name = name or node.name
        if not name:
            raise ArgChainError("Sub-command name cannot be empty")
        if name in self._children:
            raise CommandAlreadyExistsError(f"Sub-command '{name}' already exists")
        if node.parent is not None:
            raise ArgChainError(
                f"Sub-command '{name}' is already attached to '{node.parent.name}'"
            )
        if node is self or node in self.ancestors():
            raise ArgChainError(f"Sub-command '{name}' would create a cycle")

        node.name = name
        node._parent = weakref.ref(self)
        self._children[name] = node
        node._inherit_from_parent()
        node._cascade_inheritance()
        logger.debug("Attached sub-command '%s' to '%s'", name, self.name)
        return self

    @property
    def inherit_parent_flags(self) -> bool:
        return self.flag_inheritance is not FlagInheritance.NONE

    def _inherit_from_parent(self) -> None:
        parent = self.parent
        if parent is None or self.flag_inheritance is FlagInheritance.NONE:
            return
        if self.flag_inheritance is FlagInheritance.DIRECT_PARENT_ONLY:
            sources = [parent]
        else:
            sources = self.ancestors()
        # closest ancestor first, so it wins name clashes
        for source in sources:
            for flag in source.flags:
                self.flags.inherit(flag)

    def _cascade_inheritance(self) -> None:
        for child in self._children.values():
            if child.flag_inheritance is FlagInheritance.ALL_PARENTS:
                child._inherit_from_parent()
            child._cascade_inheritance()

    def get_subcommand(self, name: str) -> CommandNode | None:
        return self._children.get(name)

    def has_subcommand(self, name: str) -> bool:
        return name in self._children

    @property
    def subcommands(self) -> dict[str, CommandNode]:
        return dict(self._children)

    @property
    def parent(self) -> CommandNode | None:
        return self._parent() if self._parent is not None else None

    def ancestors(self) -> list[CommandNode]:
        """Parents from the closest one up to the root."""
        chain = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain

    @property
    def root(self) -> CommandNode:
        ancestors = self.ancestors()
        return ancestors[-1] if ancestors else self

    @property
    def command_chain(self) -> list[str]:
        """Sub-command names from the root (excluded) down to this node."""
        if self.parent is None:
            return []
        return [node.name for node in reversed(self.ancestors()[:-1])] + [self.name]

    def to_definition(self) -> dict[str, Any]:
        """Serializable description of this node and everything below it."""
        return {
            "name": self.name,
            "command_chain": self.command_chain,
            "description": self.description,
            "inherit_parent_flags": str(self.flag_inheritance),
            "handler": self.handler is not None,
            "flags": self.flags.to_definition_list(),
            "subcommands": [child.to_definition() for child in self._children.values()],
        }

    def walk(self) -> Iterator[CommandNode]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self._children.values():
            yield from child.walk()

    def __str__(self) -> str:
        return (
            f"{type(self).__name__}(name='{self.name}', flags={len(self.flags)}, "
            f"subcommands={len(self._children)}, handler={self.handler is not None})"
        )

    def __repr__(self) -> str:
        return str(self)
