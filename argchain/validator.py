# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Implements `MandatoryValidator`, the batched check for mandatory flags.

Every level of the resolved chain is inspected, and every missing flag is
collected before a single `ValidationError` is raised. A flag counts as
missing when it resolved to nothing, or to an empty list for multi-value
flags.

When a child node inherits its parent's flags and also has the same flag
name, the check belongs to the child. The parent's copy is skipped so one
missing flag is reported once.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from argchain.exceptions import MissingFlag, ValidationError
from argchain.flag import HELP_FLAG_NAME, Flag
from argchain.logger import logger
from argchain.parse_context import UNSET

if TYPE_CHECKING:
    from argchain.command import CommandNode


def is_missing(flag: Flag, value: Any) -> bool:
    if value is UNSET or value is None:
        return True
    return flag.allow_multiple and isinstance(value, list) and not value


def owned_by_child(flag: Flag, child: CommandNode | None) -> bool:
    return (
        child is not None and child.inherit_parent_flags and child.flags.has(flag.name)
    )


class MandatoryValidator:
    """Collects missing mandatory flags across a whole command chain."""

    def find_missing(
        self, node_chain: list[CommandNode], args: dict[str, Any]
    ) -> list[MissingFlag]:
        """
        Args:
            node_chain (list[CommandNode]): Resolved nodes, root first.
            args (dict[str, Any]): The merged argument map. Dynamic mandatory
                predicates receive it as their only argument.
        """
        missing: list[MissingFlag] = []
        seen: set[str] = set()
        for depth, node in enumerate(node_chain):
            child = node_chain[depth + 1] if depth + 1 < len(node_chain) else None
            for flag in node.flags:
                if flag.name == HELP_FLAG_NAME or flag.name in seen:
                    continue
                if owned_by_child(flag, child):
                    continue
                if not flag.is_mandatory(args):
                    continue
                if is_missing(flag, args.get(flag.name, UNSET)):
                    seen.add(flag.name)
                    missing.append(
                        MissingFlag(
                            name=flag.name,
                            node_name=node.name,
                            command_chain=tuple(node.command_chain),
                        )
                    )
        return missing

    def validate(
        self,
        node_chain: list[CommandNode],
        args: dict[str, Any],
        command_chain: list[str] | None = None,
    ) -> None:
        """
        Raises:
            ValidationError: Listing every missing mandatory flag.
        """
        missing = self.find_missing(node_chain, args)
        if not missing:
            return
        names = ", ".join(flag.name for flag in missing)
        logger.debug("Missing mandatory flags: %s", names)
        raise ValidationError(
            f"Missing mandatory flags: {names}",
            command_chain,
            flag_name=missing[0].name,
            missing=missing,
        )
