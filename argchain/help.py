# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Help output for command nodes.

`render_help` prints a node's usage line, description, sub-commands and
flags with Rich. `help_text` returns the same content as plain text.
Mandatory flags are marked with `*`; flags with a predicate are marked as
conditionally mandatory.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from argchain.console import ARGCHAIN_THEME, themed
from argchain.flag import Flag

if TYPE_CHECKING:
    from argchain.command import CommandNode


def program_name(node: CommandNode) -> str:
    root = node.root
    return getattr(root, "program", None) or root.name


def command_title(node: CommandNode) -> str:
    return " ".join([program_name(node), *node.command_chain]).strip()


def usage_line(node: CommandNode) -> str:
    usage = command_title(node)
    positional = sorted(
        (flag for flag in node.flags if flag.positional is not None),
        key=lambda flag: flag.positional,
    )
    for flag in positional:
        usage += f" <{flag.name}>"
    if len(node.flags) > len(positional):
        usage += " [options]"
    if node.subcommands:
        usage += " <command>"
    return usage


def flag_option_text(flag: Flag) -> str:
    text = ", ".join(flag.options)
    if flag.flag_only:
        return text
    if flag.enum:
        return f"{text} {{{','.join(str(item) for item in flag.enum)}}}"
    return f"{text} <{flag.type_name}>"


def flag_details(flag: Flag) -> str:
    description = (
        " ".join(flag.description)
        if isinstance(flag.description, list)
        else flag.description
    )
    details = [escape(description)] if description else []
    if flag.default is not None:
        details.append(f"[argchain.dim](default: {escape(repr(flag.default))})[/]")
    if flag.env:
        details.append(f"[argchain.dim](env: {escape(', '.join(flag.env))})[/]")
    if flag.allow_multiple:
        details.append("[argchain.dim](repeatable)[/]")
    if flag.is_dynamic_mandatory:
        details.append("[argchain.mandatory](conditionally mandatory)[/]")
    return " ".join(details)


def render_help(node: CommandNode, console: Console | None = None) -> None:
    """Print help for a node."""
    console = themed(console)
    console.print(f"[argchain.title]usage:[/] {escape(usage_line(node))}\n")
    if node.description:
        console.print(escape(node.description) + "\n")

    if node.subcommands:
        console.print("[argchain.title]commands:[/]")
        commands = Table.grid(padding=(0, 2))
        commands.add_column(style="argchain.command")
        commands.add_column()
        for name, child in node.subcommands.items():
            commands.add_row(f"  {escape(name)}", escape(child.description))
        console.print(commands)
        console.print()

    console.print("[argchain.title]options:[/]")
    options = Table.grid(padding=(0, 2))
    options.add_column(width=1)
    options.add_column(style="argchain.option")
    options.add_column()
    for flag in node.flags:
        marker = "[argchain.mandatory]*[/]" if flag.mandatory is True else ""
        options.add_row(marker, escape(flag_option_text(flag)), flag_details(flag))
    console.print(options)


def help_text(node: CommandNode, width: int = 100) -> str:
    """Help for a node as plain text."""
    plain_console = Console(
        theme=ARGCHAIN_THEME,
        width=width,
        color_system=None,
        force_terminal=False,
        highlight=False,
    )
    with plain_console.capture() as capture:
        render_help(node, plain_console)
    return capture.get()


def render_tree(node: CommandNode, console: Console | None = None) -> None:
    """Print the command tree below a node."""
    console = themed(console)

    def _branch(tree: Tree, current: CommandNode) -> None:
        for name, child in current.subcommands.items():
            label = f"[argchain.command]{escape(name)}[/]"
            if child.inherit_parent_flags:
                label += f" [argchain.dim](inherits: {child.flag_inheritance})[/]"
            _branch(tree.add(label), child)

    tree = Tree(f"[argchain.title]{escape(command_title(node))}[/]")
    _branch(tree, node)
    console.print(tree)
