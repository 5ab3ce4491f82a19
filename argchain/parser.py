# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `ArgParser`, the root of an Argchain command tree and the entry point
for resolving a token stream.

`parse` runs the full pipeline:

1. Drop flags a previous parse registered dynamically, then strip the
   `--s-*` system flags. `--s-debug-print` writes the command tree definition
   to `argchain.full.json` and stops.
2. Merge a `--s-with-env` config file into the tokens (command line wins).
3. Render help if the terminal command's slice asks for it.
4. Walk the tree: run `dynamic_register` callbacks, match each level, then
   resolve env fallbacks and defaults.
5. Check mandatory flags across the whole chain in one batch.
6. Apply `set_working_directory` flags and `--s-save-to-env`.
7. Invoke the terminal handler.

Errors follow the parser's `ErrorMode`. In managed mode they are printed to
stderr with a pointer to the right `--help` page and the process exits with
status 1; in unmanaged mode they propagate to the caller.

Example:
    parser = ArgParser("deploy", error_mode="unmanaged")
    parser.add_flag(name="port", options=["-p", "--port"], type="number", mandatory=True)
    result = parser.parse(["--port", "8080"])
    result["port"]  # 8080
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from argchain.command import CommandNode
from argchain.config import (
    config_to_tokens,
    dump_config,
    find_flag,
    load_config_file,
    merge_config_tokens,
)
from argchain.console import error_console as default_error_console
from argchain.console import themed
from argchain.dispatcher import Dispatcher, HandlerContext, ParseResult
from argchain.dynamic import register_dynamic_flags
from argchain.environment import EnvironmentPort, MemoryEnvironment, OsEnvironment
from argchain.exceptions import ArgChainError, ConfigError, HandlerError, ValidationError
from argchain.flag import HELP_FLAG_NAME, Flag
from argchain.help import render_help, render_tree
from argchain.logger import logger
from argchain.mode import ErrorMode, FlagInheritance
from argchain.parse_context import UNSET, ParseContext
from argchain.resolver import ValueResolver
from argchain.validator import MandatoryValidator, is_missing
from argchain.walker import CommandPath, CommandTreeWalker

SYSTEM_DEBUG = "--s-debug"
SYSTEM_DEBUG_PRINT = "--s-debug-print"
SYSTEM_WITH_ENV = "--s-with-env"
SYSTEM_SAVE_TO_ENV = "--s-save-to-env"
DEBUG_PRINT_FILE = "argchain.full.json"


def extract_system_flags(tokens: list[str]) -> tuple[dict[str, Any], list[str]]:
    """
    Split the `--s-*` system flags from the rest of the tokens.

    Returns:
        tuple: `({"debug": bool, "debug_print": bool, "with_env": str | None,
        "save_to_env": str | None}, remaining_tokens)`

    Raises:
        ValidationError: If a file flag has no path.
    """
    system_args: dict[str, Any] = {
        "debug": False,
        "debug_print": False,
        "with_env": None,
        "save_to_env": None,
    }
    remaining: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == SYSTEM_DEBUG:
            system_args["debug"] = True
        elif token == SYSTEM_DEBUG_PRINT:
            system_args["debug_print"] = True
        elif token.split("=", 1)[0] in (SYSTEM_WITH_ENV, SYSTEM_SAVE_TO_ENV):
            option, separator, value = token.partition("=")
            if not separator:
                if index + 1 >= len(tokens) or tokens[index + 1].startswith("-"):
                    raise ValidationError(f"System flag '{option}' requires a file path")
                index += 1
                value = tokens[index]
            if not value:
                raise ValidationError(f"System flag '{option}' requires a file path")
            key = "with_env" if option == SYSTEM_WITH_ENV else "save_to_env"
            system_args[key] = value
        else:
            remaining.append(token)
        index += 1
    return system_args, remaining


class ArgParser(CommandNode):
    """
    Root command node plus the policy for running a parse.

    Args:
        app_name (str): Application name, used as the root node's name.
        description (str): Shown at the top of the root help page.
        app_command_name (str | None): How users invoke the program; used in
            help and error hints. Defaults to `app_name`.
        error_mode (ErrorMode | str | bool): `MANAGED` (default) or `UNMANAGED`.
        auto_exit (bool): In managed mode, exit the process after reporting an
            error (status 1) or rendering help or debug output (status 0).
            When False, `parse` returns an unsuccessful `ParseResult` instead.
        environment (EnvironmentPort | None): Where env aliases are read and
            written and where the working directory changes. Defaults to the
            real process.
        console (Console | None): Console for help and debug output.
        error_console (Console | None): Console for managed error reports.
        flags, handler, subcommands, inherit_parent_flags,
        throw_for_duplicate_flags: As for `CommandNode`.
    """

    def __init__(
        self,
        app_name: str = "app",
        description: str = "",
        *,
        app_command_name: str | None = None,
        flags: Iterable[Flag | dict[str, Any]] | None = None,
        handler: Callable[..., Any] | Any | None = None,
        subcommands: Iterable[CommandNode] | None = None,
        inherit_parent_flags: FlagInheritance | str | bool = False,
        throw_for_duplicate_flags: bool = False,
        error_mode: ErrorMode | str | bool = ErrorMode.MANAGED,
        auto_exit: bool = True,
        environment: EnvironmentPort | None = None,
        console: Console | None = None,
        error_console: Console | None = None,
    ) -> None:
        super().__init__(
            app_name,
            description,
            flags=flags,
            handler=handler,
            subcommands=subcommands,
            inherit_parent_flags=inherit_parent_flags,
            throw_for_duplicate_flags=throw_for_duplicate_flags,
        )
        self.app_name = app_name
        self.app_command_name = app_command_name
        self.error_mode = (
            error_mode if isinstance(error_mode, ErrorMode) else ErrorMode(error_mode)
        )
        self.auto_exit = auto_exit
        self.environment: EnvironmentPort = environment or OsEnvironment()
        self.console = themed(console)
        self.error_console = themed(error_console, default_error_console)
        self.validator = MandatoryValidator()
        self.dispatcher = Dispatcher(on_async_error=self._on_async_error)

    @property
    def program(self) -> str:
        return self.app_command_name or self.app_name

    def parse(
        self,
        tokens: list[str] | None = None,
        *,
        skip_handlers: bool = False,
        skip_help: bool = False,
    ) -> ParseResult:
        """
        Resolve a token stream and dispatch the terminal handler.

        Args:
            tokens (list[str] | None): Defaults to `sys.argv[1:]`.
            skip_handlers (bool): Resolve and validate without dispatching.
            skip_help (bool): Treat `-h`/`--help` as an ordinary flag.

        Returns:
            ParseResult: Resolved arguments and the handler outcome. An async
            handler's outcome is `result.pending`.

        Raises:
            ArgChainError: In unmanaged mode.
            SystemExit: In managed mode with `auto_exit`.
        """
        tokens = list(sys.argv[1:] if tokens is None else tokens)
        try:
            return self._parse(tokens, skip_handlers, skip_help)
        except ArgChainError as error:
            if self.error_mode is ErrorMode.UNMANAGED:
                raise
            return self._managed_failure(error)

    async def parse_async(
        self,
        tokens: list[str] | None = None,
        *,
        skip_handlers: bool = False,
        skip_help: bool = False,
    ) -> ParseResult:
        """Like `parse`, but also await an async handler's result."""
        result = self.parse(tokens, skip_handlers=skip_handlers, skip_help=skip_help)
        if result.pending is None:
            return result
        try:
            result.handler_result = await result.pending
        except HandlerError as error:
            if self.error_mode is ErrorMode.UNMANAGED:
                raise
            result.success = False
            result.exit_code = 1
            result.error = error
        return result

    def _parse(
        self, tokens: list[str], skip_handlers: bool, skip_help: bool
    ) -> ParseResult:
        self.reset_dynamic_flags()
        system_args, tokens = extract_system_flags(tokens)
        root_path = self.environment.getcwd()

        if system_args["debug_print"]:
            dump_path = self.dump_definition(Path(root_path) / DEBUG_PRINT_FILE)
            self.console.print(f"Command tree definition written to {escape(str(dump_path))}")
            result = ParseResult(debug_displayed=True, system_args=system_args)
            return self._finish_early(result)
        walker = CommandTreeWalker(ValueResolver(self.environment))

        path = walker.identify(self, tokens)
        if system_args["with_env"]:
            config_path = self._resolve_path(system_args["with_env"], root_path)
            tokens = self.apply_config(tokens, load_config_file(config_path), path)
            path = walker.identify(self, tokens)

        if system_args["debug"]:
            self.print_debug(tokens, path)
            result = ParseResult(
                command_chain=list(path.command_chain),
                debug_displayed=True,
                system_args=system_args,
            )
            return self._finish_early(result)

        if not skip_help and self._help_requested(tokens, path):
            for depth, node in enumerate(path.node_chain):
                register_dynamic_flags(
                    node,
                    path.level_tokens(tokens, depth),
                    node.command_chain,
                    for_help=True,
                )
            render_help(path.terminal, self.console)
            result = ParseResult(
                command_chain=list(path.command_chain),
                help_displayed=True,
                system_args=system_args,
            )
            return self._finish_early(result)

        context = walker.walk(self, tokens)
        args = self.public_args(context.node_chain, context.merged_values())
        self.validator.validate(context.node_chain, args, context.command_chain)

        result = ParseResult(
            args=args,
            command_chain=list(context.command_chain),
            working_directory=self._apply_working_directory(context, root_path),
            system_args=system_args,
        )

        if system_args["save_to_env"]:
            save_path = self._resolve_path(system_args["save_to_env"], root_path)
            dump_config(args, self._chain_flags(context.node_chain), save_path)

        if not skip_handlers:
            terminal = context.terminal
            handler_context = HandlerContext(
                args={
                    flag.name: args.get(flag.name, flag.empty_value())
                    for flag in terminal.flags
                    if flag.name != HELP_FLAG_NAME
                },
                parent_args=self.public_args(
                    context.node_chain[:-1], context.parent_values()
                ),
                command_chain=list(context.command_chain),
                node=terminal,
                parent=terminal.parent,
                system_args=system_args,
                root_path=root_path,
                environment=self.environment,
            )
            self.dispatcher.dispatch(terminal, handler_context, result)
        return result

    def apply_config(
        self, tokens: list[str], config: dict[str, Any], path: CommandPath
    ) -> list[str]:
        """
        Insert config entries into the token slices of the levels that own them.

        Each entry goes to the deepest node in the chain that has a matching
        flag. Entries for flags already on the command line are dropped.
        """
        remaining = dict(config)
        for depth in range(len(path.node_chain) - 1, -1, -1):
            node = path.node_chain[depth]
            level_config = {}
            for key in list(remaining):
                if find_flag(key, node.flags) is not None:
                    level_config[key] = remaining.pop(key)
            if not level_config:
                continue
            config_tokens = config_to_tokens(level_config, node.flags)
            tokens = merge_config_tokens(
                tokens, config_tokens, node.flags, position=path.level_start(depth)
            )
        for key in remaining:
            logger.warning("Config entry '%s' does not match any flag in the chain", key)
        return tokens

    def _help_requested(self, tokens: list[str], path: CommandPath) -> bool:
        help_flag = path.terminal.flags.get(HELP_FLAG_NAME)
        if help_flag is None:
            return False
        terminal_slice = tokens[path.level_start(len(path.node_chain) - 1) :]
        return any(
            path.terminal.flags.find_by_option(token) is help_flag
            for token in terminal_slice
        )

    @staticmethod
    def _chain_flags(node_chain: list[CommandNode]) -> list[Flag]:
        return [flag for node in node_chain for flag in node.flags]

    def public_args(
        self, node_chain: list[CommandNode], merged: dict[str, Any]
    ) -> dict[str, Any]:
        """Merged values with unset flags shown as `None` (or `[]` if repeatable)."""
        args: dict[str, Any] = {}
        for flag in self._chain_flags(node_chain):
            if flag.name == HELP_FLAG_NAME:
                continue
            value = merged.get(flag.name, UNSET)
            args[flag.name] = flag.empty_value() if value is UNSET else value
        return args

    @staticmethod
    def _resolve_path(value: str, root_path: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else Path(root_path) / path

    def _apply_working_directory(
        self, context: ParseContext, root_path: str
    ) -> str | None:
        selected: tuple[Flag, Any] | None = None
        for level in context.levels:
            for flag in level.node.flags:
                if not flag.set_working_directory:
                    continue
                value = level.values.get(flag.name, UNSET)
                if not is_missing(flag, value):
                    selected = (flag, value)
        if selected is None:
            return None

        flag, value = selected
        target = str(self._resolve_path(str(value), root_path))
        try:
            self.environment.chdir(target)
        except OSError as error:
            raise ValidationError(
                f"Cannot change working directory to '{value}' for flag '{flag.name}': {error}",
                context.command_chain,
                flag_name=flag.name,
            ) from error
        logger.debug("Working directory set to '%s' by flag '%s'", target, flag.name)
        return target

    def dump_definition(self, file_path: Path | str) -> Path:
        """
        Write the whole command tree (nodes, flags and inheritance modes) as JSON.

        Raises:
            ConfigError: If the file cannot be written.
        """
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="UTF-8") as definition_file:
                json.dump(self.to_definition(), definition_file, indent=2, default=str)
                definition_file.write("\n")
        except OSError as error:
            raise ConfigError(f"Cannot write command tree to '{path}': {error}") from error
        logger.debug("Command tree definition written to '%s'", path)
        return path

    def print_debug(self, tokens: list[str], path: CommandPath) -> None:
        """
        Print how each level would consume the tokens.

        Resolution runs against a copy of the environment so the trace has no
        side effects.
        """
        sandbox = MemoryEnvironment(dict(self.environment.items()), self.environment.getcwd())
        walker = CommandTreeWalker(ValueResolver(sandbox))
        context = ParseContext(tokens=list(tokens), node_chain=[self])
        failure: ArgChainError | None = None
        try:
            walker.walk(self, tokens, context)
        except ArgChainError as error:
            failure = error

        self.console.print(f"[argchain.title]Parse trace for:[/] {escape(' '.join(tokens))}")
        table = Table(show_header=True, header_style="argchain.title")
        table.add_column("Level", style="argchain.command")
        table.add_column("Tokens")
        table.add_column("Flag", style="argchain.flag")
        table.add_column("Value")
        table.add_column("Source", style="argchain.dim")
        for level in context.levels:
            label = " ".join([self.program, *level.node.command_chain])
            rows = [
                (name, value, level.sources.get(name, "cli"))
                for name, value in level.values.items()
                if value is not UNSET and value != [] and name != HELP_FLAG_NAME
            ]
            if not rows:
                rows = [("", "", "")]
            for index, (name, value, source) in enumerate(rows):
                table.add_row(
                    escape(label) if index == 0 else "",
                    escape(" ".join(level.tokens)) if index == 0 else "",
                    escape(name),
                    escape(repr(value)) if name else "",
                    source,
                )
        self.console.print(table)
        render_tree(self, self.console)
        if failure is not None:
            self.console.print(f"[argchain.error]Would fail:[/] {escape(failure.message)}")

    def report_error(self, error: ArgChainError) -> None:
        """Print an error with a pointer to the relevant help page."""
        logger.debug("Parse failed: %s", error)
        self.error_console.print(f"[argchain.error]Error:[/] {escape(error.message)}")
        if isinstance(error, ValidationError) and len(error.missing) > 1:
            for missing in error.missing:
                where = " ".join([self.program, *missing.command_chain])
                self.error_console.print(
                    f"  [argchain.flag]{escape(missing.name)}[/] "
                    f"[argchain.dim]({escape(where)})[/]"
                )
        chain = " ".join([self.program, *error.command_chain])
        self.error_console.print(
            f"Try '{escape(chain)} --help' for usage details.", style="argchain.dim"
        )

    def _managed_failure(self, error: ArgChainError) -> ParseResult:
        self.report_error(error)
        if self.auto_exit:
            sys.exit(1)
        return ParseResult(
            command_chain=list(error.command_chain),
            success=False,
            exit_code=1,
            error=error,
        )

    def _finish_early(self, result: ParseResult) -> ParseResult:
        if self.error_mode is ErrorMode.MANAGED and self.auto_exit:
            sys.exit(0)
        return result

    def _on_async_error(self, error: HandlerError) -> None:
        if self.error_mode is ErrorMode.UNMANAGED:
            return
        self.report_error(error)
        if self.auto_exit:
            sys.exit(1)
