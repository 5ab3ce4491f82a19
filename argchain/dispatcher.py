# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Handler invocation for a resolved command chain.

- `HandlerContext`: Everything a handler is given about the parse.
- `PendingCompletion`: Awaitable marker returned in place of an async
  handler's result. The handler is already running (or ready to run) when
  `parse` returns; awaiting the marker waits for it.
- `ParseResult`: What `ArgParser.parse` returns. Supports mapping access to
  the resolved arguments.
- `Dispatcher`: Invokes the terminal node's handler.

Synchronous handler failures surface immediately as `HandlerError`.
Asynchronous failures are observed as soon as they happen, so they never
show up as "exception was never retrieved", and surface as `HandlerError`
when the marker is awaited.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from argchain.exceptions import ArgChainError, HandlerError
from argchain.help import render_help
from argchain.logger import logger
from argchain.protocols import Handler

if TYPE_CHECKING:
    from argchain.command import CommandNode


class HandlerContext(BaseModel):
    """
    Passed to the handler of the terminal command node.

    Attributes:
        args (dict): Resolved values of the terminal node's flags.
        parent_args (dict): Merged values of every ancestor level.
        command_chain (list[str]): Sub-command names from the root.
        node (CommandNode): The terminal node.
        parent (CommandNode | None): Its parent, if any.
        system_args (dict): Values of the `--s-*` system flags.
        root_path (str): Working directory before `set_working_directory` flags.
        environment (EnvironmentPort): Environment used for the parse.
    """

    args: dict[str, Any] = Field(default_factory=dict)
    parent_args: dict[str, Any] = Field(default_factory=dict)
    command_chain: list[str] = Field(default_factory=list)
    node: Any
    parent: Any | None = None
    system_args: dict[str, Any] = Field(default_factory=dict)
    root_path: str = ""
    environment: Any | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def display_help(self) -> None:
        render_help(self.node)


class CallableHandler:
    """Adapts a plain callable to the `Handler` protocol."""

    def __init__(self, function: Callable[[HandlerContext], Any]) -> None:
        self.function = function

    def invoke(self, ctx: HandlerContext) -> Any:
        return self.function(ctx)

    def __repr__(self) -> str:
        return f"CallableHandler({getattr(self.function, '__name__', self.function)!r})"


def as_handler(handler: Any) -> Handler:
    if isinstance(handler, Handler):
        return handler
    if callable(handler):
        return CallableHandler(handler)
    raise ArgChainError(f"Invalid handler: {handler!r}")


class PendingCompletion:
    """
    Awaitable stand-in for an asynchronous handler's result.

    With a running event loop the handler's coroutine is scheduled as a task
    right away. Without one it is kept until `wait()` or `await` runs it.

    Args:
        awaitable: Coroutine, future or other awaitable the handler returned.
        command_chain (list[str]): Used to tag `HandlerError`.
        on_error (Callable | None): Called with the `HandlerError` before it
            is raised to the awaiting caller.
    """

    def __init__(
        self,
        awaitable: Awaitable[Any] | concurrent.futures.Future,
        command_chain: list[str] | None = None,
        on_error: Callable[[HandlerError], None] | None = None,
    ) -> None:
        self.command_chain: list[str] = list(command_chain or [])
        self.on_error = on_error
        self._awaitable: Any = awaitable
        self._task: asyncio.Future | None = None
        if isinstance(awaitable, concurrent.futures.Future):
            awaitable.add_done_callback(self._observe)
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self._schedule()

    def _schedule(self) -> asyncio.Future:
        if self._task is None:
            self._task = asyncio.ensure_future(self._awaitable)
            self._task.add_done_callback(self._observe)
        return self._task

    def _observe(self, future: asyncio.Future | concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.debug("Async handler for %s failed: %s", self.command_chain, error)

    @property
    def started(self) -> bool:
        return self._task is not None or isinstance(
            self._awaitable, concurrent.futures.Future
        )

    def done(self) -> bool:
        if isinstance(self._awaitable, concurrent.futures.Future):
            return self._awaitable.done()
        return self._task is not None and self._task.done()

    async def _wait(self) -> Any:
        try:
            if isinstance(self._awaitable, concurrent.futures.Future):
                return await asyncio.wrap_future(self._awaitable)
            return await self._schedule()
        except asyncio.CancelledError:
            raise
        except Exception as error:
            handler_error = HandlerError(
                f"Handler error: {error}", self.command_chain
            )
            if self.on_error is not None:
                self.on_error(handler_error)
            raise handler_error from error

    def __await__(self) -> Iterator[Any]:
        return self._wait().__await__()

    def wait(self) -> Any:
        """
        Block until the handler finishes and return its result.

        Raises:
            HandlerError: If the handler failed.
            RuntimeError: If called from inside a running event loop.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._wait())
        raise RuntimeError("PendingCompletion.wait() cannot run inside an event loop; await it")

    def close(self) -> None:
        """Discard a handler coroutine that was never started."""
        if not self.started and inspect.iscoroutine(self._awaitable):
            self._awaitable.close()

    def __del__(self) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "done" if self.done() else "running" if self.started else "deferred"
        return f"PendingCompletion(command_chain={self.command_chain}, state={state})"


@dataclass
class ParseResult:
    """
    Outcome of `ArgParser.parse`.

    Attributes:
        args (dict): Merged resolved values of the whole chain.
        command_chain (list[str]): Sub-command names from the root.
        handler_result (Any): Return value of a synchronous handler, or of an
            async handler once awaited through `parse_async`.
        pending (PendingCompletion | None): Set when the handler is async.
        handler_invoked (bool): Whether a handler ran.
        help_displayed (bool): Whether help was rendered instead of parsing.
        debug_displayed (bool): Whether the `--s-debug` trace was rendered.
        working_directory (str | None): Directory selected by a
            `set_working_directory` flag.
        system_args (dict): Values of the `--s-*` system flags.
        success (bool): False when a managed error was reported.
        exit_code (int): Suggested process exit code.
        error (ArgChainError | None): The reported error, if any.
    """

    args: dict[str, Any] = field(default_factory=dict)
    command_chain: list[str] = field(default_factory=list)
    handler_result: Any = None
    pending: PendingCompletion | None = None
    handler_invoked: bool = False
    help_displayed: bool = False
    debug_displayed: bool = False
    working_directory: str | None = None
    system_args: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    exit_code: int = 0
    error: ArgChainError | None = None

    def __getitem__(self, name: str) -> Any:
        return self.args[name]

    def __contains__(self, name: object) -> bool:
        return name in self.args

    def __iter__(self) -> Iterator[str]:
        return iter(self.args)

    def __len__(self) -> int:
        return len(self.args)

    def get(self, name: str, default: Any = None) -> Any:
        return self.args.get(name, default)

    def keys(self):
        return self.args.keys()

    def items(self):
        return self.args.items()


class Dispatcher:
    """
    Invokes the handler attached to the terminal node.

    Args:
        on_async_error (Callable | None): Passed to every `PendingCompletion`.
    """

    def __init__(self, on_async_error: Callable[[HandlerError], None] | None = None) -> None:
        self.on_async_error = on_async_error

    def dispatch(
        self, node: CommandNode, ctx: HandlerContext, result: ParseResult
    ) -> ParseResult:
        """
        Raises:
            HandlerError: If a synchronous handler raises.
        """
        if node.handler is None:
            logger.debug("No handler for command chain %s", ctx.command_chain)
            return result
        handler = as_handler(node.handler)
        logger.debug("Dispatching %r for %s", handler, ctx.command_chain)
        try:
            outcome = handler.invoke(ctx)
        except Exception as error:
            raise HandlerError(f"Handler error: {error}", ctx.command_chain) from error

        result.handler_invoked = True
        if inspect.isawaitable(outcome) or isinstance(outcome, concurrent.futures.Future):
            result.pending = PendingCompletion(
                outcome, ctx.command_chain, on_error=self.on_async_error
            )
        else:
            result.handler_result = outcome
        return result


__all__ = [
    "CallableHandler",
    "Dispatcher",
    "HandlerContext",
    "ParseResult",
    "PendingCompletion",
    "as_handler",
]
