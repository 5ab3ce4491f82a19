# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines structural protocols for Argchain extension points.

Protocols:
- Handler: Object invoked with a `HandlerContext` when its command is terminal.
  Plain callables taking the context are accepted too and wrapped on dispatch.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from argchain.dispatcher import HandlerContext


@runtime_checkable
class Handler(Protocol):
    def invoke(self, ctx: HandlerContext) -> Any: ...
