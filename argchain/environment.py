# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Environment ports used by the value resolver.

Environment variable reverse sync and `set_working_directory` flags are
process-wide side effects. They go through an `EnvironmentPort` so resolution
can run against the real process (`OsEnvironment`) or an isolated in-memory
copy (`MemoryEnvironment`).
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Mapping, Protocol, runtime_checkable

from argchain.logger import logger


@runtime_checkable
class EnvironmentPort(Protocol):
    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str) -> None: ...

    def items(self) -> Iterator[tuple[str, str]]: ...

    def getcwd(self) -> str: ...

    def chdir(self, path: str) -> None: ...


class OsEnvironment:
    """Reads and writes the real process environment and working directory."""

    def get(self, name: str) -> str | None:
        return os.environ.get(name)

    def set(self, name: str, value: str) -> None:
        os.environ[name] = value

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(list(os.environ.items()))

    def getcwd(self) -> str:
        return os.getcwd()

    def chdir(self, path: str) -> None:
        os.chdir(path)
        logger.debug("Working directory changed to '%s'", path)

    def __repr__(self) -> str:
        return "OsEnvironment()"


class MemoryEnvironment:
    """
    In-memory environment for tests and embedded use.

    `chdir` only records the new directory; it never touches the process.
    """

    def __init__(
        self, variables: Mapping[str, str] | None = None, cwd: str | None = None
    ) -> None:
        self.variables: dict[str, str] = dict(variables or {})
        self.cwd: str = cwd or os.getcwd()

    def get(self, name: str) -> str | None:
        return self.variables.get(name)

    def set(self, name: str, value: str) -> None:
        self.variables[name] = value

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(list(self.variables.items()))

    def getcwd(self) -> str:
        return self.cwd

    def chdir(self, path: str) -> None:
        target = Path(path)
        if not target.is_absolute():
            target = Path(self.cwd) / target
        self.cwd = str(target)

    def __repr__(self) -> str:
        return f"MemoryEnvironment(variables={len(self.variables)}, cwd='{self.cwd}')"
