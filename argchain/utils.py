# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""utils.py"""
from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path

import pythonjsonlogger.json
from rich.logging import RichHandler

from argchain.console import error_console

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
HANDLER_NAME = "argchain"


def to_env_key(name: str) -> str:
    """`dry-run` / `dryRun` -> `DRY_RUN`."""
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name)
    return re.sub(r"[^A-Za-z0-9]+", "_", spaced).strip("_").upper()


def running_in_container() -> bool:
    try:
        with open("/proc/1/cgroup", "r", encoding="UTF-8") as f:
            content = f.read()
            return (
                "docker" in content
                or "kubepods" in content
                or "containerd" in content
                or "podman" in content
            )
    except OSError:
        return False


def _json_formatter() -> logging.Formatter:
    return pythonjsonlogger.json.JsonFormatter(LOG_FORMAT)


def setup_logging(
    mode: str | None = None,
    log_file: Path | str | None = None,
    level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Attach output handlers to the `argchain` logger.

    Only handlers added by a previous call are replaced; the root logger and
    any handlers the application installed are left alone.

    Args:
        mode (str | None): "cli" for Rich output on stderr or "json" for one
            JSON object per line. Defaults to `ARGCHAIN_LOG_MODE`, then to
            "json" inside containers and "cli" everywhere else.
        log_file (Path | str | None): Also append JSON lines to this file.
        level (int): Console level, `logging.WARNING` by default so parse
            traces stay quiet.
        file_level (int): File level, `logging.DEBUG` by default.

    Returns:
        logging.Logger: The configured `argchain` logger.

    Raises:
        ValueError: If `mode` is neither "cli" nor "json".
    """
    mode = (
        mode
        or os.getenv("ARGCHAIN_LOG_MODE")
        or ("json" if running_in_container() else "cli")
    ).lower()

    if mode == "cli":
        console_handler: logging.Handler = RichHandler(
            console=error_console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
    elif mode == "json":
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_json_formatter())
    else:
        raise ValueError(f"Invalid log mode: {mode}")
    console_handler.setLevel(level)
    handlers = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, "a", "UTF-8")
        file_handler.setFormatter(_json_formatter())
        file_handler.setLevel(file_level)
        handlers.append(file_handler)

    logger = logging.getLogger("argchain")
    for existing in list(logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            logger.removeHandler(existing)
            existing.close()
    for handler in handlers:
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    logger.setLevel(min(level, file_level) if log_file else level)

    logger.debug("Logging initialized in '%s' mode", mode)
    return logger
