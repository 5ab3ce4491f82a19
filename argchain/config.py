# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""config.py
Flat configuration files for `--s-with-env` and `--s-save-to-env`.

A configuration file is a flat mapping of flag keys to values. Keys match a
flag by its name, by its canonical option without the leading dashes, or by
the upper snake case form of its name (`dry-run` -> `DRY_RUN`), which is how
`.env` files are written.

Supported formats, chosen by file suffix:
- `.env`: python-dotenv
- `.yaml` / `.yml`: PyYAML
- `.toml`: toml
- `.json`: json
"""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

import toml
import yaml
from dotenv import dotenv_values

from argchain.coercion import coerce_bool
from argchain.exceptions import ConfigError
from argchain.flag import HELP_FLAG_NAME, Flag
from argchain.logger import logger
from argchain.matcher import looks_like_option
from argchain.resolver import stringify_env_value
from argchain.utils import to_env_key

YAML_SUFFIXES = (".yaml", ".yml")


def config_format(path: Path) -> str:
    if path.suffix == ".env" or path.name.startswith(".env"):
        return "env"
    if path.suffix in YAML_SUFFIXES:
        return "yaml"
    if path.suffix == ".toml":
        return "toml"
    if path.suffix == ".json":
        return "json"
    raise ConfigError(f"Unsupported config format: {path.name}")


def load_config_file(file_path: Path | str) -> dict[str, Any]:
    """
    Load a flat configuration mapping.

    Raises:
        ConfigError: If the file is missing or unreadable, has an unknown
            format, invalid content or nested mappings.
    """
    path = Path(file_path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    file_format = config_format(path)
    try:
        if file_format == "env":
            raw_config: Any = dict(dotenv_values(path))
        else:
            with path.open("r", encoding="UTF-8") as config_file:
                if file_format == "yaml":
                    raw_config = yaml.safe_load(config_file)
                elif file_format == "toml":
                    raw_config = toml.load(config_file)
                else:
                    raw_config = json.load(config_file)
    except (yaml.YAMLError, toml.TomlDecodeError, json.JSONDecodeError) as error:
        raise ConfigError(f"Invalid config file '{path}': {error}") from error
    except OSError as error:
        raise ConfigError(f"Cannot read config file '{path}': {error}") from error

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigError(
            f"Config file '{path}' must contain a mapping, got {type(raw_config).__name__}"
        )
    nested = [key for key, value in raw_config.items() if isinstance(value, dict)]
    if nested:
        raise ConfigError(f"Nested mappings are not supported in config: {', '.join(nested)}")

    logger.debug("Loaded %d config entries from '%s'", len(raw_config), path)
    return raw_config


def config_keys(flag: Flag) -> tuple[str, ...]:
    return (flag.name, flag.canonical_option.lstrip("-"), to_env_key(flag.name))


def find_flag(key: str, flags: Iterable[Flag]) -> Flag | None:
    for flag in flags:
        if flag.name != HELP_FLAG_NAME and key in config_keys(flag):
            return flag
    return None


def _value_tokens(flag: Flag, value: Any) -> list[str]:
    option = flag.canonical_option
    text = stringify_env_value(value)
    if flag.allow_ligature:
        return [f"{option}={text}"]
    if looks_like_option(text):
        raise ConfigError(
            f"Config value '{text}' for flag '{flag.name}' needs `allow_ligature`"
        )
    return [option, text]


def flag_tokens(flag: Flag, value: Any) -> list[str]:
    """Tokens that reproduce `value` for `flag` on the command line."""
    if value is None:
        return []
    if flag.flag_only:
        return [flag.canonical_option] if coerce_bool(value) else []
    if flag.allow_multiple:
        items = value.split(",") if isinstance(value, str) else value
        if not isinstance(items, (list, tuple)):
            items = [items]
        tokens: list[str] = []
        for item in items:
            if item != "":
                tokens.extend(_value_tokens(flag, item))
        return tokens
    return _value_tokens(flag, value)


def config_to_tokens(config: dict[str, Any], flags: Iterable[Flag]) -> list[str]:
    """
    Convert config entries into tokens for the flags they name.

    Entries that match none of `flags` are ignored.
    """
    flags = list(flags)
    tokens: list[str] = []
    for key, value in config.items():
        flag = find_flag(key, flags)
        if flag is None:
            logger.debug("Config key '%s' matches no flag", key)
            continue
        tokens.extend(flag_tokens(flag, value))
    return tokens


def flag_on_cli(flag: Flag, tokens: Iterable[str]) -> bool:
    for token in tokens:
        for option in flag.options:
            if token == option or token.startswith(f"{option}="):
                return True
    return False


def merge_config_tokens(
    cli_tokens: list[str],
    config_tokens: list[str],
    flags: Iterable[Flag],
    position: int = 0,
) -> list[str]:
    """
    Insert config tokens into a CLI token list at `position`.

    Config tokens for a flag that already appears on the command line are
    dropped, so the command line always wins.
    """
    flags = [flag for flag in flags if flag.name != HELP_FLAG_NAME]
    kept: list[str] = []
    skip_value = False
    for token in config_tokens:
        if skip_value:
            skip_value = False
            continue
        flag = next(
            (
                flag
                for flag in flags
                if token in flag.options
                or any(token.startswith(f"{option}=") for option in flag.options)
            ),
            None,
        )
        if flag is not None and flag_on_cli(flag, cli_tokens):
            logger.debug("Config token '%s' overridden by the command line", token)
            skip_value = token in flag.options and not flag.flag_only
            continue
        kept.append(token)
    return cli_tokens[:position] + kept + cli_tokens[position:]


def plain_value(value: Any) -> Any:
    """Reduce a resolved value to types every config format can write."""
    if isinstance(value, Enum):
        return plain_value(value.value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    if isinstance(value, (list, tuple)):
        return [plain_value(item) for item in value]
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


def dump_config(
    args: dict[str, Any], flags: Iterable[Flag], file_path: Path | str
) -> Path:
    """
    Write resolved arguments to a config file.

    Only values of `flags` are written; unset values and empty lists are
    skipped. Loading the file back with no other tokens reproduces `args`.

    Raises:
        ConfigError: On an unknown format or when the file cannot be written.
    """
    path = Path(file_path)
    file_format = config_format(path)
    entries: dict[str, Any] = {}
    for flag in flags:
        if flag.name == HELP_FLAG_NAME or flag.name in entries:
            continue
        value = args.get(flag.name)
        if value is None or value == []:
            continue
        if flag.flag_only and not value:
            continue
        entries[flag.name] = plain_value(value)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="UTF-8") as config_file:
            if file_format == "env":
                for name, value in entries.items():
                    text = json.dumps(stringify_env_value(value), ensure_ascii=False)
                    config_file.write(f"{to_env_key(name)}={text}\n")
            elif file_format == "yaml":
                yaml.safe_dump(entries, config_file, sort_keys=False)
            elif file_format == "toml":
                toml.dump(entries, config_file)
            else:
                json.dump(entries, config_file, indent=2)
                config_file.write("\n")
    except OSError as error:
        raise ConfigError(f"Cannot write config file '{path}': {error}") from error

    logger.debug("Wrote %d config entries to '%s'", len(entries), path)
    return path
