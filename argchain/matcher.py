# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Implements `FlagMatcher`, which consumes one command level's tokens against
that level's flags.

Matching runs in three passes over the same token slice:

1. Ligature pass: `--option=value` tokens for every flag that allows them.
2. Space-separated pass: an exact option token, followed by its value token
   unless the flag is flag-only or the next token looks like an option.
3. Positional pass: flags declaring a 1-based `positional` slot that are
   still empty take the n-th remaining bare token.

Each pass skips tokens already consumed by an earlier one. Values are coerced
to the flag's type, checked against its `enum` and passed through its custom
validator before they are recorded.

The matcher never raises for leftover tokens: it reports the first index no
flag claimed and leaves the decision to the command tree walker.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable

from argchain.coercion import coerce_value
from argchain.exceptions import ValidationError
from argchain.flag import Flag
from argchain.flag_registry import FlagRegistry
from argchain.logger import logger
from argchain.parse_context import UNSET, MatchResult


def looks_like_option(token: str) -> bool:
    return token.startswith("-")


def _accepts_parsed_args(validator: Callable[..., Any]) -> bool:
    try:
        parameters = inspect.signature(validator).parameters.values()
    except (TypeError, ValueError):
        return True
    positional = [
        parameter
        for parameter in parameters
        if parameter.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    has_varargs = any(
        parameter.kind == inspect.Parameter.VAR_POSITIONAL for parameter in parameters
    )
    return has_varargs or len(positional) >= 2


def check_value(
    flag: Flag, raw: Any, parsed_so_far: dict[str, Any], command_chain: list[str]
) -> Any:
    """
    Coerce a raw value for a flag and run its enum and custom checks.

    Raises:
        ValidationError: If coercion fails, the value is outside `enum`, or the
            flag's validator rejects it.
    """
    try:
        value = coerce_value(raw, flag.type)
    except Exception as error:
        raise ValidationError(
            f"Invalid value '{raw}' for flag '{flag.name}': {error}",
            command_chain,
            flag_name=flag.name,
        ) from error

    if flag.enum and value not in flag.enum:
        allowed = ", ".join(
            f"'{item}'" if isinstance(item, str) else str(item) for item in flag.enum
        )
        raise ValidationError(
            f"Invalid value '{value}' for flag '{flag.name}'. Allowed values: {allowed}",
            command_chain,
            flag_name=flag.name,
        )

    if flag.validator is not None:
        try:
            if _accepts_parsed_args(flag.validator):
                outcome = flag.validator(value, parsed_so_far)
            else:
                outcome = flag.validator(value)
        except ValidationError:
            raise
        except Exception as error:
            raise ValidationError(
                f"Validation failed for flag '{flag.name}' with value '{value}': {error}",
                command_chain,
                flag_name=flag.name,
            ) from error
        if outcome is False:
            raise ValidationError(
                f"Validation failed for flag '{flag.name}' with value '{value}'",
                command_chain,
                flag_name=flag.name,
            )
        if isinstance(outcome, str):
            raise ValidationError(outcome, command_chain, flag_name=flag.name)
    return value


class FlagMatcher:
    """
    Matches the tokens of one command level against a `FlagRegistry`.

    Args:
        registry (FlagRegistry): The flags of the level being matched.
        command_chain (list[str]): Used to tag validation errors.
    """

    def __init__(
        self, registry: FlagRegistry, command_chain: list[str] | None = None
    ) -> None:
        self.registry = registry
        self.command_chain: list[str] = list(command_chain or [])

    def _owns(self, flag: Flag, option: str) -> bool:
        return self.registry.find_by_option(option) is flag

    def _record(self, flag: Flag, raw: Any, values: dict[str, Any]) -> None:
        parsed = {name: value for name, value in values.items() if value is not UNSET}
        value = check_value(flag, raw, parsed, self.command_chain)
        if flag.allow_multiple:
            values[flag.name].append(value)
        else:
            values[flag.name] = value
        logger.debug("Matched flag '%s' -> %r", flag.name, value)

    def _ligature_pass(
        self, tokens: list[str], values: dict[str, Any], consumed: set[int]
    ) -> None:
        for flag in self.registry:
            if not flag.allow_ligature or flag.flag_only:
                continue
            prefixes = [f"{option}=" for option in flag.options if self._owns(flag, option)]
            for index, token in enumerate(tokens):
                if index in consumed:
                    continue
                prefix = next(
                    (
                        prefix
                        for prefix in prefixes
                        if token.startswith(prefix) and len(token) > len(prefix)
                    ),
                    None,
                )
                if prefix is None:
                    continue
                self._record(flag, token[len(prefix) :], values)
                consumed.add(index)
                if not flag.allow_multiple:
                    break

    def _space_pass(
        self, tokens: list[str], values: dict[str, Any], consumed: set[int]
    ) -> None:
        for flag in self.registry:
            for index, token in enumerate(tokens):
                if index in consumed:
                    continue
                if token not in flag.options or not self._owns(flag, token):
                    continue
                consumed.add(index)
                next_index = index + 1
                has_next = next_index < len(tokens) and next_index not in consumed
                if flag.flag_only:
                    self._record(flag, True, values)
                elif has_next and not looks_like_option(tokens[next_index]):
                    self._record(flag, tokens[next_index], values)
                    consumed.add(next_index)
                elif flag.is_boolean:
                    self._record(flag, True, values)
                else:
                    logger.debug("Option '%s' for flag '%s' has no value", token, flag.name)
                if not flag.allow_multiple:
                    break

    def _positional_pass(
        self, tokens: list[str], values: dict[str, Any], consumed: set[int]
    ) -> None:
        positional_flags = sorted(
            (flag for flag in self.registry if flag.positional is not None),
            key=lambda flag: flag.positional,
        )
        if not positional_flags:
            return
        candidates = [
            index
            for index, token in enumerate(tokens)
            if index not in consumed and not looks_like_option(token)
        ]
        for flag in positional_flags:
            current = values[flag.name]
            if current is not UNSET and current != []:
                continue
            slot = flag.positional - 1
            if slot >= len(candidates):
                continue
            index = candidates[slot]
            self._record(flag, tokens[index], values)
            consumed.add(index)

    def match(self, tokens: list[str], *, positional: bool = True) -> MatchResult:
        """
        Match a token slice.

        Args:
            tokens (list[str]): The level's tokens.
            positional (bool): Run the positional pass. Without it only
                option tokens and their values are matched.

        Returns:
            MatchResult: The matched values (multi-value flags as lists, other
            unmatched flags as `UNSET`), the consumed indices and the first
            index no flag claimed.
        """
        values: dict[str, Any] = {
            flag.name: [] if flag.allow_multiple else UNSET for flag in self.registry
        }
        consumed: set[int] = set()

        self._ligature_pass(tokens, values, consumed)
        self._space_pass(tokens, values, consumed)
        if positional:
            self._positional_pass(tokens, values, consumed)

        first_unconsumed_index = next(
            (index for index in range(len(tokens)) if index not in consumed), len(tokens)
        )
        return MatchResult(
            values=values,
            first_unconsumed_index=first_unconsumed_index,
            consumed=consumed,
            token_count=len(tokens),
        )
