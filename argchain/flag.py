# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines the `Flag` model, the declarative description of one named, typed
command-line argument.

Flags are validated on construction with pydantic, so malformed declarations
fail at configuration time rather than in the middle of a parse. Both
snake_case and camelCase keys are accepted, together with the `required`
and `default_value` aliases, which lets flag lists be loaded straight from
JSON or YAML declarations.

Key Attributes:
- `name`: Output key in the resolved argument map. Unique per command node.
- `options`: Accepted option strings; the first one is canonical.
- `type`: `FlagType`, a Python type or a coercion callable.
- `mandatory`: `True`/`False` or a predicate over the resolved argument map.
- `allow_multiple`: Collect every occurrence into a list.
- `flag_only`: Presence alone means `True`; never consumes a value token.
- `allow_ligature`: Accept `--option=value`.
- `enum`: Permitted values after coercion.
- `default`: Fallback when neither the tokens nor the environment supply one.
- `env`: Environment variable aliases, used as fallback and sync targets.
- `validator`: `(value, parsed_so_far) -> None | bool | str` check.
- `positional`: 1-based slot filled by a bare token.
- `set_working_directory`: The resolved value becomes the working directory.
- `dynamic_register`: Callback that registers more flags on the node when
  this flag is present on the command line.

Example:
    Flag(name="port", options=["-p", "--port"], type="number", default=3000)
"""
from __future__ import annotations

from typing import Any, Callable

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from argchain.flag_type import FlagType, normalize_flag_type, type_name

HELP_FLAG_NAME = "help"


class Flag(BaseModel):
    """
    Represents a command-line flag declaration.

    Attributes:
        name (str): Destination key in the resolved argument map.
        options (list[str]): Option strings such as `-p` or `--port`.
        type (Any): `FlagType`, Python type or coercion callable.
        mandatory (bool | Callable): Static or dynamic mandatory rule.
        allow_multiple (bool): Accumulate values into a list.
        flag_only (bool): Presence-only flag. Always boolean-typed.
        allow_ligature (bool): Accept the `--option=value` form.
        enum (list[Any] | None): Permitted values.
        default (Any): Default value, `None` when the flag has none.
        env (list[str]): Environment variable aliases.
        validator (Callable | None): Custom validation callback.
        positional (int | None): 1-based positional slot.
        set_working_directory (bool): Change the working directory to the value.
        dynamic_register (Callable | None): Called with a
            `DynamicRegisterContext` when the flag is matched.
        description (str | list[str]): Help text.
    """

    name: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)
    type: Any = FlagType.STRING
    mandatory: bool | Callable[[dict[str, Any]], bool] = Field(
        default=False, validation_alias=AliasChoices("mandatory", "required")
    )
    allow_multiple: bool = Field(
        default=False, validation_alias=AliasChoices("allow_multiple", "allowMultiple")
    )
    flag_only: bool = Field(
        default=False, validation_alias=AliasChoices("flag_only", "flagOnly")
    )
    allow_ligature: bool = Field(
        default=True, validation_alias=AliasChoices("allow_ligature", "allowLigature")
    )
    enum: list[Any] | None = None
    default: Any = Field(
        default=None,
        validation_alias=AliasChoices("default", "default_value", "defaultValue"),
    )
    env: list[str] = Field(default_factory=list)
    validator: Callable[..., Any] | None = Field(
        default=None, validation_alias=AliasChoices("validator", "validate")
    )
    positional: int | None = Field(default=None, gt=0)
    set_working_directory: bool = Field(
        default=False,
        validation_alias=AliasChoices("set_working_directory", "setWorkingDirectory"),
    )
    dynamic_register: Callable[..., Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("dynamic_register", "dynamicRegister"),
    )
    description: str | list[str] = ""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    @field_validator("options")
    @classmethod
    def validate_options(cls, options: list[str]) -> list[str]:
        for option in options:
            if not option or option.isspace():
                raise ValueError("Flag options cannot be empty")
            if any(char.isspace() for char in option):
                raise ValueError(f"Flag option '{option}' cannot contain whitespace")
        if len(set(options)) != len(options):
            raise ValueError(f"Flag options must be unique: {options}")
        return options

    @model_validator(mode="before")
    @classmethod
    def default_flag_only_type(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        flag_only = data.get("flag_only", data.get("flagOnly", False))
        if flag_only and data.get("type") is None:
            data = {**data, "type": FlagType.BOOLEAN}
        return data

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, value: Any) -> Any:
        return normalize_flag_type(value)

    @field_validator("env", mode="before")
    @classmethod
    def validate_env(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    @field_validator("enum")
    @classmethod
    def validate_enum(cls, value: list[Any] | None) -> list[Any] | None:
        return value or None

    @model_validator(mode="after")
    def validate_combinations(self) -> Flag:
        if self.flag_only and self.type is not FlagType.BOOLEAN:
            raise ValueError(
                f"Flag '{self.name}' is flag_only and must be boolean, not {self.type_name}"
            )
        if self.flag_only and self.positional is not None:
            raise ValueError(f"Flag '{self.name}' cannot be both flag_only and positional")
        if self.default is not None and self.enum:
            defaults = self.default if isinstance(self.default, list) else [self.default]
            invalid = [value for value in defaults if value not in self.enum]
            if invalid:
                raise ValueError(
                    f"Default value {self.default!r} for '{self.name}' not in allowed values: {self.enum}"
                )
        return self

    @property
    def canonical_option(self) -> str:
        return self.options[0]

    @property
    def is_boolean(self) -> bool:
        return self.type is FlagType.BOOLEAN

    @property
    def is_dynamic_mandatory(self) -> bool:
        return callable(self.mandatory)

    @property
    def type_name(self) -> str:
        return type_name(self.type)

    def is_mandatory(self, args: dict[str, Any]) -> bool:
        """Evaluate the mandatory rule against the resolved argument map."""
        if callable(self.mandatory):
            return bool(self.mandatory(args))
        return self.mandatory

    def empty_value(self) -> Any:
        """The value a flag holds before anything is matched."""
        return [] if self.allow_multiple else None

    def default_value(self) -> Any:
        """The default, list-wrapped for multi-value flags."""
        if self.default is None:
            return self.empty_value()
        if self.allow_multiple and not isinstance(self.default, list):
            return [self.default]
        if isinstance(self.default, (list, dict)):
            return type(self.default)(self.default)
        return self.default

    def __hash__(self) -> int:
        return hash((self.name, tuple(self.options)))

    def __str__(self) -> str:
        return f"Flag(name='{self.name}', options={self.options}, type={self.type_name})"


def help_flag() -> Flag:
    """The synthetic help flag every command node carries."""
    return Flag(
        name=HELP_FLAG_NAME,
        options=["-h", "--help"],
        type=FlagType.BOOLEAN,
        flag_only=True,
        description="Display this help message and exit",
    )
