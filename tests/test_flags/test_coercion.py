from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Literal

import pytest

from argchain.coercion import (
    coerce_bool,
    coerce_number,
    coerce_object,
    coerce_value,
)
from argchain.flag_type import FlagType


class Color(Enum):
    RED = "red"
    GREEN = "green"


@pytest.mark.parametrize(
    "value, target_type, expected",
    [
        ("42", int, 42),
        ("3.14", float, 3.14),
        ("True", bool, True),
        ("hello", str, "hello"),
        ("", str, ""),
        ("False", bool, False),
        ("/tmp/x", Path, Path("/tmp/x")),
    ],
)
def test_coerce_value_basic(value, target_type, expected):
    assert coerce_value(value, target_type) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("true", True),
        ("YES", True),
        ("1", True),
        ("false", False),
        ("no", False),
        ("0", False),
        ("truest", False),
        ("", False),
    ],
)
def test_coerce_bool(value, expected):
    assert coerce_bool(value) is expected


def test_coerce_number():
    assert coerce_number("8080") == 8080
    assert isinstance(coerce_number("8080"), int)
    assert coerce_number("2.5") == 2.5
    assert coerce_number(7) == 7
    with pytest.raises(ValueError):
        coerce_number("eighty")
    with pytest.raises(ValueError):
        coerce_number(True)


def test_coerce_object():
    assert coerce_object('{"a": 1}') == {"a": 1}
    assert coerce_object("a=1, b=two") == {"a": "1", "b": "two"}
    assert coerce_object({"a": 1}) == {"a": 1}
    with pytest.raises(ValueError):
        coerce_object("[1, 2]")
    with pytest.raises(ValueError):
        coerce_object("not a mapping")


def test_coerce_flag_types():
    assert coerce_value("12", FlagType.NUMBER) == 12
    assert coerce_value("x", FlagType.ARRAY) == ["x"]
    assert coerce_value("yes", FlagType.BOOLEAN) is True
    assert coerce_value(5, FlagType.STRING) == "5"


@pytest.mark.parametrize(
    "value, target_type, expected",
    [
        ("42", int | float, 42),
        ("3.14", int | float, 3.14),
        ("hello", str | int, "hello"),
        ("1", bool | str, True),
    ],
)
def test_coerce_value_union_success(value, target_type, expected):
    assert coerce_value(value, target_type) == expected


def test_coerce_value_union_failure():
    with pytest.raises(ValueError) as excinfo:
        coerce_value("abc", int | float)
    assert "could not be coerced" in str(excinfo.value)


def test_coerce_value_enum():
    assert coerce_value("red", Color) is Color.RED
    assert coerce_value("GREEN", Color) is Color.GREEN
    with pytest.raises(ValueError):
        coerce_value("blue", Color)


def test_coerce_value_literal():
    assert coerce_value("a", Literal["a", "b"]) == "a"
    with pytest.raises(ValueError):
        coerce_value("c", Literal["a", "b"])


def test_coerce_value_datetime():
    assert coerce_value("2025-01-02", datetime) == datetime(2025, 1, 2)
    with pytest.raises(ValueError):
        coerce_value("not a date", datetime)


def test_coerce_value_custom_callable():
    assert coerce_value("a,b", lambda raw: raw.split(",")) == ["a", "b"]
