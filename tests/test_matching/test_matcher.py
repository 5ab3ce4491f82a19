import pytest

from argchain.exceptions import ValidationError
from argchain.flag import Flag
from argchain.flag_registry import FlagRegistry
from argchain.matcher import FlagMatcher
from argchain.parse_context import UNSET


def build_matcher(*flags: Flag) -> FlagMatcher:
    return FlagMatcher(FlagRegistry(flags))


def test_ligature_and_space_forms_agree():
    port = Flag(name="port", options=["-p", "--port"], type="number")
    ligature = build_matcher(port).match(["--port=8080"])
    spaced = build_matcher(port).match(["--port", "8080"])
    assert ligature.values["port"] == spaced.values["port"] == 8080
    assert ligature.fully_consumed
    assert spaced.fully_consumed


def test_ligature_requires_non_empty_value_and_anchor():
    matcher = build_matcher(Flag(name="name", options=["--name"]))
    result = matcher.match(["--name="])
    assert result.values["name"] is UNSET
    assert result.first_unconsumed_index == 0

    result = matcher.match(["x--name=y"])
    assert result.values["name"] is UNSET
    assert result.first_unconsumed_index == 0


def test_ligature_disabled():
    matcher = build_matcher(Flag(name="name", options=["--name"], allow_ligature=False))
    result = matcher.match(["--name=value"])
    assert result.values["name"] is UNSET
    assert not result.fully_consumed


def test_flag_only_never_consumes_value():
    matcher = build_matcher(
        Flag(name="verbose", options=["-v"], flag_only=True),
        Flag(name="target", options=["--target"], positional=1),
    )
    result = matcher.match(["-v", "prod"])
    assert result.values["verbose"] is True
    assert result.values["target"] == "prod"
    assert result.fully_consumed


def test_boolean_without_value_is_true():
    matcher = build_matcher(
        Flag(name="force", options=["--force"], type="boolean"),
        Flag(name="name", options=["--name"]),
    )
    result = matcher.match(["--force", "--name", "x"])
    assert result.values["force"] is True
    assert result.values["name"] == "x"

    result = matcher.match(["--force", "no"])
    assert result.values["force"] is False


def test_option_without_value_records_nothing():
    matcher = build_matcher(Flag(name="name", options=["--name"]))
    result = matcher.match(["--name", "--other"])
    assert result.values["name"] is UNSET
    assert result.consumed == {0}
    assert result.first_unconsumed_index == 1


def test_single_flag_stops_after_first_match():
    matcher = build_matcher(Flag(name="name", options=["--name"]))
    result = matcher.match(["--name", "a", "--name", "b"])
    assert result.values["name"] == "a"
    assert result.first_unconsumed_index == 2


def test_allow_multiple_collects_in_token_order_per_pass():
    matcher = build_matcher(Flag(name="tag", options=["-t", "--tag"], allow_multiple=True))
    result = matcher.match(["-t", "a", "--tag", "b"])
    assert result.values["tag"] == ["a", "b"]
    assert result.fully_consumed


def test_unmatched_multiple_is_empty_list():
    matcher = build_matcher(Flag(name="tag", options=["--tag"], allow_multiple=True))
    result = matcher.match([])
    assert result.values["tag"] == []
    assert result.fully_consumed


def test_positional_slots():
    matcher = build_matcher(
        Flag(name="source", options=["--source"], positional=1),
        Flag(name="target", options=["--target"], positional=2),
    )
    result = matcher.match(["a.txt", "b.txt"])
    assert result.values == {"source": "a.txt", "target": "b.txt"}

    result = matcher.match(["--source", "a.txt", "b.txt"])
    assert result.values["source"] == "a.txt"
    assert result.values["target"] is UNSET
    assert result.first_unconsumed_index == 2


def test_enum_violation_raises():
    matcher = build_matcher(Flag(name="level", options=["--level"], enum=["debug", "info"]))
    with pytest.raises(ValidationError) as excinfo:
        matcher.match(["--level", "trace"])
    assert excinfo.value.flag_name == "level"
    assert "Allowed values" in excinfo.value.message


def test_coercion_failure_raises_validation_error():
    matcher = build_matcher(Flag(name="port", options=["--port"], type="number"))
    with pytest.raises(ValidationError) as excinfo:
        matcher.match(["--port", "eighty"])
    assert isinstance(excinfo.value.__cause__, ValueError)


@pytest.mark.parametrize(
    "validator, message",
    [
        (lambda value: False, "Validation failed for flag 'port'"),
        (lambda value: "port must be even", "port must be even"),
    ],
)
def test_custom_validator_rejects(validator, message):
    matcher = build_matcher(
        Flag(name="port", options=["--port"], type="number", validate=validator)
    )
    with pytest.raises(ValidationError) as excinfo:
        matcher.match(["--port", "81"])
    assert message in excinfo.value.message


def test_custom_validator_sees_parsed_so_far():
    seen = {}

    def check(value, parsed):
        seen.update(parsed)
        return None

    matcher = build_matcher(
        Flag(name="host", options=["--host"]),
        Flag(name="port", options=["--port"], type="number", validate=check),
    )
    matcher.match(["--host=example.org", "--port", "80"])
    assert seen == {"host": "example.org"}


def test_option_owned_by_another_flag_is_skipped():
    registry = FlagRegistry()
    registry.add(Flag(name="verbose", options=["-v"], flag_only=True))
    registry.add(Flag(name="version", options=["-v", "--version"], flag_only=True))
    result = FlagMatcher(registry).match(["-v"])
    assert result.values["version"] is True
    assert result.values["verbose"] is UNSET
