import pytest

from argchain.command import CommandNode
from argchain.exceptions import ValidationError
from argchain.validator import MandatoryValidator


def test_missing_flags_are_batched():
    root = CommandNode("app").add_flags(
        [
            {"name": "host", "options": ["--host"], "mandatory": True},
            {"name": "port", "options": ["--port"], "mandatory": True},
        ]
    )
    with pytest.raises(ValidationError) as excinfo:
        MandatoryValidator().validate([root], {"host": None, "port": None})
    assert excinfo.value.flag_names == ["host", "port"]
    assert excinfo.value.message == "Missing mandatory flags: host, port"


def test_present_values_pass():
    root = CommandNode("app").add_flag(name="host", options=["--host"], mandatory=True)
    MandatoryValidator().validate([root], {"host": "localhost"})


def test_empty_list_counts_as_missing():
    root = CommandNode("app").add_flag(
        name="tag", options=["--tag"], mandatory=True, allow_multiple=True
    )
    missing = MandatoryValidator().find_missing([root], {"tag": []})
    assert [flag.name for flag in missing] == ["tag"]


def test_false_is_a_value():
    root = CommandNode("app").add_flag(
        name="force", options=["--force"], type="boolean", mandatory=True
    )
    assert MandatoryValidator().find_missing([root], {"force": False}) == []


def test_predicate_sees_merged_args():
    root = CommandNode("app").add_flags(
        [
            {"name": "mode", "options": ["--mode"]},
            {
                "name": "token",
                "options": ["--token"],
                "mandatory": lambda args: args.get("mode") == "remote",
            },
        ]
    )
    validator = MandatoryValidator()
    assert validator.find_missing([root], {"mode": "local", "token": None}) == []
    missing = validator.find_missing([root], {"mode": "remote", "token": None})
    assert [flag.name for flag in missing] == ["token"]


def test_inheriting_child_owns_the_check():
    root = CommandNode("app").add_flag(name="token", options=["--token"], mandatory=True)
    child = CommandNode("deploy", inherit_parent_flags=True)
    root.add_subcommand(child)
    missing = MandatoryValidator().find_missing([root, child], {"token": None})
    assert len(missing) == 1
    assert missing[0].node_name == "deploy"
    assert missing[0].command_chain == ("deploy",)


def test_non_inheriting_chain_checks_every_level():
    root = CommandNode("app").add_flag(name="token", options=["--token"], mandatory=True)
    child = CommandNode("deploy").add_flag(name="env", options=["--env"], mandatory=True)
    root.add_subcommand(child)
    missing = MandatoryValidator().find_missing([root, child], {"token": None, "env": None})
    assert [(flag.name, flag.node_name) for flag in missing] == [
        ("token", "app"),
        ("env", "deploy"),
    ]
