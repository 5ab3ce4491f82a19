from argchain.command import CommandNode
from argchain.environment import MemoryEnvironment
from argchain.flag import Flag
from argchain.matcher import FlagMatcher
from argchain.parse_context import UNSET, LevelResult
from argchain.resolver import ValueResolver, stringify_env_value


def resolve(node: CommandNode, tokens: list[str], environment: MemoryEnvironment):
    match = FlagMatcher(node.flags).match(tokens)
    level = LevelResult(node=node, tokens=tokens, match=match, values=dict(match.values))
    return ValueResolver(environment).resolve(level, [])


def api_key_node() -> CommandNode:
    return CommandNode("app").add_flag(
        Flag(name="api_key", options=["--api-key"], env=["API_KEY", "LEGACY_KEY"])
    )


def test_cli_value_syncs_to_every_alias():
    environment = MemoryEnvironment({"LEGACY_KEY": "old"})
    level = resolve(api_key_node(), ["--api-key", "new"], environment)
    assert level.values["api_key"] == "new"
    assert level.sources["api_key"] == "cli"
    assert environment.variables == {"API_KEY": "new", "LEGACY_KEY": "new"}


def test_first_defined_alias_fills_missing_aliases():
    environment = MemoryEnvironment({"LEGACY_KEY": "abc"})
    level = resolve(api_key_node(), [], environment)
    assert level.values["api_key"] == "abc"
    assert level.sources["api_key"] == "env:LEGACY_KEY"
    assert environment.variables == {"API_KEY": "abc", "LEGACY_KEY": "abc"}


def test_alias_order_decides_priority():
    environment = MemoryEnvironment({"API_KEY": "first", "LEGACY_KEY": "second"})
    level = resolve(api_key_node(), [], environment)
    assert level.values["api_key"] == "first"
    assert environment.variables["LEGACY_KEY"] == "second"


def test_default_is_not_synced():
    node = CommandNode("app").add_flag(
        name="region", options=["--region"], env="REGION", default="us-east-1"
    )
    environment = MemoryEnvironment()
    level = resolve(node, [], environment)
    assert level.values["region"] == "us-east-1"
    assert level.sources["region"] == "default"
    assert environment.variables == {}


def test_cli_value_coerced_to_none_is_kept():
    node = CommandNode("app").add_flag(
        name="mode",
        options=["--mode"],
        type=lambda raw: None if raw == "auto" else raw,
        env="MODE",
        default="fast",
    )
    environment = MemoryEnvironment({"MODE": "slow"})
    level = resolve(node, ["--mode", "auto"], environment)
    assert level.values["mode"] is None
    assert level.sources["mode"] == "cli"
    assert environment.variables == {"MODE": "slow"}


def test_unresolved_flag_stays_unset():
    node = CommandNode("app").add_flag(name="region", options=["--region"])
    level = resolve(node, [], MemoryEnvironment())
    assert level.values["region"] is UNSET
    assert "region" not in level.sources


def test_env_values_are_coerced():
    node = CommandNode("app").add_flags(
        [
            {"name": "port", "options": ["--port"], "type": "number", "env": "PORT"},
            {"name": "debug", "options": ["--debug"], "type": "boolean", "env": "DEBUG"},
            {"name": "tag", "options": ["--tag"], "allow_multiple": True, "env": "TAGS"},
        ]
    )
    environment = MemoryEnvironment({"PORT": "8080", "DEBUG": "yes", "TAGS": "a,b"})
    level = resolve(node, [], environment)
    assert level.values["port"] == 8080
    assert level.values["debug"] is True
    assert level.values["tag"] == ["a", "b"]


def test_invalid_env_value_falls_back(caplog):
    node = CommandNode("app").add_flag(
        name="port", options=["--port"], type="number", env=["PORT", "HTTP_PORT"], default=80
    )
    environment = MemoryEnvironment({"PORT": "eighty", "HTTP_PORT": "8000"})
    with caplog.at_level("WARNING", logger="argchain"):
        level = resolve(node, [], environment)
    assert level.values["port"] == 8000
    assert "PORT" in caplog.text


def test_multiple_cli_values_sync_as_csv():
    node = CommandNode("app").add_flag(
        name="tag", options=["--tag"], allow_multiple=True, env="TAGS"
    )
    environment = MemoryEnvironment()
    resolve(node, ["--tag", "a", "--tag", "b"], environment)
    assert environment.variables == {"TAGS": "a,b"}


def test_stringify_env_value():
    assert stringify_env_value(True) == "true"
    assert stringify_env_value(False) == "false"
    assert stringify_env_value([1, "b"]) == "1,b"
    assert stringify_env_value({"a": 1}) == '{"a": 1}'
    assert stringify_env_value(3.5) == "3.5"
