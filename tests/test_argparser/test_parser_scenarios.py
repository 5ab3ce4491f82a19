import pytest

from argchain import ArgParser, CommandNode, MemoryEnvironment, ValidationError


def make_parser(**kwargs) -> ArgParser:
    kwargs.setdefault("environment", MemoryEnvironment())
    return ArgParser("app", error_mode="unmanaged", **kwargs)


def test_default_applies_without_tokens():
    parser = make_parser().add_flag(name="port", options=["--port"], type="number", default=3000)
    assert parser.parse([])["port"] == 3000


def test_missing_mandatory_flag():
    parser = make_parser().add_flag(name="port", options=["--port"], mandatory=True)
    with pytest.raises(ValidationError) as excinfo:
        parser.parse([])
    assert excinfo.value.flag_names == ["port"]


def test_ligature_value():
    parser = make_parser().add_flag(name="port", options=["--port"], type="number")
    assert parser.parse(["--port=8080"])["port"] == 8080


def test_repeated_flag_collects_values():
    parser = make_parser().add_flag(name="tag", options=["--tag"], allow_multiple=True)
    assert parser.parse(["--tag", "a", "--tag", "b"])["tag"] == ["a", "b"]


def test_subcommand_handler_receives_its_args():
    seen = {}

    def handler(ctx):
        seen.update(ctx.args)
        seen["chain"] = ctx.command_chain
        return "sub ran"

    parser = make_parser()
    parser.add_subcommand(
        CommandNode("sub").add_flag(name="x", options=["--x"]).set_handler(handler)
    )
    result = parser.parse(["sub", "--x", "1"])
    assert result.command_chain == ["sub"]
    assert result.handler_result == "sub ran"
    assert seen == {"x": "1", "chain": ["sub"]}


def test_env_alias_fallback_and_sync():
    environment = MemoryEnvironment({"A": "v"})
    parser = make_parser(environment=environment).add_flag(
        name="apiKey", options=["--api-key"], env=["A", "B"]
    )
    assert parser.parse([])["apiKey"] == "v"
    assert environment.get("B") == "v"
