import io
import sys

import pytest
from rich.console import Console

from argchain import (
    ArgParser,
    CommandNode,
    ErrorMode,
    HandlerError,
    MemoryEnvironment,
    OsEnvironment,
    UnknownCommandError,
    ValidationError,
)


def buffer_console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


def make_parser(**kwargs) -> ArgParser:
    kwargs.setdefault("environment", MemoryEnvironment())
    kwargs.setdefault("console", buffer_console())
    kwargs.setdefault("error_console", buffer_console())
    parser = ArgParser("app", **kwargs)
    parser.add_subcommand(
        CommandNode("deploy").add_flag(name="target", options=["--target"], mandatory=True)
    )
    return parser


def test_error_mode_values():
    assert ErrorMode("Managed") is ErrorMode.MANAGED
    assert ErrorMode(False) is ErrorMode.UNMANAGED
    with pytest.raises(ValueError):
        ErrorMode("loud")


def test_managed_mode_exits_with_status_one():
    parser = make_parser()
    with pytest.raises(SystemExit) as excinfo:
        parser.parse(["deploy"])
    assert excinfo.value.code == 1
    output = parser.error_console.file.getvalue()
    assert "Error: Missing mandatory flags: target" in output
    assert "Try 'app deploy --help' for usage details." in output


def test_managed_mode_without_auto_exit_returns_failure():
    parser = make_parser(auto_exit=False, app_command_name="tool")
    result = parser.parse(["destroy"])
    assert result.success is False
    assert result.exit_code == 1
    assert isinstance(result.error, UnknownCommandError)
    assert "Try 'tool --help'" in parser.error_console.file.getvalue()


def test_unmanaged_mode_raises():
    parser = make_parser(error_mode=ErrorMode.UNMANAGED)
    with pytest.raises(ValidationError):
        parser.parse(["deploy"])


def test_help_renders_terminal_node_and_skips_validation():
    parser = make_parser(error_mode="unmanaged")
    result = parser.parse(["deploy", "--help"])
    assert result.help_displayed
    assert result.command_chain == ["deploy"]
    assert not result.handler_invoked
    assert "usage: app deploy" in parser.console.file.getvalue()


def test_help_in_managed_mode_exits_cleanly():
    parser = make_parser()
    with pytest.raises(SystemExit) as excinfo:
        parser.parse(["-h"])
    assert excinfo.value.code == 0


def test_skip_help_treats_help_as_flag():
    parser = make_parser(error_mode="unmanaged")
    result = parser.parse(["deploy", "--target", "eu", "--help"], skip_help=True)
    assert result["target"] == "eu"
    assert "help" not in result
    assert not result.help_displayed


def test_skip_handlers():
    calls = []
    parser = make_parser(error_mode="unmanaged", handler=lambda ctx: calls.append(ctx))
    result = parser.parse([], skip_handlers=True)
    assert calls == []
    assert not result.handler_invoked


def test_sync_handler_failure_is_managed():
    def boom(ctx):
        raise RuntimeError("boom")

    parser = make_parser(auto_exit=False, handler=boom)
    result = parser.parse([])
    assert isinstance(result.error, HandlerError)
    assert "Handler error: boom" in parser.error_console.file.getvalue()


def test_tokens_default_to_sys_argv(monkeypatch):
    parser = make_parser(error_mode="unmanaged")
    monkeypatch.setattr(sys, "argv", ["app", "deploy", "--target=us"])
    assert parser.parse()["target"] == "us"


@pytest.mark.asyncio
async def test_parse_async_awaits_handler():
    async def handler(ctx):
        return ctx.args["target"] * 2

    parser = make_parser(error_mode="unmanaged")
    parser.get_subcommand("deploy").set_handler(handler)
    result = await parser.parse_async(["deploy", "--target", "eu"])
    assert result.handler_result == "eueu"


@pytest.mark.asyncio
async def test_parse_returns_pending_marker_inside_loop():
    async def handler(ctx):
        return "later"

    parser = make_parser(error_mode="unmanaged", handler=handler)
    result = parser.parse([])
    assert result.handler_result is None
    assert await result.pending == "later"


@pytest.mark.asyncio
async def test_parse_async_rejection_unmanaged():
    async def handler(ctx):
        raise KeyError("missing")

    parser = make_parser(error_mode="unmanaged", handler=handler)
    with pytest.raises(HandlerError):
        await parser.parse_async([])


@pytest.mark.asyncio
async def test_parse_async_rejection_managed():
    async def handler(ctx):
        raise KeyError("missing")

    parser = make_parser(auto_exit=False, handler=handler)
    result = await parser.parse_async([])
    assert result.success is False
    assert isinstance(result.error, HandlerError)
    assert "Error: Handler error" in parser.error_console.file.getvalue()


def test_set_working_directory(tmp_path):
    seen = {}
    environment = MemoryEnvironment(cwd=str(tmp_path))
    parser = make_parser(error_mode="unmanaged", environment=environment)
    parser.add_flag(name="dir", options=["--dir"], set_working_directory=True)
    parser.set_handler(lambda ctx: seen.update(root_path=ctx.root_path))
    result = parser.parse(["--dir", "project"])
    assert environment.getcwd() == str(tmp_path / "project")
    assert result.working_directory == str(tmp_path / "project")
    assert seen["root_path"] == str(tmp_path)


def test_last_working_directory_flag_wins(tmp_path):
    environment = MemoryEnvironment(cwd=str(tmp_path))
    parser = ArgParser("app", error_mode="unmanaged", environment=environment)
    parser.add_flag(name="root_dir", options=["--root-dir"], set_working_directory=True)
    parser.add_subcommand(
        CommandNode("build").add_flag(
            name="build_dir", options=["--build-dir"], set_working_directory=True
        )
    )
    parser.parse(["--root-dir", "a", "build", "--build-dir", "b"])
    assert environment.getcwd() == str(tmp_path / "b")


def test_missing_working_directory_is_a_validation_error(tmp_path):
    parser = ArgParser("app", error_mode="unmanaged", environment=OsEnvironment())
    parser.add_flag(name="dir", options=["--dir"], set_working_directory=True)
    with pytest.raises(ValidationError) as excinfo:
        parser.parse(["--dir", str(tmp_path / "missing")])
    assert excinfo.value.flag_name == "dir"


def test_help_option_taken_by_a_user_flag_is_parsed():
    parser = make_parser(error_mode="unmanaged")
    parser.add_flag(name="host", options=["-h", "--host"])
    result = parser.parse(["-h", "example.com"])
    assert not result.help_displayed
    assert result["host"] == "example.com"

    result = parser.parse(["--help"])
    assert result.help_displayed


def test_handler_raising_argchain_error_becomes_handler_error():
    def handler(ctx):
        raise ValidationError("rejected by handler")

    parser = make_parser(error_mode="unmanaged", handler=handler)
    with pytest.raises(HandlerError) as excinfo:
        parser.parse([])
    assert "rejected by handler" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ValidationError)


def test_injected_console_gets_argchain_styles():
    plain = Console(file=io.StringIO(), width=120, color_system=None)
    parser = ArgParser("app", console=plain, error_mode="unmanaged")
    assert parser.console is plain
    parser.parse(["--help"])
    assert "usage: app" in plain.file.getvalue()
