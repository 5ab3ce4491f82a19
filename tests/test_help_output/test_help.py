import io

from rich.console import Console

from argchain import ArgParser, CommandNode
from argchain.help import help_text, render_help, usage_line


def build_parser() -> ArgParser:
    parser = ArgParser("app", "Deploy things.", app_command_name="deployctl")
    parser.add_flags(
        [
            {
                "name": "region",
                "options": ["-r", "--region"],
                "mandatory": True,
                "env": ["REGION", "AWS_REGION"],
                "description": "Target region",
            },
            {
                "name": "token",
                "options": ["--token"],
                "mandatory": lambda args: args.get("region") == "eu",
            },
            {"name": "level", "options": ["--level"], "enum": ["debug", "info"], "default": "info"},
        ]
    )
    parser.add_subcommand(
        CommandNode("rollout", "Start a rollout").add_flag(
            name="service", options=["--service"], positional=1
        )
    )
    return parser


def test_help_text_lists_flags_and_commands():
    text = help_text(build_parser())
    assert "usage: deployctl [options] <command>" in text
    assert "Deploy things." in text
    assert "rollout" in text
    assert "Start a rollout" in text
    assert "-r, --region <string>" in text
    assert "(env: REGION, AWS_REGION)" in text
    assert "(conditionally mandatory)" in text
    assert "--level {debug,info}" in text
    assert "(default: 'info')" in text
    assert "-h, --help" in text


def test_mandatory_marker():
    lines = help_text(build_parser()).splitlines()
    region_line = next(line for line in lines if "--region" in line)
    token_line = next(line for line in lines if "--token" in line)
    assert region_line.lstrip().startswith("*")
    assert not token_line.lstrip().startswith("*")


def test_usage_for_subcommand():
    parser = build_parser()
    rollout = parser.get_subcommand("rollout")
    assert usage_line(rollout) == "deployctl rollout <service> [options]"


def test_render_help_uses_given_console():
    console = Console(file=io.StringIO(), width=120, color_system=None)
    render_help(build_parser().get_subcommand("rollout"), console)
    assert "usage: deployctl rollout" in console.file.getvalue()
