# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""Global console instances for Argchain CLI applications."""
from rich.console import Console
from rich.errors import MissingStyle
from rich.theme import Theme

ARGCHAIN_THEME = Theme(
    {
        "argchain.title": "bold cyan",
        "argchain.command": "bold green",
        "argchain.option": "green",
        "argchain.flag": "yellow",
        "argchain.mandatory": "bold red",
        "argchain.dim": "dim",
        "argchain.error": "bold red",
    }
)

console = Console(theme=ARGCHAIN_THEME)
error_console = Console(theme=ARGCHAIN_THEME, stderr=True)


def themed(target: Console | None, default: Console = console) -> Console:
    """Return `target` (or `default`) with the Argchain styles available."""
    if target is None:
        return default
    try:
        target.get_style("argchain.title")
    except MissingStyle:
        target.push_theme(ARGCHAIN_THEME)
    return target
