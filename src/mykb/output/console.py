"""Rich Console factory and theme for mykb output.

Consoles render into a StringIO buffer so every formatter keeps a plain
``-> str`` contract. Rich drops color codes on non-TTY output.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

KB_THEME = Theme(
    {
        "kb.ok": "bold green",
        "kb.error": "bold red",
        "kb.warning": "bold yellow",
        "kb.op": "bold cyan",
        "kb.key": "dim",
        "kb.date": "bold blue",
        "kb.path": "dim",
        "kb.title": "bold",
        "kb.score": "magenta",
        "kb.status.active": "green",
        "kb.status.planned": "yellow",
        "kb.status.completed": "blue",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=KB_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return f"kb.status.{status}" if status in ("active", "planned", "completed") else ""
