"""Buffered Rich consoles for rendering results to strings.

Output goes to a ``StringIO`` so renderers stay pure functions of their
result. Rich drops colour on its own when the process is not attached to
a terminal, which keeps CliRunner output plain.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

RENDER_WIDTH = 120

MINDMAP_THEME = Theme(
    {
        "mm.ok": "bold green",
        "mm.error": "bold red",
        "mm.op": "bold cyan",
        "mm.key": "dim",
        "mm.id": "bold blue",
        "mm.title": "bold",
        "mm.code": "magenta",
    }
)


def create_console(*, no_color: bool = False) -> Console:
    return Console(
        file=StringIO(),
        theme=MINDMAP_THEME,
        no_color=no_color,
        highlight=False,
        width=RENDER_WIDTH,
    )


def get_output(console: Console) -> str:
    """Everything printed to *console* so far."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        raise TypeError("console was not created by create_console()")
    return buffer.getvalue()


def short_id(value: str, length: int = 8) -> str:
    """Leading characters of an id, enough to use as a prefix reference."""
    return value[:length]
