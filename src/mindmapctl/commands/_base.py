"""Click classes shared by every mindmapctl command.

Commands and groups accept an ``examples`` keyword. When set, an eager
``--examples`` flag prints the examples and exits before any prompt or
database access, and the help text ends with a pointer to it.
"""

from __future__ import annotations

from typing import Any

import click

EXAMPLES_HINT = "Run with --examples for usage examples."


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    examples = getattr(ctx.command, "examples", None) or ""
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(examples)
    ctx.exit(0)


class _ExamplesMixin:
    """Adds the ``--examples`` flag and help pointer to a Click command."""

    examples: str | None
    params: list[click.Parameter]

    def _init_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=_print_examples,
                help="Show usage examples.",
            )
        )

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_epilog(ctx, formatter)  # type: ignore[misc]
        if self.examples:
            formatter.write_paragraph()
            formatter.write_text(EXAMPLES_HINT)


class MindmapCommand(_ExamplesMixin, click.Command):
    """A command that may carry usage examples."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class MindmapGroup(_ExamplesMixin, click.Group):
    """A group whose subcommands are :class:`MindmapCommand` by default."""

    command_class = MindmapCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
