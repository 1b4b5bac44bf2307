"""Subcommand modules for mindmapctl.

Provides register_commands() which uses deferred imports to keep
``mindmapctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from mindmapctl.commands.account import account
    from mindmapctl.commands.map import map_group

    cli.add_command(account)
    cli.add_command(map_group)
