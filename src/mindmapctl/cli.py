"""Root CLI group for mindmapctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from mindmapctl import __version__
from mindmapctl.commands import register_commands
from mindmapctl.commands._context import AppContext
from mindmapctl.config.settings import ConfigError, MindmapSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="mindmapctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace directory (default: location of mindmapctl.toml, else CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    root: Path | None,
) -> None:
    """mindmapctl — accounts and autosaved mindmap documents."""
    ctx.ensure_object(dict)
    try:
        settings = MindmapSettings.load(
            config_path=config_path,
            root=root.resolve() if root is not None else None,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
