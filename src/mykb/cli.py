"""Root CLI group for mykb with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from mykb import __version__
from mykb.commands import register_commands
from mykb.commands._context import AppContext
from mykb.config.settings import KbSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="mykb")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and operation timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--root",
    "kb_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Knowledge base root for the local backend.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    kb_root: Path | None,
) -> None:
    """mykb: personal knowledge base server and CLI."""
    ctx.ensure_object(dict)
    settings = KbSettings.from_cli(
        config_path=config_path,
        kb_root=kb_root,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
