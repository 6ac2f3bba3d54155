"""Subcommand modules for mykb.

register_commands() imports lazily so ``mykb --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root group."""
    from mykb.commands.journal import journal
    from mykb.commands.project import project
    from mykb.commands.serve import serve

    cli.add_command(journal)
    cli.add_command(project)
    cli.add_command(serve)
