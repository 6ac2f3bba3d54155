"""Command group: list projects and move them between statuses."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mykb.commands._base import KbGroup
from mykb.domain.records import PROJECT_STATUSES
from mykb.services.projects import ProjectService

if TYPE_CHECKING:
    from mykb.commands._context import AppContext

_PROJECT_EXAMPLES = """\
  mykb project list
  mykb project list --status active --tech python
  mykb project move my-app active"""


@click.group(cls=KbGroup, examples=_PROJECT_EXAMPLES)
@click.pass_obj
def project(app: AppContext) -> None:
    """Projects across the active, planned and completed buckets."""


@project.command(name="list")
@click.option("--status", type=click.Choice(PROJECT_STATUSES), default=None)
@click.option("--tech", default=None, help="Technology substring.")
@click.pass_obj
def list_projects(app: AppContext, status: str | None, tech: str | None) -> None:
    """List projects."""
    app.emit(ProjectService(app.kb).get_projects(status=status, tech=tech), table=True)


@project.command(
    examples="""\
  mykb project move my-app active
  mykb --json project move old-tool completed"""
)
@click.argument("slug")
@click.argument("status", type=click.Choice(PROJECT_STATUSES))
@click.pass_obj
def move(app: AppContext, slug: str, status: str) -> None:
    """Move project SLUG to STATUS."""
    app.emit(ProjectService(app.kb).update_project_status(slug, status))
