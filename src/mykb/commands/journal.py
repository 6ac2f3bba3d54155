"""Command group: write and read journal entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mykb.commands._base import KbGroup
from mykb.services.journal import JournalIndex

if TYPE_CHECKING:
    from mykb.commands._context import AppContext

_JOURNAL_EXAMPLES = """\
  mykb journal add --mood 7 --win "shipped the importer" --tag work
  mykb journal add 2025-06-01 --kid-moment "first bike ride" -m "Long day."
  mykb journal show 2025-06-01
  mykb journal recent --days 3
  mykb journal search deploy --from 2025-05-01 --to 2025-06-01
  mykb journal stories"""


@click.group(cls=KbGroup, examples=_JOURNAL_EXAMPLES)
@click.pass_obj
def journal(app: AppContext) -> None:
    """Daily journal entries."""


@journal.command(
    examples="""\
  mykb journal add --mood 7 --energy 5 --win "fixed the flaky test"
  mykb journal add 2025-06-01 --tag family --kid-moment "built a fort"
  echo "Notes for the day" | mykb journal add --notes -"""
)
@click.argument("date", required=False)
@click.option("--mood", type=click.IntRange(1, 10), default=None, help="Mood, 1-10.")
@click.option("--energy", type=click.IntRange(1, 10), default=None, help="Energy, 1-10.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--win", "wins", multiple=True, help="A win (repeatable).")
@click.option("--struggle", "struggles", multiple=True, help="A struggle (repeatable).")
@click.option("--gratitude", multiple=True, help="Something you are grateful for (repeatable).")
@click.option("--kid-moment", "kid_moments", multiple=True, help="A kid moment (repeatable).")
@click.option("--learning", "learnings", multiple=True, help="A learning (repeatable).")
@click.option("-m", "--notes", default="", help="Free-text notes ('-' reads stdin).")
@click.pass_obj
def add(
    app: AppContext,
    date: str | None,
    mood: int | None,
    energy: int | None,
    tags: tuple[str, ...],
    wins: tuple[str, ...],
    struggles: tuple[str, ...],
    gratitude: tuple[str, ...],
    kid_moments: tuple[str, ...],
    learnings: tuple[str, ...],
    notes: str,
) -> None:
    """Create the entry for DATE (YYYY-MM-DD, default today)."""
    if notes == "-":
        notes = click.get_text_stream("stdin").read()
    result = JournalIndex(app.kb).add_entry(
        date,
        mood=mood,
        energy=energy,
        tags=list(tags),
        wins=list(wins),
        struggles=list(struggles),
        gratitude=list(gratitude),
        kid_moments=list(kid_moments),
        learnings=list(learnings),
        notes=notes,
    )
    app.emit(result)


@journal.command()
@click.argument("date")
@click.pass_obj
def show(app: AppContext, date: str) -> None:
    """Show the entry for DATE."""
    app.emit(JournalIndex(app.kb).get_entry(date))


@journal.command()
@click.option(
    "--days", type=int, default=None, help="How many days back (default [journal] recent_days)."
)
@click.pass_obj
def recent(app: AppContext, days: int | None) -> None:
    """List recent entries, newest first."""
    app.emit(JournalIndex(app.kb).list_recent(days), table=True)


@journal.command(
    examples="""\
  mykb journal search deploy
  mykb journal search --tag family --from 2025-01-01 --to 2025-03-31
  mykb --json journal search "hard day" --limit 3"""
)
@click.argument("keyword", required=False)
@click.option("--tag", "tags", multiple=True, help="Require one of these tags (repeatable).")
@click.option("--from", "start", default=None, help="Start date (YYYY-MM-DD).")
@click.option("--to", "end", default=None, help="End date (YYYY-MM-DD, default today).")
@click.option("--limit", type=int, default=None, help="Max results.")
@click.pass_obj
def search(
    app: AppContext,
    keyword: str | None,
    tags: tuple[str, ...],
    start: str | None,
    end: str | None,
    limit: int | None,
) -> None:
    """Search entries by KEYWORD and tags."""
    result = JournalIndex(app.kb).search(
        keyword, tags=list(tags), start=start, end=end, limit=limit
    )
    app.emit(result, table=True)


@journal.command()
@click.option("--from", "start", default=None, help="Start date (YYYY-MM-DD).")
@click.option("--to", "end", default=None, help="End date (YYYY-MM-DD, default today).")
@click.pass_obj
def stories(app: AppContext, start: str | None, end: str | None) -> None:
    """Suggest story candidates from recurring themes."""
    app.emit(JournalIndex(app.kb).extract_stories(start=start, end=end), table=True)
