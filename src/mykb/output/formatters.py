"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (rich tables and styled
key-value lines) or machines (``--json``).
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from mykb.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from mykb.services.result import ServiceResult


def _format_data_human(data: dict[str, Any]) -> str:
    """Format result data as indented key-value pairs."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            value = _json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        lines.append(f"  [kb.key]{escape(key)}:[/] {escape(str(value))}")
    return "\n".join(lines)


def _error_line(result: ServiceResult) -> str:
    if result.error is None:
        return f"[kb.error]ERROR[/] {escape(result.op)}: Unknown error"
    return (
        f"[kb.error]ERROR[/] {escape(result.op)} "
        f"{escape(f'[{result.error.code}]')}: {escape(result.error.message)}"
    )


def _render(lines: list[Any], *, no_color: bool = False) -> str:
    console = create_console(no_color=no_color)
    for line in lines:
        console.print(line)
    return get_output(console).rstrip("\n")


def _warning_lines(result: ServiceResult) -> list[str]:
    return [f"[kb.warning]WARNING[/] {escape(w)}" for w in result.warnings]


def format_result(
    result: ServiceResult, *, json_output: bool = False, no_color: bool = False
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        no_color: Disable ANSI styling.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if not result.ok:
        return _render([_error_line(result)], no_color=no_color)
    lines: list[Any] = [f"[kb.ok]OK[/] [kb.op]{escape(result.op)}[/]"]
    if result.data:
        lines.append(_format_data_human(result.data))
    lines.extend(_warning_lines(result))
    return _render(lines, no_color=no_color)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _entries_table(entries: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Date", style="kb.date")
    table.add_column("Mood", justify="right")
    table.add_column("Energy", justify="right")
    table.add_column("Tags")
    table.add_column("Wins")
    for entry in entries:
        table.add_row(
            entry["date"],
            "" if entry.get("mood") is None else str(entry["mood"]),
            "" if entry.get("energy") is None else str(entry["energy"]),
            escape(", ".join(entry.get("tags") or [])),
            escape("; ".join(entry.get("wins") or [])),
        )
    return table


def _search_table(results: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Date", style="kb.date")
    table.add_column("Score", style="kb.score", justify="right")
    table.add_column("Excerpt")
    for hit in results:
        excerpt = " ".join(hit["excerpt"].split())
        table.add_row(hit["date"], f"{hit['score']:.1f}", escape(excerpt))
    return table


def _stories_table(stories: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Theme", style="kb.title")
    table.add_column("Dates")
    table.add_column("Snippets")
    for story in stories:
        table.add_row(
            escape(story["theme"]),
            ", ".join(story["dates"]),
            escape(story["content"]),
        )
    return table


def _projects_table(projects: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Slug")
    table.add_column("Status")
    table.add_column("Name", style="kb.title")
    for project in projects:
        status = str(project.get("status", ""))
        style = style_for_status(status)
        table.add_row(
            escape(project["id"]),
            f"[{style}]{status}[/]" if style else status,
            escape(str(project.get("name") or "")),
        )
    return table


_TABLES = {
    "list_recent_journal_entries": ("entries", _entries_table),
    "search_journal": ("results", _search_table),
    "extract_stories": ("stories", _stories_table),
    "get_projects": ("projects", _projects_table),
}


def format_table(
    result: ServiceResult, *, json_output: bool = False, no_color: bool = False
) -> str:
    """Render list-shaped results as a table; anything else via :func:`format_result`."""
    layout = _TABLES.get(result.op)
    if json_output or not result.ok or layout is None:
        return format_result(result, json_output=json_output, no_color=no_color)
    key, build = layout
    rows = result.data.get(key) or []
    if not rows:
        lines: list[Any] = [f"[kb.ok]OK[/] [kb.op]{escape(result.op)}[/]: nothing found"]
    else:
        lines = [build(rows)]
    lines.extend(_warning_lines(result))
    return _render(lines, no_color=no_color)
