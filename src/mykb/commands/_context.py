"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands with
``@click.pass_obj``. The knowledge base is built on first use so
``--help`` and ``--version`` never touch a backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mykb.output.formatters import format_result, format_table

if TYPE_CHECKING:
    from mykb.config.settings import KbSettings
    from mykb.infrastructure.knowledge_base import KnowledgeBase
    from mykb.services.result import ServiceResult


class AppContext:
    """Settings, the lazily built knowledge base and result emission."""

    def __init__(self, settings: KbSettings) -> None:
        self.settings = settings
        self._kb: KnowledgeBase | None = None

        from mykb.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from mykb.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def kb(self) -> KnowledgeBase:
        """The knowledge base (created on first access)."""
        if self._kb is None:
            from mykb.infrastructure.knowledge_base import KnowledgeBase

            try:
                self._kb = KnowledgeBase(self.settings)
            except ValueError as exc:
                raise click.ClickException(str(exc)) from exc
            click.get_current_context().call_on_close(self._kb.close)
        return self._kb

    def emit(self, result: ServiceResult, *, table: bool = False) -> None:
        """Print a ServiceResult and set the exit status.

        Success goes to stdout. Failure goes to stderr and exits with 1.
        """
        json_output = self.settings.json_output
        if table:
            output = format_table(result, json_output=json_output)
        else:
            output = format_result(result, json_output=json_output)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
