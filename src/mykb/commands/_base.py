"""Click command classes with an ``--examples`` flag.

Usage examples live outside ``--help`` so help text stays one screen.
Commands created with ``examples="..."`` grow an eager ``--examples``
option that prints them and exits.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds the ``examples`` keyword and the ``--examples`` option."""

    examples: str | None

    def _init_examples(self, examples: str | None) -> None:
        self.examples = examples

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params.insert(-1, self._examples_option())
        return params

    def _examples_option(self) -> click.Option:
        text = self.examples or ""

        def _show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value and not ctx.resilient_parsing:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{text}")
                ctx.exit(0)

        return click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=_show,
            help="Show usage examples and exit.",
        )


class KbCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class KbGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands are :class:`KbCommand` unless told otherwise."""

    command_class = KbCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
