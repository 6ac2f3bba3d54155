"""serve: start the MCP server."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mykb.commands._base import KbCommand

if TYPE_CHECKING:
    from mykb.commands._context import AppContext


@click.command(
    cls=KbCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  mykb serve

  # Streamable HTTP on a custom host/port
  mykb serve --transport streamable-http --host 0.0.0.0 --port 9000

  # Serve a remote repository (token from the environment)
  MYKB_STORE__BACKEND=remote MYKB_REMOTE__OWNER=me MYKB_REMOTE__REPO=kb mykb serve""",
)
@click.option(
    "--transport",
    default=None,
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol (default: [mcp] transport).",
)
@click.option("--host", default="127.0.0.1", help="Bind address (HTTP transports only).")
@click.option("--port", default=8000, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: AppContext, transport: str | None, host: str, port: int) -> None:
    """Start the MCP server."""
    from mykb.mcp.server import create_server

    # app.kb closes on click context teardown.
    server = create_server(kb=app.kb, host=host, port=port)
    server.run(transport=transport or app.settings.mcp.transport)
