"""FastMCP server setup.

Transport: stdio by default; streamable HTTP and SSE bind to *host*/*port*.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from mykb.config.settings import KbSettings
from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.mcp.tools import register_tools

if TYPE_CHECKING:
    from mykb.infrastructure.store import DocumentStore

__all__ = ["create_server"]

logger = logging.getLogger(__name__)


def create_server(
    *,
    kb_root: Path | None = None,
    settings: KbSettings | None = None,
    store: DocumentStore | None = None,
    kb: KnowledgeBase | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> FastMCP:
    """Create the MCP server with every tool registered.

    A given *kb* is used as-is and stays owned by the caller. Otherwise one
    is built: *settings* wins over *kb_root*, and without either settings
    are resolved from the working directory. *store* overrides the
    configured backend.
    """
    if kb is None:
        if settings is None:
            settings = KbSettings.from_cli(kb_root=kb_root)
        kb = KnowledgeBase(settings, store=store)
    settings = kb.settings

    server = FastMCP(settings.mcp.name, host=host, port=port)
    register_tools(server, kb)
    logger.info(
        "MCP server %s ready (%s backend)", settings.mcp.name, settings.store.backend
    )
    return server
