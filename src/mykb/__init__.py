"""mykb: personal knowledge base served to agents over MCP."""

__version__ = "0.1.0"
