"""MCP tool surface for the knowledge base."""
