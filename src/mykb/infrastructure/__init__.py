"""Infrastructure layer: document stores (local file tree, remote content API).

This layer depends on stdlib and third-party libs (httpx).
It must never import from services, commands, or output.
"""
