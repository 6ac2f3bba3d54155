"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, mykb.toml only contains overrides.
A local knowledge base needs no config file at all.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    backend: Literal["local", "remote"] = "local"


class RemoteConfig(BaseModel):
    """[remote] section: the repository behind the remote backend.

    ``token`` is normally supplied through ``MYKB_REMOTE__TOKEN`` rather
    than written to the TOML file.
    """

    model_config = {"frozen": True}

    owner: str = ""
    repo: str = ""
    branch: str = "main"
    token: str | None = Field(default=None, repr=False)
    api_url: str = "https://api.github.com"
    timeout: float = 10.0
    user_agent: str = "mykb"


class WriteConfig(BaseModel):
    """[write] section."""

    model_config = {"frozen": True}

    # Extra read-mutate-write attempts after a revision conflict.
    conflict_retries: int = Field(default=0, ge=0)


class JournalConfig(BaseModel):
    """[journal] section."""

    model_config = {"frozen": True}

    recent_days: int = 7
    search_days: int = 30
    search_limit: int = 10
    excerpt_length: int = 200


class McpConfig(BaseModel):
    """[mcp] section."""

    model_config = {"frozen": True}

    name: str = "myself-knowledge-base"
    transport: str = "stdio"

