"""KbSettings: CLI flags, env vars, and ``mykb.toml`` in one frozen object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click, or server arguments
  2. Env vars: ``MYKB_*`` prefix, ``__`` for nested sections
  3. TOML file: ``mykb.toml`` discovered via walk-up
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from mykb.config.discovery import find_config, load_toml
from mykb.config.models import JournalConfig, McpConfig, RemoteConfig, StoreConfig, WriteConfig

# TOML data for the KbSettings currently being constructed.
_pending_toml: ContextVar[dict[str, Any] | None] = ContextVar("_pending_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source over an already parsed ``mykb.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        known = self.settings_cls.model_fields
        return {key: value for key, value in self._data.items() if key in known}


class KbSettings(BaseSettings):
    """Settings for the knowledge base server and CLI.

    Attributes:
        kb_root: Root of the local document tree (parent of ``mykb.toml``,
            or CWD if no config found). Used by the local backend.
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MYKB_",
        "env_nested_delimiter": "__",
    }

    kb_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    store: StoreConfig = Field(default_factory=StoreConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    write: WriteConfig = Field(default_factory=WriteConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Init kwargs, then env vars, then TOML. No dotenv or secrets dir."""
        toml = TomlSettingsSource(settings_cls, _pending_toml.get() or {})
        return init_settings, env_settings, toml

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        kb_root: Path | None = None,
        **cli_flags: Any,
    ) -> KbSettings:
        """Build settings for one CLI or server invocation.

        *config_path* names the TOML file explicitly; otherwise it is
        searched for upward from *kb_root* (or the CWD). Without an
        explicit *kb_root* the knowledge base lives beside the config
        file, or in the CWD when there is none.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(kb_root)

        if kb_root is None:
            kb_root = toml_path.parent if toml_path is not None else Path.cwd()

        token = _pending_toml.set(load_toml(toml_path))
        try:
            return cls(kb_root=kb_root, config_path=toml_path, **cli_flags)
        finally:
            _pending_toml.reset(token)
