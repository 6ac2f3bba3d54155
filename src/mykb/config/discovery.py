"""Locating and reading ``mykb.toml``.

The file is found the way git finds ``.git``: walk up from the starting
directory until one turns up. ``MYKB_CONFIG`` (or ``--config``) names a
file directly and skips the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "mykb.toml"
CONFIG_ENV_VAR = "MYKB_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the governing ``mykb.toml``, or None.

    ``MYKB_CONFIG`` wins when set, even if it points at a missing file.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        candidate = Path(override)
        return candidate if candidate.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_toml(path: Path | None) -> dict[str, Any]:
    """Parsed TOML table, empty for no path. Raises ``click.ClickException``."""
    if path is None or not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
