"""KnowledgeBase: the single dependency injected into every service.

Owns the resolved settings and the document store chosen by
``[store] backend``. Credentials are taken from the settings object and
passed explicitly to the backend constructor.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mykb.infrastructure.local import LocalBackend
from mykb.infrastructure.remote import RemoteVersionedBackend

if TYPE_CHECKING:
    from pathlib import Path

    from mykb.config.settings import KbSettings
    from mykb.infrastructure.store import DocumentStore

logger = logging.getLogger(__name__)


def build_store(settings: KbSettings) -> DocumentStore:
    """Create the backend named by ``settings.store.backend``."""
    if settings.store.backend == "remote":
        remote = settings.remote
        if not remote.owner or not remote.repo:
            msg = "Remote backend requires [remote] owner and repo"
            raise ValueError(msg)
        return RemoteVersionedBackend(
            owner=remote.owner,
            repo=remote.repo,
            branch=remote.branch,
            token=remote.token,
            api_url=remote.api_url,
            timeout=remote.timeout,
            user_agent=remote.user_agent,
        )
    return LocalBackend(settings.kb_root)


class KnowledgeBase:
    """Settings plus document store.

    Constructed once at CLI or server startup. Services receive it via
    their :class:`~mykb.services.base.BaseService` constructor.
    """

    def __init__(self, settings: KbSettings, store: DocumentStore | None = None) -> None:
        self._settings = settings
        self._store = store if store is not None else build_store(settings)
        logger.debug("Knowledge base using %s", type(self._store).__name__)

    @property
    def settings(self) -> KbSettings:
        return self._settings

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def root(self) -> Path:
        """Local root directory (meaningful for the local backend)."""
        return self._settings.kb_root

    @property
    def conflict_retries(self) -> int:
        return self._settings.write.conflict_retries

    def close(self) -> None:
        self._store.close()
