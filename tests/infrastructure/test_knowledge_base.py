"""Tests for backend selection and the KnowledgeBase container."""

from __future__ import annotations

from pathlib import Path

import pytest

from mykb.config.settings import KbSettings
from mykb.infrastructure.knowledge_base import KnowledgeBase, build_store
from mykb.infrastructure.local import LocalBackend
from mykb.infrastructure.remote import RemoteVersionedBackend


class TestBuildStore:
    def test_local_by_default(self, tmp_path: Path) -> None:
        store = build_store(KbSettings.from_cli(kb_root=tmp_path))
        assert isinstance(store, LocalBackend)
        assert store.root == tmp_path

    def test_remote_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "mykb.toml").write_text(
            '[store]\nbackend = "remote"\n[remote]\nowner = "me"\nrepo = "kb"\n'
        )
        store = build_store(KbSettings.from_cli(kb_root=tmp_path))
        try:
            assert isinstance(store, RemoteVersionedBackend)
        finally:
            store.close()

    def test_remote_requires_repository(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MYKB_STORE__BACKEND", "remote")
        with pytest.raises(ValueError, match="owner and repo"):
            build_store(KbSettings.from_cli(kb_root=tmp_path))


class TestKnowledgeBase:
    def test_exposes_settings(self, kb: KnowledgeBase, kb_root: Path) -> None:
        assert kb.root == kb_root
        assert kb.conflict_retries == 0
        assert isinstance(kb.store, LocalBackend)

    def test_injected_store_wins(self, tmp_path: Path) -> None:
        store = LocalBackend(tmp_path / "elsewhere")
        kb = KnowledgeBase(KbSettings.from_cli(kb_root=tmp_path), store=store)
        assert kb.store is store
