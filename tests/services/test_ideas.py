"""Tests for IdeaService."""

from __future__ import annotations

from pathlib import Path

import pytest

from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.services.ideas import IdeaService
from tests.conftest import read_json


@pytest.fixture
def ideas(kb: KnowledgeBase) -> IdeaService:
    return IdeaService(kb)


class TestIdeas:
    def test_add_and_group_by_source(self, ideas: IdeaService, kb_root: Path) -> None:
        ideas.add_idea("personal", "Garden tracker", tags=["home"])
        ideas.add_idea("codaissance", "Code review bot", status="validating")

        result = ideas.get_ideas()
        assert result.ok
        assert [g["source"] for g in result.data["sources"]] == ["personal", "codaissance"]
        stored = read_json(kb_root, "ideas/personal/ideas.json")["ideas"][0]
        assert stored["id"].startswith("idea-")
        assert stored["created"]

    def test_status_filter_drops_empty_groups(self, ideas: IdeaService) -> None:
        ideas.add_idea("personal", "Garden tracker")
        ideas.add_idea("codaissance", "Code review bot", status="validating")
        groups = ideas.get_ideas(status="validating").data["sources"]
        assert [g["source"] for g in groups] == ["codaissance"]

    def test_unknown_source(self, ideas: IdeaService) -> None:
        assert ideas.get_ideas(source="moonshots").error is not None
        result = ideas.add_idea("moonshots", "x")
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    def test_update(self, ideas: IdeaService) -> None:
        idea_id = ideas.add_idea("personal", "Garden tracker").data["id"]
        result = ideas.update_idea("personal", idea_id, {"status": "rejected"})
        assert result.ok
        assert result.data["status"] == "rejected"
        assert result.data["title"] == "Garden tracker"

    def test_update_unknown(self, ideas: IdeaService) -> None:
        ideas.add_idea("personal", "Garden tracker")
        result = ideas.update_idea("personal", "idea-0", {"status": "rejected"})
        assert result.error is not None
        assert result.error.code == "VALIDATION_GAP"
