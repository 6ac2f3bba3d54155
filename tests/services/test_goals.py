"""Tests for GoalService."""

from __future__ import annotations

from pathlib import Path

import pytest

from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.services.goals import GoalService
from tests.conftest import read_json, write_json

GOALS_2025 = {
    "categories": {
        "technical": {
            "title": "Technical Growth",
            "goals": [
                {"id": "goal-1", "goal": "Learn Rust", "status": "in_progress"},
                {"id": "goal-2", "goal": "Ship KB", "status": "completed"},
            ],
        },
        "health": {"goals": [{"id": "goal-3", "goal": "Run 10k", "status": "not_started"}]},
    }
}


@pytest.fixture
def goals(kb: KnowledgeBase) -> GoalService:
    return GoalService(kb)


class TestGetGoals:
    def test_flattens_categories(self, goals: GoalService, kb_root: Path) -> None:
        write_json(kb_root, "profile/goals/2025-goals.json", GOALS_2025)
        result = goals.get_goals(year=2025)
        assert result.ok
        assert result.data["count"] == 3
        first = result.data["goals"][0]
        assert first["categoryTitle"] == "Technical Growth"
        assert result.data["goals"][2]["categoryTitle"] == "health"

    def test_filters(self, goals: GoalService, kb_root: Path) -> None:
        write_json(kb_root, "profile/goals/2025-goals.json", GOALS_2025)
        result = goals.get_goals(year=2025, category="technical", status="completed")
        assert [g["id"] for g in result.data["goals"]] == ["goal-2"]

    def test_missing_year_is_empty(self, goals: GoalService) -> None:
        result = goals.get_goals(year=1999)
        assert result.ok
        assert result.data["goals"] == []

    def test_unknown_status(self, goals: GoalService) -> None:
        result = goals.get_goals(status="abandoned")
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"


class TestGoalWrites:
    def test_add_creates_category(self, goals: GoalService, kb_root: Path) -> None:
        result = goals.add_goal("career", "Get promoted", year=2025, target_date="2025-12-31")
        assert result.ok
        goal_id = result.data["id"]
        assert goal_id.startswith("goal-")
        doc = read_json(kb_root, "profile/goals/2025-goals.json")
        assert doc["categories"]["career"]["goals"][0]["target_date"] == "2025-12-31"

    def test_update_finds_category(self, goals: GoalService, kb_root: Path) -> None:
        write_json(kb_root, "profile/goals/2025-goals.json", GOALS_2025)
        result = goals.update_goal("goal-3", {"status": "in_progress"}, year=2025)
        assert result.ok
        assert result.data["category"] == "health"
        doc = read_json(kb_root, "profile/goals/2025-goals.json")
        assert doc["categories"]["health"]["goals"][0]["status"] == "in_progress"

    def test_update_unknown_goal(self, goals: GoalService, kb_root: Path) -> None:
        write_json(kb_root, "profile/goals/2025-goals.json", GOALS_2025)
        result = goals.update_goal("goal-404", {"status": "completed"}, year=2025)
        assert result.error is not None
        assert result.error.code == "VALIDATION_GAP"

    def test_update_invalid_status(self, goals: GoalService, kb_root: Path) -> None:
        write_json(kb_root, "profile/goals/2025-goals.json", GOALS_2025)
        result = goals.update_goal("goal-1", {"status": "done-ish"}, year=2025)
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"
