"""GoalService: yearly goals grouped by category.

``profile/goals/<year>-goals.json`` holds
``{"categories": {<category>: {"title": ..., "goals": [...]}}}``. Goals are
list-keyed with generated ``goal-<ns>`` identifiers.
"""

from __future__ import annotations

from typing import Any

from mykb.domain.errors import KbError, NotFoundError, ValidationGapError
from mykb.domain.records import GOAL_STATUSES, goal_collection, goals_path
from mykb.services._helpers import today
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced


def _categories(doc: Any) -> dict[str, Any]:
    categories = doc.get("categories") if isinstance(doc, dict) else None
    return categories if isinstance(categories, dict) else {}


class GoalService(BaseService):
    """Goals for one calendar year (the current year unless given)."""

    def _year(self, year: int | None) -> int:
        return year if year is not None else today().year

    def _read(self, year: int) -> dict[str, Any]:
        try:
            return _categories(self._engine.read_document(goals_path(year)))
        except NotFoundError:
            return {}

    @traced
    def get_goals(
        self,
        *,
        category: str | None = None,
        status: str | None = None,
        year: int | None = None,
    ) -> ServiceResult:
        op = "get_goals"
        if status is not None and status not in GOAL_STATUSES:
            return self._invalid(op, f"Unknown goal status: {status!r}")
        year = self._year(year)
        try:
            categories = self._read(year)
        except KbError as exc:
            return self._failure(op, exc)

        goals: list[dict[str, Any]] = []
        for cat, data in categories.items():
            if category and cat != category:
                continue
            if not isinstance(data, dict):
                continue
            for goal in data.get("goals") or []:
                if not isinstance(goal, dict):
                    continue
                if status and goal.get("status") != status:
                    continue
                goals.append(
                    {
                        "id": goal.get("id"),
                        "category": cat,
                        "categoryTitle": data.get("title", cat),
                        "goal": goal.get("goal"),
                        "status": goal.get("status"),
                        "target_date": goal.get("target_date"),
                        "metrics": goal.get("metrics"),
                    }
                )
        return self._ok(op, {"year": year, "goals": goals, "count": len(goals)})

    @traced
    def add_goal(
        self,
        category: str,
        goal: str,
        *,
        status: str = "not_started",
        target_date: str | None = None,
        metrics: dict[str, Any] | None = None,
        year: int | None = None,
    ) -> ServiceResult:
        op = "add_goal"
        if not category.strip() or not goal.strip():
            return self._invalid(op, "Category and goal text are required")
        year = self._year(year)
        record: dict[str, Any] = {"goal": goal, "status": status}
        if target_date is not None:
            record["target_date"] = target_date
        if metrics is not None:
            record["metrics"] = metrics
        try:
            entry = self._engine.append(
                goal_collection(year, category),
                record,
                message=f"Add {category} goal: {goal}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"year": year, "category": category, **entry})

    @traced
    def update_goal(
        self, goal_id: str, changes: dict[str, Any], *, year: int | None = None
    ) -> ServiceResult:
        """Sparse patch of one goal, found by id across all categories."""
        op = "update_goal"
        if not changes:
            return self._invalid(op, "No changes given")
        year = self._year(year)
        try:
            category = self._find_category(year, goal_id)
            merged = self._engine.patch(
                goal_collection(year, category),
                goal_id,
                changes,
                message=f"Update goal {goal_id}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"year": year, "category": category, **merged})

    def _find_category(self, year: int, goal_id: str) -> str:
        for cat, data in self._read(year).items():
            goals = data.get("goals") if isinstance(data, dict) else None
            if any(isinstance(g, dict) and g.get("id") == goal_id for g in goals or []):
                return cat
        msg = f"Goal {goal_id!r} not found in {year} goals"
        raise ValidationGapError(msg, path=goals_path(year))
