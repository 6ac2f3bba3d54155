"""IdeaService: personal and per-business idea banks."""

from __future__ import annotations

from typing import Any

from mykb.domain.errors import KbError
from mykb.domain.records import IDEA_SOURCES, IDEA_STATUSES, idea_collection
from mykb.services._helpers import today_iso
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced

ALL_SOURCES = "all"


class IdeaService(BaseService):
    """Ideas are list-keyed (``idea-<ns>``) inside ``{"ideas": [...]}``."""

    @traced
    def get_ideas(self, *, source: str | None = None, status: str | None = None) -> ServiceResult:
        """Ideas grouped by source; sources with no matching ideas are left out."""
        op = "get_ideas"
        if source in (None, ALL_SOURCES):
            sources = list(IDEA_SOURCES)
        elif source in IDEA_SOURCES:
            sources = [source]
        else:
            return self._invalid(op, f"Unknown idea source: {source!r}")
        if status is not None and status not in IDEA_STATUSES:
            return self._invalid(op, f"Unknown idea status: {status!r}")

        groups: list[dict[str, Any]] = []
        try:
            for name in sources:
                ideas = [
                    idea
                    for idea in self._engine.read_container(idea_collection(name))
                    if isinstance(idea, dict) and (status is None or idea.get("status") == status)
                ]
                if ideas:
                    groups.append({"source": name, "ideas": ideas})
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"sources": groups})

    @traced
    def add_idea(
        self,
        source: str,
        title: str,
        *,
        description: str | None = None,
        tags: list[str] | None = None,
        status: str = "raw",
    ) -> ServiceResult:
        op = "add_idea"
        if not title.strip():
            return self._invalid(op, "Idea title must not be empty")
        record: dict[str, Any] = {"title": title}
        if description is not None:
            record["description"] = description
        record["status"] = status
        record["tags"] = list(tags or [])
        record["created"] = today_iso()
        try:
            entry = self._engine.append(
                idea_collection(source), record, message=f"Add {source} idea: {title}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"source": source, **entry})

    @traced
    def update_idea(self, source: str, idea_id: str, changes: dict[str, Any]) -> ServiceResult:
        op = "update_idea"
        if not changes:
            return self._invalid(op, "No changes given")
        try:
            merged = self._engine.patch(
                idea_collection(source), idea_id, changes, message=f"Update idea {idea_id}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"source": source, **merged})
