"""Tests for MCP tool _impl functions and registration."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.mcp.tools import (
    add_journal_entry_impl,
    add_project_impl,
    add_skill_impl,
    get_business_info_impl,
    get_career_roadmap_impl,
    get_journal_entry_impl,
    get_projects_impl,
    get_resume_impl,
    get_skills_impl,
    list_documents_impl,
    list_recent_journal_entries_impl,
    query_knowledge_base_impl,
    read_document_impl,
    register_tools,
    search_journal_impl,
    to_text,
    update_project_status_impl,
    update_skill_impl,
)
from mykb.services.result import ServiceError, ServiceResult
from tests.conftest import write_json

EXPECTED_TOOLS = {
    "get_skills",
    "add_skill",
    "update_skill",
    "get_experience",
    "add_experience",
    "update_experience",
    "get_profile",
    "get_projects",
    "add_project",
    "update_project",
    "update_project_status",
    "get_goals",
    "add_goal",
    "update_goal",
    "get_ideas",
    "add_idea",
    "update_idea",
    "get_job_applications",
    "add_job_application",
    "update_job_application",
    "get_interviews",
    "add_interview",
    "update_interview",
    "add_journal_entry",
    "get_journal_entry",
    "list_recent_journal_entries",
    "search_journal",
    "extract_stories",
    "get_resume",
    "get_business_info",
    "get_financials",
    "get_business_roadmap",
    "get_education",
    "get_preferences",
    "get_learning_roadmap",
    "get_career_roadmap",
    "get_chief_aim",
    "query_knowledge_base",
    "read_document",
    "list_documents",
}


class DummyServer:
    def __init__(self) -> None:
        self.tools: dict[str, Callable[..., str]] = {}

    def tool(self) -> Callable[[Callable[..., str]], Callable[..., str]]:
        def decorator(fn: Callable[..., str]) -> Callable[..., str]:
            self.tools[fn.__name__] = fn
            return fn

        return decorator


class TestToText:
    def test_error_format(self) -> None:
        result = ServiceResult(
            ok=False, op="x", error=ServiceError(code="NOT_FOUND", message="gone")
        )
        assert to_text(result) == "Error [NOT_FOUND]: gone"

    def test_key_selects_payload(self) -> None:
        result = ServiceResult(ok=True, op="x", data={"items": [1, 2], "count": 2})
        assert json.loads(to_text(result, "items")) == [1, 2]
        assert json.loads(to_text(result)) == {"items": [1, 2], "count": 2}

    def test_string_payload_is_raw(self) -> None:
        result = ServiceResult(ok=True, op="x", data={"text": "## Skills"})
        assert to_text(result, "text") == "## Skills"


class TestSkillTools:
    def test_add_update_get(self, kb: KnowledgeBase) -> None:
        add_skill_impl(kb, "backend", "caching", "adept")
        update_skill_impl(kb, "backend", "caching", "expert")
        skills = json.loads(get_skills_impl(kb, category="backend", min_level="expert"))
        assert skills == [{"category": "backend", "name": "caching", "level": "expert"}]

    def test_duplicate_is_error_text(self, kb: KnowledgeBase) -> None:
        add_skill_impl(kb, "backend", "caching", "adept")
        text = add_skill_impl(kb, "backend", "caching", "adept")
        assert text.startswith("Error [DUPLICATE]:")


class TestProjectTools:
    def test_move(self, kb: KnowledgeBase) -> None:
        add_project_impl(kb, "p1", name="P1")
        moved = json.loads(update_project_status_impl(kb, "p1", "active"))
        assert moved["to"] == "active"
        projects = json.loads(get_projects_impl(kb, status="active"))
        assert [p["id"] for p in projects] == ["p1"]


class TestJournalTools:
    def test_add_show_recent(self, kb: KnowledgeBase) -> None:
        add_journal_entry_impl(kb, "2025-06-01", wins=["shipped X"])
        entry = json.loads(get_journal_entry_impl(kb, "2025-06-01"))
        assert entry["wins"] == ["shipped X"]
        assert json.loads(list_recent_journal_entries_impl(kb, days=1)) == []

    def test_search(self, kb: KnowledgeBase) -> None:
        add_journal_entry_impl(kb, "2025-06-01", notes="met foo")
        hits = json.loads(
            search_journal_impl(kb, keyword="foo", start_date="2025-05-30", end_date="2025-06-02")
        )
        assert [h["date"] for h in hits] == ["2025-06-01"]

    def test_missing_entry(self, kb: KnowledgeBase) -> None:
        assert get_journal_entry_impl(kb, "2025-06-01").startswith("Error [NOT_FOUND]:")


class TestReferenceTools:
    def test_resume_is_plain_markdown(self, kb: KnowledgeBase, kb_root: Path) -> None:
        (kb_root / "profile" / "resume.md").write_text("# Me\n", encoding="utf-8")
        assert get_resume_impl(kb) == "# Me\n"

    def test_career_section(self, kb: KnowledgeBase, kb_root: Path) -> None:
        write_json(
            kb_root,
            "career/roadmap.json",
            {"career_roadmap": {"milestones": [{"name": "a", "status": "completed"}]}},
        )
        milestones = json.loads(get_career_roadmap_impl(kb, section="milestones"))
        assert milestones == [{"name": "a", "status": "completed"}]

    def test_unknown_business_is_error_text(self, kb: KnowledgeBase) -> None:
        assert get_business_info_impl(kb, "acme").startswith("Error [INVALID_INPUT]:")


class TestQueryTools:
    def test_query_returns_markdown(self, kb: KnowledgeBase, kb_root: Path) -> None:
        write_json(kb_root, "profile/skills.json", {"backend": {"python": "expert"}})
        text = query_knowledge_base_impl(kb, "skills?")
        assert text.startswith("## Skills\n")

    def test_read_and_list(self, kb: KnowledgeBase, kb_root: Path) -> None:
        write_json(kb_root, "profile/contact.json", {"email": "me@example.com"})
        assert json.loads(read_document_impl(kb, "profile/contact.json")) == {
            "email": "me@example.com"
        }
        assert json.loads(list_documents_impl(kb, "profile")) == ["profile/contact.json"]


class TestRegistration:
    def test_every_tool_registered(self, kb: KnowledgeBase) -> None:
        server = DummyServer()
        register_tools(server, kb)
        assert set(server.tools) == EXPECTED_TOOLS

    def test_registered_tool_calls_through(self, kb: KnowledgeBase) -> None:
        server = DummyServer()
        register_tools(server, kb)
        result: Any = server.tools["add_skill"](category="backend", name="go", level="novice")
        assert json.loads(result)["name"] == "go"
