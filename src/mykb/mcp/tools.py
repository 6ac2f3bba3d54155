"""MCP tool definitions: profile, projects, goals, ideas, jobs, journal, reference, query.

Each tool has a ``<name>_impl`` function testable without a running server.
``register_tools()`` wraps them with FastMCP decorators.

Every tool answers with plain text: pretty-printed JSON on success,
``Error [<CODE>]: <message>`` on failure. Warnings are dropped from the
text; the structured :class:`ServiceResult` keeps them.
"""

from __future__ import annotations

import json
from typing import Any

from mykb.services.result import ServiceResult


def to_text(result: ServiceResult, key: str | None = None) -> str:
    """Render a ServiceResult as a tool response.

    With *key*, only ``result.data[key]`` is rendered; strings are returned
    as-is.
    """
    if not result.ok:
        error = result.error
        code = error.code if error is not None else "ERROR"
        message = error.message if error is not None else "Operation failed"
        return f"Error [{code}]: {message}"
    payload: Any = result.data if key is None else result.data.get(key)
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def get_skills_impl(kb: Any, *, category: str | None = None, min_level: str | None = None) -> str:
    from mykb.services.profile import ProfileService

    result = ProfileService(kb).get_skills(category=category, min_level=min_level)
    return to_text(result, "skills")


def add_skill_impl(kb: Any, category: str, name: str, level: str) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).add_skill(category, name, level))


def update_skill_impl(kb: Any, category: str, name: str, level: str) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).update_skill(category, name, level))


def get_experience_impl(kb: Any, *, current_only: bool = False) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).get_experience(current_only=current_only), "positions")


def add_experience_impl(kb: Any, company: str, **fields: Any) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).add_experience(company, **fields))


def update_experience_impl(kb: Any, company: str, changes: dict[str, Any]) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).update_experience(company, changes))


def get_profile_impl(kb: Any) -> str:
    from mykb.services.profile import ProfileService

    return to_text(ProfileService(kb).get_profile())


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def get_projects_impl(kb: Any, *, status: str | None = None, tech: str | None = None) -> str:
    from mykb.services.projects import ProjectService

    return to_text(ProjectService(kb).get_projects(status=status, tech=tech), "projects")


def add_project_impl(kb: Any, slug: str, **fields: Any) -> str:
    from mykb.services.projects import ProjectService

    return to_text(ProjectService(kb).add_project(slug, **fields))


def update_project_impl(kb: Any, slug: str, changes: dict[str, Any]) -> str:
    from mykb.services.projects import ProjectService

    return to_text(ProjectService(kb).update_project(slug, changes))


def update_project_status_impl(kb: Any, slug: str, new_status: str) -> str:
    from mykb.services.projects import ProjectService

    return to_text(ProjectService(kb).update_project_status(slug, new_status))


# ---------------------------------------------------------------------------
# Goals and ideas
# ---------------------------------------------------------------------------


def get_goals_impl(kb: Any, *, category: str | None = None, status: str | None = None) -> str:
    from mykb.services.goals import GoalService

    return to_text(GoalService(kb).get_goals(category=category, status=status), "goals")


def add_goal_impl(kb: Any, category: str, goal: str, **fields: Any) -> str:
    from mykb.services.goals import GoalService

    return to_text(GoalService(kb).add_goal(category, goal, **fields))


def update_goal_impl(kb: Any, goal_id: str, changes: dict[str, Any]) -> str:
    from mykb.services.goals import GoalService

    return to_text(GoalService(kb).update_goal(goal_id, changes))


def get_ideas_impl(kb: Any, *, source: str | None = None, status: str | None = None) -> str:
    from mykb.services.ideas import IdeaService

    return to_text(IdeaService(kb).get_ideas(source=source, status=status), "sources")


def add_idea_impl(kb: Any, source: str, title: str, **fields: Any) -> str:
    from mykb.services.ideas import IdeaService

    return to_text(IdeaService(kb).add_idea(source, title, **fields))


def update_idea_impl(kb: Any, source: str, idea_id: str, changes: dict[str, Any]) -> str:
    from mykb.services.ideas import IdeaService

    return to_text(IdeaService(kb).update_idea(source, idea_id, changes))


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def get_job_applications_impl(
    kb: Any, *, status: str | None = None, limit: int | None = None
) -> str:
    from mykb.services.jobs import JobService

    result = JobService(kb).get_job_applications(status=status, limit=limit)
    return to_text(result, "applications")


def add_job_application_impl(kb: Any, company: str, role: str, **fields: Any) -> str:
    from mykb.services.jobs import JobService

    return to_text(JobService(kb).add_job_application(company, role, **fields))


def update_job_application_impl(kb: Any, app_id: str, changes: dict[str, Any]) -> str:
    from mykb.services.jobs import JobService

    return to_text(JobService(kb).update_job_application(app_id, changes))


def get_interviews_impl(kb: Any, *, company: str | None = None, outcome: str | None = None) -> str:
    from mykb.services.jobs import JobService

    return to_text(JobService(kb).get_interviews(company=company, outcome=outcome), "interviews")


def add_interview_impl(kb: Any, company: str, **fields: Any) -> str:
    from mykb.services.jobs import JobService

    return to_text(JobService(kb).add_interview(company, **fields))


def update_interview_impl(kb: Any, interview_id: str, changes: dict[str, Any]) -> str:
    from mykb.services.jobs import JobService

    return to_text(JobService(kb).update_interview(interview_id, changes))


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------


def add_journal_entry_impl(kb: Any, date: str | None = None, **fields: Any) -> str:
    from mykb.services.journal import JournalIndex

    return to_text(JournalIndex(kb).add_entry(date, **fields))


def get_journal_entry_impl(kb: Any, date: str) -> str:
    from mykb.services.journal import JournalIndex

    return to_text(JournalIndex(kb).get_entry(date), "entry")


def list_recent_journal_entries_impl(kb: Any, *, days: int | None = None) -> str:
    from mykb.services.journal import JournalIndex

    return to_text(JournalIndex(kb).list_recent(days), "entries")


def search_journal_impl(
    kb: Any,
    *,
    keyword: str | None = None,
    tags: list[str] | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    limit: int | None = None,
) -> str:
    from mykb.services.journal import JournalIndex

    result = JournalIndex(kb).search(
        keyword, tags=tags, start=start_date, end=end_date, limit=limit
    )
    return to_text(result, "results")


def extract_stories_impl(
    kb: Any, *, start_date: str | None = None, end_date: str | None = None
) -> str:
    from mykb.services.journal import JournalIndex

    result = JournalIndex(kb).extract_stories(start=start_date, end=end_date)
    return to_text(result, "stories")


# ---------------------------------------------------------------------------
# Reference documents
# ---------------------------------------------------------------------------


def get_resume_impl(kb: Any, variant: str | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_resume(variant), "content")


def get_business_info_impl(kb: Any, business: str, include: list[str] | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_business_info(business, include=include))


def get_financials_impl(kb: Any, business: str, section: str | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_financials(business, section=section))


def get_business_roadmap_impl(kb: Any, business: str) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_business_roadmap(business), "content")


def get_education_impl(kb: Any, include: list[str] | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_education(include=include))


def get_preferences_impl(kb: Any, category: str | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_preferences(category), "preferences")


def get_learning_roadmap_impl(kb: Any, section: str | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_learning_roadmap(section))


def get_career_roadmap_impl(
    kb: Any, section: str | None = None, milestone_status: str | None = None
) -> str:
    from mykb.services.reference import ReferenceService

    result = ReferenceService(kb).get_career_roadmap(
        section=section, milestone_status=milestone_status
    )
    return to_text(result, section if section not in (None, "all") else "roadmap")


def get_chief_aim_impl(kb: Any, principle: str | None = None) -> str:
    from mykb.services.reference import ReferenceService

    return to_text(ReferenceService(kb).get_chief_aim(principle), "chief_aim")


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def query_knowledge_base_impl(kb: Any, query: str) -> str:
    from mykb.services.query import QueryService

    return to_text(QueryService(kb).query_knowledge_base(query), "text")


def read_document_impl(kb: Any, path: str) -> str:
    from mykb.services.query import QueryService

    return to_text(QueryService(kb).read_document(path), "content")


def list_documents_impl(kb: Any, dir_path: str = "") -> str:
    from mykb.services.query import QueryService

    return to_text(QueryService(kb).list_documents(dir_path), "paths")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_tools(server: Any, kb: Any) -> None:
    """Register every tool on the FastMCP server."""

    @server.tool()  # type: ignore[untyped-decorator]
    def get_skills(category: str | None = None, min_level: str | None = None) -> str:
        """Get skills with proficiency levels, optionally filtered by category or minimum level
        (none, novice, apprentice, adept, expert, master)."""
        return get_skills_impl(kb, category=category, min_level=min_level)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_skill(category: str, name: str, level: str) -> str:
        """Add a new skill to a category."""
        return add_skill_impl(kb, category, name, level)

    @server.tool()  # type: ignore[untyped-decorator]
    def update_skill(category: str, name: str, level: str) -> str:
        """Change the proficiency level of an existing skill."""
        return update_skill_impl(kb, category, name, level)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_experience(current_only: bool = False) -> str:
        """Get work experience history."""
        return get_experience_impl(kb, current_only=current_only)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_experience(
        company: str,
        title: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        responsibilities: list[str] | None = None,
        technologies: list[str] | None = None,
    ) -> str:
        """Add a position at a company (use end_date "Present" for current roles)."""
        return add_experience_impl(
            kb,
            company,
            title=title,
            start_date=start_date,
            end_date=end_date,
            responsibilities=responsibilities,
            technologies=technologies,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_experience(company: str, changes: dict[str, Any]) -> str:
        """Update fields of a position (e.g. end_date)."""
        return update_experience_impl(kb, company, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_profile() -> str:
        """Get contact details, about-me and resume."""
        return get_profile_impl(kb)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_projects(status: str | None = None, tech: str | None = None) -> str:
        """Get projects (active, planned or completed), optionally filtered by technology."""
        return get_projects_impl(kb, status=status, tech=tech)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_project(
        slug: str,
        status: str = "planned",
        name: str | None = None,
        description: str | None = None,
        technologies: list[str] | None = None,
        repo_url: str | None = None,
    ) -> str:
        """Add a project under a unique slug."""
        return add_project_impl(
            kb,
            slug,
            status=status,
            name=name,
            description=description,
            technologies=technologies,
            repo_url=repo_url,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_project(slug: str, changes: dict[str, Any]) -> str:
        """Update fields of a project."""
        return update_project_impl(kb, slug, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def update_project_status(slug: str, new_status: str) -> str:
        """Move a project to active, planned or completed."""
        return update_project_status_impl(kb, slug, new_status)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_goals(category: str | None = None, status: str | None = None) -> str:
        """Get this year's goals and their progress."""
        return get_goals_impl(kb, category=category, status=status)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_goal(
        category: str,
        goal: str,
        status: str = "not_started",
        target_date: str | None = None,
        metrics: dict[str, Any] | None = None,
    ) -> str:
        """Add a goal to a category of this year's goals."""
        return add_goal_impl(
            kb, category, goal, status=status, target_date=target_date, metrics=metrics
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_goal(goal_id: str, changes: dict[str, Any]) -> str:
        """Update fields of a goal (e.g. status or metrics)."""
        return update_goal_impl(kb, goal_id, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_ideas(source: str | None = None, status: str | None = None) -> str:
        """Get ideas from the personal or business idea banks."""
        return get_ideas_impl(kb, source=source, status=status)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_idea(
        source: str,
        title: str,
        description: str | None = None,
        tags: list[str] | None = None,
        status: str = "raw",
    ) -> str:
        """Add an idea to an idea bank."""
        return add_idea_impl(
            kb, source, title, description=description, tags=tags, status=status
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_idea(source: str, idea_id: str, changes: dict[str, Any]) -> str:
        """Update fields of an idea."""
        return update_idea_impl(kb, source, idea_id, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_job_applications(status: str | None = None, limit: int | None = None) -> str:
        """Get tracked job applications."""
        return get_job_applications_impl(kb, status=status, limit=limit)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_job_application(
        company: str,
        role: str,
        status: str = "applied",
        applied_date: str | None = None,
        url: str | None = None,
        cluster: str | None = None,
        notes: str | None = None,
    ) -> str:
        """Track a new job application."""
        return add_job_application_impl(
            kb,
            company,
            role,
            status=status,
            applied_date=applied_date,
            url=url,
            cluster=cluster,
            notes=notes,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_job_application(app_id: str, changes: dict[str, Any]) -> str:
        """Update a job application (e.g. its status)."""
        return update_job_application_impl(kb, app_id, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_interviews(company: str | None = None, outcome: str | None = None) -> str:
        """Get interview records."""
        return get_interviews_impl(kb, company=company, outcome=outcome)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_interview(
        company: str,
        application_id: str | None = None,
        date: str | None = None,
        round: str | None = None,  # noqa: A002
        interviewers: list[str] | None = None,
        questions: list[str] | None = None,
        outcome: str = "pending",
        notes: str | None = None,
    ) -> str:
        """Record an interview."""
        return add_interview_impl(
            kb,
            company,
            application_id=application_id,
            date=date,
            round=round,
            interviewers=interviewers,
            questions=questions,
            outcome=outcome,
            notes=notes,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_interview(interview_id: str, changes: dict[str, Any]) -> str:
        """Update an interview record (e.g. its outcome)."""
        return update_interview_impl(kb, interview_id, changes)

    @server.tool()  # type: ignore[untyped-decorator]
    def add_journal_entry(
        date: str | None = None,
        mood: int | None = None,
        energy: int | None = None,
        tags: list[str] | None = None,
        wins: list[str] | None = None,
        struggles: list[str] | None = None,
        gratitude: list[str] | None = None,
        kid_moments: list[str] | None = None,
        learnings: list[str] | None = None,
        notes: str = "",
    ) -> str:
        """Write the journal entry for a day (YYYY-MM-DD, today by default)."""
        return add_journal_entry_impl(
            kb,
            date,
            mood=mood,
            energy=energy,
            tags=tags,
            wins=wins,
            struggles=struggles,
            gratitude=gratitude,
            kid_moments=kid_moments,
            learnings=learnings,
            notes=notes,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def get_journal_entry(date: str) -> str:
        """Get the journal entry for a day (YYYY-MM-DD)."""
        return get_journal_entry_impl(kb, date)

    @server.tool()  # type: ignore[untyped-decorator]
    def list_recent_journal_entries(days: int | None = None) -> str:
        """List journal entries from the last N days, newest first."""
        return list_recent_journal_entries_impl(kb, days=days)

    @server.tool()  # type: ignore[untyped-decorator]
    def search_journal(
        keyword: str | None = None,
        tags: list[str] | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int | None = None,
    ) -> str:
        """Search journal entries by keyword and tags over a date range."""
        return search_journal_impl(
            kb,
            keyword=keyword,
            tags=tags,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def extract_stories(start_date: str | None = None, end_date: str | None = None) -> str:
        """Find story candidates (kid moments, struggles, wins) in the journal."""
        return extract_stories_impl(kb, start_date=start_date, end_date=end_date)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_resume(variant: str | None = None) -> str:
        """Get the resume in markdown, or a generated variant such as 'general-swe'."""
        return get_resume_impl(kb, variant)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_business_info(business: str, include: list[str] | None = None) -> str:
        """Get strategy, personas and marketing for 'codaissance' or 'tampertantrum-labs'."""
        return get_business_info_impl(kb, business, include)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_financials(business: str, section: str | None = None) -> str:
        """Get business financials: revenue, expenses, metrics, milestones or all."""
        return get_financials_impl(kb, business, section)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_business_roadmap(business: str) -> str:
        """Get the product/consulting roadmap for a business."""
        return get_business_roadmap_impl(kb, business)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_education(include: list[str] | None = None) -> str:
        """Get degrees, certifications and self-taught learning."""
        return get_education_impl(kb, include)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_preferences(category: str | None = None) -> str:
        """Get work preferences: learning, work_environment, schedule, coding_style, tools."""
        return get_preferences_impl(kb, category)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_learning_roadmap(section: str | None = None) -> str:
        """Get the learning roadmap (current_focus, queue, backlog, on_hold, completed)."""
        return get_learning_roadmap_impl(kb, section)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_career_roadmap(
        section: str | None = None, milestone_status: str | None = None
    ) -> str:
        """Get the career roadmap, optionally one section or milestones by status."""
        return get_career_roadmap_impl(kb, section, milestone_status)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_chief_aim(principle: str | None = None) -> str:
        """Get the chief aim document, or one principle from it."""
        return get_chief_aim_impl(kb, principle)

    @server.tool()  # type: ignore[untyped-decorator]
    def query_knowledge_base(query: str) -> str:
        """Answer a question with the relevant knowledge base documents."""
        return query_knowledge_base_impl(kb, query)

    @server.tool()  # type: ignore[untyped-decorator]
    def read_document(path: str) -> str:
        """Read any knowledge base document by path."""
        return read_document_impl(kb, path)

    @server.tool()  # type: ignore[untyped-decorator]
    def list_documents(dir_path: str = "") -> str:
        """List document paths under a directory (local knowledge bases only)."""
        return list_documents_impl(kb, dir_path)
