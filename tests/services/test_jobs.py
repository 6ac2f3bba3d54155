"""Tests for JobService."""

from __future__ import annotations

from pathlib import Path

import pytest

from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.services.jobs import JobService
from tests.conftest import write_json


@pytest.fixture
def jobs(kb: KnowledgeBase) -> JobService:
    return JobService(kb)


class TestApplications:
    def test_placeholder_rows_hidden(self, jobs: JobService, kb_root: Path) -> None:
        write_json(
            kb_root,
            "job-applications/applications.json",
            {
                "applications": [
                    {"id": "", "company": ""},
                    {"id": "app-1", "company": "Acme", "status": "applied"},
                ]
            },
        )
        result = jobs.get_job_applications()
        assert result.data["count"] == 1
        assert result.data["applications"][0]["id"] == "app-1"

    def test_add_update_and_filter(self, jobs: JobService) -> None:
        added = jobs.add_job_application("Acme", "Backend Engineer", applied_date="2025-05-01")
        assert added.ok
        app_id = added.data["id"]
        jobs.add_job_application("Initech", "SRE")

        updated = jobs.update_job_application(app_id, {"status": "interviewing"})
        assert updated.ok
        rows = jobs.get_job_applications(status="interviewing").data["applications"]
        assert [r["company"] for r in rows] == ["Acme"]

    def test_limit(self, jobs: JobService) -> None:
        for company in ("A", "B", "C"):
            jobs.add_job_application(company, "Dev")
        assert jobs.get_job_applications(limit=2).data["count"] == 2

    def test_invalid_status(self, jobs: JobService) -> None:
        result = jobs.add_job_application("Acme", "Dev", status="hired")
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"


class TestInterviews:
    def test_company_substring_and_outcome(self, jobs: JobService) -> None:
        jobs.add_interview("Acme Corp", round="phone", outcome="passed")
        jobs.add_interview("Initech", round="onsite")

        assert jobs.get_interviews(company="acme").data["count"] == 1
        pending = jobs.get_interviews(outcome="pending").data["interviews"]
        assert [i["company"] for i in pending] == ["Initech"]

    def test_update(self, jobs: JobService) -> None:
        interview_id = jobs.add_interview("Acme", questions=["Design a cache"]).data["id"]
        result = jobs.update_interview(interview_id, {"outcome": "rejected", "notes": None})
        assert result.ok
        assert result.data["outcome"] == "rejected"
        assert result.data["notes"] is None
        assert result.data["questions"] == ["Design a cache"]

    def test_update_unknown(self, jobs: JobService) -> None:
        result = jobs.update_interview("interview-0", {"outcome": "passed"})
        assert result.error is not None
        assert result.error.code == "VALIDATION_GAP"
