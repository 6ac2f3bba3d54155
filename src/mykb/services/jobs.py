"""JobService: job applications and interviews.

Both documents are list-keyed. Rows with an empty ``id`` or ``company``
are template placeholders and never appear in reads.
"""

from __future__ import annotations

from typing import Any

from mykb.domain.errors import KbError
from mykb.domain.records import (
    APPLICATION_STATUSES,
    INTERVIEW_OUTCOMES,
    application_collection,
    interview_collection,
)
from mykb.services._helpers import today_iso
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced


def _real_rows(rows: Any) -> list[dict[str, Any]]:
    return [r for r in rows if isinstance(r, dict) and r.get("id") and r.get("company")]


def _compact(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class JobService(BaseService):
    """Application and interview tracking."""

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    @traced
    def get_job_applications(
        self, *, status: str | None = None, limit: int | None = None
    ) -> ServiceResult:
        op = "get_job_applications"
        if status is not None and status not in APPLICATION_STATUSES:
            return self._invalid(op, f"Unknown application status: {status!r}")
        if limit is not None and limit < 1:
            return self._invalid(op, "limit must be positive")
        try:
            rows = _real_rows(self._engine.read_container(application_collection()))
        except KbError as exc:
            return self._failure(op, exc)
        if status:
            rows = [r for r in rows if r.get("status") == status]
        if limit:
            rows = rows[:limit]
        return self._ok(op, {"applications": rows, "count": len(rows)})

    @traced
    def add_job_application(
        self,
        company: str,
        role: str,
        *,
        status: str = "applied",
        applied_date: str | None = None,
        url: str | None = None,
        cluster: str | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        op = "add_job_application"
        if not company.strip():
            return self._invalid(op, "Company must not be empty")
        record = _compact(
            company=company,
            role=role,
            status=status,
            applied_date=applied_date or today_iso(),
            url=url,
            cluster=cluster,
            notes=notes,
        )
        try:
            entry = self._engine.append(
                application_collection(), record, message=f"Add application: {role} at {company}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, entry)

    @traced
    def update_job_application(self, app_id: str, changes: dict[str, Any]) -> ServiceResult:
        op = "update_job_application"
        if not changes:
            return self._invalid(op, "No changes given")
        try:
            merged = self._engine.patch(
                application_collection(), app_id, changes, message=f"Update application {app_id}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, merged)

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    @traced
    def get_interviews(
        self, *, company: str | None = None, outcome: str | None = None
    ) -> ServiceResult:
        """Interviews, filtered by company substring and exact outcome."""
        op = "get_interviews"
        if outcome is not None and outcome not in INTERVIEW_OUTCOMES:
            return self._invalid(op, f"Unknown interview outcome: {outcome!r}")
        try:
            rows = _real_rows(self._engine.read_container(interview_collection()))
        except KbError as exc:
            return self._failure(op, exc)
        if company:
            needle = company.lower()
            rows = [r for r in rows if needle in str(r["company"]).lower()]
        if outcome:
            rows = [r for r in rows if r.get("outcome") == outcome]
        return self._ok(op, {"interviews": rows, "count": len(rows)})

    @traced
    def add_interview(
        self,
        company: str,
        *,
        application_id: str | None = None,
        date: str | None = None,
        round: str | None = None,  # noqa: A002
        interviewers: list[str] | None = None,
        questions: list[str] | None = None,
        outcome: str = "pending",
        notes: str | None = None,
    ) -> ServiceResult:
        op = "add_interview"
        if not company.strip():
            return self._invalid(op, "Company must not be empty")
        record = _compact(
            company=company,
            application_id=application_id,
            date=date or today_iso(),
            round=round,
            interviewers=list(interviewers or []),
            questions=list(questions or []),
            outcome=outcome,
            notes=notes,
        )
        try:
            entry = self._engine.append(
                interview_collection(), record, message=f"Add interview at {company}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, entry)

    @traced
    def update_interview(self, interview_id: str, changes: dict[str, Any]) -> ServiceResult:
        op = "update_interview"
        if not changes:
            return self._invalid(op, "No changes given")
        try:
            merged = self._engine.patch(
                interview_collection(),
                interview_id,
                changes,
                message=f"Update interview {interview_id}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, merged)
