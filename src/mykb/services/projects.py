"""ProjectService: projects split across status buckets.

Each status has its own document (``projects/active.json`` and so on),
keyed by project slug. A slug lives in exactly one bucket; changing a
project's status moves it between documents with
:meth:`PartialUpdateEngine.move`.
"""

from __future__ import annotations

from typing import Any

from mykb.domain.errors import DuplicateError, KbError, ValidationGapError
from mykb.domain.records import PROJECT_STATUSES, project_collection
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import timed_step, traced


class ProjectService(BaseService):
    """Reads, adds, patches and moves projects."""

    def _locate(self, slug: str) -> str | None:
        """Status bucket currently holding *slug*, or None."""
        for status in PROJECT_STATUSES:
            if slug in self._engine.read_container(project_collection(status)):
                return status
        return None

    @traced
    def get_projects(
        self, *, status: str | None = None, tech: str | None = None
    ) -> ServiceResult:
        """List projects with ``id`` (the slug) and ``status`` (the bucket).

        *tech* is a case-insensitive substring match against
        ``technologies``.
        """
        op = "get_projects"
        if status is not None and status not in PROJECT_STATUSES:
            return self._invalid(op, f"Unknown project status: {status!r}")

        projects: list[dict[str, Any]] = []
        try:
            for bucket in [status] if status else PROJECT_STATUSES:
                container = self._engine.read_container(project_collection(bucket))
                for slug, record in container.items():
                    if isinstance(record, dict):
                        projects.append({"id": slug, **record, "status": bucket})
        except KbError as exc:
            return self._failure(op, exc)

        if tech:
            needle = tech.lower()
            projects = [
                p
                for p in projects
                if any(needle in str(t).lower() for t in p.get("technologies") or [])
            ]
        return self._ok(op, {"projects": projects, "count": len(projects)})

    @traced
    def add_project(
        self,
        slug: str,
        *,
        status: str = "planned",
        name: str | None = None,
        description: str | None = None,
        technologies: list[str] | None = None,
        repo_url: str | None = None,
        project_type: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Create a project in the *status* bucket.

        Fails with DUPLICATE when the slug exists in any bucket.
        """
        op = "add_project"
        if not slug.strip():
            return self._invalid(op, "Project slug must not be empty")
        if status not in PROJECT_STATUSES:
            return self._invalid(op, f"Unknown project status: {status!r}")

        record: dict[str, Any] = dict(extra or {})
        for key, value in (
            ("name", name),
            ("description", description),
            ("repo_url", repo_url),
            ("type", project_type),
        ):
            if value is not None:
                record[key] = value
        record["technologies"] = list(technologies or [])
        record["status"] = status

        try:
            existing = self._locate(slug)
            if existing is not None:
                msg = f"Project {slug!r} already exists in {existing}"
                raise DuplicateError(msg, path=project_collection(existing).path)
            self._engine.add(
                project_collection(status), slug, record, message=f"Add project {slug}"
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"id": slug, **record})

    @traced
    def update_project(self, slug: str, changes: dict[str, Any]) -> ServiceResult:
        """Sparse patch of a project in whichever bucket holds it.

        Status changes go through :meth:`update_project_status`.
        """
        op = "update_project"
        if not changes:
            return self._invalid(op, "No changes given")
        try:
            current = self._locate(slug)
            if current is None:
                msg = f"Project {slug!r} not found"
                raise ValidationGapError(msg)
            if "status" in changes and changes["status"] != current:
                return self._invalid(op, "Use update_project_status to change status")
            merged = self._engine.patch(
                project_collection(current),
                slug,
                changes,
                message=f"Update project {slug}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"id": slug, **merged, "status": current})

    @traced
    def update_project_status(self, slug: str, new_status: str) -> ServiceResult:
        """Move a project to the *new_status* bucket and set its ``status``.

        Not atomic: see :meth:`PartialUpdateEngine.move`. A failure between
        the two writes comes back as PARTIAL_MOVE with the record in the
        error detail.
        """
        op = "update_project_status"
        if new_status not in PROJECT_STATUSES:
            return self._invalid(op, f"Unknown project status: {new_status!r}")
        try:
            current = self._locate(slug)
            if current is None:
                msg = f"Project {slug!r} not found"
                raise ValidationGapError(msg)
            if current == new_status:
                return self._ok(
                    op,
                    {"id": slug, "from": current, "to": new_status},
                    [f"Project {slug!r} is already {new_status}"],
                )
            with timed_step("move"):
                moved = self._engine.move(
                    project_collection(current),
                    project_collection(new_status),
                    slug,
                    transform=lambda record: {**record, "status": new_status},
                    message=f"Move project {slug} from {current} to {new_status}",
                )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(
            op, {"id": slug, "from": current, "to": new_status, "project": moved}
        )
