"""ProfileService: skills, work experience and the profile summary.

skills.json is ``{category: {skill name: level}}`` plus a ``skill_levels``
metadata key; experience.json is keyed by company. Both are map-keyed, so
adding an existing name fails with DUPLICATE.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from mykb.domain.errors import KbError, NotFoundError
from mykb.domain.records import (
    EXPERIENCE_PATH,
    SKILL_LEVELS,
    SKILLS_META_KEYS,
    SKILLS_PATH,
    experience_collection,
    skills_collection,
)
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced

# End date that marks a position as current.
CURRENT_MARKER = "Present"


def _level_index(level: str) -> int:
    try:
        return SKILL_LEVELS.index(level)
    except ValueError:
        msg = f"Unknown skill level {level!r} (expected one of: {', '.join(SKILL_LEVELS)})"
        raise ValueError(msg) from None


def _check_category(category: str) -> None:
    if not category.strip():
        msg = "Skill category must not be empty"
        raise ValueError(msg)
    if category in SKILLS_META_KEYS:
        msg = f"{category!r} is reserved"
        raise ValueError(msg)


class ProfileService(BaseService):
    """Reads and writes profile documents."""

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    @traced
    def get_skills(
        self, *, category: str | None = None, min_level: str | None = None
    ) -> ServiceResult:
        """Flatten skills.json into ``{category, name, level}`` rows.

        *category* matches case-insensitively. Skills whose stored level is
        not a known level are treated as below every threshold.
        """
        op = "get_skills"
        try:
            threshold = _level_index(min_level) if min_level else 0
            doc = self._engine.read_mapping(SKILLS_PATH)
        except ValueError as exc:
            return self._invalid(op, exc)
        except NotFoundError:
            return self._ok(op, {"skills": [], "count": 0}, ["No skills recorded yet"])
        except KbError as exc:
            return self._failure(op, exc)

        wanted = category.lower() if category else None
        rows: list[dict[str, str]] = []
        for cat, entries in doc.items():
            if cat in SKILLS_META_KEYS or not isinstance(entries, dict):
                continue
            if wanted is not None and cat.lower() != wanted:
                continue
            for name, level in entries.items():
                rank = SKILL_LEVELS.index(level) if level in SKILL_LEVELS else -1
                if rank >= threshold:
                    rows.append({"category": cat, "name": name, "level": level})

        return self._ok(op, {"skills": rows, "count": len(rows)})

    @traced
    def add_skill(self, category: str, name: str, level: str) -> ServiceResult:
        op = "add_skill"
        try:
            _check_category(category)
            _level_index(level)
            self._engine.add(
                skills_collection(category),
                name,
                level,
                message=f"Add skill {name} ({level}) to {category}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"category": category, "name": name, "level": level})

    @traced
    def update_skill(self, category: str, name: str, level: str) -> ServiceResult:
        """Change the level of an existing skill."""
        op = "update_skill"
        try:
            _check_category(category)
            _level_index(level)
            self._engine.replace(
                skills_collection(category),
                name,
                level,
                message=f"Set skill {name} in {category} to {level}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"category": category, "name": name, "level": level})

    # ------------------------------------------------------------------
    # Experience
    # ------------------------------------------------------------------

    @traced
    def get_experience(self, *, current_only: bool = False) -> ServiceResult:
        op = "get_experience"
        try:
            doc = self._engine.read_mapping(EXPERIENCE_PATH)
        except NotFoundError:
            return self._ok(op, {"positions": [], "count": 0}, ["No experience recorded yet"])
        except KbError as exc:
            return self._failure(op, exc)

        positions = [
            {"company": company, **data} for company, data in doc.items() if isinstance(data, dict)
        ]
        if current_only:
            positions = [p for p in positions if p.get("end_date") == CURRENT_MARKER]
        return self._ok(op, {"positions": positions, "count": len(positions)})

    @traced
    def add_experience(
        self,
        company: str,
        *,
        title: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        responsibilities: list[str] | None = None,
        technologies: list[str] | None = None,
    ) -> ServiceResult:
        op = "add_experience"
        if not company.strip():
            return self._invalid(op, "Company must not be empty")

        record: dict[str, Any] = {
            key: value
            for key, value in (
                ("title", title),
                ("start_date", start_date),
                ("end_date", end_date),
            )
            if value is not None
        }
        record["responsibilities"] = list(responsibilities or [])
        record["technologies"] = list(technologies or [])

        try:
            self._engine.add(
                experience_collection(),
                company,
                record,
                message=f"Add experience at {company}",
            )
        except ValidationError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"company": company, **record})

    @traced
    def update_experience(self, company: str, changes: dict[str, Any]) -> ServiceResult:
        """Sparse patch of one position."""
        op = "update_experience"
        if not changes:
            return self._invalid(op, "No changes given")
        try:
            merged = self._engine.patch(
                experience_collection(),
                company,
                changes,
                message=f"Update experience at {company}",
            )
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"company": company, **merged})

    # ------------------------------------------------------------------
    # Profile summary
    # ------------------------------------------------------------------

    @traced
    def get_profile(self) -> ServiceResult:
        """Contact details, about-me and the resume text.

        Each part is optional; a missing one is reported as a warning.
        """
        op = "get_profile"
        data: dict[str, Any] = {}
        warnings: list[str] = []
        parts = {
            "contact": "profile/contact.json",
            "about_me": "profile/about-me.json",
        }
        try:
            for key, path in parts.items():
                try:
                    data[key] = self._engine.read_document(path)
                except NotFoundError:
                    warnings.append(f"Missing {path}")
            try:
                resume = self._store.read("profile/resume.md")
                data["resume"] = resume.decode("utf-8", errors="replace")
            except NotFoundError:
                warnings.append("Missing profile/resume.md")
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, data, warnings)
