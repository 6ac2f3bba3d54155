"""ReferenceService: read-only documents outside the record collections.

Resume variants, per-business strategy, financials and roadmaps,
education, preferences, and the learning and career plans. None of these
are written through mykb; they are edited by hand and read whole, with an
optional section picked out.
"""

from __future__ import annotations

from typing import Any

from mykb.domain.errors import KbError, NotFoundError
from mykb.domain.records import BUSINESSES
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced

RESUME_PATH = "profile/resume.md"
RESUME_MANIFEST_PATH = "profile/resumes/latest-manifest.json"
EDUCATION_PATH = "profile/education.json"
PREFERENCES_PATH = "profile/preferences.json"
LEARNING_ROADMAP_PATH = "learning/roadmap.json"
LEARNING_COMPLETED_PATH = "learning/completed.json"
CAREER_ROADMAP_PATH = "career/roadmap.json"
CHIEF_AIM_PATH = "career/chief-aim.json"

BUSINESS_PARTS: tuple[str, ...] = ("strategy", "personas", "marketing")
FINANCIAL_SECTIONS: tuple[str, ...] = ("revenue", "expenses", "metrics", "milestones")
EDUCATION_PARTS: tuple[str, ...] = ("degrees", "certifications", "self_taught")
PREFERENCE_CATEGORIES: tuple[str, ...] = (
    "learning",
    "work_environment",
    "schedule",
    "coding_style",
    "tools",
)
LEARNING_SECTIONS: tuple[str, ...] = ("current_focus", "queue", "backlog", "on_hold", "completed")
CAREER_SECTIONS: tuple[str, ...] = (
    "milestones",
    "parallel_tracks",
    "success_metrics",
    "risk_mitigation",
)
MILESTONE_STATUSES: tuple[str, ...] = ("in_progress", "not_started", "completed")

# education.json keys that are not degree entries.
_NON_DEGREE_KEYS = frozenset({"certifications", "certificates", "self_taught_learning"})


def _business_path(business: str, name: str) -> str:
    return f"business/{business}/{name}"


def _check_choice(kind: str, value: str | None, choices: tuple[str, ...] | list[str]) -> None:
    if value is not None and value not in choices:
        msg = f"Unknown {kind} {value!r} (expected one of: {', '.join(choices)})"
        raise ValueError(msg)


def _check_parts(kind: str, parts: list[str] | None, choices: tuple[str, ...]) -> list[str]:
    """Requested parts in table order; all of them when none are given."""
    for part in parts or []:
        _check_choice(kind, part, choices)
    return [p for p in choices if not parts or p in parts]


class ReferenceService(BaseService):
    """Whole-document reads with optional section filters."""

    def _text(self, path: str) -> str:
        return self._store.read(path).decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # Resume
    # ------------------------------------------------------------------

    @traced
    def get_resume(self, variant: str | None = None) -> ServiceResult:
        """The base resume, or a generated variant named in the manifest.

        An unknown variant (or a missing manifest) falls back to the base
        resume with a warning.
        """
        op = "get_resume"
        path = RESUME_PATH
        warnings: list[str] = []
        try:
            if variant:
                found = self._variant_path(variant)
                if found is None:
                    warnings.append(f"No resume variant {variant!r}; using the base resume")
                else:
                    path = found
            content = self._text(path)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"path": path, "variant": variant, "content": content}, warnings)

    def _variant_path(self, variant: str) -> str | None:
        try:
            manifest = self._engine.read_mapping(RESUME_MANIFEST_PATH)
        except NotFoundError:
            return None
        for entry in manifest.get("resumes") or []:
            if isinstance(entry, dict) and entry.get("cluster") == variant and entry.get("file"):
                return f"profile/resumes/{entry['file']}"
        return None

    # ------------------------------------------------------------------
    # Business
    # ------------------------------------------------------------------

    @traced
    def get_business_info(
        self, business: str, *, include: list[str] | None = None
    ) -> ServiceResult:
        """Strategy, personas and marketing documents for one business.

        Each part is optional on disk; a missing one becomes a warning.
        """
        op = "get_business_info"
        try:
            _check_choice("business", business, BUSINESSES)
            parts = _check_parts("business part", include, BUSINESS_PARTS)
        except ValueError as exc:
            return self._invalid(op, exc)

        data: dict[str, Any] = {"business": business}
        warnings: list[str] = []
        try:
            for part in parts:
                path = _business_path(business, f"{part}.json")
                try:
                    data[part] = self._engine.read_document(path)
                except NotFoundError:
                    warnings.append(f"Missing {path}")
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, data, warnings)

    @traced
    def get_financials(self, business: str, *, section: str | None = None) -> ServiceResult:
        op = "get_financials"
        try:
            _check_choice("business", business, BUSINESSES)
            if section == "all":
                section = None
            _check_choice("financials section", section, FINANCIAL_SECTIONS)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            financials = self._engine.read_mapping(_business_path(business, "financials.json"))
        except KbError as exc:
            return self._failure(op, exc)
        if section is None:
            return self._ok(op, {"business": business, **financials})
        return self._ok(op, {"business": business, section: financials.get(section)})

    @traced
    def get_business_roadmap(self, business: str) -> ServiceResult:
        op = "get_business_roadmap"
        try:
            _check_choice("business", business, BUSINESSES)
        except ValueError as exc:
            return self._invalid(op, exc)
        path = _business_path(business, "roadmap.md")
        try:
            content = self._text(path)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"business": business, "path": path, "content": content})

    # ------------------------------------------------------------------
    # Profile extras
    # ------------------------------------------------------------------

    @traced
    def get_education(self, *, include: list[str] | None = None) -> ServiceResult:
        """Degrees, certifications and self-taught learning.

        Every object-valued key of education.json other than the
        certification lists counts as a degree.
        """
        op = "get_education"
        try:
            parts = _check_parts("education part", include, EDUCATION_PARTS)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            education = self._engine.read_mapping(EDUCATION_PATH)
        except KbError as exc:
            return self._failure(op, exc)

        data: dict[str, Any] = {}
        if "degrees" in parts:
            data["degrees"] = {
                key: value
                for key, value in education.items()
                if key not in _NON_DEGREE_KEYS and isinstance(value, dict)
            }
        if "certifications" in parts:
            data["certifications"] = education.get("certifications") or []
            data["certificates"] = education.get("certificates") or []
        if "self_taught" in parts:
            data["self_taught"] = education.get("self_taught_learning")
        return self._ok(op, data)

    @traced
    def get_preferences(self, category: str | None = None) -> ServiceResult:
        op = "get_preferences"
        try:
            _check_choice("preference category", category, PREFERENCE_CATEGORIES)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            preferences = self._engine.read_mapping(PREFERENCES_PATH)
        except KbError as exc:
            return self._failure(op, exc)
        if category is None:
            return self._ok(op, {"preferences": preferences})
        return self._ok(op, {"preferences": {category: preferences.get(category)}})

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    @traced
    def get_learning_roadmap(self, section: str | None = None) -> ServiceResult:
        """The learning roadmap and the completed-learning log.

        ``completed`` comes from its own document; the other sections are
        keys of the roadmap. Missing documents become warnings.
        """
        op = "get_learning_roadmap"
        try:
            _check_choice("learning section", section, LEARNING_SECTIONS)
        except ValueError as exc:
            return self._invalid(op, exc)

        data: dict[str, Any] = {}
        warnings: list[str] = []
        try:
            if section != "completed":
                try:
                    roadmap = self._engine.read_mapping(LEARNING_ROADMAP_PATH)
                except NotFoundError:
                    warnings.append(f"Missing {LEARNING_ROADMAP_PATH}")
                else:
                    if section is None:
                        data["roadmap"] = roadmap
                    else:
                        data[section] = roadmap.get(section)
            if section in (None, "completed"):
                try:
                    completed = self._engine.read_mapping(LEARNING_COMPLETED_PATH)
                except NotFoundError:
                    warnings.append(f"Missing {LEARNING_COMPLETED_PATH}")
                else:
                    data["completed"] = completed.get("entries") or []
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, data, warnings)

    @traced
    def get_career_roadmap(
        self, *, section: str | None = None, milestone_status: str | None = None
    ) -> ServiceResult:
        """The ``career_roadmap`` object, or one section of it.

        *milestone_status* filters the milestones wherever they appear.
        """
        op = "get_career_roadmap"
        try:
            if section == "all":
                section = None
            _check_choice("career section", section, CAREER_SECTIONS)
            _check_choice("milestone status", milestone_status, MILESTONE_STATUSES)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            doc = self._engine.read_mapping(CAREER_ROADMAP_PATH)
        except KbError as exc:
            return self._failure(op, exc)

        roadmap = doc.get("career_roadmap")
        roadmap = dict(roadmap) if isinstance(roadmap, dict) else {}
        if milestone_status is not None:
            roadmap["milestones"] = [
                m
                for m in roadmap.get("milestones") or []
                if isinstance(m, dict) and m.get("status") == milestone_status
            ]
        if section is None:
            return self._ok(op, {"roadmap": roadmap})
        return self._ok(op, {section: roadmap.get(section)})

    @traced
    def get_chief_aim(self, principle: str | None = None) -> ServiceResult:
        """The chief-aim document, or one principle from it.

        ``career_vision_questions`` sits beside the principles and can be
        asked for the same way.
        """
        op = "get_chief_aim"
        try:
            doc = self._engine.read_mapping(CHIEF_AIM_PATH)
        except KbError as exc:
            return self._failure(op, exc)
        if principle is None:
            return self._ok(op, {"chief_aim": doc})

        principles = doc.get("napoleon_hill_principles")
        principles = principles if isinstance(principles, dict) else {}
        if principles.get(principle):
            return self._ok(op, {"chief_aim": {principle: principles[principle]}})
        if principle == "career_vision_questions" and doc.get(principle):
            return self._ok(op, {"chief_aim": {principle: doc[principle]}})
        available = [*principles, "career_vision_questions"]
        return self._invalid(
            op, f"Unknown principle {principle!r} (available: {', '.join(available)})"
        )
