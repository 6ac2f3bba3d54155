"""Tests for ReferenceService."""

from __future__ import annotations

from pathlib import Path

import pytest

from mykb.infrastructure.knowledge_base import KnowledgeBase
from mykb.services.reference import ReferenceService
from tests.conftest import write_json


@pytest.fixture
def reference(kb: KnowledgeBase) -> ReferenceService:
    return ReferenceService(kb)


class TestResume:
    def test_base_resume(self, reference: ReferenceService, kb_root: Path) -> None:
        (kb_root / "profile" / "resume.md").write_text("# Base\n", encoding="utf-8")
        result = reference.get_resume()
        assert result.ok
        assert result.data["content"] == "# Base\n"
        assert result.data["path"] == "profile/resume.md"

    def test_variant_from_manifest(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(
            kb_root,
            "profile/resumes/latest-manifest.json",
            {"resumes": [{"cluster": "general-swe", "file": "general-swe.md"}]},
        )
        (kb_root / "profile" / "resumes" / "general-swe.md").write_text("# SWE", encoding="utf-8")
        result = reference.get_resume("general-swe")
        assert result.data["content"] == "# SWE"
        assert not result.warnings

    def test_unknown_variant_falls_back(self, reference: ReferenceService, kb_root: Path) -> None:
        (kb_root / "profile" / "resume.md").write_text("# Base\n", encoding="utf-8")
        result = reference.get_resume("frontend-react")
        assert result.ok
        assert result.data["path"] == "profile/resume.md"
        assert result.warnings

    def test_missing_resume(self, reference: ReferenceService) -> None:
        result = reference.get_resume()
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestBusiness:
    def test_info_collects_available_parts(
        self, reference: ReferenceService, kb_root: Path
    ) -> None:
        write_json(kb_root, "business/codaissance/strategy.json", {"mission": "ship"})
        result = reference.get_business_info("codaissance")
        assert result.ok
        assert result.data["strategy"] == {"mission": "ship"}
        assert "personas" not in result.data
        assert result.warnings == [
            "Missing business/codaissance/personas.json",
            "Missing business/codaissance/marketing.json",
        ]

    def test_info_include_filter(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(kb_root, "business/codaissance/strategy.json", {"mission": "ship"})
        write_json(kb_root, "business/codaissance/marketing.json", {"channels": []})
        result = reference.get_business_info("codaissance", include=["marketing"])
        assert set(result.data) == {"business", "marketing"}

    def test_unknown_business(self, reference: ReferenceService) -> None:
        result = reference.get_business_info("acme")
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    def test_financials_section(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(
            kb_root,
            "business/tampertantrum-labs/financials.json",
            {"revenue": {"mrr": 10}, "expenses": {"hosting": 5}},
        )
        result = reference.get_financials("tampertantrum-labs", section="revenue")
        assert result.data == {"business": "tampertantrum-labs", "revenue": {"mrr": 10}}

        everything = reference.get_financials("tampertantrum-labs", section="all")
        assert everything.data["expenses"] == {"hosting": 5}

    def test_roadmap(self, reference: ReferenceService, kb_root: Path) -> None:
        target = kb_root / "business" / "codaissance" / "roadmap.md"
        target.parent.mkdir(parents=True)
        target.write_text("# Q3", encoding="utf-8")
        assert reference.get_business_roadmap("codaissance").data["content"] == "# Q3"


class TestProfileExtras:
    def test_education_parts(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(
            kb_root,
            "profile/education.json",
            {
                "bachelors": {"school": "State"},
                "certifications": [{"name": "AWS"}],
                "self_taught_learning": {"topics": ["rust"]},
            },
        )
        result = reference.get_education()
        assert result.data["degrees"] == {"bachelors": {"school": "State"}}
        assert result.data["certifications"] == [{"name": "AWS"}]
        assert result.data["certificates"] == []
        assert result.data["self_taught"] == {"topics": ["rust"]}

        only = reference.get_education(include=["degrees"])
        assert set(only.data) == {"degrees"}

    def test_preferences_category(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(kb_root, "profile/preferences.json", {"tools": ["vim"], "schedule": "early"})
        result = reference.get_preferences("tools")
        assert result.data["preferences"] == {"tools": ["vim"]}

    def test_bad_preference_category(self, reference: ReferenceService) -> None:
        result = reference.get_preferences("snacks")
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"


class TestPlans:
    def test_learning_roadmap_and_completed(
        self, reference: ReferenceService, kb_root: Path
    ) -> None:
        write_json(kb_root, "learning/roadmap.json", {"current_focus": ["rust"], "queue": []})
        write_json(kb_root, "learning/completed.json", {"entries": [{"title": "go"}]})

        everything = reference.get_learning_roadmap()
        assert everything.data["roadmap"]["current_focus"] == ["rust"]
        assert everything.data["completed"] == [{"title": "go"}]

        focus = reference.get_learning_roadmap("current_focus")
        assert focus.data == {"current_focus": ["rust"]}

        completed = reference.get_learning_roadmap("completed")
        assert completed.data == {"completed": [{"title": "go"}]}

    def test_career_milestones_by_status(
        self, reference: ReferenceService, kb_root: Path
    ) -> None:
        write_json(
            kb_root,
            "career/roadmap.json",
            {
                "career_roadmap": {
                    "milestones": [
                        {"name": "a", "status": "completed"},
                        {"name": "b", "status": "in_progress"},
                    ],
                    "success_metrics": {"salary": 1},
                }
            },
        )
        result = reference.get_career_roadmap(
            section="milestones", milestone_status="in_progress"
        )
        assert result.data == {"milestones": [{"name": "b", "status": "in_progress"}]}

        whole = reference.get_career_roadmap()
        assert whole.data["roadmap"]["success_metrics"] == {"salary": 1}

    def test_chief_aim_principle(self, reference: ReferenceService, kb_root: Path) -> None:
        write_json(
            kb_root,
            "career/chief-aim.json",
            {
                "napoleon_hill_principles": {"self_discipline": {"notes": "daily"}},
                "career_vision_questions": ["why?"],
            },
        )
        result = reference.get_chief_aim("self_discipline")
        assert result.data["chief_aim"] == {"self_discipline": {"notes": "daily"}}

        vision = reference.get_chief_aim("career_vision_questions")
        assert vision.data["chief_aim"] == {"career_vision_questions": ["why?"]}

        unknown = reference.get_chief_aim("patience")
        assert unknown.error is not None
        assert "self_discipline" in unknown.error.message

    def test_non_object_document_is_malformed(
        self, reference: ReferenceService, kb_root: Path
    ) -> None:
        write_json(kb_root, "career/chief-aim.json", ["nope"])
        result = reference.get_chief_aim()
        assert result.error is not None
        assert result.error.code == "MALFORMED"
