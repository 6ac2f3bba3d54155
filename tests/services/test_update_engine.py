"""Tests for PartialUpdateEngine."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mykb.domain.errors import (
    DuplicateError,
    MalformedError,
    PartialMoveError,
    ValidationGapError,
)
from mykb.domain.records import (
    application_collection,
    goal_collection,
    project_collection,
    skills_collection,
)
from mykb.infrastructure.local import LocalBackend
from mykb.services.update import UNSET, PartialUpdateEngine, sparse
from tests.conftest import FakeContentsApi, make_remote, read_json, write_json


@pytest.fixture
def engine(tmp_path: Path) -> PartialUpdateEngine:
    return PartialUpdateEngine(LocalBackend(tmp_path))


class TestSentinel:
    def test_unset_is_dropped_none_is_kept(self) -> None:
        assert sparse({"a": UNSET, "b": None, "c": 1}) == {"b": None, "c": 1}

    def test_unset_is_falsy_singleton(self) -> None:
        assert not UNSET
        assert repr(UNSET) == "UNSET"


class TestAdd:
    def test_creates_missing_document(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        engine.add(skills_collection("backend"), "caching", "adept")
        assert read_json(tmp_path, "profile/skills.json") == {"backend": {"caching": "adept"}}

    def test_duplicate_rejected(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        engine.add(project_collection("planned"), "p1", {"name": "P1"})
        with pytest.raises(DuplicateError):
            engine.add(project_collection("planned"), "p1", {"name": "again"})
        assert read_json(tmp_path, "projects/planned.json") == {"p1": {"name": "P1"}}

    def test_schema_checked(self, engine: PartialUpdateEngine) -> None:
        with pytest.raises(ValidationError):
            engine.add(project_collection("planned"), "p1", {"technologies": "not-a-list"})

    def test_append_generates_prefixed_id(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        entry = engine.append(application_collection(), {"company": "Acme", "role": "SWE"})
        assert entry["id"].startswith("app-")
        stored = read_json(tmp_path, "job-applications/applications.json")
        assert stored == {"applications": [entry]}

    def test_append_builds_nested_container(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        entry = engine.append(goal_collection(2026, "technical"), {"goal": "Ship v1"})
        doc = read_json(tmp_path, "profile/goals/2026-goals.json")
        assert doc == {"categories": {"technical": {"goals": [entry]}}}

    def test_wrong_container_shape_is_malformed(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        write_json(tmp_path, "job-applications/applications.json", {"applications": {}})
        with pytest.raises(MalformedError):
            engine.append(application_collection(), {"company": "Acme"})


class TestPatch:
    def test_only_given_fields_change(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        write_json(
            tmp_path,
            "projects/active.json",
            {"p1": {"name": "P1", "description": "old", "repo_url": "https://x"}},
        )
        merged = engine.patch(
            project_collection("active"),
            "p1",
            {"description": "new", "repo_url": None, "name": UNSET},
        )
        assert merged == {"name": "P1", "description": "new", "repo_url": None}
        assert read_json(tmp_path, "projects/active.json")["p1"]["repo_url"] is None

    def test_patch_is_idempotent(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        entry = engine.append(application_collection(), {"company": "Acme", "status": "applied"})
        changes = {"status": "interviewing", "notes": "phone screen done"}
        path = tmp_path / "job-applications" / "applications.json"

        engine.patch(application_collection(), entry["id"], changes)
        first = path.read_bytes()
        engine.patch(application_collection(), entry["id"], changes)
        assert path.read_bytes() == first

    def test_unknown_identifier(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        write_json(tmp_path, "projects/active.json", {})
        with pytest.raises(ValidationGapError):
            engine.patch(project_collection("active"), "ghost", {"name": "x"})

    def test_invalid_merge_rejected_without_write(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        entry = engine.append(application_collection(), {"company": "Acme"})
        before = (tmp_path / "job-applications" / "applications.json").read_bytes()
        with pytest.raises(ValidationError):
            engine.patch(application_collection(), entry["id"], {"status": "hired?"})
        after = (tmp_path / "job-applications" / "applications.json").read_bytes()
        assert after == before

    def test_identifier_is_immutable(self, engine: PartialUpdateEngine) -> None:
        entry = engine.append(application_collection(), {"company": "Acme"})
        with pytest.raises(ValueError, match="Cannot change identifier"):
            engine.patch(application_collection(), entry["id"], {"id": "app-other"})


class TestReplaceAndRemove:
    def test_replace_requires_existing(self, engine: PartialUpdateEngine) -> None:
        with pytest.raises(ValidationGapError):
            engine.replace(skills_collection("backend"), "caching", "expert")

    def test_remove_returns_record(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        write_json(tmp_path, "projects/planned.json", {"p1": {"name": "P1"}, "p2": {}})
        assert engine.remove(project_collection("planned"), "p1") == {"name": "P1"}
        assert read_json(tmp_path, "projects/planned.json") == {"p2": {}}

    def test_remove_from_missing_document(self, engine: PartialUpdateEngine) -> None:
        with pytest.raises(ValidationGapError):
            engine.remove(project_collection("planned"), "p1")


class TestMove:
    def test_record_ends_up_in_exactly_one_collection(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        write_json(tmp_path, "projects/planned.json", {"p1": {"name": "P1", "status": "planned"}})
        moved = engine.move(
            project_collection("planned"),
            project_collection("active"),
            "p1",
            transform=lambda r: {**r, "status": "active"},
        )
        assert moved == {"name": "P1", "status": "active"}
        assert "p1" not in read_json(tmp_path, "projects/planned.json")
        assert read_json(tmp_path, "projects/active.json") == {"p1": moved}

    def test_duplicate_in_target_touches_nothing(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        write_json(tmp_path, "projects/planned.json", {"p1": {"name": "planned"}})
        write_json(tmp_path, "projects/active.json", {"p1": {"name": "active"}})
        with pytest.raises(DuplicateError):
            engine.move(project_collection("planned"), project_collection("active"), "p1")
        assert read_json(tmp_path, "projects/planned.json") == {"p1": {"name": "planned"}}

    def test_unknown_identifier(self, engine: PartialUpdateEngine, tmp_path: Path) -> None:
        write_json(tmp_path, "projects/planned.json", {})
        with pytest.raises(ValidationGapError):
            engine.move(project_collection("planned"), project_collection("active"), "p1")

    def test_same_collection_rejected(self, engine: PartialUpdateEngine) -> None:
        with pytest.raises(ValueError, match="same"):
            engine.move(project_collection("active"), project_collection("active"), "p1")

    def test_destination_failure_is_partial_move(self, contents_api: FakeContentsApi) -> None:
        contents_api.seed("projects/planned.json", b'{"p1": {"name": "P1"}}\n')
        contents_api.fail_puts_for.add("projects/active.json")
        store = make_remote(contents_api)
        engine = PartialUpdateEngine(store)

        with pytest.raises(PartialMoveError) as exc_info:
            engine.move(project_collection("planned"), project_collection("active"), "p1")

        err = exc_info.value
        assert err.record == {"name": "P1"}
        assert err.source == "projects/planned.json"
        assert err.target == "projects/active.json"
        assert contents_api.content("projects/planned.json") == b"{}\n"
        assert "projects/active.json" not in contents_api.files

    def test_non_object_record_is_left_in_place(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        write_json(tmp_path, "projects/planned.json", {"p1": "legacy string record"})
        with pytest.raises(MalformedError):
            engine.move(
                project_collection("planned"),
                project_collection("active"),
                "p1",
                transform=lambda r: {**r, "status": "active"},
            )
        assert read_json(tmp_path, "projects/planned.json") == {"p1": "legacy string record"}
        assert not (tmp_path / "projects/active.json").exists()

    def test_transform_checked_against_target_schema(
        self, engine: PartialUpdateEngine, tmp_path: Path
    ) -> None:
        write_json(tmp_path, "projects/planned.json", {"p1": {"name": "P1"}})
        with pytest.raises(ValidationError):
            engine.move(
                project_collection("planned"),
                project_collection("active"),
                "p1",
                transform=lambda r: {**r, "technologies": "python"},
            )
        assert read_json(tmp_path, "projects/planned.json") == {"p1": {"name": "P1"}}
        assert not (tmp_path / "projects/active.json").exists()
