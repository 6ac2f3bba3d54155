"""Record schemas and collection layout.

Each record type has an explicit pydantic schema with declared optional
fields (``extra="allow"`` keeps unknown stored keys intact). Records live
inside *collection documents*, and a :class:`Collection` names where: the
document path, the container key path inside the JSON, and whether the
container is map-keyed (natural identifier, duplicates rejected) or
list-keyed (generated ``<prefix>-<ns timestamp>`` identifier, always append).

Both keying idioms are kept on purpose, per record type:

- map:  skills, experience, projects
- list: goals, ideas, job applications, interviews
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mykb.domain.errors import MalformedError

Keying = Literal["map", "list"]

SKILL_LEVELS: list[str] = ["none", "novice", "apprentice", "adept", "expert", "master"]
PROJECT_STATUSES: list[str] = ["active", "planned", "completed"]
GOAL_STATUSES: list[str] = ["not_started", "in_progress", "completed"]
IDEA_STATUSES: list[str] = ["raw", "validating", "validated", "rejected", "moved_to_projects"]
APPLICATION_STATUSES: list[str] = [
    "applied",
    "screening",
    "interviewing",
    "offer",
    "rejected",
    "withdrawn",
    "ghosted",
]
INTERVIEW_OUTCOMES: list[str] = ["passed", "rejected", "pending", "unknown"]

BUSINESSES: list[str] = ["codaissance", "tampertantrum-labs"]
IDEA_SOURCES: dict[str, str] = {
    "personal": "ideas/personal/ideas.json",
    "codaissance": "ideas/business/codaissance/ideas.json",
    "tampertantrum-labs": "ideas/business/tampertantrum-labs/ideas.json",
}

SKILLS_PATH = "profile/skills.json"
EXPERIENCE_PATH = "profile/experience.json"
APPLICATIONS_PATH = "job-applications/applications.json"
INTERVIEWS_PATH = "job-applications/interviews.json"

# Keys in skills.json that are metadata rather than skill categories.
SKILLS_META_KEYS = frozenset({"skill_levels"})


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow")


class Skill(BaseModel):
    """A flattened skill row (stored as ``{category: {name: level}}``)."""

    model_config = ConfigDict(frozen=True)

    category: str
    name: str
    level: Literal["none", "novice", "apprentice", "adept", "expert", "master"]


class Position(_Record):
    """A role at a company (experience.json is keyed by company)."""

    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    responsibilities: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)


class Project(_Record):
    """A project record (projects/<status>.json is keyed by slug)."""

    name: str | None = None
    description: str | None = None
    technologies: list[str] = Field(default_factory=list)
    repo_url: str | None = None
    type: str | None = None
    status: Literal["active", "planned", "completed"] | None = None
    monetization_strategy: str | None = None
    problem: str | None = None
    solution: str | None = None
    target_audience: str | None = None
    mission_statement: str | None = None


class GoalMetrics(_Record):
    target: str | None = None
    current: str | None = None


class Goal(_Record):
    id: str
    goal: str
    status: Literal["not_started", "in_progress", "completed"] = "not_started"
    target_date: str | None = None
    metrics: GoalMetrics | None = None


class Idea(_Record):
    id: str
    title: str
    description: str | None = None
    status: Literal["raw", "validating", "validated", "rejected", "moved_to_projects"] = "raw"
    tags: list[str] = Field(default_factory=list)
    created: str | None = None


class Application(_Record):
    id: str
    company: str
    role: str | None = None
    status: (
        Literal["applied", "screening", "interviewing", "offer", "rejected", "withdrawn", "ghosted"]
        | None
    ) = "applied"
    applied_date: str | None = None
    url: str | None = None
    cluster: str | None = None
    notes: str | None = None


class Interview(_Record):
    id: str
    company: str
    application_id: str | None = None
    date: str | None = None
    round: str | None = None
    interviewers: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    outcome: Literal["passed", "rejected", "pending", "unknown"] | None = "pending"
    notes: str | None = None


RECORD_SCHEMAS: dict[str, type[BaseModel]] = {
    "experience": Position,
    "project": Project,
    "goal": Goal,
    "idea": Idea,
    "application": Application,
    "interview": Interview,
}


# ---------------------------------------------------------------------------
# Collection layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Collection:
    """Location and keying idiom of one record collection.

    Attributes:
        record_type: Key into :data:`RECORD_SCHEMAS` (``None`` for scalar
            records such as skill levels).
        path: Store-relative document path.
        container: Key path from the document root to the map or list.
            Empty means the root itself.
        keying: ``"map"`` or ``"list"``.
        id_field: Identifier field of list entries.
        id_prefix: Prefix for generated list identifiers.
    """

    record_type: str | None
    path: str
    container: tuple[str, ...] = ()
    keying: Keying = "map"
    id_field: str = "id"
    id_prefix: str = ""

    def empty_container(self) -> dict[str, Any] | list[Any]:
        return [] if self.keying == "list" else {}


def skills_collection(category: str) -> Collection:
    return Collection(record_type=None, path=SKILLS_PATH, container=(category,))


def experience_collection() -> Collection:
    return Collection(record_type="experience", path=EXPERIENCE_PATH)


def project_collection(status: str) -> Collection:
    if status not in PROJECT_STATUSES:
        msg = f"Unknown project status: {status!r}"
        raise ValueError(msg)
    return Collection(record_type="project", path=f"projects/{status}.json")


def goals_path(year: int) -> str:
    return f"profile/goals/{year}-goals.json"


def goal_collection(year: int, category: str) -> Collection:
    return Collection(
        record_type="goal",
        path=goals_path(year),
        container=("categories", category, "goals"),
        keying="list",
        id_prefix="goal",
    )


def idea_collection(source: str) -> Collection:
    try:
        path = IDEA_SOURCES[source]
    except KeyError:
        msg = f"Unknown idea source: {source!r}"
        raise ValueError(msg) from None
    return Collection(
        record_type="idea", path=path, container=("ideas",), keying="list", id_prefix="idea"
    )


def application_collection() -> Collection:
    return Collection(
        record_type="application",
        path=APPLICATIONS_PATH,
        container=("applications",),
        keying="list",
        id_prefix="app",
    )


def interview_collection() -> Collection:
    return Collection(
        record_type="interview",
        path=INTERVIEWS_PATH,
        container=("interviews",),
        keying="list",
        id_prefix="interview",
    )


def validate_record(record_type: str | None, record: Any) -> None:
    """Validate *record* against its schema. Raises pydantic ``ValidationError``."""
    if record_type is None:
        return
    RECORD_SCHEMAS[record_type].model_validate(record)


# ---------------------------------------------------------------------------
# JSON codec
# ---------------------------------------------------------------------------


def decode_record(content: bytes, *, path: str | None = None) -> Any:
    """Decode a JSON collection document."""
    try:
        return json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        msg = f"Invalid JSON document: {exc}"
        raise MalformedError(msg, path=path) from exc


def encode_record(record: Any) -> bytes:
    """Encode a record as pretty-printed JSON with a trailing newline."""
    return (json.dumps(record, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
