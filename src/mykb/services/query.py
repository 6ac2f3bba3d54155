"""QueryService: keyword routing over whole documents.

:data:`TOPIC_ROUTES` is the complete routing table: a query is sent to
every topic with a keyword that occurs in it (lowercase substring match),
in table order. A query that matches nothing falls back to
:data:`FALLBACK_ROUTE`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from mykb.domain.errors import KbError, NotFoundError
from mykb.domain.records import decode_record
from mykb.services._helpers import today
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import traced


@dataclass(frozen=True)
class TopicRoute:
    """Keywords that select a topic and the documents it reads.

    Paths may contain ``{year}``, filled with the current year.
    """

    topic: str
    keywords: tuple[str, ...]
    documents: tuple[tuple[str, str], ...]  # (section heading, path)


TOPIC_ROUTES: tuple[TopicRoute, ...] = (
    TopicRoute(
        "skills",
        ("skill", "tech", "know", "can"),
        (("Skills", "profile/skills.json"),),
    ),
    TopicRoute(
        "experience",
        ("experience", "work", "job", "role"),
        (("Experience", "profile/experience.json"),),
    ),
    TopicRoute(
        "projects",
        ("project", "build", "built", "portfolio"),
        (
            ("Active Projects", "projects/active.json"),
            ("Completed Projects", "projects/completed.json"),
        ),
    ),
    TopicRoute(
        "goals",
        ("goal", "plan", "objective", "target"),
        (("Goals", "profile/goals/{year}-goals.json"),),
    ),
    TopicRoute(
        "contact",
        ("contact", "email", "phone", "linkedin"),
        (("Contact", "profile/contact.json"),),
    ),
    TopicRoute(
        "education",
        ("education", "degree", "cert", "school"),
        (("Education", "profile/education.json"),),
    ),
    TopicRoute(
        "business",
        ("business", "startup", "codaissance", "tampertantrum"),
        (
            ("Codaissance Strategy", "business/codaissance/strategy.json"),
            ("TamperTantrum Labs Strategy", "business/tampertantrum-labs/strategy.json"),
        ),
    ),
    TopicRoute(
        "resume",
        ("resume", "background"),
        (("Resume", "profile/resume.md"),),
    ),
)

FALLBACK_ROUTE = TopicRoute(
    "profile",
    (),
    (
        ("Profile Overview", "profile/contact.json"),
        ("Resume", "profile/resume.md"),
    ),
)

SECTION_SEPARATOR = "\n\n---\n\n"


def route(query: str) -> list[TopicRoute]:
    """Topics selected by *query*; the fallback when none match."""
    text = query.lower()
    matched = [r for r in TOPIC_ROUTES if any(k in text for k in r.keywords)]
    return matched or [FALLBACK_ROUTE]


def render_sections(sections: list[dict[str, Any]]) -> str:
    """Markdown rendering: ``## Heading`` then content, sections separated by rules."""
    parts = []
    for section in sections:
        content = section["content"]
        if not isinstance(content, str):
            content = json.dumps(content, indent=2, ensure_ascii=False)
        parts.append(f"## {section['heading']}\n{content}")
    return SECTION_SEPARATOR.join(parts)


class QueryService(BaseService):
    """Answers free-text questions with the documents their topics name."""

    def _read(self, path: str) -> Any:
        raw = self._store.read(path)
        if path.endswith(".json"):
            return decode_record(raw, path=path)
        return raw.decode("utf-8", errors="replace")

    @traced
    def query_knowledge_base(self, query: str) -> ServiceResult:
        op = "query_knowledge_base"
        if not query.strip():
            return self._invalid(op, "Query must not be empty")

        routes = route(query)
        year = today().year
        sections: list[dict[str, Any]] = []
        warnings: list[str] = []
        try:
            for topic in routes:
                for heading, template in topic.documents:
                    path = template.format(year=year)
                    try:
                        content = self._read(path)
                    except NotFoundError:
                        warnings.append(f"Missing {path}")
                        continue
                    sections.append(
                        {"topic": topic.topic, "heading": heading, "path": path, "content": content}
                    )
        except KbError as exc:
            return self._failure(op, exc)

        return self._ok(
            op,
            {
                "topics": [r.topic for r in routes],
                "sections": sections,
                "text": render_sections(sections),
            },
            warnings,
        )

    @traced
    def read_document(self, path: str) -> ServiceResult:
        """Pass-through read of any document by store path."""
        op = "read_document"
        if not path.strip() or path.startswith("/") or ".." in path.split("/"):
            return self._invalid(op, f"Invalid document path: {path!r}")
        try:
            content = self._read(path)
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"path": path, "content": content})

    @traced
    def list_documents(self, dir_path: str = "") -> ServiceResult:
        """Enumerate documents where the backend supports listing."""
        op = "list_documents"
        try:
            paths = self._store.list_documents(dir_path)
        except ValueError as exc:
            return self._invalid(op, exc)
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"dir": dir_path, "paths": paths, "count": len(paths)})
