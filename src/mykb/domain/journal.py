"""Journal entry model and date-derived path layout.

INVARIANT: an entry's path is a pure function of its ``date`` field.
There is no secondary index; the path is the lookup key.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from mykb.domain.errors import MalformedError
from mykb.domain.frontmatter import FrontmatterDocument

JOURNAL_ROOT = "journal"

MONTH_NAMES: list[str] = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

LIST_FIELDS: tuple[str, ...] = (
    "tags",
    "wins",
    "struggles",
    "gratitude",
    "kid_moments",
    "learnings",
)

# Canonical metadata key order when rendering an entry.
KEY_ORDER: tuple[str, ...] = ("date", "mood", "energy", *LIST_FIELDS)


def journal_path(day: dt.date) -> str:
    """``journal/<YYYY>/<MM>-<month>/<YYYY-MM-DD>.md``."""
    month_dir = f"{day.month:02d}-{MONTH_NAMES[day.month - 1]}"
    return f"{JOURNAL_ROOT}/{day.year:04d}/{month_dir}/{day.isoformat()}.md"


class JournalEntry(BaseModel):
    """One day's journal entry."""

    model_config = {"frozen": True}

    date: dt.date
    mood: int | None = Field(default=None, ge=1, le=10)
    energy: int | None = Field(default=None, ge=1, le=10)
    tags: list[str] = Field(default_factory=list)
    wins: list[str] = Field(default_factory=list)
    struggles: list[str] = Field(default_factory=list)
    gratitude: list[str] = Field(default_factory=list)
    kid_moments: list[str] = Field(default_factory=list)
    learnings: list[str] = Field(default_factory=list)
    notes: str = ""

    @property
    def path(self) -> str:
        return journal_path(self.date)

    def to_document(self) -> FrontmatterDocument:
        """Render as a FrontmatterDocument (notes become the body)."""
        metadata: dict[str, Any] = {}
        for key in KEY_ORDER:
            value = getattr(self, key)
            if key == "date":
                value = value.isoformat()
            metadata[key] = value
        return FrontmatterDocument(metadata=metadata, body=self.notes)

    @classmethod
    def from_document(cls, doc: FrontmatterDocument) -> JournalEntry:
        """Build an entry from a parsed document.

        Unknown metadata keys are ignored. Raises :class:`MalformedError`
        when the date is missing or the fields fail validation.
        """
        raw_date = doc.metadata.get("date")
        if raw_date is None:
            msg = "Journal entry has no date"
            raise MalformedError(msg)
        data: dict[str, Any] = {"date": str(raw_date), "notes": doc.body}
        for key in ("mood", "energy"):
            if key in doc.metadata:
                data[key] = doc.metadata[key]
        for key in LIST_FIELDS:
            data[key] = doc.get_list(key)
        try:
            return cls.model_validate(data)
        except ValueError as exc:
            msg = f"Invalid journal entry: {exc}"
            raise MalformedError(msg) from exc

    def summary(self) -> dict[str, Any]:
        """JSON-friendly dict (dates as ISO strings)."""
        return self.model_dump(mode="json")
