"""JournalIndex: date-sharded journal entries.

There is no index document: an entry's path is derived from its date
(``journal/2025/06-june/2025-06-01.md``), so every lookup is a point read
and range operations walk the calendar one day at a time. Missing days
are skipped. This works the same on both backends because it never needs
to list directories.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from mykb.domain.errors import (
    ConflictError,
    DuplicateError,
    KbError,
    MalformedError,
    NotFoundError,
)
from mykb.domain.frontmatter import decode_document, encode_document
from mykb.domain.journal import JournalEntry, journal_path
from mykb.infrastructure.store import Precondition
from mykb.services._helpers import parse_date, today
from mykb.services.base import BaseService
from mykb.services.result import ServiceResult
from mykb.services.telemetry import timed_step, traced

if TYPE_CHECKING:
    from mykb.infrastructure.knowledge_base import KnowledgeBase

logger = logging.getLogger(__name__)

# Upper bound on days walked by one range operation.
MAX_RANGE_DAYS = 366

# Occurrence count at which a search hit scores 1.0.
FULL_SCORE_HITS = 5

# theme -> (metadata field, minimum entries, title, tags)
STORY_THEMES: tuple[tuple[str, str, int, str, tuple[str, ...]], ...] = (
    ("kid moments", "kid_moments", 2, "Moments with the kids", ("parenting", "family")),
    ("struggles", "struggles", 1, "Working through a hard stretch", ("resilience", "growth")),
    ("wins", "wins", 2, "A run of wins", ("wins", "progress")),
)
MAX_SNIPPETS = 3
SNIPPET_SEPARATOR = " | "


def _days_back(end: dt.date, start: dt.date) -> Iterator[dt.date]:
    day = end
    while day >= start:
        yield day
        day -= dt.timedelta(days=1)


def excerpt_around(text: str, keyword: str | None, length: int) -> str:
    """*length* characters centred on the first match of *keyword*.

    Without a keyword (or without a match) the first *length* characters.
    """
    if not keyword:
        return text[:length]
    idx = text.lower().find(keyword.lower())
    if idx < 0:
        return text[:length]
    start = max(0, idx + len(keyword) // 2 - length // 2)
    start = min(start, max(0, len(text) - length))
    return text[start : start + length]


class JournalIndex(BaseService):
    """Create, read, list, search and mine journal entries."""

    def __init__(self, kb: KnowledgeBase) -> None:
        super().__init__(kb)
        self._config = kb.settings.journal

    # ------------------------------------------------------------------
    # Point reads
    # ------------------------------------------------------------------

    def _read_raw(self, day: dt.date) -> bytes | None:
        try:
            return self._store.read(journal_path(day))
        except NotFoundError:
            return None

    def _load(self, day: dt.date) -> tuple[JournalEntry, str] | None:
        """Entry and its raw text for *day*, or None when there is none."""
        raw = self._read_raw(day)
        if raw is None:
            return None
        path = journal_path(day)
        try:
            entry = JournalEntry.from_document(decode_document(raw))
        except KbError as exc:
            exc.path = exc.path or path
            raise
        if entry.date != day:
            logger.warning("Journal entry at %s is dated %s", path, entry.date)
        return entry, raw.decode("utf-8")

    def _load_or_skip(
        self, day: dt.date, warnings: list[str]
    ) -> tuple[JournalEntry, str] | None:
        """Like :meth:`_load`, but a malformed entry becomes a warning."""
        try:
            return self._load(day)
        except MalformedError as exc:
            logger.warning("Skipping malformed journal entry %s: %s", exc.path, exc.message)
            warnings.append(f"Skipped malformed entry {exc.path}: {exc.message}")
            return None

    def _range(
        self, start: str | dt.date | None, end: str | dt.date | None, default_days: int
    ) -> tuple[dt.date, dt.date]:
        last = parse_date(end) if end is not None else today()
        first = (
            parse_date(start)
            if start is not None
            else last - dt.timedelta(days=max(default_days, 1) - 1)
        )
        if first > last:
            msg = f"Range start {first} is after end {last}"
            raise ValueError(msg)
        if (last - first).days + 1 > MAX_RANGE_DAYS:
            msg = f"Range is longer than {MAX_RANGE_DAYS} days"
            raise ValueError(msg)
        return first, last

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    @traced
    def add_entry(
        self,
        date: str | dt.date | None = None,
        *,
        mood: int | None = None,
        energy: int | None = None,
        tags: list[str] | None = None,
        wins: list[str] | None = None,
        struggles: list[str] | None = None,
        gratitude: list[str] | None = None,
        kid_moments: list[str] | None = None,
        learnings: list[str] | None = None,
        notes: str = "",
    ) -> ServiceResult:
        """Create the entry for *date* (today by default).

        Entries are create-only: an existing entry for the date fails with
        DUPLICATE.
        """
        op = "add_journal_entry"
        try:
            entry = JournalEntry(
                date=parse_date(date) if date is not None else today(),
                mood=mood,
                energy=energy,
                tags=list(tags or []),
                wins=list(wins or []),
                struggles=list(struggles or []),
                gratitude=list(gratitude or []),
                kid_moments=list(kid_moments or []),
                learnings=list(learnings or []),
                notes=notes,
            )
        except ValueError as exc:
            return self._invalid(op, exc)

        path = entry.path
        try:
            if self._store.exists(path):
                msg = f"A journal entry for {entry.date} already exists"
                raise DuplicateError(msg, path=path)
            try:
                self._store.write(
                    path,
                    encode_document(entry.to_document()),
                    Precondition.absent(),
                    message=f"Add journal entry for {entry.date}",
                )
            except ConflictError as exc:
                msg = f"A journal entry for {entry.date} already exists"
                raise DuplicateError(msg, path=path) from exc
        except KbError as exc:
            return self._failure(op, exc)

        logger.info("Added journal entry %s", path)
        return self._ok(op, {"path": path, "entry": entry.summary()})

    @traced
    def get_entry(self, date: str | dt.date) -> ServiceResult:
        op = "get_journal_entry"
        try:
            day = parse_date(date)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            loaded = self._load(day)
            if loaded is None:
                msg = f"No journal entry for {day}"
                raise NotFoundError(msg, path=journal_path(day))
        except KbError as exc:
            return self._failure(op, exc)
        entry, _ = loaded
        return self._ok(op, {"path": entry.path, "entry": entry.summary()})

    @traced
    def exists(self, date: str | dt.date) -> ServiceResult:
        op = "journal_entry_exists"
        try:
            day = parse_date(date)
        except ValueError as exc:
            return self._invalid(op, exc)
        try:
            found = self._store.exists(journal_path(day))
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"date": day.isoformat(), "exists": found})

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    @traced
    def list_recent(
        self, days: int | None = None, *, anchor: str | dt.date | None = None
    ) -> ServiceResult:
        """Entries from the last *days* days up to *anchor* (today), newest first."""
        op = "list_recent_journal_entries"
        days = self._config.recent_days if days is None else days
        if days < 1 or days > MAX_RANGE_DAYS:
            return self._invalid(op, f"days must be between 1 and {MAX_RANGE_DAYS}")
        try:
            anchor_day = parse_date(anchor) if anchor is not None else today()
        except ValueError as exc:
            return self._invalid(op, exc)

        entries: list[dict[str, Any]] = []
        warnings: list[str] = []
        try:
            for i in range(days):
                loaded = self._load_or_skip(anchor_day - dt.timedelta(days=i), warnings)
                if loaded is not None:
                    entries.append(loaded[0].summary())
        except KbError as exc:
            return self._failure(op, exc)
        return self._ok(op, {"entries": entries, "count": len(entries)}, warnings)

    @traced
    def search(
        self,
        keyword: str | None = None,
        *,
        tags: list[str] | None = None,
        start: str | dt.date | None = None,
        end: str | dt.date | None = None,
        limit: int | None = None,
    ) -> ServiceResult:
        """Keyword and tag search over a date range, newest first.

        *keyword* is a case-insensitive substring of the entry's full text.
        An entry passes the tag filter when it shares at least one tag.
        With a keyword, hits are ordered by score (occurrences / 5, capped
        at 1.0); ties keep newest-first order.
        """
        op = "search_journal"
        limit = self._config.search_limit if limit is None else limit
        if limit < 1:
            return self._invalid(op, "limit must be positive")
        try:
            first, last = self._range(start, end, self._config.search_days)
        except ValueError as exc:
            return self._invalid(op, exc)

        wanted_tags = {t.lower() for t in tags or []}
        needle = keyword.lower() if keyword else None
        results: list[dict[str, Any]] = []
        warnings: list[str] = []
        try:
            with timed_step("scan"):
                for day in _days_back(last, first):
                    loaded = self._load_or_skip(day, warnings)
                    if loaded is None:
                        continue
                    entry, text = loaded
                    if wanted_tags and not wanted_tags & {t.lower() for t in entry.tags}:
                        continue
                    hits = text.lower().count(needle) if needle else 0
                    if needle and hits == 0:
                        continue
                    results.append(
                        {
                            "date": entry.date.isoformat(),
                            "path": entry.path,
                            "excerpt": excerpt_around(
                                text, keyword, self._config.excerpt_length
                            ),
                            "score": min(1.0, hits / FULL_SCORE_HITS) if needle else 1.0,
                            "tags": list(entry.tags),
                            "mood": entry.mood,
                        }
                    )
                    if len(results) >= limit:
                        break
        except KbError as exc:
            return self._failure(op, exc)

        if needle:
            results.sort(key=lambda r: r["score"], reverse=True)
        return self._ok(
            op,
            {
                "query": {
                    "keyword": keyword,
                    "tags": sorted(wanted_tags),
                    "start": first.isoformat(),
                    "end": last.isoformat(),
                },
                "results": results,
                "count": len(results),
            },
            warnings,
        )

    @traced
    def extract_stories(
        self,
        *,
        start: str | dt.date | None = None,
        end: str | dt.date | None = None,
    ) -> ServiceResult:
        """Story candidates from recurring themes in a date range.

        A theme qualifies when enough entries in the range mention it;
        each qualifying theme yields one candidate built from up to three
        snippets.
        """
        op = "extract_stories"
        try:
            first, last = self._range(start, end, self._config.search_days)
        except ValueError as exc:
            return self._invalid(op, exc)

        entries: list[JournalEntry] = []
        warnings: list[str] = []
        try:
            for day in _days_back(last, first):
                loaded = self._load_or_skip(day, warnings)
                if loaded is not None:
                    entries.append(loaded[0])
        except KbError as exc:
            return self._failure(op, exc)
        entries.reverse()

        stories: list[dict[str, Any]] = []
        for theme, field_name, minimum, title, story_tags in STORY_THEMES:
            matching = [e for e in entries if getattr(e, field_name)]
            if len(matching) < minimum:
                continue
            snippets = [item for e in matching for item in getattr(e, field_name)]
            stories.append(
                {
                    "title": title,
                    "theme": theme,
                    "content": SNIPPET_SEPARATOR.join(snippets[:MAX_SNIPPETS]),
                    "dates": [e.date.isoformat() for e in matching],
                    "tags": list(story_tags),
                }
            )
        return self._ok(
            op,
            {
                "start": first.isoformat(),
                "end": last.isoformat(),
                "entries_scanned": len(entries),
                "stories": stories,
            },
            warnings,
        )
