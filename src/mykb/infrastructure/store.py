"""DocumentStore: path-addressed read/write abstraction over storage backends.

Two implementations live beside this module:

- :class:`~mykb.infrastructure.local.LocalBackend`: a file tree.
  Revisions are not tracked; writes are last-write-wins.
- :class:`~mykb.infrastructure.remote.RemoteVersionedBackend`: an HTTP
  content API. Every document has a content-derived revision and writes
  are compare-and-swap against an expected revision.

INVARIANT: stores keep no in-process cache. Every read goes to the backend,
so a caller always sees backend state as of its own read.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from mykb.domain.errors import ConflictError, NotFoundError, UnsupportedOperationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Precondition:
    """Write guard: either "no prior revision" or "revision R expected".

    Use :meth:`absent` for creates and :meth:`matches` for updates.
    """

    expect_absent: bool
    revision: str | None = None

    @classmethod
    def absent(cls) -> Precondition:
        return cls(expect_absent=True)

    @classmethod
    def matches(cls, revision: str | None) -> Precondition:
        """Expect *revision*. ``None`` (no revision known) means "absent"."""
        if revision is None:
            return cls(expect_absent=True)
        return cls(expect_absent=False, revision=revision)

    def describe(self) -> str:
        return "absent" if self.expect_absent else f"revision {self.revision}"


@dataclass(frozen=True)
class VersionedDocument:
    """Document content together with the revision it was read at."""

    path: str
    content: bytes
    revision: str | None


class DocumentStore(ABC):
    """Abstract document store.

    Paths are store-relative POSIX strings such as ``profile/skills.json``.
    """

    #: Whether :meth:`list_documents` is available. Callers must check before listing.
    supports_listing: bool = False

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return the document bytes. Raises :class:`NotFoundError`."""

    @abstractmethod
    def read_versioned(self, path: str) -> VersionedDocument:
        """Return content plus current revision. Raises :class:`NotFoundError`."""

    @abstractmethod
    def revision(self, path: str) -> str | None:
        """Resolve the current revision, ``None`` when absent or untracked."""

    @abstractmethod
    def write(
        self,
        path: str,
        content: bytes,
        precondition: Precondition,
        *,
        message: str | None = None,
    ) -> str | None:
        """Write *content*, returning the new revision.

        Raises :class:`ConflictError` when the backend's current revision
        does not satisfy *precondition*. *message* is a human-readable
        change description where the backend keeps an audit trail.
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a document exists at *path*."""

    def list_documents(self, dir_path: str) -> list[str]:
        """List document paths under *dir_path* (recursive, sorted).

        Only available when :attr:`supports_listing` is true.
        """
        msg = f"{type(self).__name__} cannot enumerate documents"
        raise UnsupportedOperationError(msg, path=dir_path)

    def close(self) -> None:
        """Release backend resources (no-op by default)."""


# ---------------------------------------------------------------------------
# Compare-and-swap primitive
# ---------------------------------------------------------------------------


def compare_and_swap(
    store: DocumentStore,
    path: str,
    mutate: Callable[[bytes | None], bytes],
    *,
    retries: int = 0,
    message: str | None = None,
    create_missing: bool = False,
) -> str | None:
    """Read-mutate-write *path* guarded by the revision captured at read time.

    *mutate* receives the current bytes (``None`` when the document is
    missing and *create_missing* is set) and returns the new bytes. It may
    raise to abort without writing.

    On :class:`ConflictError` the whole read-mutate-write is retried up to
    *retries* more times; the last conflict propagates. ``retries=0`` is
    the plain two-step sequence with no retry.

    Returns the new revision.
    """
    attempt = 0
    while True:
        try:
            current = store.read_versioned(path)
        except NotFoundError:
            if not create_missing:
                raise
            content: bytes | None = None
            precondition = Precondition.absent()
        else:
            content = current.content
            precondition = Precondition.matches(current.revision)

        new_content = mutate(content)
        try:
            return store.write(path, new_content, precondition, message=message)
        except ConflictError:
            if attempt >= retries:
                logger.warning("Write conflict on %s (no retries left)", path)
                raise
            attempt += 1
            logger.info("Write conflict on %s, retry %d/%d", path, attempt, retries)
