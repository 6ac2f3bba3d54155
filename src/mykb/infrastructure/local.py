"""LocalBackend: a DocumentStore over a local directory tree.

Concurrency is not tracked: revisions are always ``None`` and write
preconditions are ignored, so two writers to the same path are
last-write-wins with no detection. Each individual overwrite is atomic
(temp file in the target directory, then ``os.replace``).
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from mykb.domain.errors import NotFoundError, StoreError
from mykb.infrastructure.store import DocumentStore, Precondition, VersionedDocument

logger = logging.getLogger(__name__)

# Directories skipped when listing.
_SKIP_DIRS = frozenset({".git", ".mykb", "node_modules"})


class LocalBackend(DocumentStore):
    """File-tree store rooted at *root*."""

    supports_listing = True

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        """Map a store path to a filesystem path inside the root.

        Raises ``ValueError`` for paths that escape the root.
        """
        result = self._root / path
        if not result.resolve().is_relative_to(self._root.resolve()):
            msg = f"Path escapes store root: {path}"
            raise ValueError(msg)
        return result

    def read(self, path: str) -> bytes:
        target = self.resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            msg = f"No document at {path}"
            raise NotFoundError(msg, path=path) from None
        except IsADirectoryError:
            msg = f"{path} is a directory"
            raise NotFoundError(msg, path=path) from None
        except OSError as exc:
            msg = f"Failed to read {path}: {exc}"
            raise StoreError(msg, path=path) from exc

    def read_versioned(self, path: str) -> VersionedDocument:
        return VersionedDocument(path=path, content=self.read(path), revision=None)

    def revision(self, path: str) -> str | None:
        return None

    def write(
        self,
        path: str,
        content: bytes,
        precondition: Precondition,
        *,
        message: str | None = None,
    ) -> str | None:
        target = self.resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(content)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            msg = f"Failed to write {path}: {exc}"
            raise StoreError(msg, path=path) from exc

        logger.debug("Wrote %s (%d bytes)%s", path, len(content), f": {message}" if message else "")
        return None

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def list_documents(self, dir_path: str) -> list[str]:
        base = self.resolve(dir_path) if dir_path else self._root
        if not base.is_dir():
            return []
        results: list[str] = []
        for file in base.rglob("*"):
            if not file.is_file() or file.name.startswith("."):
                continue
            rel = file.relative_to(self._root)
            if any(part in _SKIP_DIRS for part in rel.parts):
                continue
            results.append(rel.as_posix())
        return sorted(results)
