"""Error taxonomy shared by stores, codecs, and the update engine.

Every exception carries a stable ``code`` so the service boundary can turn
it into a structured :class:`~mykb.services.result.ServiceError` without
matching on message text.
"""

from __future__ import annotations

from typing import Any, ClassVar


class KbError(Exception):
    """Base class for all knowledge-base failures."""

    code: ClassVar[str] = "KB_ERROR"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def detail(self) -> dict[str, Any]:
        """Extra context for the structured error payload."""
        return {"path": self.path} if self.path else {}


class StoreError(KbError):
    """A backend failed for a reason outside the specific kinds below."""

    code = "STORE_ERROR"


class NotFoundError(StoreError):
    """No document exists at the requested path."""

    code = "NOT_FOUND"


class ConflictError(StoreError):
    """The write precondition did not match the backend's current revision."""

    code = "CONFLICT"

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        expected: str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.expected = expected

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "expected_revision": self.expected}


class AuthError(StoreError):
    """Missing or rejected credential."""

    code = "AUTH_ERROR"


class UnsupportedOperationError(StoreError):
    """The backend does not offer the requested capability."""

    code = "UNSUPPORTED"


class MalformedError(KbError):
    """A document could not be decoded."""

    code = "MALFORMED"


class DuplicateError(KbError):
    """A create targeted an identifier that already exists."""

    code = "DUPLICATE"


class ValidationGapError(KbError):
    """An update, delete, or move named an identifier that does not exist."""

    code = "VALIDATION_GAP"


class PartialMoveError(KbError):
    """A cross-collection move removed the record but failed to place it.

    The source document has already been rewritten without the record, so
    the record exists in neither collection. ``record`` holds the moved
    payload for manual recovery.
    """

    code = "PARTIAL_MOVE"

    def __init__(
        self,
        message: str,
        *,
        source: str,
        target: str,
        identifier: str,
        record: Any,
    ) -> None:
        super().__init__(message, path=target)
        self.source = source
        self.target = target
        self.identifier = identifier
        self.record = record

    def detail(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "identifier": self.identifier,
            "record": self.record,
        }
