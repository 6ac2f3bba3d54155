"""BaseService: abstract foundation for all mykb services.

Every service receives a :class:`KnowledgeBase` at construction time and
owns the error boundary of its operations: store, codec, and engine
exceptions are caught here and converted into a failed
:class:`ServiceResult`. Nothing is retried at this layer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mykb.domain.errors import KbError
from mykb.services.result import ServiceError, ServiceResult
from mykb.services.update import PartialUpdateEngine

if TYPE_CHECKING:
    from mykb.infrastructure.knowledge_base import KnowledgeBase
    from mykb.infrastructure.store import DocumentStore

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class SkillService(BaseService):
            def add_skill(self, ...) -> ServiceResult:
                try:
                    self._engine.add(...)
                except KbError as exc:
                    return self._failure("add_skill", exc)
                return ServiceResult(ok=True, op="add_skill", data={...})
    """

    def __init__(self, kb: KnowledgeBase) -> None:
        self._kb = kb
        self._engine = PartialUpdateEngine(kb.store, retries=kb.conflict_retries)

    @property
    def _store(self) -> DocumentStore:
        return self._kb.store

    @staticmethod
    def _ok(op: str, data: dict[str, Any], warnings: list[str] | None = None) -> ServiceResult:
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings or [])

    @staticmethod
    def _failure(op: str, exc: KbError) -> ServiceResult:
        """Convert a domain exception into a failed result."""
        logger.info("%s failed: %s %s", op, exc.code, exc.message)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail()),
        )

    @staticmethod
    def _invalid(op: str, message: str | ValidationError | ValueError) -> ServiceResult:
        """Reject caller input."""
        if isinstance(message, ValidationError):
            text = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
                for err in message.errors()
            )
        else:
            text = str(message)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code="INVALID_INPUT", message=text),
        )
