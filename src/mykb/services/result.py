"""ServiceResult and ServiceError: the universal service contract.

INVARIANT: All public service methods return ServiceResult.
The CLI and the MCP tool layer consume this type; neither sees raw
exceptions from stores or the update engine.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``code`` is one of the :mod:`mykb.domain.errors` codes
    (``NOT_FOUND``, ``CONFLICT``, ``AUTH_ERROR``, ...) or
    ``INVALID_INPUT`` for rejected arguments.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """What every service operation returns.

    Attributes:
        ok: True when the operation completed.
        op: Operation name, e.g. ``"add_skill"``.
        data: Payload on success (lists come with a ``count``).
        warnings: Things the caller should know that did not stop the
            operation, such as a missing optional document.
        error: Set exactly when ``ok`` is False.
        meta: Timings, present only with verbose telemetry.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
