"""Operation timing: @traced and timed_step.

Off by default (one ContextVar read per call). With ``--verbose`` each
traced service call records how long it and its named steps took, logs
the result through structlog and attaches it to ``ServiceResult.meta``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from mykb.services.result import ServiceResult

log = structlog.get_logger("mykb.telemetry")

_enabled: ContextVar[bool] = ContextVar("_enabled", default=False)
_active: ContextVar[Timing | None] = ContextVar("_active", default=None)


@dataclass
class Timing:
    """Elapsed time of one operation and its steps."""

    name: str
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    steps: list[Timing] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def stop(self) -> None:
        self.finished = time.perf_counter()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.steps:
            out["steps"] = [s.to_dict() for s in self.steps]
        return out


@contextmanager
def timed_step(name: str) -> Generator[Timing | None]:
    """Time a named step inside the current traced operation."""
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    step = Timing(name=name)
    parent.steps.append(step)
    token = _active.set(step)
    try:
        yield step
    finally:
        step.stop()
        _active.reset(token)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method and attach the timing to ``ServiceResult.meta``."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        timing = Timing(name=func.__qualname__)
        token = _active.set(timing)
        try:
            result = func(*args, **kwargs)
        finally:
            timing.stop()
            _active.reset(token)

        ok = result.ok if isinstance(result, ServiceResult) else True
        log.debug("op.complete", op=timing.name, duration_ms=round(timing.duration_ms, 2), ok=ok)
        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "timing": timing.to_dict()}
            result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
        return result

    return wrapper


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
