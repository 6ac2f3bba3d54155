"""Shared service-layer helper functions."""

from __future__ import annotations

import time
from datetime import date


def today() -> date:
    """Today's local date (journal entries are filed by the operator's day)."""
    return date.today()


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return today().isoformat()


def generate_id(prefix: str) -> str:
    """``<prefix>-<nanosecond timestamp>`` for list-keyed collections.

    Uniqueness rests on clock resolution: two ids generated within the same
    clock tick collide.
    """
    return f"{prefix}-{time.time_ns()}"


def parse_date(value: str | date) -> date:
    """Accept ``YYYY-MM-DD`` strings or date objects. Raises ``ValueError``."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)
