from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable with values read back from DateTime columns."""

    return datetime.now(UTC).replace(tzinfo=None)


__all__ = ["Clock", "utcnow"]
