"""Cooperative deadlines for long-running traversals."""
from __future__ import annotations

import time
from typing import Callable, Optional

from analytics.errors import AnalysisTimeout


class Deadline:
    """Point in time after which traversal loops stop with ``AnalysisTimeout``.

    Loops call ``check()`` once per unit of work; a deadline created with
    ``seconds=None`` never expires.
    """

    def __init__(self, seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.seconds = seconds
        self.expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def none(cls) -> "Deadline":
        return cls(None)

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self) -> None:
        if self.expired:
            raise AnalysisTimeout(f"Analysis exceeded its {self.seconds}s deadline")


def ensure(deadline: Optional[Deadline]) -> Deadline:
    return deadline if deadline is not None else Deadline.none()
