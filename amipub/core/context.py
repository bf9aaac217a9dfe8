"""Explicit per-run context passed to every stage."""

import time
from typing import Callable, Optional

from amipub.common import DeadlineExceededError


class PublishContext:
    """
    Deadline and clock for one publish run.

    The deadline starts open and is narrowed once signed capabilities exist, so
    that no stage starts after the capabilities it depends on have expired.
    """

    def __init__(self, deadline: Optional[float] = None, clock: Callable[[], float] = time.time):
        self.deadline = deadline
        self.clock = clock

    def now(self) -> float:
        return self.clock()

    def with_deadline(self, deadline: Optional[float]) -> "PublishContext":
        """Return a context whose deadline is the earlier of the two."""
        if deadline is None:
            return self
        if self.deadline is not None:
            deadline = min(self.deadline, deadline)
        return PublishContext(deadline=deadline, clock=self.clock)

    def remaining(self, default: Optional[float] = None) -> Optional[float]:
        """Seconds left before the deadline, or ``default`` when there is none."""
        if self.deadline is None:
            return default
        left = max(self.deadline - self.now(), 0.0)
        if default is not None:
            return min(left, default)
        return left

    def expired(self) -> bool:
        return self.deadline is not None and self.now() >= self.deadline

    def check(self, stage: str) -> None:
        if self.expired():
            raise DeadlineExceededError(f"deadline passed before {stage} could start; signed URLs have expired")
