"""Reverse-order compensation of resources created by earlier stages."""

from typing import Callable, List, Tuple

from amipub.common import CleanupFailure, LogLevel
from amipub.utils import log_message


class CompensationStack:
    """
    Records a delete action for each created resource.

    ``unwind`` runs the recorded deletes newest first. A failing delete is
    logged and collected, never raised, and is not retried.
    """

    def __init__(self):
        self._entries: List[Tuple[str, Callable[[], None]]] = []

    def push(self, resource: str, delete_fn: Callable[[], None]) -> None:
        self._entries.append((resource, delete_fn))

    def discard(self, resource: str) -> None:
        """Forget a resource that is now a deliverable rather than an intermediate."""
        self._entries = [entry for entry in self._entries if entry[0] != resource]

    def __len__(self) -> int:
        return len(self._entries)

    def run(self, resource: str) -> List[CleanupFailure]:
        """Run and remove the delete recorded for one resource."""
        failures = []
        for name, delete_fn in list(self._entries):
            if name == resource:
                self._entries.remove((name, delete_fn))
                failures.extend(self._invoke(name, delete_fn))
        return failures

    def unwind(self) -> List[CleanupFailure]:
        failures = []
        while self._entries:
            name, delete_fn = self._entries.pop()
            failures.extend(self._invoke(name, delete_fn))
        return failures

    @staticmethod
    def _invoke(resource: str, delete_fn: Callable[[], None]) -> List[CleanupFailure]:
        log_message(LogLevel.INFO, f"Deleting {resource}")
        try:
            delete_fn()
        except Exception as e:
            log_message(LogLevel.WARN, f"Failed to delete {resource}: {e}")
            return [CleanupFailure(resource, e)]
        return []
