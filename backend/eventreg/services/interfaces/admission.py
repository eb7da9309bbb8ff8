"""
Admission strategy interface.
Decides how concurrent writers to the same event are scoped in-process.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class AdmissionStrategy(ABC):
    """
    Interface for per-event write scoping.

    Every admission attempt and every cancellation runs inside
    `attempt(event_id)`. Whatever the strategy does, the database's
    conditional version bump stays the final arbiter, so the capacity
    invariant holds across processes for every implementation.

    Implementations:
    - OptimisticAdmission: no in-process scoping, conflicts are retried
    - SerializedAdmission: one writer per event per process
    """

    name: str = "abstract"

    @abstractmethod
    def attempt(self, event_id: int) -> AsyncContextManager[None]:
        """
        Scope a single write attempt against an event.

        Args:
            event_id: Event whose seat inventory the attempt touches

        Returns:
            Async context manager held for exactly one attempt.
        """
