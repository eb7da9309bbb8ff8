"""
Optimistic admission strategy - no in-process coordination.
Relies entirely on the database's conditional version bump.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from eventreg.services.interfaces.admission import AdmissionStrategy


class OptimisticAdmission(AdmissionStrategy):
    """
    Let every attempt race; losers see a version conflict and retry.

    Use when:
    - Several worker processes share the database anyway
    - Contention per event is low
    """

    name = "optimistic"

    @asynccontextmanager
    async def attempt(self, event_id: int) -> AsyncIterator[None]:
        yield
