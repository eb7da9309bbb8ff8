"""
Serialized admission: one in-flight writer per event within this process.

Attempts for the same event queue on a per-event asyncio.Lock, so requests
handled by one worker never lose a version race to each other. Attempts for
different events use different locks and proceed in parallel; there is no
global lock. A lock is held for a single attempt only (read, conditional
write, commit) and released before any retry backoff.

Other processes are not covered by these locks. Their conflicts still
surface as failed version bumps and are retried by the booking service.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from eventreg.core.logging import get_logger
from eventreg.services.interfaces.admission import AdmissionStrategy

logger = get_logger(__name__)


class SerializedAdmission(AdmissionStrategy):

    name = "serialized"

    def __init__(self) -> None:
        # Entries disappear once no attempt holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    @asynccontextmanager
    async def attempt(self, event_id: int) -> AsyncIterator[None]:
        lock = self.lock_for(event_id)
        if lock.locked():
            logger.debug("admission_waiting", event_id=event_id)
        async with lock:
            yield

    def tracked_events(self) -> int:
        return len(self._locks)
